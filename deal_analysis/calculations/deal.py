"""
Deal Parameters

The immutable input to an analysis and its range validation.
"""

import math
from dataclasses import MISSING, dataclass, fields
from typing import Any, List, Mapping, Tuple

from deal_analysis.calculations.errors import ValidationError

DEFAULT_VACANCY_RATE = 5.0
DEFAULT_APPRECIATION = 3.0
DEFAULT_HOLDING_PERIOD_YEARS = 5


@dataclass(frozen=True)
class DealParameters:
    """
    Deal inputs. Rates and percentages are given in percent (6.5 = 6.5%).
    """

    purchase_price: float
    down_payment_percent: float
    loan_interest_rate: float
    loan_term_years: int
    annual_rental_income: float
    annual_operating_expenses: float
    vacancy_rate: float = DEFAULT_VACANCY_RATE
    annual_property_appreciation: float = DEFAULT_APPRECIATION
    holding_period_years: int = DEFAULT_HOLDING_PERIOD_YEARS

    @property
    def down_payment(self) -> float:
        return self.purchase_price * (self.down_payment_percent / 100)

    @property
    def loan_amount(self) -> float:
        return self.purchase_price - self.down_payment

    @property
    def loan_to_value_ratio(self) -> float:
        return (self.purchase_price - self.down_payment) / self.purchase_price

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DealParameters":
        """Build parameters from a request payload, ignoring unknown keys."""
        values = {
            f.name: data[f.name]
            for f in fields(cls)
            if data.get(f.name) is not None
        }
        missing = [
            (f.name, "is required")
            for f in fields(cls)
            if f.name not in values and f.default is MISSING
        ]
        if missing:
            raise ValidationError(missing[0][0], missing[0][1], missing)
        return cls(**values)


# (field, lower, upper, lower inclusive, upper inclusive); None means unbounded
_RANGES = [
    ("purchase_price", 0, None, False, True),
    ("down_payment_percent", 0, 100, True, False),
    ("loan_interest_rate", 0, 30, True, True),
    ("loan_term_years", 1, 30, True, True),
    ("annual_rental_income", 0, None, True, True),
    ("vacancy_rate", 0, 100, True, True),
    ("annual_operating_expenses", 0, None, True, True),
    ("annual_property_appreciation", -10, 20, True, True),
    ("holding_period_years", 1, 30, True, True),
]

_RANGE_BY_FIELD = {name: tuple(bounds) for name, *bounds in _RANGES}

_INTEGER_FIELDS = {"loan_term_years", "holding_period_years"}


def _describe_range(lower, upper, lower_inclusive, upper_inclusive) -> str:
    if upper is None:
        return f"must be {'>=' if lower_inclusive else '>'} {lower}"
    left = "[" if lower_inclusive else "("
    right = "]" if upper_inclusive else ")"
    return f"must be in {left}{lower}, {upper}{right}"


def _check_field(name: str, value: Any, bounds) -> str:
    """Return an error message for one field, or an empty string."""
    lower, upper, lower_inclusive, upper_inclusive = bounds

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return "must be a number"
    if not math.isfinite(value):
        return "must be a finite number"
    if name in _INTEGER_FIELDS and not float(value).is_integer():
        return "must be a whole number of years"

    too_low = value < lower if lower_inclusive else value <= lower
    too_high = False
    if upper is not None:
        too_high = value > upper if upper_inclusive else value >= upper

    if too_low or too_high:
        return _describe_range(lower, upper, lower_inclusive, upper_inclusive)
    return ""


def check_value(name: str, value: Any) -> str:
    """
    Check a value against the allowed range of the deal field ``name``.

    Returns:
        An error message, or an empty string if the value is allowed
    """
    return _check_field(name, value, _RANGE_BY_FIELD[name])


def validate_deal_parameters(params: DealParameters) -> None:
    """
    Check every field against its allowed range.

    Raises:
        ValidationError: Naming the first offending field, with all
            violations listed in ``errors``
    """
    errors: List[Tuple[str, str]] = []

    for name in _RANGE_BY_FIELD:
        message = check_value(name, getattr(params, name))
        if message:
            errors.append((name, message))

    if errors:
        field, message = errors[0]
        raise ValidationError(field, message, errors)
