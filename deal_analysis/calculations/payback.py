"""
Payback Period Calculations
"""

from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class PaybackResult:
    """Payback in (fractional) years and whether it happened within the hold."""

    years: float
    recovered: bool


def calculate_payback(initial_investment: float, annual_cash_flows: Sequence[float]) -> PaybackResult:
    """
    Find the year at which cumulative cash flow turns non-negative.

    The crossing year is linearly interpolated:
    ``(year - 1) + |cumulative before that year| / cash flow of that year``.
    If the investment is never recovered, the number of years in the series
    is returned (same value as recovering exactly at the end), with
    ``recovered=False``.

    Args:
        initial_investment: Year 0 outlay as a negative number
        annual_cash_flows: Cash flows for years 1..N

    Returns:
        PaybackResult
    """
    cumulative = initial_investment

    for index, cash_flow in enumerate(annual_cash_flows):
        previous = cumulative
        cumulative += cash_flow
        if cumulative >= 0:
            if previous >= 0:
                return PaybackResult(years=float(index), recovered=True)
            return PaybackResult(years=index + abs(previous) / cash_flow, recovered=True)

    return PaybackResult(years=float(len(annual_cash_flows)), recovered=False)


def calculate_payback_period(initial_investment: float, annual_cash_flows: Sequence[float]) -> float:
    """Payback period in years."""
    return calculate_payback(initial_investment, annual_cash_flows).years
