"""
Cash Flow Calculations

Generates the annual cash flow projection for a single-property hold,
ending in a sale at the last year of the holding period.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from deal_analysis.calculations.deal import DealParameters


@dataclass(frozen=True)
class CashFlowEntry:
    """One year of the projection. Year 0 is the equity outlay."""

    year: int
    cash_flow: float
    cumulative_cash_flow: float
    net_operating_income: float
    property_value: float
    sale_proceeds: Optional[float] = None

    def to_dict(self) -> Dict:
        row = {
            "year": self.year,
            "cash_flow": self.cash_flow,
            "cumulative_cash_flow": self.cumulative_cash_flow,
            "net_operating_income": self.net_operating_income,
            "property_value": self.property_value,
        }
        if self.sale_proceeds is not None:
            row["sale_proceeds"] = self.sale_proceeds
        return row


def calculate_effective_rental_income(annual_rental_income: float, vacancy_rate: float) -> float:
    """Rental income after vacancy loss (vacancy_rate in percent)."""
    return annual_rental_income * (1 - vacancy_rate / 100)


def calculate_net_operating_income(
    annual_rental_income: float, vacancy_rate: float, operating_expenses: float
) -> float:
    """NOI: effective rental income less operating expenses, before debt service."""
    return calculate_effective_rental_income(annual_rental_income, vacancy_rate) - operating_expenses


def calculate_appreciation_factor(appreciation: float, year: int) -> float:
    """
    Compounded growth factor for a given year.

    Args:
        appreciation: Annual appreciation in percent (e.g., 3.0 for 3%)
        year: Years since acquisition
    """
    return (1 + appreciation / 100) ** year


def project_cash_flows(
    params: DealParameters,
    appreciation: float,
    vacancy_rate: float,
    operating_expenses: float,
    annual_debt_service: float,
) -> List[CashFlowEntry]:
    """
    Build the year-by-year cash flow series for one set of assumptions.

    Operating cash flow and NOI grow with the appreciation factor, the same
    factor used for property value. At the final year the property is sold
    and the original loan principal is repaid out of the proceeds (principal
    paydown is not modelled).

    Args:
        params: Deal inputs (price, loan, rent, holding period)
        appreciation: Annual appreciation in percent for this scenario
        vacancy_rate: Vacancy in percent for this scenario
        operating_expenses: Annual operating expenses for this scenario
        annual_debt_service: Twelve monthly loan payments

    Returns:
        holding_period_years + 1 entries, year 0 first
    """
    down_payment = params.down_payment
    loan_amount = params.loan_amount
    hold = params.holding_period_years

    noi = calculate_net_operating_income(
        params.annual_rental_income, vacancy_rate, operating_expenses
    )
    base_cash_flow = noi - annual_debt_service

    series = [
        CashFlowEntry(
            year=0,
            cash_flow=-down_payment,
            cumulative_cash_flow=-down_payment,
            net_operating_income=0.0,
            property_value=params.purchase_price,
        )
    ]
    cumulative = -down_payment

    for year in range(1, hold + 1):
        factor = calculate_appreciation_factor(appreciation, year)
        year_cash_flow = base_cash_flow * factor
        property_value = params.purchase_price * factor

        sale_proceeds = None
        if year == hold:
            sale_proceeds = property_value - loan_amount
            year_cash_flow += sale_proceeds

        cumulative += year_cash_flow

        series.append(
            CashFlowEntry(
                year=year,
                cash_flow=year_cash_flow,
                cumulative_cash_flow=cumulative,
                net_operating_income=noi * factor,
                property_value=property_value,
                sale_proceeds=sale_proceeds,
            )
        )

    return series


def cash_flow_amounts(series: Sequence[CashFlowEntry]) -> List[float]:
    """Extract the plain cash flow column, year 0 first."""
    return [entry.cash_flow for entry in series]
