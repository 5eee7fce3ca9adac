"""
Loan Amortization Calculations

Fixed-rate, fully-amortizing loan payment and schedule calculations,
matching Excel's PMT function.
"""

import math
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

from dateutil.relativedelta import relativedelta

from deal_analysis.calculations.errors import NumericDegeneracyError


@dataclass(frozen=True)
class LoanTerms:
    """Loan derived from a deal: principal, decimal annual rate and term."""

    principal: float
    annual_rate: float  # Decimal, e.g. 0.06 for 6%
    term_years: int

    @property
    def amortization_months(self) -> int:
        return self.term_years * 12

    @classmethod
    def from_deal(cls, params) -> "LoanTerms":
        """Build loan terms from DealParameters (rate given in percent)."""
        return cls(
            principal=params.loan_amount,
            annual_rate=params.loan_interest_rate / 100,
            term_years=params.loan_term_years,
        )


def calculate_payment(
    principal: float, annual_rate: float, amortization_months: int
) -> float:
    """
    Calculate monthly loan payment.

    Matches Excel's PMT() function.

    Args:
        principal: Loan principal amount
        annual_rate: Annual interest rate as decimal (e.g., 0.05 for 5%)
        amortization_months: Total amortization period in months

    Returns:
        Monthly payment amount (positive number)

    Raises:
        NumericDegeneracyError: If the payment is not a finite number
    """
    if principal <= 0:
        return 0.0
    if amortization_months <= 0:
        raise NumericDegeneracyError(
            "monthly_payment", "amortization period must be at least one month"
        )

    monthly_rate = annual_rate / 12

    if monthly_rate == 0:
        return principal / amortization_months

    growth = (1 + monthly_rate) ** amortization_months
    payment = principal * monthly_rate * growth / (growth - 1)

    if not math.isfinite(payment):
        raise NumericDegeneracyError(
            "monthly_payment", f"payment is not finite for rate {annual_rate}"
        )

    return payment


def calculate_annual_debt_service(
    principal: float, annual_rate: float, amortization_months: int
) -> float:
    """Annual debt service: twelve fixed monthly payments."""
    return calculate_payment(principal, annual_rate, amortization_months) * 12


def calculate_remaining_balance(
    principal: float,
    annual_rate: float,
    amortization_months: int,
    payments_completed: int,
) -> float:
    """Calculate remaining loan balance after N payments."""
    monthly_rate = annual_rate / 12
    payment = calculate_payment(principal, annual_rate, amortization_months)

    if monthly_rate == 0:
        return max(0.0, principal - payment * payments_completed)

    balance = principal * ((1 + monthly_rate) ** payments_completed) - payment * (
        ((1 + monthly_rate) ** payments_completed - 1) / monthly_rate
    )

    return max(0.0, balance)


def generate_amortization_schedule(
    principal: float,
    annual_rate: float,
    amortization_months: int,
    total_months: Optional[int] = None,
    start_date: Optional[date] = None,
) -> List[Dict]:
    """
    Generate a monthly amortization schedule.

    Args:
        principal: Loan principal amount
        annual_rate: Annual interest rate as decimal
        amortization_months: Amortization period in months
        total_months: Number of rows to produce (defaults to the full term)
        start_date: Date of first payment

    Returns:
        List of amortization rows
    """
    schedule = []
    balance = principal
    monthly_rate = annual_rate / 12
    payment = calculate_payment(principal, annual_rate, amortization_months)

    if total_months is None:
        total_months = amortization_months
    if start_date is None:
        start_date = date.today()

    for period in range(1, min(total_months, amortization_months) + 1):
        period_date = start_date + relativedelta(months=period - 1)

        interest = balance * monthly_rate

        if period == amortization_months:
            # Final payment clears any rounding residue
            principal_pmt = balance
        else:
            principal_pmt = min(payment - interest, balance)

        ending_balance = balance - principal_pmt

        schedule.append(
            {
                "period": period,
                "date": period_date.isoformat(),
                "beginning_balance": round(balance, 2),
                "payment": round(principal_pmt + interest, 2),
                "interest": round(interest, 2),
                "principal": round(principal_pmt, 2),
                "ending_balance": round(max(0, ending_balance), 2),
            }
        )

        balance = max(0.0, ending_balance)

        if balance == 0:
            break

    return schedule


def calculate_total_interest(schedule: List[Dict]) -> float:
    """Calculate total interest paid over the schedule."""
    return sum(row["interest"] for row in schedule)


def calculate_total_principal(schedule: List[Dict]) -> float:
    """Calculate total principal repaid over the schedule."""
    return sum(row["principal"] for row in schedule)
