"""
Standalone calculation API endpoints.

These endpoints expose individual engine pieces (IRR, amortization, risk)
for charts and quick what-if checks.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from deal_analysis.api.analysis import (
    DealInput,
    RiskFactorOut,
    run_analysis,
    validation_http_error,
)
from deal_analysis.calculations import amortization, errors, irr, payback
from deal_analysis.calculations.deal import check_value

router = APIRouter()


class IRRInput(BaseModel):
    """Annual cash flows, year 0 first."""

    cash_flows: List[float]


class IRRResponse(BaseModel):
    """Response with IRR calculation."""

    irr: float
    converged: bool
    iterations: int
    multiple: float
    profit: float
    npv_at_8_percent: float
    payback_period_years: float
    payback_recovered: bool


@router.post("/irr", response_model=IRRResponse)
async def calculate_irr_endpoint(inputs: IRRInput):
    """Calculate IRR, NPV and payback for given cash flows."""
    try:
        result = irr.solve_irr(inputs.cash_flows)
        multiple = irr.calculate_multiple(inputs.cash_flows)
    except errors.NumericDegeneracyError as e:
        raise HTTPException(status_code=400, detail=str(e))

    recovery = payback.calculate_payback(inputs.cash_flows[0], inputs.cash_flows[1:])

    return IRRResponse(
        irr=result.rate,
        converged=result.converged,
        iterations=result.iterations,
        multiple=multiple,
        profit=sum(inputs.cash_flows),
        npv_at_8_percent=irr.calculate_reference_npv(inputs.cash_flows),
        payback_period_years=recovery.years,
        payback_recovered=recovery.recovered,
    )


class AmortizationInput(BaseModel):
    """Input for amortization calculation. Rate in percent."""

    principal: float
    annual_rate: float
    loan_term_years: int
    total_months: Optional[int] = None
    start_date: Optional[date] = None


@router.post("/amortization")
async def calculate_amortization(inputs: AmortizationInput):
    """Generate loan amortization schedule."""
    problems = []
    if inputs.principal <= 0:
        problems.append(("principal", "must be > 0"))
    for field, rule, value in (
        ("annual_rate", "loan_interest_rate", inputs.annual_rate),
        ("loan_term_years", "loan_term_years", inputs.loan_term_years),
    ):
        message = check_value(rule, value)
        if message:
            problems.append((field, message))
    if inputs.total_months is not None and inputs.total_months < 1:
        problems.append(("total_months", "must be >= 1"))
    if problems:
        field, message = problems[0]
        raise validation_http_error(errors.ValidationError(field, message, problems))

    annual_rate = inputs.annual_rate / 100
    months = inputs.loan_term_years * 12
    payments_made = months if inputs.total_months is None else min(inputs.total_months, months)

    try:
        monthly_payment = amortization.calculate_payment(inputs.principal, annual_rate, months)
        schedule = amortization.generate_amortization_schedule(
            principal=inputs.principal,
            annual_rate=annual_rate,
            amortization_months=months,
            total_months=inputs.total_months,
            start_date=inputs.start_date,
        )
        remaining_balance = amortization.calculate_remaining_balance(
            inputs.principal, annual_rate, months, payments_made
        )
    except errors.NumericDegeneracyError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "monthly_payment": monthly_payment,
        "annual_debt_service": amortization.calculate_annual_debt_service(
            inputs.principal, annual_rate, months
        ),
        "schedule": schedule,
        "total_interest": amortization.calculate_total_interest(schedule),
        "total_principal": amortization.calculate_total_principal(schedule),
        "remaining_balance": remaining_balance,
    }


class RiskResponse(BaseModel):
    risk_score: int
    risk_factors: List[RiskFactorOut]


@router.post("/risk", response_model=RiskResponse)
async def calculate_risk(inputs: DealInput):
    """Headline risk score and the six-factor breakdown for a deal."""
    result = run_analysis(inputs)
    return RiskResponse(
        risk_score=result.risk_score,
        risk_factors=[f.to_dict() for f in result.risk_factors],
    )
