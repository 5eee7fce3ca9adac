"""
Deal analysis API endpoint.

Runs the calculation engine for one deal and, on request, decorates the
result with a generated narrative.
"""

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from deal_analysis.calculations import errors
from deal_analysis.calculations.analysis import analyze_deal
from deal_analysis.calculations.deal import DealParameters
from deal_analysis.calculations.scenarios import get_scenario_set
from deal_analysis.services.narrative import EnrichedAnalysis, get_narrative_service

logger = logging.getLogger(__name__)

router = APIRouter()


class DealInput(BaseModel):
    """Deal parameters. Rates are percentages (6.5 = 6.5%)."""

    property_id: Optional[str] = None

    # Acquisition & loan
    purchase_price: float
    down_payment_percent: float
    loan_interest_rate: float
    loan_term_years: int

    # Operations
    annual_rental_income: float
    vacancy_rate: float = 5.0
    annual_operating_expenses: float

    # Growth & exit
    annual_property_appreciation: float = 3.0
    holding_period_years: int = 5


class CashFlowRow(BaseModel):
    year: int
    cash_flow: float
    cumulative_cash_flow: float
    net_operating_income: float
    property_value: float
    sale_proceeds: Optional[float] = None


class RiskFactorOut(BaseModel):
    factor: str
    risk: float


class ScenarioMetricsOut(BaseModel):
    name: str
    description: str
    appreciation: float
    vacancy_rate: float
    operating_expenses: float
    irr: float
    irr_converged: bool
    npv: float
    cap_rate: float
    cash_on_cash_return: Optional[float]
    payback_period_years: float
    payback_recovered: bool
    risk_score: int
    annual_cash_flow: float
    net_operating_income: float
    terminal_property_value: float
    approximate_irr: Optional[float]


class NarrativeOut(BaseModel):
    risk_score: Optional[float] = None
    summary: str
    recommendations: str
    market_conditions: str


class AnalysisResponse(BaseModel):
    """Computed metrics for a deal."""

    irr: float
    irr_converged: bool
    irr_iterations: int
    npv: float
    cap_rate: float
    cash_on_cash_return: Optional[float]
    payback_period_years: float
    payback_recovered: bool
    risk_score: int
    risk_factors: List[RiskFactorOut]
    monthly_payment: float
    annual_debt_service: float
    down_payment: float
    loan_amount: float
    net_operating_income: float
    annual_cash_flow: float
    cash_flow_series: List[CashFlowRow]
    scenarios: Dict[str, ScenarioMetricsOut]
    scenario_comparison_set: str
    scenario_comparison: Dict[str, ScenarioMetricsOut]

    # Narrative enrichment (optional)
    narrative: Optional[NarrativeOut] = None
    narrative_error: Optional[str] = None


def validation_http_error(e: errors.ValidationError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={
            "field": e.field,
            "message": e.message,
            "errors": [{"field": f, "message": m} for f, m in e.errors],
        },
    )


def run_analysis(inputs: DealInput, comparison_set: str = "literal"):
    """Validate and analyze, mapping engine errors to HTTP errors."""
    try:
        params = DealParameters.from_mapping(inputs.model_dump())
        return analyze_deal(params, get_scenario_set(comparison_set))
    except errors.ValidationError as e:
        logger.info(f"Rejected deal input: {e}")
        raise validation_http_error(e)
    except errors.NumericDegeneracyError as e:
        logger.info(f"Deal metrics undefined: {e}")
        raise HTTPException(status_code=400, detail=str(e))


@router.post("", response_model=AnalysisResponse)
async def analyze(
    inputs: DealInput,
    comparison_set: str = "literal",
    include_narrative: bool = False,
):
    """Calculate return metrics, scenarios and risk for a deal."""
    result = run_analysis(inputs, comparison_set)

    if include_narrative:
        enriched = await get_narrative_service().enrich(result)
    else:
        enriched = EnrichedAnalysis(result=result)

    data = enriched.to_dict()
    data.pop("parameters")
    return data
