"""
Deal Analysis

Single entry point for the engine: validates the deal, computes the base
case and both scenario tables, and returns one immutable result.
"""

import logging
from dataclasses import dataclass, fields
from typing import Dict, Mapping, Optional, Tuple

from deal_analysis.calculations.cashflow import CashFlowEntry
from deal_analysis.calculations.deal import DealParameters, validate_deal_parameters
from deal_analysis.calculations.risk import RiskFactor
from deal_analysis.calculations.scenarios import (
    BASE,
    LITERAL,
    MULTIPLICATIVE,
    ScenarioMetrics,
    ScenarioSet,
    evaluate_scenario,
    evaluate_scenarios,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    """
    Outcome of one analysis. Rates are in percent, amounts in the currency
    of the inputs. Values are unrounded. ``cash_on_cash_return`` is None
    for a 0% down payment.
    """

    parameters: DealParameters
    irr: float
    irr_converged: bool
    irr_iterations: int
    npv: float
    cap_rate: float
    cash_on_cash_return: Optional[float]
    payback_period_years: float
    payback_recovered: bool
    risk_score: int
    risk_factors: Tuple[RiskFactor, ...]
    monthly_payment: float
    annual_debt_service: float
    down_payment: float
    loan_amount: float
    net_operating_income: float
    annual_cash_flow: float
    cash_flow_series: Tuple[CashFlowEntry, ...]
    scenarios: Mapping[str, ScenarioMetrics]
    scenario_comparison_set: str
    scenario_comparison: Mapping[str, ScenarioMetrics]

    def to_dict(self) -> Dict:
        """Plain, JSON-ready representation."""
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "parameters":
                value = {p.name: getattr(value, p.name) for p in fields(value)}
            elif f.name in ("risk_factors", "cash_flow_series"):
                value = [item.to_dict() for item in value]
            elif f.name in ("scenarios", "scenario_comparison"):
                value = {name: metrics.to_dict() for name, metrics in value.items()}
            data[f.name] = value
        return data


def analyze_deal(
    params: DealParameters, comparison_set: ScenarioSet = LITERAL
) -> AnalysisResult:
    """
    Run the complete analysis for a deal.

    Args:
        params: Deal inputs
        comparison_set: Scenario set for the comparison table

    Returns:
        AnalysisResult

    Raises:
        ValidationError: If any input is out of range (before any computation)
        NumericDegeneracyError: If a metric is undefined for these inputs
    """
    validate_deal_parameters(params)

    logger.debug(
        f"Analyzing deal: price={params.purchase_price} "
        f"down={params.down_payment_percent}% hold={params.holding_period_years}y"
    )

    base = evaluate_scenario(params, MULTIPLICATIVE.get(BASE))
    metrics = base.metrics

    result = AnalysisResult(
        parameters=params,
        irr=metrics.irr,
        irr_converged=metrics.irr_converged,
        irr_iterations=base.irr_iterations,
        npv=metrics.npv,
        cap_rate=metrics.cap_rate,
        cash_on_cash_return=metrics.cash_on_cash_return,
        payback_period_years=metrics.payback_period_years,
        payback_recovered=metrics.payback_recovered,
        risk_score=base.risk.score,
        risk_factors=base.risk.factors,
        monthly_payment=base.monthly_payment,
        annual_debt_service=base.annual_debt_service,
        down_payment=params.down_payment,
        loan_amount=params.loan_amount,
        net_operating_income=metrics.net_operating_income,
        annual_cash_flow=metrics.annual_cash_flow,
        cash_flow_series=base.cash_flow_series,
        scenarios=evaluate_scenarios(params, MULTIPLICATIVE),
        scenario_comparison_set=comparison_set.name,
        scenario_comparison=evaluate_scenarios(params, comparison_set),
    )

    logger.debug(
        f"Financial metrics calculated: irr={result.irr:.2f}% npv={result.npv:.2f} "
        f"cap_rate={result.cap_rate:.2f}% risk_score={result.risk_score}"
    )

    return result
