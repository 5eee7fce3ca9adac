"""
Scenario Analysis

Runs the full metric pipeline (amortization, cash flows, IRR, NPV, payback,
risk) once per named scenario.

Three fixed scenario sets exist. They produce different numbers for the
same scenario name and are never merged:

- MULTIPLICATIVE: scales the deal's own assumptions (cash flow view).
- LITERAL: fixed appreciation/vacancy values (scenario comparison view).
- ADDITIVE: shifts the deal's assumptions by whole points (the assumptions
  stored alongside an analysis).
"""

import logging
import math
from dataclasses import asdict, dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from deal_analysis.calculations.amortization import (
    LoanTerms,
    calculate_annual_debt_service,
    calculate_payment,
)
from deal_analysis.calculations.cashflow import (
    CashFlowEntry,
    calculate_net_operating_income,
    cash_flow_amounts,
    project_cash_flows,
)
from deal_analysis.calculations.deal import DealParameters
from deal_analysis.calculations.errors import NumericDegeneracyError, ValidationError
from deal_analysis.calculations.irr import calculate_reference_npv, solve_irr
from deal_analysis.calculations.payback import calculate_payback
from deal_analysis.calculations.risk import RiskAssessment, assess_risk

logger = logging.getLogger(__name__)

PESSIMISTIC = "pessimistic"
BASE = "base"
OPTIMISTIC = "optimistic"
SCENARIO_NAMES = (PESSIMISTIC, BASE, OPTIMISTIC)


@dataclass(frozen=True)
class AppliedAssumptions:
    appreciation: float
    vacancy_rate: float
    operating_expenses: float


@dataclass(frozen=True)
class ScenarioAssumption:
    """
    Adjustment of a deal's appreciation, vacancy and expense assumptions.

    For appreciation and vacancy an override replaces the deal's value;
    otherwise the value is multiplied, then shifted by the delta.
    Vacancy always ends up within 0-100%.
    """

    name: str
    description: str = ""
    appreciation_multiplier: float = 1.0
    appreciation_delta: float = 0.0
    appreciation_override: Optional[float] = None
    appreciation_floor: Optional[float] = None
    vacancy_multiplier: float = 1.0
    vacancy_delta: float = 0.0
    vacancy_override: Optional[float] = None
    expense_multiplier: float = 1.0

    def apply(self, params: DealParameters) -> AppliedAssumptions:
        if self.appreciation_override is not None:
            appreciation = self.appreciation_override
        else:
            appreciation = (
                params.annual_property_appreciation * self.appreciation_multiplier
                + self.appreciation_delta
            )
            if self.appreciation_floor is not None:
                appreciation = max(self.appreciation_floor, appreciation)

        if self.vacancy_override is not None:
            vacancy = self.vacancy_override
        else:
            vacancy = params.vacancy_rate * self.vacancy_multiplier + self.vacancy_delta
        vacancy = max(0.0, min(100.0, vacancy))

        return AppliedAssumptions(
            appreciation=appreciation,
            vacancy_rate=vacancy,
            operating_expenses=params.annual_operating_expenses * self.expense_multiplier,
        )


@dataclass(frozen=True)
class ScenarioSet:
    name: str
    scenarios: Tuple[ScenarioAssumption, ...]

    def get(self, scenario_name: str) -> ScenarioAssumption:
        for scenario in self.scenarios:
            if scenario.name == scenario_name:
                return scenario
        raise KeyError(scenario_name)


MULTIPLICATIVE = ScenarioSet(
    name="multiplicative",
    scenarios=(
        ScenarioAssumption(
            name=PESSIMISTIC,
            description="Half the appreciation, 1.5x vacancy, 10% higher expenses",
            appreciation_multiplier=0.5,
            vacancy_multiplier=1.5,
            expense_multiplier=1.1,
        ),
        ScenarioAssumption(name=BASE, description="Current assumptions"),
        ScenarioAssumption(
            name=OPTIMISTIC,
            description="1.5x appreciation, 0.6x vacancy, 10% lower expenses",
            appreciation_multiplier=1.5,
            vacancy_multiplier=0.6,
            expense_multiplier=0.9,
        ),
    ),
)

LITERAL = ScenarioSet(
    name="literal",
    scenarios=(
        ScenarioAssumption(
            name=PESSIMISTIC,
            description="1% appreciation, 8% vacancy",
            appreciation_override=1.0,
            vacancy_override=8.0,
        ),
        ScenarioAssumption(
            name=BASE,
            description="3% appreciation, 5% vacancy",
            appreciation_override=3.0,
            vacancy_override=5.0,
        ),
        ScenarioAssumption(
            name=OPTIMISTIC,
            description="5% appreciation, 3% vacancy",
            appreciation_override=5.0,
            vacancy_override=3.0,
        ),
    ),
)

ADDITIVE = ScenarioSet(
    name="additive",
    scenarios=(
        ScenarioAssumption(
            name=PESSIMISTIC,
            description="Worst case scenario with lower appreciation and higher vacancy",
            appreciation_delta=-2.0,
            appreciation_floor=0.0,
            vacancy_delta=3.0,
        ),
        ScenarioAssumption(name=BASE, description="Current assumptions"),
        ScenarioAssumption(
            name=OPTIMISTIC,
            description="Best case scenario with higher appreciation and lower vacancy",
            appreciation_delta=2.0,
            vacancy_delta=-2.0,
        ),
    ),
)

SCENARIO_SETS: Dict[str, ScenarioSet] = {
    s.name: s for s in (MULTIPLICATIVE, LITERAL, ADDITIVE)
}


def get_scenario_set(name: str) -> ScenarioSet:
    """Look up a scenario set by name."""
    try:
        return SCENARIO_SETS[name]
    except KeyError:
        raise ValidationError(
            "scenario_set", f"must be one of {', '.join(sorted(SCENARIO_SETS))}"
        ) from None


@dataclass(frozen=True)
class ScenarioMetrics:
    """
    Return metrics for one scenario (no cash flow series).

    ``cash_on_cash_return`` and ``approximate_irr`` are None for a 0% down
    payment.
    """

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

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class ScenarioEvaluation:
    """Everything computed for one scenario, including the series."""

    metrics: ScenarioMetrics
    cash_flow_series: Tuple[CashFlowEntry, ...]
    monthly_payment: float
    annual_debt_service: float
    irr_iterations: int
    risk: RiskAssessment


def calculate_cap_rate(net_operating_income: float, purchase_price: float) -> float:
    """Cap rate in percent."""
    return net_operating_income / purchase_price * 100


def calculate_cash_on_cash_return(annual_cash_flow: float, down_payment: float) -> float:
    """Year-one cash on cash return in percent."""
    if down_payment == 0:
        raise NumericDegeneracyError(
            "cash_on_cash_return", "undefined with no cash invested (0% down payment)"
        )
    return annual_cash_flow / down_payment * 100


def calculate_approximate_irr(
    annual_cash_flow: float, sale_proceeds: float, down_payment: float, holding_period_years: int
) -> float:
    """
    Simple annualised return used by the scenario comparison chart:
    total undiscounted return over the equity, spread evenly over the hold.
    """
    if down_payment == 0:
        raise NumericDegeneracyError(
            "approximate_irr", "undefined with no cash invested (0% down payment)"
        )
    total_return = annual_cash_flow * holding_period_years + sale_proceeds
    return (total_return / down_payment - 1) / holding_period_years * 100


def evaluate_scenario(params: DealParameters, assumption: ScenarioAssumption) -> ScenarioEvaluation:
    """
    Run every calculation for one scenario.

    Args:
        params: Validated deal inputs
        assumption: Scenario adjustment to apply

    Returns:
        ScenarioEvaluation
    """
    applied = assumption.apply(params)
    loan = LoanTerms.from_deal(params)

    monthly_payment = calculate_payment(loan.principal, loan.annual_rate, loan.amortization_months)
    annual_debt_service = calculate_annual_debt_service(
        loan.principal, loan.annual_rate, loan.amortization_months
    )

    series = project_cash_flows(
        params,
        appreciation=applied.appreciation,
        vacancy_rate=applied.vacancy_rate,
        operating_expenses=applied.operating_expenses,
        annual_debt_service=annual_debt_service,
    )
    cash_flows = cash_flow_amounts(series)

    noi = calculate_net_operating_income(
        params.annual_rental_income, applied.vacancy_rate, applied.operating_expenses
    )
    annual_cash_flow = noi - annual_debt_service
    down_payment = params.down_payment

    cap_rate = calculate_cap_rate(noi, params.purchase_price)

    terminal = series[-1]
    if down_payment > 0:
        cash_on_cash = calculate_cash_on_cash_return(annual_cash_flow, down_payment)
        approximate_irr = calculate_approximate_irr(
            annual_cash_flow, terminal.sale_proceeds, down_payment, params.holding_period_years
        )
        risk_cash_on_cash = cash_on_cash
    else:
        # Returns on cash invested are undefined with nothing invested
        cash_on_cash = None
        approximate_irr = None
        risk_cash_on_cash = math.copysign(math.inf, annual_cash_flow)

    irr_result = solve_irr(cash_flows)
    npv = calculate_reference_npv(cash_flows)
    payback = calculate_payback(-down_payment, cash_flows[1:])

    risk = assess_risk(
        loan_to_value_ratio=params.loan_to_value_ratio,
        loan_interest_rate=params.loan_interest_rate,
        vacancy_rate=applied.vacancy_rate,
        cash_on_cash_return=risk_cash_on_cash,
        annual_property_appreciation=applied.appreciation,
        irr=irr_result.rate,
    )

    metrics = ScenarioMetrics(
        name=assumption.name,
        description=assumption.description,
        appreciation=applied.appreciation,
        vacancy_rate=applied.vacancy_rate,
        operating_expenses=applied.operating_expenses,
        irr=irr_result.rate,
        irr_converged=irr_result.converged,
        npv=npv,
        cap_rate=cap_rate,
        cash_on_cash_return=cash_on_cash,
        payback_period_years=payback.years,
        payback_recovered=payback.recovered,
        risk_score=risk.score,
        annual_cash_flow=annual_cash_flow,
        net_operating_income=noi,
        terminal_property_value=terminal.property_value,
        approximate_irr=approximate_irr,
    )

    logger.debug(
        f"Scenario {assumption.name}: irr={metrics.irr:.2f}% npv={metrics.npv:.2f} "
        f"payback={metrics.payback_period_years:.2f}y"
    )

    return ScenarioEvaluation(
        metrics=metrics,
        cash_flow_series=tuple(series),
        monthly_payment=monthly_payment,
        annual_debt_service=annual_debt_service,
        irr_iterations=irr_result.iterations,
        risk=risk,
    )


def evaluate_scenarios(
    params: DealParameters, scenario_set: ScenarioSet = MULTIPLICATIVE
) -> Mapping[str, ScenarioMetrics]:
    """
    Evaluate all three scenarios of a set.

    Returns:
        Read-only mapping of scenario name to metrics, pessimistic first
    """
    results = {
        assumption.name: evaluate_scenario(params, assumption).metrics
        for assumption in scenario_set.scenarios
    }
    return MappingProxyType(results)
