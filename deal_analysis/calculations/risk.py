"""
Risk Scoring

Two separate outputs:

1. A six-factor breakdown (leverage, interest rate, vacancy, cash flow,
   market, ROI), each on a 0-100 scale, used for the radar chart.
2. A headline risk score that looks only at leverage and return quality.

The headline score is not derived from the breakdown.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

FACTOR_LEVERAGE = "Leverage"
FACTOR_INTEREST_RATE = "Interest Rate"
FACTOR_VACANCY = "Vacancy"
FACTOR_CASH_FLOW = "Cash Flow"
FACTOR_MARKET = "Market"
FACTOR_ROI = "ROI"

# Headline return-quality tiers: (IRR below, risk)
HEADLINE_RETURN_TIERS = [
    (0.0, 100.0),
    (8.0, 70.0),
    (12.0, 45.0),
    (18.0, 25.0),
]
HEADLINE_RETURN_FLOOR = 10.0
NEGATIVE_CARRY_PENALTY = 10.0


@dataclass(frozen=True)
class RiskFactor:
    factor: str
    risk: float

    def to_dict(self) -> Dict:
        return {"factor": self.factor, "risk": self.risk}


@dataclass(frozen=True)
class RiskAssessment:
    """Headline score plus the radar-chart breakdown."""

    score: int
    factors: Tuple[RiskFactor, ...]

    def to_dict(self) -> Dict:
        return {"score": self.score, "factors": [f.to_dict() for f in self.factors]}


def _clip(value: float) -> float:
    return max(0.0, min(100.0, value))


def leverage_risk(loan_to_value_ratio: float) -> float:
    return _clip(loan_to_value_ratio * 120)


def interest_rate_risk(loan_interest_rate: float) -> float:
    return _clip((loan_interest_rate / 10) * 100)


def vacancy_risk(vacancy_rate: float) -> float:
    return _clip(vacancy_rate * 10)


def cash_flow_risk(cash_on_cash_return: float) -> float:
    if cash_on_cash_return < 5:
        return 80.0
    if cash_on_cash_return < 8:
        return 50.0
    return 20.0


def market_risk(annual_property_appreciation: float) -> float:
    if annual_property_appreciation < 2:
        return 70.0
    if annual_property_appreciation > 5:
        return 30.0
    return 40.0


def roi_risk(irr: float) -> float:
    if irr < 10:
        return 70.0
    if irr < 15:
        return 40.0
    return 20.0


def calculate_risk_factors(
    loan_to_value_ratio: float,
    loan_interest_rate: float,
    vacancy_rate: float,
    cash_on_cash_return: float,
    annual_property_appreciation: float,
    irr: float,
) -> List[RiskFactor]:
    """
    Calculate the six risk sub-scores in radar-chart order.

    Args:
        loan_to_value_ratio: Loan / purchase price (0..1)
        loan_interest_rate: Annual rate in percent
        vacancy_rate: Vacancy in percent
        cash_on_cash_return: Year-one cash on cash in percent
        annual_property_appreciation: Appreciation assumption in percent
        irr: IRR in percent
    """
    return [
        RiskFactor(FACTOR_LEVERAGE, leverage_risk(loan_to_value_ratio)),
        RiskFactor(FACTOR_INTEREST_RATE, interest_rate_risk(loan_interest_rate)),
        RiskFactor(FACTOR_VACANCY, vacancy_risk(vacancy_rate)),
        RiskFactor(FACTOR_CASH_FLOW, cash_flow_risk(cash_on_cash_return)),
        RiskFactor(FACTOR_MARKET, market_risk(annual_property_appreciation)),
        RiskFactor(FACTOR_ROI, roi_risk(irr)),
    ]


def calculate_headline_risk_score(
    loan_to_value_ratio: float, irr: float, cash_on_cash_return: float
) -> int:
    """
    Headline risk score (0-100, higher is riskier).

    Half leverage (LTV as a percentage), half return quality (tiered on
    IRR), plus a fixed penalty when year-one cash flow is negative.
    """
    return_risk = HEADLINE_RETURN_FLOOR
    for threshold, risk in HEADLINE_RETURN_TIERS:
        if irr < threshold:
            return_risk = risk
            break

    score = 0.5 * _clip(loan_to_value_ratio * 100) + 0.5 * return_risk
    if cash_on_cash_return < 0:
        score += NEGATIVE_CARRY_PENALTY

    return int(round(_clip(score)))


def assess_risk(
    loan_to_value_ratio: float,
    loan_interest_rate: float,
    vacancy_rate: float,
    cash_on_cash_return: float,
    annual_property_appreciation: float,
    irr: float,
) -> RiskAssessment:
    """Headline score and six-factor breakdown for one set of metrics."""
    factors = calculate_risk_factors(
        loan_to_value_ratio,
        loan_interest_rate,
        vacancy_rate,
        cash_on_cash_return,
        annual_property_appreciation,
        irr,
    )
    score = calculate_headline_risk_score(loan_to_value_ratio, irr, cash_on_cash_return)
    return RiskAssessment(score=score, factors=tuple(factors))
