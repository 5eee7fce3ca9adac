"""
Financial Calculation Engine

Deterministic analysis of a single leveraged property deal: amortization,
cash flow projection, IRR, NPV, payback, scenarios and risk scoring.
All functions are pure; nothing here performs I/O.
"""

from deal_analysis.calculations import (
    amortization,
    analysis,
    cashflow,
    irr,
    payback,
    risk,
    scenarios,
)
from deal_analysis.calculations.analysis import AnalysisResult, analyze_deal
from deal_analysis.calculations.deal import DealParameters, validate_deal_parameters
from deal_analysis.calculations.errors import (
    AnalysisError,
    NumericDegeneracyError,
    ValidationError,
)

__all__ = [
    "amortization",
    "analysis",
    "cashflow",
    "irr",
    "payback",
    "risk",
    "scenarios",
    "AnalysisResult",
    "analyze_deal",
    "DealParameters",
    "validate_deal_parameters",
    "AnalysisError",
    "NumericDegeneracyError",
    "ValidationError",
]
