"""
Narrative enrichment using an OpenAI-compatible chat completions API.

Decorates a finished analysis with a written summary. Enrichment is best
effort: a missing API key or a failed request leaves the analysis as it is
and reports the reason in ``narrative_error``.
"""

import json
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel

from deal_analysis.calculations.analysis import AnalysisResult
from deal_analysis.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

NOT_CONFIGURED = "narrative generation not configured"

SYSTEM_PROMPT = (
    "You are a real estate investment analyst. Provide clear, actionable insights. "
    "Format your response as JSON with fields: risk_score (number 1-100), "
    "summary (string), recommendations (string), market_conditions (string)."
)


class Narrative(BaseModel):
    """Generated commentary. ``risk_score`` is the model's own opinion."""

    risk_score: Optional[float] = None
    summary: str = ""
    recommendations: str = ""
    market_conditions: str = ""


@dataclass(frozen=True)
class EnrichedAnalysis:
    """An analysis plus its (optional) narrative."""

    result: AnalysisResult
    narrative: Optional[Narrative] = None
    narrative_error: Optional[str] = None

    def to_dict(self) -> Dict:
        data = self.result.to_dict()
        data["narrative"] = self.narrative.model_dump() if self.narrative else None
        data["narrative_error"] = self.narrative_error
        return data


def build_prompt(result: AnalysisResult) -> str:
    """User prompt describing the deal and its computed metrics."""
    p = result.parameters
    if result.cash_on_cash_return is None:
        cash_on_cash = "n/a (no down payment)"
    else:
        cash_on_cash = f"{result.cash_on_cash_return:.2f}%"
    return f"""Analyze this real estate investment opportunity and provide insights:

Purchase Price: ${p.purchase_price:,.0f}
Down Payment: {p.down_payment_percent}% (${result.down_payment:,.0f})
Loan: {p.loan_interest_rate}% for {p.loan_term_years} years
Annual Rental Income: ${p.annual_rental_income:,.0f}
Vacancy Rate: {p.vacancy_rate}%
Operating Expenses: ${p.annual_operating_expenses:,.0f}
Holding Period: {p.holding_period_years} years

Calculated Metrics:
- IRR: {result.irr:.2f}%
- NPV: ${result.npv:,.0f}
- Cap Rate: {result.cap_rate:.2f}%
- Cash on Cash Return: {cash_on_cash}
- Payback Period: {result.payback_period_years:.1f} years
- Annual Cash Flow: ${result.annual_cash_flow:,.0f}

Provide:
1. A risk score (1-100, where 100 is highest risk)
2. A concise summary of the investment quality
3. Key recommendations for the investor
4. Market conditions assessment"""


class NarrativeService:
    """Narrative generation backed by an OpenAI-compatible endpoint."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None):
        self.model = model or settings.narrative_model
        self.client = client

        if self.client is None and settings.narrative_api_key:
            self.client = AsyncOpenAI(
                api_key=settings.narrative_api_key,
                base_url=settings.narrative_base_url,
                timeout=settings.narrative_timeout_seconds,
            )

    async def _generate(self, result: AnalysisResult) -> Narrative:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(result)},
            ],
            response_format={"type": "json_object"},
        )
        content = response.choices[0].message.content
        return Narrative.model_validate(json.loads(content))

    async def enrich(self, result: AnalysisResult) -> EnrichedAnalysis:
        """
        Attach a narrative to a finished analysis.

        Args:
            result: Completed analysis (never modified)

        Returns:
            EnrichedAnalysis with either ``narrative`` or ``narrative_error`` set
        """
        if not self.client:
            logger.info("[NARRATIVE - Console Mode] no API key configured, skipping")
            return EnrichedAnalysis(result=result, narrative_error=NOT_CONFIGURED)

        try:
            narrative = await self._generate(result)
        except OpenAIError as e:
            logger.error(f"Narrative request failed: {str(e)}")
            return EnrichedAnalysis(result=result, narrative_error=f"request failed: {e}")
        except (ValueError, TypeError, IndexError, AttributeError) as e:
            # ValueError covers JSON decoding and schema validation
            logger.error(f"Narrative response could not be parsed: {str(e)}")
            return EnrichedAnalysis(result=result, narrative_error=f"invalid response: {e}")

        logger.info(f"Narrative generated, model risk_score={narrative.risk_score}")
        return EnrichedAnalysis(result=result, narrative=narrative)


# Singleton instance
_narrative_service: Optional[NarrativeService] = None


def get_narrative_service() -> NarrativeService:
    """Get the narrative service singleton."""
    global _narrative_service
    if _narrative_service is None:
        _narrative_service = NarrativeService()
    return _narrative_service
