"""
Application services module.
"""

from deal_analysis.services.narrative import (
    EnrichedAnalysis,
    Narrative,
    NarrativeService,
    get_narrative_service,
)

__all__ = ["EnrichedAnalysis", "Narrative", "NarrativeService", "get_narrative_service"]
