"""Footprint summaries and advisory text with static fallbacks"""

from ecoprogress.insights.summaries import FootprintSummary, build_footprint_summary
from ecoprogress.insights.advisor import Advisor, AnalysisResult, InsightsResult, RecommendationsResult

__all__ = [
    "FootprintSummary",
    "build_footprint_summary",
    "Advisor",
    "AnalysisResult",
    "InsightsResult",
    "RecommendationsResult",
]
