"""
Advisory text generation

Turns a user's footprint summary into insights, recommendations and answers
to free-form questions using an OpenAI chat model. The model call sits
behind ADVISOR_BREAKER and is never retried; any failure (or a missing API
key) degrades to a fixed fallback payload.
"""

import json
import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from openai import AsyncOpenAI
from pydantic import BaseModel

from ecoprogress.config import (
    ADVISOR_MAX_TOKENS,
    ADVISOR_MODEL,
    ENABLE_ADVISOR,
    INSIGHTS_WINDOW_DAYS,
    OPENAI_API_KEY,
)
from ecoprogress.db.store import ProgressStore
from ecoprogress.exceptions import RecordNotFoundError, ValidationError, wrap_external_exception
from ecoprogress.insights.summaries import FootprintSummary, build_footprint_summary
from ecoprogress.models.activity import ActivityCategory
from ecoprogress.models.user import UserFootprint
from ecoprogress.resilience.circuit_breaker import ADVISOR_BREAKER, with_circuit_breaker
from ecoprogress.resilience.fallback import FallbackStrategy, execute_with_fallbacks
from ecoprogress.resilience.metrics import record_api_call
from ecoprogress.utils.datetime_helpers import ensure_aware, now_local

logger = logging.getLogger(__name__)

# Global average used as a comparison point in prompts (tons CO2 per year)
GLOBAL_AVERAGE_TONS = 4.5

FALLBACK_INSIGHTS: Dict[str, str] = {
    "overview": "Unable to generate AI insights at this time.",
    "insights": "Please try again later.",
    "improvements": "Focus on reducing high-impact activities.",
    "positives": "Every small action counts!",
    "comparison": "Track your progress over time.",
}

FALLBACK_RECOMMENDATIONS: List[Dict[str, str]] = [
    {
        "title": "Start tracking",
        "description": "Begin logging your daily activities",
        "impact": "Medium",
        "difficulty": "Easy",
        "timeframe": "Daily",
    }
]

# Served when the model answers but not with a JSON array
GENERAL_RECOMMENDATIONS: List[Dict[str, str]] = [
    {
        "title": "Track your daily activities",
        "description": "Start by logging all your activities to understand your impact",
        "impact": "Medium",
        "difficulty": "Easy",
        "timeframe": "Daily",
    },
    {
        "title": "Reduce transportation emissions",
        "description": "Consider walking, biking, or public transport for short trips",
        "impact": "High",
        "difficulty": "Medium",
        "timeframe": "Weekly",
    },
    {
        "title": "Optimize energy usage",
        "description": "Switch to energy-efficient appliances and turn off unused devices",
        "impact": "High",
        "difficulty": "Medium",
        "timeframe": "Monthly",
    },
    {
        "title": "Adopt a plant-based diet",
        "description": "Reduce meat consumption and choose local, seasonal foods",
        "impact": "Very High",
        "difficulty": "Hard",
        "timeframe": "Lifestyle",
    },
    {
        "title": "Invest in renewable energy",
        "description": "Consider solar panels or green energy providers",
        "impact": "Very High",
        "difficulty": "Hard",
        "timeframe": "Long-term",
    },
]

FALLBACK_ANALYSIS = "I'm unable to analyze your data at this time. Please try again later."


class InsightsResult(BaseModel):
    insights: Dict[str, Any]
    summary: FootprintSummary
    fallback: bool = False


class RecommendationsResult(BaseModel):
    recommendations: List[Dict[str, Any]]
    category: Optional[ActivityCategory] = None
    baseline_tons: Optional[float] = None
    total_tons: Optional[float] = None
    fallback: bool = False


class AnalysisResult(BaseModel):
    question: str
    analysis: str
    summary: FootprintSummary
    fallback: bool = False


# ============================================
# Model call
# ============================================

def advisor_enabled() -> bool:
    return ENABLE_ADVISOR and bool(OPENAI_API_KEY)


def _model_name() -> str:
    # "openai:gpt-4o-mini" -> "gpt-4o-mini"
    return ADVISOR_MODEL.split(":", 1)[-1]


@with_circuit_breaker(ADVISOR_BREAKER)
async def request_completion(prompt: str) -> str:
    """
    Single chat completion, no retry

    Raises:
        AdvisorAPIError / ExternalAPIError: provider or transport failure
        CircuitBreakerError: breaker is open
    """
    client = AsyncOpenAI(api_key=OPENAI_API_KEY)
    start = time.time()

    try:
        response = await client.chat.completions.create(
            model=_model_name(),
            messages=[
                {"role": "system", "content": "You are an environmental sustainability expert."},
                {"role": "user", "content": prompt},
            ],
            temperature=0.4,
            max_tokens=ADVISOR_MAX_TOKENS,
        )
    except Exception as e:
        record_api_call("advisor_api", success=False, duration=time.time() - start)
        raise wrap_external_exception(e, operation="advisor_completion") from e

    record_api_call("advisor_api", success=True, duration=time.time() - start)
    return (response.choices[0].message.content or "").strip()


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[-1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def parse_json_answer(text: str) -> Optional[Union[Dict[str, Any], List[Any]]]:
    """Parsed JSON object/array from a model answer, or None if it is prose"""
    try:
        parsed = json.loads(_strip_code_fence(text))
    except ValueError:
        return None
    return parsed if isinstance(parsed, (dict, list)) else None


# ============================================
# Prompts
# ============================================

def _format_activities(summary: FootprintSummary, limit: int, with_category: bool = False) -> str:
    lines = []
    for activity in summary.recent_activities[:limit]:
        footprint = activity.carbon_footprint
        prefix = f"{activity.category.value}: " if with_category else ""
        lines.append(f"- {prefix}{activity.title} ({footprint.value} {footprint.unit.value} CO2)")
    return "\n".join(lines) or "- none logged"


def build_insights_prompt(summary: FootprintSummary) -> str:
    breakdown = ", ".join(
        f"{c.category.value} {c.total_kg:.1f} kg ({c.percentage:.0f}%)" for c in summary.by_category
    ) or "no activities"

    return f"""Analyze this user's carbon footprint data and provide insights.

Carbon Footprint Data (last {summary.window_days} days):
- Total: {summary.total_tons:.2f} tons CO2
- Activities: {summary.activity_count}
- Breakdown by category: {breakdown}

Recent Activities:
{_format_activities(summary, 5)}

Provide:
1. A brief overview of their carbon footprint
2. Key insights about their environmental impact
3. Areas for improvement
4. Positive actions they're taking
5. Comparison to average (global average is ~{GLOBAL_AVERAGE_TONS} tons/year)

Return valid JSON only with keys: overview, insights, improvements, positives, comparison.
Keep each section concise (2-3 sentences max)."""


def build_recommendations_prompt(
    summary: FootprintSummary,
    footprint: Optional[UserFootprint],
    category: Optional[ActivityCategory]
) -> str:
    baseline = f"{footprint.baseline:.2f} tons CO2" if footprint else "unknown"

    return f"""Provide personalized recommendations for reducing carbon footprint.

User Profile:
- Current Total (last {summary.window_days} days): {summary.total_tons:.2f} tons CO2
- Baseline: {baseline}
- Focus Category: {category.value if category else 'general'}

Recent Activities:
{_format_activities(summary, 10, with_category=True)}

Provide 5 specific, actionable recommendations:
1. One immediate action they can take today
2. One weekly habit to develop
3. One monthly goal to set
4. One lifestyle change to consider
5. One long-term investment or change

Return a JSON array of objects with keys: title, description, impact, difficulty, timeframe"""


def build_analysis_prompt(summary: FootprintSummary, question: str) -> str:
    titles = ", ".join(a.title for a in summary.recent_activities) or "none"

    return f"""Answer this specific question about the user's carbon footprint:

Question: {question}

User Data:
- Total Footprint (last {summary.window_days} days): {summary.total_tons:.2f} tons CO2
- Activities Count: {summary.activity_count}
- Recent Activities: {titles}

Give a helpful answer based on their specific data.
Focus on actionable insights and practical advice.
Keep the response under 300 words."""


# ============================================
# Advisor
# ============================================

class Advisor:
    """
    Advisory text for one store

    Args:
        store: Activity and footprint source
        window_days: Trailing window summarised for the model
    """

    def __init__(self, store: ProgressStore, window_days: int = INSIGHTS_WINDOW_DAYS):
        self.store = store
        self.window_days = window_days

    async def _summary(self, user_id: str, now: Optional[datetime]) -> FootprintSummary:
        now = ensure_aware(now or now_local())
        return await build_footprint_summary(self.store, user_id, now, self.window_days)

    async def _run(self, primary, fallback):
        strategies = [FallbackStrategy("static_payload", fallback, priority=2)]
        if advisor_enabled():
            strategies.append(FallbackStrategy("advisor_api", primary, priority=1))
        else:
            logger.debug("Advisor disabled or no API key, serving static payload")
        return await execute_with_fallbacks(strategies)

    async def insights(self, user_id: str, now: Optional[datetime] = None) -> InsightsResult:
        """Overview, insights, improvements, positives and comparison for the window"""
        summary = await self._summary(user_id, now)

        async def generate() -> InsightsResult:
            text = await request_completion(build_insights_prompt(summary))
            parsed = parse_json_answer(text)
            if isinstance(parsed, dict):
                return InsightsResult(insights=parsed, summary=summary)
            return InsightsResult(
                insights={
                    "overview": text,
                    "insights": "Analysis completed",
                    "improvements": "See overview for details",
                    "positives": "See overview for details",
                    "comparison": "See overview for details",
                },
                summary=summary,
            )

        async def static() -> InsightsResult:
            return InsightsResult(insights=dict(FALLBACK_INSIGHTS), summary=summary, fallback=True)

        return await self._run(generate, static)

    async def recommendations(
        self,
        user_id: str,
        category: Optional[ActivityCategory] = None,
        now: Optional[datetime] = None
    ) -> RecommendationsResult:
        """Five actionable recommendations, optionally focused on one category"""
        summary = await self._summary(user_id, now)
        category = ActivityCategory(category) if category is not None else None

        try:
            footprint = await self.store.get_user_footprint(user_id)
        except RecordNotFoundError:
            footprint = None

        def result(recommendations: List[Dict[str, Any]], fallback: bool = False) -> RecommendationsResult:
            return RecommendationsResult(
                recommendations=recommendations,
                category=category,
                baseline_tons=footprint.baseline if footprint else None,
                total_tons=footprint.total if footprint else None,
                fallback=fallback,
            )

        async def generate() -> RecommendationsResult:
            text = await request_completion(build_recommendations_prompt(summary, footprint, category))
            parsed = parse_json_answer(text)
            if isinstance(parsed, list):
                return result([item for item in parsed if isinstance(item, dict)])
            return result([dict(r) for r in GENERAL_RECOMMENDATIONS])

        async def static() -> RecommendationsResult:
            return result([dict(r) for r in FALLBACK_RECOMMENDATIONS], fallback=True)

        return await self._run(generate, static)

    async def analyze(self, user_id: str, question: str, now: Optional[datetime] = None) -> AnalysisResult:
        """
        Free-form answer to a user's question about their footprint

        Raises:
            ValidationError: question is empty or blank
        """
        if not question or not question.strip():
            raise ValidationError(
                message="Question is required",
                field="question",
                value=question,
                user_id=user_id,
                operation="analyze"
            )
        question = question.strip()
        summary = await self._summary(user_id, now)

        async def generate() -> AnalysisResult:
            text = await request_completion(build_analysis_prompt(summary, question))
            return AnalysisResult(question=question, analysis=text, summary=summary)

        async def static() -> AnalysisResult:
            return AnalysisResult(question=question, analysis=FALLBACK_ANALYSIS, summary=summary, fallback=True)

        return await self._run(generate, static)
