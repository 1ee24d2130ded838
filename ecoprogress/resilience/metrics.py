"""Prometheus metrics for the progress engine and its collaborators

Exposes counters for achievement evaluation, unlocks, goal updates,
advisory-generator calls, fallbacks and circuit breaker state.
Metrics are exposed on HTTP endpoint for scraping by Prometheus.
"""

import logging
from prometheus_client import Counter, Histogram, Enum

logger = logging.getLogger(__name__)

# Circuit breaker state
# Values: closed, open, half_open
circuit_breaker_state = Enum(
    'ecoprogress_circuit_breaker_state',
    'Current state of circuit breaker',
    ['api'],
    states=['closed', 'open', 'half_open']
)

# Labels: api (advisor), status (success/failure)
api_calls_total = Counter(
    'ecoprogress_api_calls_total',
    'Total number of external API calls',
    ['api', 'status']
)

api_call_duration = Histogram(
    'ecoprogress_api_call_duration_seconds',
    'Duration of external API calls in seconds',
    ['api'],
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, float('inf'))
)

# Labels: api, error_type (exception class name)
api_failures_total = Counter(
    'ecoprogress_api_failures_total',
    'Total number of external API failures',
    ['api', 'error_type']
)

# Labels: primary_api, fallback_strategy, status (success/failure)
fallback_executions_total = Counter(
    'ecoprogress_fallback_executions_total',
    'Total number of fallback strategy executions',
    ['primary_api', 'fallback_strategy', 'status']
)

# Labels: metric (MetricKind), status (success/failure)
achievement_evaluations_total = Counter(
    'ecoprogress_achievement_evaluations_total',
    'Total number of achievement metric evaluations',
    ['metric', 'status']
)

# Labels: rarity
achievements_unlocked_total = Counter(
    'ecoprogress_achievements_unlocked_total',
    'Total number of achievements unlocked',
    ['rarity']
)

# Labels: transition (progress/milestone/completed)
goal_updates_total = Counter(
    'ecoprogress_goal_updates_total',
    'Total number of goal progress transitions',
    ['transition']
)


def record_circuit_breaker_state(api: str, state: str) -> None:
    """
    Record circuit breaker state change.

    Args:
        api: Breaker name (advisor_api)
        state: New state (closed, open, half_open)
    """
    try:
        circuit_breaker_state.labels(api=api).state(state)
        logger.debug(f"[METRICS] Circuit breaker {api} state: {state}")
    except Exception as e:
        logger.error(f"Failed to record circuit breaker state: {e}")


def record_api_call(api: str, success: bool, duration: float) -> None:
    """
    Record API call metrics.

    Args:
        api: API name
        success: Whether the call succeeded
        duration: Call duration in seconds
    """
    try:
        status = 'success' if success else 'failure'
        api_calls_total.labels(api=api, status=status).inc()
        api_call_duration.labels(api=api).observe(duration)
        logger.debug(f"[METRICS] API call {api}: {status}, duration: {duration:.2f}s")
    except Exception as e:
        logger.error(f"Failed to record API call metrics: {e}")


def record_api_failure(api: str, error_type: str) -> None:
    try:
        api_failures_total.labels(api=api, error_type=error_type).inc()
        logger.debug(f"[METRICS] API failure {api}: {error_type}")
    except Exception as e:
        logger.error(f"Failed to record API failure: {e}")


def record_fallback(primary_api: str, fallback_strategy: str, success: bool) -> None:
    """
    Record fallback strategy execution.

    Args:
        primary_api: Primary strategy that failed
        fallback_strategy: Fallback strategy used
        success: Whether the fallback succeeded
    """
    try:
        status = 'success' if success else 'failure'
        fallback_executions_total.labels(
            primary_api=primary_api,
            fallback_strategy=fallback_strategy,
            status=status
        ).inc()
        logger.debug(
            f"[METRICS] Fallback {primary_api} -> {fallback_strategy}: {status}"
        )
    except Exception as e:
        logger.error(f"Failed to record fallback: {e}")


def record_evaluation(metric: str, success: bool) -> None:
    try:
        status = 'success' if success else 'failure'
        achievement_evaluations_total.labels(metric=metric, status=status).inc()
    except Exception as e:
        logger.error(f"Failed to record achievement evaluation: {e}")


def record_unlock(rarity: str) -> None:
    try:
        achievements_unlocked_total.labels(rarity=rarity).inc()
    except Exception as e:
        logger.error(f"Failed to record achievement unlock: {e}")


def record_goal_update(transition: str, count: int = 1) -> None:
    try:
        goal_updates_total.labels(transition=transition).inc(count)
    except Exception as e:
        logger.error(f"Failed to record goal update: {e}")
