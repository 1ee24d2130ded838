"""Resilience patterns for the advisory text generator

This module provides a circuit breaker, fallback strategies and metrics
collection. There is no retry layer: failures degrade to
static payloads and the caller may simply ask again.
"""

from ecoprogress.resilience.circuit_breaker import (
    ADVISOR_BREAKER,
    with_circuit_breaker,
)
from ecoprogress.resilience.fallback import execute_with_fallbacks, FallbackStrategy
from ecoprogress.resilience.metrics import (
    record_circuit_breaker_state,
    record_api_call,
    record_api_failure,
    record_fallback,
    record_evaluation,
    record_unlock,
    record_goal_update,
)

__all__ = [
    # Circuit Breakers
    "ADVISOR_BREAKER",
    "with_circuit_breaker",
    # Fallback
    "execute_with_fallbacks",
    "FallbackStrategy",
    # Metrics
    "record_circuit_breaker_state",
    "record_api_call",
    "record_api_failure",
    "record_fallback",
    "record_evaluation",
    "record_unlock",
    "record_goal_update",
]
