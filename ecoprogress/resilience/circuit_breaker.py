"""Circuit breaker for the advisory text generator

Implements the Circuit Breaker pattern so an unreachable LLM provider fails
fast instead of stalling every insights request. There is no retry: a failed
or short-circuited call goes straight to the fallback payload.

State Machine:
    CLOSED (normal) → OPEN (failing fast) → HALF_OPEN (testing) → CLOSED/OPEN
"""

import pybreaker
import logging
from typing import Callable, Any, TypeVar
from functools import wraps

from ecoprogress.resilience.metrics import record_api_failure, record_circuit_breaker_state

logger = logging.getLogger(__name__)

T = TypeVar('T')


class CircuitBreakerListener(pybreaker.CircuitBreakerListener):
    """Listener to log circuit breaker state changes and emit metrics"""

    def state_change(self, cb: pybreaker.CircuitBreaker, old_state: Any, new_state: Any) -> None:
        """Called when circuit breaker changes state"""
        old_name = old_state.name if old_state else "none"
        logger.warning(
            f"[CIRCUIT_BREAKER] {cb.name}: {old_name} → {new_state.name}"
        )
        record_circuit_breaker_state(cb.name, new_state.name.lower())

    def failure(self, cb: pybreaker.CircuitBreaker, exc: BaseException) -> None:
        """Called when circuit breaker records a failure"""
        logger.error(
            f"[CIRCUIT_BREAKER] {cb.name} recorded failure: {type(exc).__name__}: {exc}"
        )
        record_api_failure(cb.name, type(exc).__name__)

    def success(self, cb: pybreaker.CircuitBreaker) -> None:
        """Called when circuit breaker records a success"""
        logger.debug(f"[CIRCUIT_BREAKER] {cb.name} recorded success")


# 5 failures trips the breaker, 60s before a half-open probe
ADVISOR_BREAKER = pybreaker.CircuitBreaker(
    fail_max=5,
    reset_timeout=60,
    name="advisor_api",
    listeners=[CircuitBreakerListener()]
)


def with_circuit_breaker(breaker: pybreaker.CircuitBreaker) -> Callable:
    """
    Decorator to wrap async functions with circuit breaker protection.

    When the circuit is OPEN, calls fail immediately with CircuitBreakerError
    instead of attempting to call the underlying function.

    Args:
        breaker: The circuit breaker instance to use

    Returns:
        Decorator function

    Example:
        @with_circuit_breaker(ADVISOR_BREAKER)
        async def request_completion(prompt):
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await breaker.call_async(func, *args, **kwargs)
            except pybreaker.CircuitBreakerError:
                logger.warning(
                    f"[CIRCUIT_BREAKER] {breaker.name} is OPEN - failing fast"
                )
                raise
        return wrapper
    return decorator
