"""Fallback strategies for collaborator failures

Provides orchestration for trying multiple strategies in sequence until one succeeds.
Used to degrade the advisory text generator to static payloads.
"""

import logging
from typing import Any, Awaitable, Callable, List, TypeVar
from dataclasses import dataclass

from ecoprogress.resilience.metrics import record_fallback

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class FallbackStrategy:
    """
    Defines a fallback strategy with priority ordering.

    Attributes:
        name: Human-readable name for logging
        handler: Async callable that implements the strategy
        priority: Priority level (lower = higher priority, 1 = primary)
    """
    name: str
    handler: Callable[..., Awaitable[Any]]
    priority: int


async def execute_with_fallbacks(
    strategies: List[FallbackStrategy],
    *args: Any,
    **kwargs: Any
) -> Any:
    """
    Execute strategies in priority order until one succeeds.

    Tries each strategy in turn. If one succeeds, returns immediately.
    If all fail, raises the last exception encountered.

    Args:
        strategies: List of FallbackStrategy to try
        *args, **kwargs: Arguments to pass to each strategy handler

    Returns:
        Result from first successful strategy

    Raises:
        Last exception if all strategies fail

    Example:
        strategies = [
            FallbackStrategy("advisor_api", generate_insights_text, priority=1),
            FallbackStrategy("static_insights", static_insights, priority=2),
        ]
        result = await execute_with_fallbacks(strategies, summary)
    """
    if not strategies:
        raise ValueError("At least one fallback strategy is required")

    sorted_strategies = sorted(strategies, key=lambda s: s.priority)

    last_exception = None
    primary_api = sorted_strategies[0].name

    for strategy in sorted_strategies:
        try:
            logger.info(f"[FALLBACK] Trying strategy: {strategy.name}")

            result = await strategy.handler(*args, **kwargs)

            logger.info(f"[FALLBACK] Strategy '{strategy.name}' succeeded")

            if strategy.priority > 1:
                record_fallback(primary_api, strategy.name, success=True)

            return result

        except Exception as e:
            logger.warning(
                f"[FALLBACK] Strategy '{strategy.name}' failed: "
                f"{type(e).__name__}: {e}"
            )
            last_exception = e

            if strategy.priority > 1:
                record_fallback(primary_api, strategy.name, success=False)

    logger.error(
        f"[FALLBACK] All {len(sorted_strategies)} fallback strategies exhausted"
    )
    raise last_exception
