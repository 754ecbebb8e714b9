"""
Async retry with full jitter for remote provider calls.

1. **Full async support** — never blocks the event loop.
2. **Full jitter** — randomises delay in [0, cap] to prevent thundering herds.
3. **Non-retryable exceptions** — cancellation and caller bugs abort at once.

Usage::

    from intent_router.utils.async_retry import async_retry

    @async_retry(max_attempts=4, base_delay=0.5, jitter=True)
    async def call_llm(prompt: str) -> str:
        ...
"""

from __future__ import annotations

import asyncio
import logging
import random
from functools import wraps
from typing import Any, Callable, Coroutine, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Coroutine[Any, Any, Any]])

_DEFAULT_RETRYABLE: Tuple[Type[Exception], ...] = (Exception,)


def async_retry(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retryable_exceptions: Tuple[Type[Exception], ...] = _DEFAULT_RETRYABLE,
    non_retryable_exceptions: Tuple[Type[Exception], ...] = (),
    on_retry: Optional[Callable[[int, Exception], None]] = None,
) -> Callable[[F], F]:
    """
    Async retry decorator with exponential backoff and optional full jitter.

    Args:
        max_attempts: Total number of attempts (including the first).
        base_delay: Initial delay in seconds before the first retry.
        max_delay: Upper cap on delay (seconds).
        backoff_factor: Multiplier applied to delay after each failure.
        jitter: If True, applies full jitter: delay = random(0, min(cap, base * factor^n)).
        retryable_exceptions: Only retry on these exception types.
        non_retryable_exceptions: Never retry on these (takes precedence).
        on_retry: Optional callback(attempt_number, exception) called before each retry.

    Returns:
        Decorated async function that retries on failure.
    """

    def decorator(func: F) -> F:
        func_name = func.__qualname__

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            last_exc: Optional[Exception] = None
            delay = base_delay

            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)

                except non_retryable_exceptions as exc:
                    logger.debug("%s: non-retryable %s, aborting", func_name, type(exc).__name__)
                    raise

                except retryable_exceptions as exc:
                    last_exc = exc

                    if attempt == max_attempts:
                        break

                    actual_delay = (
                        random.uniform(0.0, min(max_delay, delay))
                        if jitter
                        else min(max_delay, delay)
                    )

                    logger.warning(
                        "%s: attempt %d/%d failed (%s: %s), retrying in %.2fs",
                        func_name,
                        attempt,
                        max_attempts,
                        type(exc).__name__,
                        exc,
                        actual_delay,
                    )

                    if on_retry is not None:
                        on_retry(attempt, exc)

                    await asyncio.sleep(actual_delay)
                    delay *= backoff_factor

            logger.error(
                "%s: all %d attempts failed. Last error: %s",
                func_name,
                max_attempts,
                last_exc,
            )
            raise last_exc  # type: ignore[misc]

        return wrapper  # type: ignore[return-value]

    return decorator
