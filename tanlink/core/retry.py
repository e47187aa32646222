"""Bounded retry for store operations."""

import asyncio
from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar

import structlog

from tanlink.core.config import get_settings
from tanlink.core.errors import TransientStoreError

logger = structlog.get_logger()

T = TypeVar("T")


def retry_on_transient_error(
    max_attempts: int | None = None,
    delay_seconds: float | None = None,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Retry an async function when it raises TransientStoreError.

    Uses a fixed delay between attempts. Only transport failures are retried;
    NotFoundError and other logical outcomes pass straight through.

    Args:
        max_attempts: Total attempts. Defaults to settings.store_retry_attempts.
        delay_seconds: Pause between attempts. Defaults to settings.store_retry_delay.
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            settings = get_settings()
            attempts_allowed = max(1, max_attempts or settings.store_retry_attempts)
            delay = settings.store_retry_delay if delay_seconds is None else delay_seconds

            attempt = 0
            while True:
                attempt += 1
                try:
                    return await func(*args, **kwargs)
                except TransientStoreError as e:
                    if attempt >= attempts_allowed:
                        logger.error(
                            "Store operation failed after retries",
                            operation=func.__name__,
                            attempts=attempt,
                            error=str(e),
                        )
                        raise
                    logger.warning(
                        "Transient store error, retrying",
                        operation=func.__name__,
                        attempt=attempt,
                        max_attempts=attempts_allowed,
                        delay=delay,
                    )
                    await asyncio.sleep(delay)

        return wrapper

    return decorator
