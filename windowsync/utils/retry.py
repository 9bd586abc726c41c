"""Retry utilities with exponential backoff for provider calls."""

import time
from functools import wraps
from typing import Callable, Tuple, Type

import structlog

log = structlog.stdlib.get_logger()


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Get the delay before retry number ``attempt`` (zero-based)."""
    return min(base_delay * (2**attempt), max_delay)


def exponential_backoff_retry(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
) -> Callable:
    """
    Decorator that retries a function with exponential backoff.

    With ``max_retries=0`` the wrapped function is called exactly once and
    its exception propagates unchanged.

    Args:
        max_retries: Maximum number of retry attempts
        base_delay: Initial delay in seconds
        max_delay: Maximum delay in seconds
        exceptions: Tuple of exception types to catch and retry
        sleep: Function used to wait between attempts

    Returns:
        Decorated function with retry logic
    """

    def decorator(func: Callable) -> Callable:
        name = getattr(func, "__qualname__", repr(func))

        @wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_retries:
                        if max_retries:
                            log.error(
                                "max_retries_reached",
                                function=name,
                                max_retries=max_retries,
                                error=str(e),
                            )
                        raise

                    delay = backoff_delay(attempt, base_delay, max_delay)

                    log.warning(
                        "retrying_after_error",
                        function=name,
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        delay_seconds=delay,
                        error=str(e),
                    )

                    sleep(delay)

        return wrapper

    return decorator
