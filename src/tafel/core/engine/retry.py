import asyncio
import logging

from .conf import get_setting
from .exceptions import TransientNetworkError

logger = logging.getLogger(__name__)

LINEAR = "linear"
EXPONENTIAL = "exponential"


def is_transient(error):
    return isinstance(error, TransientNetworkError)


def backoff_delay(attempt, base_delay, backoff=EXPONENTIAL):
    """Delay before retrying after the given (1-based) failed attempt."""
    if backoff == LINEAR:
        return base_delay * attempt
    if backoff == EXPONENTIAL:
        return base_delay * 2 ** (attempt - 1)
    raise ValueError(f"Unknown backoff strategy {backoff!r}")


async def with_retry(
    operation,
    max_attempts=None,
    base_delay=None,
    backoff=None,
    is_retryable=is_transient,
):
    """Await ``operation()``, retrying transient failures.

    Only errors accepted by ``is_retryable`` are retried. After the last
    attempt, or on the first non-retryable error, the error is re-raised.
    """
    if max_attempts is None:
        max_attempts = get_setting("TAFEL_RETRY_MAX_ATTEMPTS")
    if base_delay is None:
        base_delay = get_setting("TAFEL_RETRY_BASE_DELAY")
    if backoff is None:
        backoff = get_setting("TAFEL_RETRY_BACKOFF")
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as error:
            if attempt >= max_attempts or not is_retryable(error):
                raise
            delay = backoff_delay(attempt, base_delay, backoff)
            logger.warning(
                "Attempt %s/%s failed (%s), retrying in %.2fs",
                attempt,
                max_attempts,
                error,
                delay,
            )
            await asyncio.sleep(delay)
            attempt += 1
