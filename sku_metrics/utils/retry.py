"""
Retry helpers for external API calls.

Provides exponential backoff with jitter and a heuristic for deciding
whether a failure is transient (network, timeout, rate limit, 5xx).
"""
import random
from typing import Tuple, Type

from sku_metrics.connectors.exceptions import CommerceNotAuthorizedError

# Default retryable exceptions (network/API errors)
DEFAULT_RETRYABLE_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    ConnectionError,
    TimeoutError,
    OSError,  # Includes network errors
)

RETRYABLE_STATUS_CODES: Tuple[int, ...] = (429, 500, 502, 503, 504)


def calculate_backoff(
    attempt: int,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True
) -> float:
    """
    Calculate delay for exponential backoff.

    Args:
        attempt: Current attempt number (1-indexed)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay cap
        exponential_base: Base for exponential calculation
        jitter: Add 0-25% randomness

    Returns:
        Delay in seconds
    """
    delay = min(base_delay * (exponential_base ** (attempt - 1)), max_delay)
    if jitter:
        delay += delay * random.uniform(0, 0.25)
    return delay


def is_retryable_error(
    error: Exception,
    retryable_exceptions: Tuple[Type[Exception], ...] = DEFAULT_RETRYABLE_EXCEPTIONS,
    retryable_status_codes: Tuple[int, ...] = RETRYABLE_STATUS_CODES
) -> bool:
    """
    Check if an error is worth retrying.

    Authorization failures are never retried: a missing token will not
    appear between attempts.
    """
    if isinstance(error, CommerceNotAuthorizedError):
        return False

    if isinstance(error, retryable_exceptions):
        return True

    # aiohttp.ClientResponseError and friends expose .status
    status = getattr(error, "status", None)
    if isinstance(status, int):
        return status in retryable_status_codes

    error_str = str(error).lower()

    if "rate limit" in error_str or "too many requests" in error_str:
        return True

    for code in retryable_status_codes:
        if str(code) in error_str:
            return True

    if "timeout" in error_str or "timed out" in error_str:
        return True

    if "connection" in error_str and ("refused" in error_str or "reset" in error_str):
        return True

    return False
