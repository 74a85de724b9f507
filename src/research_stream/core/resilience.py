"""Resilience patterns for the agent stream transport, using hyx.

Only the request that OPENS the stream is retried. Once the first frame has
been read the response is not replayable, so later failures propagate as
TransportError and the partially accumulated view is kept.

Usage:
    from research_stream.core.resilience import stream_retry, wrap_httpx_errors

    @stream_retry(attempts=3)
    @wrap_httpx_errors
    async def open_stream(...):
        ...
"""

from functools import wraps
from typing import Any, Callable, TypeVar

import httpx
from hyx.retry.api import retry
from hyx.retry.backoffs import expo

from research_stream.core.exceptions import (
    CreditsRequiredError,
    RateLimitedError,
    TransportError,
)

__all__ = [
    "TransientError",
    "ResilienceConfig",
    "stream_retry",
    "classify_http_error",
    "wrap_httpx_errors",
]


class TransientError(TransportError):
    """Error that is likely to succeed on retry (network issues, timeouts, 5xx)."""
    pass


class ResilienceConfig:
    """Centralized configuration for resilience patterns."""

    STREAM_RETRY_ATTEMPTS: int = 3
    STREAM_RETRY_BACKOFF_BASE: float = 0.5  # seconds
    STREAM_RETRY_BACKOFF_MAX: float = 8.0  # seconds


F = TypeVar("F", bound=Callable[..., Any])


def stream_retry(attempts: int = ResilienceConfig.STREAM_RETRY_ATTEMPTS):
    """Retry decorator for opening the stream with exponential backoff."""
    return retry(
        on=(TransientError, ConnectionError, TimeoutError),
        attempts=attempts,
        backoff=expo(
            min_delay_secs=ResilienceConfig.STREAM_RETRY_BACKOFF_BASE,
            max_delay_secs=ResilienceConfig.STREAM_RETRY_BACKOFF_MAX,
        ),
    )


def classify_http_error(status_code: int) -> TransportError:
    """
    Classify HTTP status codes into transport exceptions.

    Args:
        status_code: HTTP status code

    Returns:
        RateLimitedError for 429, CreditsRequiredError for 402,
        TransientError for 5xx, TransportError otherwise
    """
    if status_code == 429:
        return RateLimitedError(f"Rate limited (HTTP {status_code})")
    elif status_code == 402:
        return CreditsRequiredError(f"Credits required (HTTP {status_code})")
    elif status_code >= 500:
        return TransientError(f"Server error (HTTP {status_code})", status_code=status_code)
    return TransportError(f"Client error (HTTP {status_code})", status_code=status_code)


def wrap_httpx_errors(func: F) -> F:
    """
    Decorator to convert httpx exceptions to resilience-aware exceptions.

    This allows the retry pattern to tell transient from permanent errors.
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except httpx.TimeoutException as e:
            raise TransientError(f"Request timeout: {e}") from e
        except httpx.ConnectError as e:
            raise TransientError(f"Connection error: {e}") from e
        except httpx.HTTPStatusError as e:
            raise classify_http_error(e.response.status_code) from e

    return wrapper  # type: ignore
