"""Retry logic for transient failures.

Two policies live here:

- ``retry_with_backoff`` retries only errors classified as transient and
  raises permanent errors immediately. Used for presigned HTTP downloads.
- ``retry_attempts`` retries any exception up to a fixed number of total
  attempts, reporting each failure to a callback. Used for part uploads,
  where every failed attempt is worth another try.

Transient (Retryable):
- Connection timeouts and connection errors
- Server errors (5xx)
- Rate limiting (429)

Permanent (Not Retryable):
- Client errors (4xx except 429)
- Authentication failures (401, 403)
"""

import time
from typing import Any, Callable, Optional, Sequence

import httpx
from botocore.exceptions import (
    ClientError,
    ConnectionClosedError,
    EndpointConnectionError,
    ReadTimeoutError,
)

# HTTP status codes that indicate transient server issues
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class RetryExhausted(Exception):
    """Raised when all retry attempts have been exhausted."""

    def __init__(
        self,
        message: str,
        attempts: int,
        last_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


def is_retryable_error(error: Exception) -> bool:
    """Determine if an error is transient and worth retrying.

    Understands both httpx errors (presigned transfers) and botocore errors
    (SDK calls).

    Args:
        error: The exception that was raised.

    Returns:
        True if the error is transient and should trigger a retry,
        False if the error is permanent and retrying won't help.
    """
    # Network-level errors are transient
    if isinstance(error, (httpx.ConnectError, httpx.ConnectTimeout, httpx.ReadTimeout)):
        return True
    if isinstance(error, (EndpointConnectionError, ConnectionClosedError, ReadTimeoutError)):
        return True

    # HTTP status errors need case-by-case handling
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in RETRYABLE_STATUS_CODES

    if isinstance(error, ClientError):
        status_code = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        return status_code in RETRYABLE_STATUS_CODES

    # All other errors are not retryable by default
    return False


def _delay_for(attempt: int, delays: Sequence[float]) -> float:
    if not delays:
        return 0.0
    return delays[min(attempt - 1, len(delays) - 1)]


def retry_with_backoff(
    func: Callable[..., Any],
    max_attempts: int = 3,
    delays: Sequence[float] = (5.0, 15.0, 30.0),
    args: tuple = (),
    kwargs: Optional[dict] = None,
) -> Any:
    """Execute a function with retry logic and exponential backoff.

    Args:
        func: The function to execute.
        max_attempts: Maximum number of attempts (including first try).
        delays: Sequence of delay times (seconds) between retries.
                delays[0] is used after first failure, etc.
        args: Positional arguments to pass to func.
        kwargs: Keyword arguments to pass to func.

    Returns:
        The return value of func if successful.

    Raises:
        RetryExhausted: If all attempts fail with retryable errors.
        Exception: If a non-retryable error occurs, it's raised immediately.
    """
    if kwargs is None:
        kwargs = {}

    last_error: Optional[Exception] = None

    for attempt in range(1, max_attempts + 1):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            last_error = e

            if not is_retryable_error(e):
                raise

            if attempt >= max_attempts:
                raise RetryExhausted(
                    f"Operation failed after {max_attempts} attempts",
                    attempts=max_attempts,
                    last_error=last_error,
                ) from last_error

            delay = _delay_for(attempt, delays)
            if delay > 0:
                time.sleep(delay)

    raise RetryExhausted(
        f"Operation failed after {max_attempts} attempts",
        attempts=max_attempts,
        last_error=last_error,
    )


def retry_attempts(
    func: Callable[[], Any],
    max_attempts: int,
    on_failure: Optional[Callable[[int, Exception], None]] = None,
    delays: Sequence[float] = (),
) -> Any:
    """Call func until it succeeds, at most max_attempts times in total.

    Every exception counts as a failed attempt. on_failure is called with
    the 1-based attempt number and the error after each failure, including
    the last one.

    Args:
        func: Zero-argument callable to execute.
        max_attempts: Total attempts allowed (must be >= 1).
        on_failure: Optional callback for each failed attempt.
        delays: Seconds to wait between attempts; empty means no wait.

    Returns:
        The return value of the first successful call.

    Raises:
        ValueError: If max_attempts is less than 1.
        RetryExhausted: If every attempt failed.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    last_error: Optional[Exception] = None

    for attempt in range(1, max_attempts + 1):
        try:
            return func()
        except Exception as e:
            last_error = e
            if on_failure is not None:
                on_failure(attempt, e)

            if attempt < max_attempts:
                delay = _delay_for(attempt, delays)
                if delay > 0:
                    time.sleep(delay)

    raise RetryExhausted(
        f"Operation failed after {max_attempts} attempts",
        attempts=max_attempts,
        last_error=last_error,
    ) from last_error
