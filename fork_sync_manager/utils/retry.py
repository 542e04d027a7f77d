"""Failure classification and retry helpers for GitHub API calls and git pushes.

Every retry in the application goes through :func:`retry_with_backoff`. The
combinator classifies each failure with :func:`classify_failure`, asks a
``should_retry`` predicate whether that kind of failure is worth another
attempt, and asks a delay function how long to wait before it. Callers pick
the policy: exponential backoff for rate-limited API listings, fixed
per-kind delays for pushes.
"""

import asyncio
import functools
import time
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

import structlog
from githubkit.exception import (
    PrimaryRateLimitExceeded,
    RequestError,
    RequestFailed,
    RequestTimeout,
    SecondaryRateLimitExceeded,
)

from fork_sync_manager.git.exceptions import GitCommandError

logger = structlog.get_logger(__name__)

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Any])

SleepFunction = Callable[[float], Awaitable[Any]]


class FailureKind(str, Enum):
    """Enum for the kinds of failure an operation can end with."""

    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    OTHER = "other"


DelayFunction = Callable[[FailureKind, int, BaseException], float]
RetryPredicate = Callable[[FailureKind], bool]

# Checked in order; the first matching group wins.
_GIT_ERROR_PATTERNS: tuple[tuple[FailureKind, tuple[str, ...]], ...] = (
    (FailureKind.RATE_LIMIT, ("rate limit", "too many requests", "error: 429")),
    (
        FailureKind.AUTHENTICATION,
        ("authentication failed", "could not read username", "returned error: 401", "returned error: 403", "permission denied"),
    ),
    (FailureKind.NOT_FOUND, ("repository not found", "returned error: 404", "couldn't find remote ref")),
    (
        FailureKind.NETWORK,
        (
            "could not resolve host",
            "timed out",
            "connection reset",
            "connection was reset",
            "connection refused",
            "early eof",
            "the remote end hung up",
            "network is unreachable",
            "returned error: 502",
            "returned error: 503",
            "returned error: 504",
            "gnutls_handshake",
            "ssl_read",
        ),
    ),
    (FailureKind.CONFLICT, ("conflict", "non-fast-forward", "[rejected]", "fetch first")),
)


def classify_failure(error: BaseException) -> FailureKind:
    """Classify an exception raised by the GitHub API client or by git."""
    if isinstance(error, (PrimaryRateLimitExceeded, SecondaryRateLimitExceeded)):
        return FailureKind.RATE_LIMIT
    if isinstance(error, RequestFailed):
        status_code = error.response.status_code
        if status_code == 429 or (status_code == 403 and "rate limit" in str(error).lower()):
            return FailureKind.RATE_LIMIT
        if status_code in (401, 403):
            return FailureKind.AUTHENTICATION
        if status_code == 404:
            return FailureKind.NOT_FOUND
        if status_code in (409, 422):
            return FailureKind.CONFLICT
        if status_code >= 500:
            return FailureKind.NETWORK
        return FailureKind.OTHER
    if isinstance(error, (RequestTimeout, RequestError, ConnectionError, TimeoutError)):
        return FailureKind.NETWORK
    if isinstance(error, GitCommandError):
        stderr = error.stderr.lower()
        for kind, patterns in _GIT_ERROR_PATTERNS:
            if any(pattern in stderr for pattern in patterns):
                return kind
    return FailureKind.OTHER


def rate_limit_wait_hint(error: BaseException) -> float | None:
    """Return the number of seconds the server asked us to wait, if it said so."""
    if isinstance(error, (PrimaryRateLimitExceeded, SecondaryRateLimitExceeded)):
        if getattr(error, "retry_after", None):
            return error.retry_after.total_seconds()
        return None
    if not isinstance(error, RequestFailed):
        return None

    retry_after = error.response.headers.get("retry-after")
    if retry_after:
        try:
            return float(retry_after)
        except ValueError:
            logger.warning("Invalid retry-after header value", retry_after=retry_after)
            return None

    rate_limit_reset = error.response.headers.get("x-ratelimit-reset")
    if rate_limit_reset:
        try:
            reset_timestamp = int(rate_limit_reset)
        except ValueError:
            logger.warning("Invalid x-ratelimit-reset header value", rate_limit_reset=rate_limit_reset)
            return None
        current_timestamp = int(time.time())
        if reset_timestamp > current_timestamp:
            return float(reset_timestamp - current_timestamp + 1)
    return None


def exponential_delay(initial_delay: float = 10.0, max_delay: float = 300.0, exponential_base: float = 2.0) -> DelayFunction:
    """Build a delay function that grows exponentially with the attempt number.

    A wait hint sent by the server (``retry-after`` or ``x-ratelimit-reset``)
    replaces the computed delay. Both are capped at ``max_delay``.
    """

    def delay_for(kind: FailureKind, attempt: int, error: BaseException) -> float:
        hint = rate_limit_wait_hint(error)
        if hint is not None:
            return min(hint, max_delay)
        return min(initial_delay * exponential_base ** (attempt - 1), max_delay)

    return delay_for


def fixed_delay_by_kind(rate_limit_delay: float, network_delay: float, other_delay: float) -> DelayFunction:
    """Build a delay function that waits a fixed interval per failure kind."""

    def delay_for(kind: FailureKind, attempt: int, error: BaseException) -> float:
        if kind == FailureKind.RATE_LIMIT:
            return rate_limit_delay
        if kind == FailureKind.NETWORK:
            return network_delay
        return other_delay

    return delay_for


def retry_any(kind: FailureKind) -> bool:
    """Retry predicate accepting every failure kind."""
    return True


def retry_rate_limit_only(kind: FailureKind) -> bool:
    """Retry predicate accepting only rate limit failures."""
    return kind == FailureKind.RATE_LIMIT


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int,
    delay_for: DelayFunction,
    should_retry: RetryPredicate = retry_any,
    sleep: SleepFunction | None = None,
    operation_name: str = "operation",
) -> T:
    """Run an async operation until it succeeds or the attempt ceiling is reached.

    Args:
        operation: Zero-argument coroutine function to run
        max_attempts: Total number of attempts, including the first one
        delay_for: Returns the seconds to wait after a failed attempt
        should_retry: Decides whether a kind of failure is worth retrying
        sleep: Coroutine used to wait (defaults to asyncio.sleep)
        operation_name: Name used in log events

    Returns:
        Whatever the operation returns on its first successful attempt

    Raises:
        The last exception raised by the operation, once it is not retried.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    if sleep is None:
        sleep = asyncio.sleep

    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:
            kind = classify_failure(exc)
            if not should_retry(kind):
                raise
            if attempt >= max_attempts:
                logger.error(
                    "Max attempts reached",
                    operation=operation_name,
                    attempt=attempt,
                    failure_kind=kind.value,
                    error_type=type(exc).__name__,
                )
                raise
            wait_time = delay_for(kind, attempt, exc)
            logger.warning(
                f"{operation_name} failed, retrying in {wait_time} seconds",
                operation=operation_name,
                attempt=attempt,
                max_attempts=max_attempts,
                failure_kind=kind.value,
                wait_time=wait_time,
            )
            await sleep(wait_time)
            attempt += 1


def retry_on_rate_limit(
    max_attempts: int = 5,
    initial_delay: float = 10.0,
    max_delay: float = 300.0,
    exponential_base: float = 2.0,
) -> Callable[[F], F]:
    """Decorator for retrying async functions when they encounter GitHub rate limits.

    Respects the retry-after and x-ratelimit-reset headers and otherwise backs
    off exponentially. Any failure that is not a rate limit is raised at once.

    Example:
        @retry_on_rate_limit()
        async def get_repository(full_name: str):
            return await github_client.get(full_name)
    """

    def decorator(func: F) -> F:
        if not asyncio.iscoroutinefunction(func):
            raise TypeError(f"Function {func.__name__} decorated with @retry_on_rate_limit must be async.")

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            return await retry_with_backoff(
                lambda: func(*args, **kwargs),
                max_attempts=max_attempts,
                delay_for=exponential_delay(initial_delay, max_delay, exponential_base),
                should_retry=retry_rate_limit_only,
                operation_name=func.__name__,
            )

        return wrapper  # type: ignore

    return decorator
