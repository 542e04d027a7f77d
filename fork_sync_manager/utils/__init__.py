"""Utility modules for shared functionality."""

from .constants import (
    CONVENTIONAL_BRANCH_NAMES,
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAX_PARALLEL_JOBS,
    REPOSITORY_PAGE_SIZE,
)
from .retry import FailureKind, classify_failure, retry_on_rate_limit, retry_with_backoff

__all__ = [
    "CONVENTIONAL_BRANCH_NAMES",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_MAX_PARALLEL_JOBS",
    "REPOSITORY_PAGE_SIZE",
    "FailureKind",
    "classify_failure",
    "retry_on_rate_limit",
    "retry_with_backoff",
]
