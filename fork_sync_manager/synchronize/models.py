"""Data models for fork discovery, divergence and reconciliation."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class SyncOutcomeKind(str, Enum):
    """How the reconciliation of one fork ended."""

    ALREADY_IN_SYNC = "already_in_sync"
    SYNCED_CLEAN_MERGE = "synced_clean_merge"
    SYNCED_UNRELATED_HISTORIES_MERGE = "synced_unrelated_histories_merge"
    SYNCED_FORCED_RESET = "synced_forced_reset"
    SKIPPED = "skipped"
    FAILED = "failed"

    @property
    def is_synced(self) -> bool:
        """Whether the fork was changed and published during this run."""
        return self in SYNCED_KINDS


SYNCED_KINDS = frozenset(
    {
        SyncOutcomeKind.SYNCED_CLEAN_MERGE,
        SyncOutcomeKind.SYNCED_UNRELATED_HISTORIES_MERGE,
        SyncOutcomeKind.SYNCED_FORCED_RESET,
    }
)


class UpstreamBranchSource(str, Enum):
    """Where the upstream default branch name came from."""

    API = "api"
    PROBE = "probe"
    FALLBACK = "fallback"


class ForkRecord(BaseModel):
    """A repository under reconciliation, as listed by the hosting platform."""

    model_config = ConfigDict(frozen=True)

    full_name: str
    parent_full_name: str | None = None
    default_branch: str
    pushed_at: datetime | None = None
    updated_at: datetime | None = None
    language: str | None = None
    description: str | None = None

    @classmethod
    def from_github_repository(cls, repository: Any) -> "ForkRecord":
        """Build a record from a githubkit FullRepository."""
        parent = getattr(repository, "parent", None)
        return cls(
            full_name=repository.full_name,
            parent_full_name=getattr(parent, "full_name", None) if parent else None,
            default_branch=repository.default_branch,
            pushed_at=getattr(repository, "pushed_at", None),
            updated_at=getattr(repository, "updated_at", None),
            language=getattr(repository, "language", None),
            description=getattr(repository, "description", None),
        )


class DivergenceResult(BaseModel):
    """Outcome of comparing a fork's default branch with its upstream."""

    model_config = ConfigDict(frozen=True)

    fork: ForkRecord
    upstream_branch: str
    upstream_branch_source: UpstreamBranchSource
    fork_sha: str
    upstream_sha: str

    @property
    def needs_sync(self) -> bool:
        """Whether the fork's head differs from upstream's head."""
        return self.fork_sha != self.upstream_sha


class SyncOutcome(BaseModel):
    """Result of attempting to reconcile one fork."""

    fork: ForkRecord
    kind: SyncOutcomeKind
    detail: str = ""


@dataclass(frozen=True)
class Batch:
    """A contiguous slice of the forks needing sync."""

    index: int
    members: list[Any] = field(default_factory=list)

    def __len__(self) -> int:
        """Number of members in the batch."""
        return len(self.members)
