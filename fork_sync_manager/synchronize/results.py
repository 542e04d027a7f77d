"""Contains results of a fork sync run."""

from collections import Counter
from pathlib import Path

from fork_sync_manager.synchronize.models import DivergenceResult, ForkRecord, SyncOutcome, SyncOutcomeKind


class RunReport:
    """Aggregates the per-fork outcomes of a run into totals."""

    def __init__(self, outcomes: list[SyncOutcome]) -> None:
        """Initialize the report with the outcomes of every fork considered."""
        self.outcomes = outcomes
        self.counts = Counter(outcome.kind for outcome in outcomes)

    @property
    def total(self) -> int:
        """Number of forks considered."""
        return len(self.outcomes)

    @property
    def synced(self) -> int:
        """Number of forks changed and published, whatever the strategy."""
        return sum(count for kind, count in self.counts.items() if kind.is_synced)

    @property
    def forced_resets(self) -> int:
        """Number of forks overwritten with upstream."""
        return self.counts[SyncOutcomeKind.SYNCED_FORCED_RESET]

    @property
    def already_in_sync(self) -> int:
        """Number of forks that needed nothing."""
        return self.counts[SyncOutcomeKind.ALREADY_IN_SYNC]

    @property
    def skipped(self) -> int:
        """Number of forks that could not be synced by nature (no parent, empty)."""
        return self.counts[SyncOutcomeKind.SKIPPED]

    @property
    def failed(self) -> int:
        """Number of forks whose sync failed."""
        return self.counts[SyncOutcomeKind.FAILED]

    @property
    def failures(self) -> list[SyncOutcome]:
        """Outcomes of the forks whose sync failed."""
        return [outcome for outcome in self.outcomes if outcome.kind == SyncOutcomeKind.FAILED]

    def outcome_for(self, full_name: str) -> SyncOutcome | None:
        """Look up the outcome of a fork by name."""
        for outcome in self.outcomes:
            if outcome.fork.full_name == full_name:
                return outcome
        return None

    def as_dict(self) -> dict[str, int]:
        """Return the totals as a plain dictionary."""
        return {
            "total": self.total,
            "synced": self.synced,
            "forced_resets": self.forced_resets,
            "already_in_sync": self.already_in_sync,
            "skipped": self.skipped,
            "failed": self.failed,
        }


def build_run_report(outcomes: list[SyncOutcome]) -> RunReport:
    """Aggregate outcomes into a run report."""
    return RunReport(outcomes)


class ForkCheckResult:
    """Contains results of the read-only fork check workflow."""

    def __init__(self, forks: list[ForkRecord], outcomes: list[SyncOutcome], needing_sync: list[DivergenceResult]) -> None:
        """Initialize the result with the forks that need no sync and those that do."""
        self.forks = forks
        self.outcomes = outcomes
        self.needing_sync = needing_sync


class ForkSyncRunResult:
    """Contains results of the fork sync workflow."""

    def __init__(
        self,
        forks: list[ForkRecord],
        report: RunReport,
        needing_sync: int,
        batch_count: int,
        readme_path: Path | None = None,
        readme_committed: bool = False,
    ) -> None:
        """Initialize the result with the discovered forks and the run report."""
        self.forks = forks
        self.report = report
        self.needing_sync = needing_sync
        self.batch_count = batch_count
        self.readme_path = readme_path
        self.readme_committed = readme_committed
