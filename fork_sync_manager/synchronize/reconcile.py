"""Contains logic for converging a diverged fork onto its upstream and publishing it."""

import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable

import structlog
from structlog.contextvars import bound_contextvars

from fork_sync_manager.configuration.models import TuningConfig
from fork_sync_manager.git.exceptions import GitCommandError
from fork_sync_manager.git.repository import GitWorkingCopy
from fork_sync_manager.github.abc import ForkHostingClientBase
from fork_sync_manager.synchronize.exceptions import CloneError, EmptyRepositoryError, PublishError, RepositoryError
from fork_sync_manager.synchronize.models import DivergenceResult, SyncOutcome, SyncOutcomeKind
from fork_sync_manager.synchronize.strategy import LadderState, run_strategy_ladder
from fork_sync_manager.utils.constants import MERGE_COMMIT_MESSAGE_TEMPLATE, ORIGIN_REMOTE, UPSTREAM_REMOTE
from fork_sync_manager.utils.github import redact_secret
from fork_sync_manager.utils.retry import SleepFunction, fixed_delay_by_kind, retry_any, retry_with_backoff

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

CloneFunction = Callable[..., Awaitable[GitWorkingCopy]]


@dataclass
class ReconcileContext:
    """Run-wide, read-only inputs shared by every fork reconciliation."""

    client: ForkHostingClientBase
    tuning: TuningConfig
    force_sync: bool = False
    native_sync: bool = False
    git_env: dict[str, str] = field(default_factory=dict, repr=False)
    secret: str | None = field(default=None, repr=False)
    clone: CloneFunction = GitWorkingCopy.clone
    sleep: SleepFunction | None = None


class GitStrategyExecutor:
    """Runs the strategies of the ladder in a local working copy."""

    def __init__(self, working_copy: GitWorkingCopy, upstream_ref: str, message: str) -> None:
        """Initialize the executor for merging upstream_ref into the checked out branch."""
        self.working_copy = working_copy
        self.upstream_ref = upstream_ref
        self.message = message

    async def attempt(self, state: LadderState) -> bool:
        """Run one strategy and report whether the branch now matches upstream."""
        if state == LadderState.CLEAN_MERGE:
            return await self.working_copy.merge(self.upstream_ref, self.message)
        if state == LadderState.UNRELATED_HISTORIES_MERGE:
            await self.working_copy.abort_merge()
            return await self.working_copy.merge(self.upstream_ref, self.message, allow_unrelated_histories=True)
        if state == LadderState.FORCED_RESET:
            await self.working_copy.abort_merge()
            try:
                await self.working_copy.reset_hard(self.upstream_ref)
            except GitCommandError as exc:
                logger.error("Forced reset failed", upstream_ref=self.upstream_ref, error=str(exc))
                return False
            logger.warning("Fork branch overwritten with upstream, fork-only commits discarded", upstream_ref=self.upstream_ref)
            return True
        raise ValueError(f"Unknown strategy: {state}")


async def publish_branch(
    working_copy: GitWorkingCopy,
    full_name: str,
    branch: str,
    force: bool,
    tuning: TuningConfig,
    sleep: SleepFunction | None = None,
) -> None:
    """Push the reconciled branch to the fork, retrying with a fixed delay per failure kind.

    Raises:
        PublishError: If every push attempt failed.
    """
    try:
        await retry_with_backoff(
            lambda: working_copy.push(ORIGIN_REMOTE, branch, force=force),
            max_attempts=tuning.push_max_attempts,
            delay_for=fixed_delay_by_kind(
                rate_limit_delay=tuning.push_rate_limit_delay,
                network_delay=tuning.push_network_delay,
                other_delay=tuning.push_other_delay,
            ),
            should_retry=retry_any,
            sleep=sleep,
            operation_name="push",
        )
    except GitCommandError as exc:
        raise PublishError(full_name, f"Push failed after {tuning.push_max_attempts} attempts: {exc.stderr.strip()}") from exc
    logger.info("Published branch", branch=branch, force=force)


async def reconcile_fork(divergence: DivergenceResult, context: ReconcileContext) -> SyncOutcome:
    """Converge the fork's default branch onto upstream and push it.

    Raises:
        CloneError: If the fork cannot be cloned or upstream cannot be fetched.
        EmptyRepositoryError: If the fork has no commits.
        PublishError: If the converged branch cannot be pushed.
    """
    fork = divergence.fork
    if fork.parent_full_name is None:
        raise ValueError(f"{fork.full_name} has no parent repository")
    branch = fork.default_branch
    upstream_branch = divergence.upstream_branch

    # merge-upstream always merges the same-named upstream branch
    if context.native_sync and upstream_branch == branch:
        merge_type = await context.client.merge_upstream(fork.full_name, branch)
        if merge_type == "none":
            return SyncOutcome(
                fork=fork,
                kind=SyncOutcomeKind.ALREADY_IN_SYNC,
                detail=f"Already contains {fork.parent_full_name}:{upstream_branch}",
            )
        if merge_type is not None:
            return SyncOutcome(
                fork=fork,
                kind=SyncOutcomeKind.SYNCED_CLEAN_MERGE,
                detail=f"Merged {fork.parent_full_name}:{upstream_branch} into {branch} by hosting API ({merge_type})",
            )
        logger.info("Falling back to local strategies")
    elif context.native_sync:
        logger.info("Skipping hosting API merge, upstream branch differs", branch=branch, upstream_branch=upstream_branch)

    with tempfile.TemporaryDirectory(prefix="fork-sync-") as temporary_directory:
        destination = Path(temporary_directory) / "repository"
        try:
            working_copy = await context.clone(
                context.client.clone_url(fork.full_name),
                destination,
                env=context.git_env,
                secret=context.secret,
            )
        except GitCommandError as exc:
            raise CloneError(fork.full_name, f"Clone failed: {exc.stderr.strip()}") from exc

        if not await working_copy.has_commits():
            raise EmptyRepositoryError(fork.full_name)

        upstream_ref = f"{UPSTREAM_REMOTE}/{upstream_branch}"
        try:
            await working_copy.checkout_branch(branch, f"{ORIGIN_REMOTE}/{branch}")
            await working_copy.add_remote(UPSTREAM_REMOTE, context.client.clone_url(fork.parent_full_name))
            await working_copy.fetch(UPSTREAM_REMOTE, upstream_branch)
        except GitCommandError as exc:
            raise CloneError(fork.full_name, f"Fetching upstream {fork.parent_full_name} failed: {exc.stderr.strip()}") from exc

        if await working_copy.is_ancestor(upstream_ref, "HEAD"):
            return SyncOutcome(
                fork=fork,
                kind=SyncOutcomeKind.ALREADY_IN_SYNC,
                detail=f"Already contains {fork.parent_full_name}:{upstream_branch}",
            )

        executor = GitStrategyExecutor(
            working_copy,
            upstream_ref,
            MERGE_COMMIT_MESSAGE_TEMPLATE.format(parent=fork.parent_full_name, branch=upstream_branch, fork_branch=branch),
        )
        kind, attempted = await run_strategy_ladder(executor, context.force_sync)
        if kind == SyncOutcomeKind.FAILED:
            detail = "Exhausted strategies: " + ", ".join(state.value for state in attempted)
            if not context.force_sync:
                detail += " (force sync disabled)"
            return SyncOutcome(fork=fork, kind=kind, detail=detail)

        await publish_branch(
            working_copy,
            fork.full_name,
            branch,
            force=kind == SyncOutcomeKind.SYNCED_FORCED_RESET,
            tuning=context.tuning,
            sleep=context.sleep,
        )

    if kind == SyncOutcomeKind.SYNCED_FORCED_RESET:
        detail = f"Overwritten with {fork.parent_full_name}:{upstream_branch} (fork-only commits discarded)"
    else:
        detail = f"Merged {fork.parent_full_name}:{upstream_branch} into {branch}"
    return SyncOutcome(fork=fork, kind=kind, detail=detail)


async def process_fork(divergence: DivergenceResult, context: ReconcileContext) -> SyncOutcome:
    """Reconcile one fork, turning every repository-level error into an outcome.

    Errors never escape this function, so one fork cannot stop its siblings.
    """
    fork = divergence.fork
    with bound_contextvars(repository=fork.full_name):
        logger.info("Syncing fork", parent=fork.parent_full_name, upstream_branch=divergence.upstream_branch)
        try:
            outcome = await reconcile_fork(divergence, context)
        except EmptyRepositoryError as exc:
            logger.info("Skipping empty repository")
            outcome = SyncOutcome(fork=fork, kind=SyncOutcomeKind.SKIPPED, detail=str(exc))
        except RepositoryError as exc:
            logger.error("Failed to sync fork", error=str(exc))
            outcome = SyncOutcome(fork=fork, kind=SyncOutcomeKind.FAILED, detail=str(exc))
        except Exception as exc:
            detail = redact_secret(f"Unexpected error: {type(exc).__name__}: {exc}", context.secret)
            logger.error("Unexpected error while syncing fork", error=detail)
            outcome = SyncOutcome(fork=fork, kind=SyncOutcomeKind.FAILED, detail=detail)
        logger.info("Finished fork", outcome=outcome.kind.value, detail=outcome.detail)
        return outcome
