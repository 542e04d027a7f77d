"""Orchestrates the fork sync workflow: discovery, divergence check, reconciliation and reporting."""

import asyncio
import time
from datetime import datetime

import structlog
from githubkit.exception import RequestFailed
from structlog.contextvars import bound_contextvars

from fork_sync_manager.configuration.models import ForkSyncConfig, TuningConfig
from fork_sync_manager.git.repository import GitWorkingCopy, build_git_environment
from fork_sync_manager.github.abc import ForkHostingClientBase
from fork_sync_manager.github.adapter import GitHubKitAdapter
from fork_sync_manager.github.client import get_github_client
from fork_sync_manager.report.publish import commit_status_document
from fork_sync_manager.report.readme import render_readme, write_readme
from fork_sync_manager.report.summary import append_step_summary, render_step_summary
from fork_sync_manager.synchronize.batching import create_batches, run_batches
from fork_sync_manager.synchronize.discovery import discover_forks
from fork_sync_manager.synchronize.divergence import check_divergence
from fork_sync_manager.synchronize.exceptions import AuthenticationError, EmptyRepositoryError, RunTimeoutError
from fork_sync_manager.synchronize.models import DivergenceResult, ForkRecord, SyncOutcome, SyncOutcomeKind
from fork_sync_manager.synchronize.reconcile import CloneFunction, ReconcileContext, process_fork
from fork_sync_manager.synchronize.results import ForkCheckResult, ForkSyncRunResult, build_run_report
from fork_sync_manager.utils.github import github_html_url, redact_secret
from fork_sync_manager.utils.retry import SleepFunction

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def connect(config: ForkSyncConfig) -> tuple[ForkHostingClientBase, str]:
    """Create the hosting client for the account and verify its credentials.

    Raises:
        AuthenticationError: If no client can be created or the credentials are rejected.
    """
    try:
        github_client, token = await get_github_client(
            github_auth_type=config.github_authentication_type,
            github_pat_token=config.github_pat_token,
            github_app_id=config.github_app_id,
            github_app_private_key_path=config.github_app_private_key_path,
            github_app_installation_id=config.github_app_installation_id,
            github_api_url=config.github_api_url,
        )
    except (RuntimeError, ValueError) as exc:
        raise AuthenticationError(f"Could not create GitHub client: {exc}") from exc
    client = GitHubKitAdapter(github_client, config.account, config.github_api_url)
    await verify_credentials(client)
    return client, token


async def verify_credentials(client: ForkHostingClientBase) -> None:
    """Make sure the hosting platform accepts the credentials before doing any work.

    Raises:
        AuthenticationError: If the probe fails.
    """
    try:
        await client.verify_authentication()
    except RequestFailed as exc:
        raise AuthenticationError(f"GitHub rejected the credentials (HTTP {exc.response.status_code})") from exc
    except Exception as exc:
        raise AuthenticationError(f"Could not verify GitHub credentials: {exc}") from exc
    logger.info("Verified GitHub credentials")


async def assess_fork(client: ForkHostingClientBase, fork: ForkRecord) -> SyncOutcome | DivergenceResult:
    """Decide whether a fork needs reconciliation.

    Returns the divergence when the fork needs a sync, otherwise the final
    outcome for the fork. Errors are converted into outcomes.
    """
    with bound_contextvars(repository=fork.full_name):
        if fork.parent_full_name is None:
            logger.info("Skipping fork without parent")
            return SyncOutcome(fork=fork, kind=SyncOutcomeKind.SKIPPED, detail="No parent repository")
        try:
            divergence = await check_divergence(client, fork)
        except EmptyRepositoryError as exc:
            logger.info("Skipping empty repository")
            return SyncOutcome(fork=fork, kind=SyncOutcomeKind.SKIPPED, detail=str(exc))
        except Exception as exc:
            logger.error("Divergence check failed", error=str(exc), error_type=type(exc).__name__)
            return SyncOutcome(fork=fork, kind=SyncOutcomeKind.FAILED, detail=f"Divergence check failed: {exc}")
        if not divergence.needs_sync:
            return SyncOutcome(
                fork=fork,
                kind=SyncOutcomeKind.ALREADY_IN_SYNC,
                detail=f"Up to date with {fork.parent_full_name}:{divergence.upstream_branch}",
            )
        return divergence


async def check_forks(
    client: ForkHostingClientBase,
    forks: list[ForkRecord],
    tuning: TuningConfig,
    sleep: SleepFunction | None = None,
) -> tuple[list[SyncOutcome], list[DivergenceResult]]:
    """Assess every fork in order, pausing briefly between checks."""
    if sleep is None:
        sleep = asyncio.sleep
    outcomes: list[SyncOutcome] = []
    needing_sync: list[DivergenceResult] = []
    for position, fork in enumerate(forks):
        if position > 0 and tuning.divergence_check_pause > 0:
            await sleep(tuning.divergence_check_pause)
        assessment = await assess_fork(client, fork)
        if isinstance(assessment, DivergenceResult):
            needing_sync.append(assessment)
        else:
            outcomes.append(assessment)
    logger.info("Checked forks", total=len(forks), needing_sync=len(needing_sync))
    return outcomes, needing_sync


async def run_fork_check_workflow(
    config: ForkSyncConfig,
    client: ForkHostingClientBase | None = None,
    sleep: SleepFunction | None = None,
) -> ForkCheckResult:
    """Run discovery and the divergence check only. Nothing is modified."""
    try:
        if client is None:
            client, _ = await connect(config)
        else:
            await verify_credentials(client)
        forks = await discover_forks(client, config.account, config.tuning, specific_repo=config.specific_repo, sleep=sleep)
        outcomes, needing_sync = await check_forks(client, forks, config.tuning, sleep=sleep)
        return ForkCheckResult(forks, outcomes, needing_sync)
    finally:
        config.discard_credentials()


async def sync_forks(
    config: ForkSyncConfig,
    context: ReconcileContext,
    sleep: SleepFunction | None = None,
) -> tuple[list[ForkRecord], list[SyncOutcome], int, int]:
    """Discover, check and reconcile the account's forks.

    Returns the discovered forks, the outcome of every fork that has one, the
    number of forks that needed a sync and the number of batches.
    """
    client = context.client

    # Discovery
    forks = await discover_forks(client, config.account, config.tuning, specific_repo=config.specific_repo, sleep=sleep)

    # Divergence check
    outcomes, needing_sync = await check_forks(client, forks, config.tuning, sleep=sleep)

    # Reconciliation
    batches = create_batches(needing_sync, config.batch_size)
    logger.info("Created sync batches", needing_sync=len(needing_sync), batch_count=len(batches), batch_size=config.batch_size)

    async def process(divergence: DivergenceResult) -> SyncOutcome:
        return await process_fork(divergence, context)

    synced_outcomes = await run_batches(batches, process, config.max_parallel_jobs, config.tuning.inter_repository_pause, sleep=sleep)
    return forks, [*outcomes, *synced_outcomes], len(needing_sync), len(batches)


async def run_fork_sync_workflow(
    config: ForkSyncConfig,
    client: ForkHostingClientBase | None = None,
    clone: CloneFunction | None = None,
    sleep: SleepFunction | None = None,
    now: datetime | None = None,
) -> ForkSyncRunResult:
    """Run the whole fork sync workflow.

    Per-repository failures are recorded in the report and never abort the
    run. Structural failures (authentication, discovery, timeout) propagate.
    Credentials are discarded when the run ends, whichever way it ends.
    """
    token: str | None = config.github_pat_token
    context: ReconcileContext | None = None
    start_time = time.time()
    try:
        if client is None:
            client, token = await connect(config)
        else:
            await verify_credentials(client)

        html_url = github_html_url(config.github_api_url)
        context = ReconcileContext(
            client=client,
            tuning=config.tuning,
            force_sync=config.force_sync,
            native_sync=config.native_sync,
            git_env=build_git_environment(token, html_url),
            secret=token,
            clone=clone if clone is not None else GitWorkingCopy.clone,
            sleep=sleep,
        )

        try:
            forks, outcomes, needing_sync, batch_count = await asyncio.wait_for(
                sync_forks(config, context, sleep=sleep),
                timeout=config.run_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise RunTimeoutError(config.run_timeout) from exc

        by_name = {outcome.fork.full_name: outcome for outcome in outcomes}
        report = build_run_report([by_name[fork.full_name] for fork in forks if fork.full_name in by_name])
        logger.info("Fork sync finished", duration=round(time.time() - start_time, 2), **report.as_dict())

        result = ForkSyncRunResult(forks, report, needing_sync=needing_sync, batch_count=batch_count)

        # Reporting
        if config.readme_path is not None:
            content = render_readme(forks, report, html_url, generated_at=now)
            write_readme(config.readme_path, content)
            result.readme_path = config.readme_path
            if config.commit_readme:
                try:
                    result.readme_committed = await commit_status_document(
                        config.readme_path,
                        report,
                        config.tuning,
                        env=context.git_env,
                        secret=token,
                        sleep=sleep,
                    )
                except Exception as exc:
                    logger.error("Failed to commit README", error=redact_secret(str(exc), token))
        if config.step_summary_path is not None:
            append_step_summary(config.step_summary_path, render_step_summary(config.account, result, generated_at=now))
        return result
    finally:
        config.discard_credentials()
        if context is not None:
            context.git_env.clear()
            context.secret = None
