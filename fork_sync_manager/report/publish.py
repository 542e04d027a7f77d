"""Commits the regenerated status README back to the repository it lives in."""

from pathlib import Path

import structlog

from fork_sync_manager.configuration.models import TuningConfig
from fork_sync_manager.git.repository import GitWorkingCopy
from fork_sync_manager.synchronize.results import RunReport
from fork_sync_manager.utils.constants import README_COMMIT_MESSAGE_TEMPLATE
from fork_sync_manager.utils.retry import SleepFunction, fixed_delay_by_kind, retry_any, retry_with_backoff

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def commit_status_document(
    readme_path: Path,
    report: RunReport,
    tuning: TuningConfig,
    env: dict[str, str] | None = None,
    secret: str | None = None,
    sleep: SleepFunction | None = None,
) -> bool:
    """Commit and push the README if it changed.

    Pushes are retried; every retry first rebases onto the remote branch in
    case another run pushed in the meantime.

    Returns:
        Whether a commit was pushed.
    """
    working_copy = GitWorkingCopy(readme_path.parent, env=env, secret=secret)
    await working_copy.add(readme_path.name)
    if not await working_copy.has_staged_changes():
        logger.info("No changes to README", path=str(readme_path))
        return False

    message = README_COMMIT_MESSAGE_TEMPLATE.format(total=report.total, synced=report.synced)
    await working_copy.commit(message)

    attempts = 0

    async def push() -> None:
        nonlocal attempts
        attempts += 1
        if attempts > 1:
            await working_copy.pull_rebase()
        await working_copy.push_current_branch()

    await retry_with_backoff(
        push,
        max_attempts=tuning.push_max_attempts,
        delay_for=fixed_delay_by_kind(tuning.push_rate_limit_delay, tuning.push_network_delay, tuning.push_other_delay),
        should_retry=retry_any,
        sleep=sleep,
        operation_name="push_readme",
    )
    logger.info("Pushed README update", path=str(readme_path), message=message)
    return True
