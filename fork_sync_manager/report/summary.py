"""Run summary for the invoking scheduler."""

from datetime import datetime, timezone
from pathlib import Path

import structlog

from fork_sync_manager.report.readme import format_generated_at
from fork_sync_manager.synchronize.results import ForkSyncRunResult
from fork_sync_manager.utils.templates import render_packaged_template

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def render_step_summary(account: str, result: ForkSyncRunResult, generated_at: datetime | None = None) -> str:
    """Render the markdown run summary."""
    if generated_at is None:
        generated_at = datetime.now(timezone.utc)
    return render_packaged_template(
        "step_summary.md.j2",
        account=account,
        report=result.report,
        needing_sync=result.needing_sync,
        batch_count=result.batch_count,
        generated_at=format_generated_at(generated_at),
    )


def append_step_summary(path: Path, content: str) -> None:
    """Append the summary to a step summary file (e.g. $GITHUB_STEP_SUMMARY)."""
    with open(path, "a", encoding="utf-8") as f:
        f.write(content)
        if not content.endswith("\n"):
            f.write("\n")
    logger.info("Appended step summary", path=str(path))
