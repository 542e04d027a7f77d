"""Renders the status README listing every discovered fork."""

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import structlog

from fork_sync_manager.synchronize.models import ForkRecord
from fork_sync_manager.synchronize.results import RunReport
from fork_sync_manager.utils.constants import NOT_AVAILABLE
from fork_sync_manager.utils.templates import escape_table_cell, render_packaged_template

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass
class ReadmeRow:
    """One fully formatted row of the repository table."""

    repository: str
    upstream: str
    language: str
    description: str
    last_updated: str


def format_generated_at(moment: datetime) -> str:
    """Format a timestamp the way the README header shows it."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def build_readme_row(fork: ForkRecord, html_url: str) -> ReadmeRow:
    """Format one fork for the repository table."""
    repository = f"[{fork.full_name}]({html_url}/{fork.full_name})"
    if fork.parent_full_name:
        upstream = f"[{fork.parent_full_name}]({html_url}/{fork.parent_full_name})"
    else:
        upstream = NOT_AVAILABLE
    return ReadmeRow(
        repository=repository,
        upstream=upstream,
        language=escape_table_cell(fork.language) if fork.language else NOT_AVAILABLE,
        description=escape_table_cell(fork.description) if fork.description else "",
        last_updated=fork.updated_at.date().isoformat() if fork.updated_at else NOT_AVAILABLE,
    )


def render_readme(forks: list[ForkRecord], report: RunReport, html_url: str, generated_at: datetime | None = None) -> str:
    """Render the status README for the discovered forks."""
    if generated_at is None:
        generated_at = datetime.now(timezone.utc)
    return render_packaged_template(
        "readme.md.j2",
        total=len(forks),
        report=report,
        rows=[build_readme_row(fork, html_url) for fork in forks],
        generated_at=format_generated_at(generated_at),
    )


def write_readme(path: Path, content: str) -> bool:
    """Write the README if its content changed. Returns whether the file was written."""
    if path.exists() and path.read_text(encoding="utf-8") == content:
        logger.info("README unchanged", path=str(path))
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.info("Wrote README", path=str(path))
    return True
