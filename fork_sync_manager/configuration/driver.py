"""Synchronous driver for configuration reconciliation for the CLI entry point."""

import asyncio
from pathlib import Path

from fork_sync_manager.configuration import reconcile
from fork_sync_manager.configuration.models import ForkSyncConfig
from fork_sync_manager.utils.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_GITHUB_API_URL,
    DEFAULT_MAX_PARALLEL_JOBS,
    DEFAULT_RUN_TIMEOUT_SECONDS,
)


def get_fork_sync_config(
    account: str | None,
    github_api_url: str = DEFAULT_GITHUB_API_URL,
    github_pat_token: str | None = None,
    github_app_id: int | None = None,
    github_app_private_key_path: Path | None = None,
    github_app_installation_id: int | None = None,
    specific_repo: str | None = None,
    force_sync: bool = False,
    native_sync: bool = False,
    batch_size: int = DEFAULT_BATCH_SIZE,
    max_parallel_jobs: int = DEFAULT_MAX_PARALLEL_JOBS,
    run_timeout: float = DEFAULT_RUN_TIMEOUT_SECONDS,
    readme_path: Path | None = None,
    commit_readme: bool = False,
    step_summary_path: Path | None = None,
    debug: bool = False,
) -> ForkSyncConfig:
    """Synchronously get the reconciled fork sync configuration."""
    return asyncio.run(
        reconcile.reconcile_fork_sync_configuration(
            cli_account=account,
            cli_github_api_url=github_api_url,
            cli_github_pat_token=github_pat_token,
            cli_github_app_id=github_app_id,
            cli_github_app_private_key_path=github_app_private_key_path,
            cli_github_app_installation_id=github_app_installation_id,
            cli_specific_repo=specific_repo,
            cli_force_sync=force_sync,
            cli_native_sync=native_sync,
            cli_batch_size=batch_size,
            cli_max_parallel_jobs=max_parallel_jobs,
            cli_run_timeout=run_timeout,
            cli_readme_path=readme_path,
            cli_commit_readme=commit_readme,
            cli_step_summary_path=step_summary_path,
            cli_debug=debug,
        )
    )
