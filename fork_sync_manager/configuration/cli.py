"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
from pathlib import Path

import typer
from dotenv import load_dotenv
from typer import Argument, Option
from typing_extensions import Annotated

from fork_sync_manager.configuration.driver import get_fork_sync_config
from fork_sync_manager.configuration.exceptions import (
    GitHubAuthenticationConfigurationUndefinedError,
    InvalidConfigurationElementError,
    RequiredConfigurationElementError,
)
from fork_sync_manager.configuration.models import ForkSyncConfig
from fork_sync_manager.synchronize.driver import run_fork_check_workflow, run_fork_sync_workflow
from fork_sync_manager.synchronize.exceptions import StructuralError
from fork_sync_manager.synchronize.results import ForkSyncRunResult
from fork_sync_manager.utils.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_GITHUB_API_URL,
    DEFAULT_MAX_PARALLEL_JOBS,
    DEFAULT_RUN_TIMEOUT_SECONDS,
)
from fork_sync_manager.utils.logging import configure_logging

load_dotenv()

typer_app = typer.Typer(pretty_exceptions_show_locals=False, help="Keep the forks of a GitHub account in sync with their upstream repositories.")

AccountArgument = Annotated[str, Argument(envvar="GITHUB_REPOSITORY_OWNER", help="GitHub account that owns the forks.")]
SpecificRepoOption = Annotated[
    str | None, Option("--repo", envvar="SPECIFIC_REPO", help="Only process this repository (owner/repo, or a bare name owned by the account).")
]
GitHubApiUrlOption = Annotated[str, Option(envvar="GITHUB_API_URL", help="GitHub API URL.")]
GitHubPatTokenOption = Annotated[str | None, Option(envvar="GITHUB_PAT_TOKEN", help="GitHub Personal Access Token.", show_default=False)]
GitHubAppIdOption = Annotated[int | None, Option(envvar="GITHUB_APP_ID", help="GitHub App ID.")]
GitHubAppPrivateKeyPathOption = Annotated[Path | None, Option(envvar="GITHUB_APP_PRIVATE_KEY_PATH", help="Path to GitHub App private key.")]
GitHubAppInstallationIdOption = Annotated[int | None, Option(envvar="GITHUB_APP_INSTALLATION_ID", help="GitHub App Installation ID.")]
DebugOption = Annotated[bool, Option(envvar="DEBUG", help="Enable debug mode.")]


def reconcile_configuration_or_exit(**kwargs: object) -> ForkSyncConfig:
    """Build the run configuration, exiting with status 1 if it is invalid."""
    try:
        return get_fork_sync_config(**kwargs)  # type: ignore[arg-type]
    except (
        GitHubAuthenticationConfigurationUndefinedError,
        RequiredConfigurationElementError,
        InvalidConfigurationElementError,
    ) as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(1) from exc


def echo_run_summary(result: ForkSyncRunResult) -> None:
    """Print the totals of a finished run."""
    report = result.report
    typer.echo("")
    typer.echo("=" * 70)
    typer.echo("FORK SYNC SUMMARY")
    typer.echo("=" * 70)
    typer.echo(f"Forks considered: {report.total}")
    typer.echo(f"Needed sync: {result.needing_sync} (in {result.batch_count} batches)")
    typer.echo(f"Synced: {report.synced}")
    if report.forced_resets:
        typer.echo(f"  of which overwritten by forced reset: {report.forced_resets}")
    typer.echo(f"Already in sync: {report.already_in_sync}")
    typer.echo(f"Skipped: {report.skipped}")
    typer.echo(f"Failed: {report.failed}")
    for outcome in report.failures:
        typer.echo(f"  - {outcome.fork.full_name}: {outcome.detail}")
    if result.readme_path is not None:
        state = "committed" if result.readme_committed else "written"
        typer.echo(f"README {state}: {result.readme_path}")
    typer.echo("=" * 70)


@typer_app.command(name="sync")
def sync_cli(
    account: AccountArgument,
    repo: SpecificRepoOption = None,
    force_sync: Annotated[
        bool, Option(envvar="FORCE_SYNC", help="Overwrite the fork's branch with upstream when both merge strategies fail.")
    ] = False,
    native_sync: Annotated[bool, Option(envvar="NATIVE_SYNC", help="Try GitHub's merge-upstream endpoint before cloning.")] = False,
    batch_size: Annotated[int, Option(envvar="BATCH_SIZE", help="Number of forks processed sequentially per batch.")] = DEFAULT_BATCH_SIZE,
    max_parallel_jobs: Annotated[int, Option(envvar="MAX_PARALLEL_JOBS", help="Maximum number of batches run at once.")] = DEFAULT_MAX_PARALLEL_JOBS,
    run_timeout: Annotated[float, Option(envvar="RUN_TIMEOUT", help="Seconds allowed for reconciling all forks.")] = DEFAULT_RUN_TIMEOUT_SECONDS,
    readme_path: Annotated[Path | None, Option(envvar="README_PATH", help="Write the status README to this path.")] = None,
    commit_readme: Annotated[bool, Option(envvar="COMMIT_README", help="Commit and push the README when it changed.")] = False,
    step_summary_path: Annotated[
        Path | None, Option(envvar="GITHUB_STEP_SUMMARY", help="Append a markdown run summary to this file.")
    ] = None,
    github_api_url: GitHubApiUrlOption = DEFAULT_GITHUB_API_URL,
    github_pat_token: GitHubPatTokenOption = None,
    github_app_id: GitHubAppIdOption = None,
    github_app_private_key_path: GitHubAppPrivateKeyPathOption = None,
    github_app_installation_id: GitHubAppInstallationIdOption = None,
    debug: DebugOption = False,
) -> None:
    """Sync every fork of an account with its upstream repository.

    Exits with status 0 once the run completes, even if some forks failed to
    sync; exits with status 1 when the run cannot proceed (configuration,
    authentication, discovery or timeout).
    """
    configure_logging(debug)
    config = reconcile_configuration_or_exit(
        account=account,
        github_api_url=github_api_url,
        github_pat_token=github_pat_token,
        github_app_id=github_app_id,
        github_app_private_key_path=github_app_private_key_path,
        github_app_installation_id=github_app_installation_id,
        specific_repo=repo,
        force_sync=force_sync,
        native_sync=native_sync,
        batch_size=batch_size,
        max_parallel_jobs=max_parallel_jobs,
        run_timeout=run_timeout,
        readme_path=readme_path,
        commit_readme=commit_readme,
        step_summary_path=step_summary_path,
        debug=debug,
    )
    if config.force_sync:
        typer.echo("Force sync is enabled - forks that cannot be merged will be overwritten with upstream")

    try:
        result = asyncio.run(run_fork_sync_workflow(config))
    except StructuralError as exc:
        typer.echo(f"Fork sync aborted: {exc}", err=True)
        raise typer.Exit(1) from exc

    echo_run_summary(result)


@typer_app.command(name="check")
def check_cli(
    account: AccountArgument,
    repo: SpecificRepoOption = None,
    github_api_url: GitHubApiUrlOption = DEFAULT_GITHUB_API_URL,
    github_pat_token: GitHubPatTokenOption = None,
    github_app_id: GitHubAppIdOption = None,
    github_app_private_key_path: GitHubAppPrivateKeyPathOption = None,
    github_app_installation_id: GitHubAppInstallationIdOption = None,
    debug: DebugOption = False,
) -> None:
    """List the forks of an account and report which ones need a sync, without changing anything."""
    configure_logging(debug)
    config = reconcile_configuration_or_exit(
        account=account,
        github_api_url=github_api_url,
        github_pat_token=github_pat_token,
        github_app_id=github_app_id,
        github_app_private_key_path=github_app_private_key_path,
        github_app_installation_id=github_app_installation_id,
        specific_repo=repo,
        debug=debug,
    )

    try:
        result = asyncio.run(run_fork_check_workflow(config))
    except StructuralError as exc:
        typer.echo(f"Fork check aborted: {exc}", err=True)
        raise typer.Exit(1) from exc

    typer.echo(f"Forks considered: {len(result.forks)}")
    typer.echo(f"Needing sync: {len(result.needing_sync)}")
    for divergence in result.needing_sync:
        typer.echo(f"  - {divergence.fork.full_name} <- {divergence.fork.parent_full_name}:{divergence.upstream_branch}")
    for outcome in result.outcomes:
        typer.echo(f"  {outcome.kind.value}: {outcome.fork.full_name} ({outcome.detail})")


if __name__ == "__main__":
    typer_app()
