"""Reconcile GitHub authentication and fork sync run configuration."""

from pathlib import Path

from fork_sync_manager.configuration.env import TuningSettings
from fork_sync_manager.configuration.exceptions import (
    GitHubAuthenticationConfigurationUndefinedError,
    InvalidConfigurationElementError,
    RequiredConfigurationElementError,
)
from fork_sync_manager.configuration.models import ForkSyncConfig, GitHubAuthenticationType, TuningConfig

GITHUB_APP_SETTINGS = (
    ("github_app_id", "--github-app-id", "GITHUB_APP_ID"),
    ("github_app_private_key_path", "--github-app-private-key-path", "GITHUB_APP_PRIVATE_KEY_PATH"),
    ("github_app_installation_id", "--github-app-installation-id", "GITHUB_APP_INSTALLATION_ID"),
)


async def validate_github_authentication_configuration(
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
) -> GitHubAuthenticationType:
    """Decide how the run authenticates to GitHub.

    The token, whichever way it is obtained, is used for both the REST API and
    git, so exactly one credential source may be configured.

    Raises:
        GitHubAuthenticationConfigurationUndefinedError: If the settings do not name
            exactly one complete credential source.
    """
    app_settings = {
        "github_app_id": github_app_id,
        "github_app_private_key_path": github_app_private_key_path,
        "github_app_installation_id": github_app_installation_id,
    }
    if github_pat_token and any(app_settings.values()):
        raise GitHubAuthenticationConfigurationUndefinedError("Both PAT and GitHub App configurations are defined. Fork sync needs exactly one token source.")
    if github_pat_token:
        return GitHubAuthenticationType.PAT
    if all(app_settings.values()):
        return GitHubAuthenticationType.APP
    if any(app_settings.values()):
        missing = ", ".join(f"{option} ({env_name})" for name, option, env_name in GITHUB_APP_SETTINGS if not app_settings[name])
        raise GitHubAuthenticationConfigurationUndefinedError(f"Incomplete GitHub App configuration, missing: {missing}")
    raise GitHubAuthenticationConfigurationUndefinedError(
        "No GitHub credentials provided. Set GITHUB_PAT_TOKEN, or the three GITHUB_APP_* settings, with push access to the account's forks."
    )


async def reconcile_fork_sync_configuration(
    cli_account: str | None,
    cli_github_api_url: str,
    cli_github_pat_token: str | None,
    cli_github_app_id: int | None,
    cli_github_app_private_key_path: Path | None,
    cli_github_app_installation_id: int | None,
    cli_specific_repo: str | None = None,
    cli_force_sync: bool = False,
    cli_native_sync: bool = False,
    cli_batch_size: int = 25,
    cli_max_parallel_jobs: int = 5,
    cli_run_timeout: float = 7200.0,
    cli_readme_path: Path | None = None,
    cli_commit_readme: bool = False,
    cli_step_summary_path: Path | None = None,
    cli_debug: bool = False,
    tuning: TuningConfig | None = None,
) -> ForkSyncConfig:
    """Validate CLI/environment values and build the configuration for a run.

    Raises:
        RequiredConfigurationElementError: If the account is missing.
        InvalidConfigurationElementError: If a numeric setting is out of range.
        GitHubAuthenticationConfigurationUndefinedError: If authentication is not configured correctly.
    """
    account = (cli_account or "").strip()
    if not account:
        raise RequiredConfigurationElementError("GitHub account", "account", "GITHUB_REPOSITORY_OWNER")
    if cli_batch_size < 1:
        raise InvalidConfigurationElementError("batch_size", cli_batch_size, "must be a positive integer")
    if cli_max_parallel_jobs < 1:
        raise InvalidConfigurationElementError("max_parallel_jobs", cli_max_parallel_jobs, "must be a positive integer")
    if cli_run_timeout <= 0:
        raise InvalidConfigurationElementError("run_timeout", cli_run_timeout, "must be greater than zero")
    if cli_commit_readme and cli_readme_path is None:
        raise InvalidConfigurationElementError("commit_readme", cli_commit_readme, "requires readme_path to be set")

    github_auth_type = await validate_github_authentication_configuration(
        github_pat_token=cli_github_pat_token,
        github_app_id=cli_github_app_id,
        github_app_private_key_path=cli_github_app_private_key_path,
        github_app_installation_id=cli_github_app_installation_id,
    )

    specific_repo = cli_specific_repo.strip() if cli_specific_repo else None

    return ForkSyncConfig(
        account=account,
        github_api_url=cli_github_api_url,
        github_authentication_type=github_auth_type,
        github_pat_token=cli_github_pat_token,
        github_app_id=cli_github_app_id,
        github_app_private_key_path=cli_github_app_private_key_path,
        github_app_installation_id=cli_github_app_installation_id,
        specific_repo=specific_repo or None,
        force_sync=cli_force_sync,
        native_sync=cli_native_sync,
        batch_size=cli_batch_size,
        max_parallel_jobs=cli_max_parallel_jobs,
        run_timeout=cli_run_timeout,
        readme_path=cli_readme_path,
        commit_readme=cli_commit_readme,
        step_summary_path=cli_step_summary_path,
        debug=cli_debug,
        tuning=tuning if tuning is not None else TuningSettings().to_tuning_config(),
    )
