"""Models for configuration between CLI arguments and environment variables."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from fork_sync_manager.utils.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_GITHUB_API_URL,
    DEFAULT_MAX_PARALLEL_JOBS,
    DEFAULT_RUN_TIMEOUT_SECONDS,
)


class GitHubAuthenticationType(str, Enum):
    """Enum for GitHub authentication types."""

    PAT = "pat"
    APP = "app"


@dataclass
class TuningConfig:
    """Pacing and retry knobs for a run."""

    divergence_check_pause: float = 0.5
    inter_repository_pause: float = 2.0
    discovery_max_attempts: int = 5
    discovery_initial_delay: float = 10.0
    discovery_max_delay: float = 300.0
    push_max_attempts: int = 3
    push_rate_limit_delay: float = 60.0
    push_network_delay: float = 15.0
    push_other_delay: float = 5.0


@dataclass
class ForkSyncConfig:
    """Configuration class for one fork sync run."""

    account: str
    github_api_url: str = DEFAULT_GITHUB_API_URL
    github_authentication_type: GitHubAuthenticationType = GitHubAuthenticationType.PAT
    github_pat_token: str | None = field(default=None, repr=False)
    github_app_id: int | None = None
    github_app_private_key_path: Path | None = None
    github_app_installation_id: int | None = None
    specific_repo: str | None = None
    force_sync: bool = False
    native_sync: bool = False
    batch_size: int = DEFAULT_BATCH_SIZE
    max_parallel_jobs: int = DEFAULT_MAX_PARALLEL_JOBS
    run_timeout: float = DEFAULT_RUN_TIMEOUT_SECONDS
    readme_path: Path | None = None
    commit_readme: bool = False
    step_summary_path: Path | None = None
    debug: bool = False
    tuning: TuningConfig = field(default_factory=TuningConfig)

    def discard_credentials(self) -> None:
        """Forget every credential held by this configuration."""
        self.github_pat_token = None
        self.github_app_private_key_path = None
