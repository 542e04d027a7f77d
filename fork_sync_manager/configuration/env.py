"""Pydantic Settings model for run tuning configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fork_sync_manager.configuration.models import TuningConfig


class TuningSettings(BaseSettings):
    """Environment variable settings for pacing and retries.

    Every field can be overridden with a FORK_SYNC_-prefixed environment
    variable, e.g. FORK_SYNC_PUSH_MAX_ATTEMPTS=5.
    """

    model_config = SettingsConfigDict(
        env_prefix="FORK_SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Pauses between repositories to stay clear of secondary rate limits
    DIVERGENCE_CHECK_PAUSE: float = Field(default=0.5, ge=0)
    INTER_REPOSITORY_PAUSE: float = Field(default=2.0, ge=0)

    # Discovery listing retries (exponential backoff)
    DISCOVERY_MAX_ATTEMPTS: int = Field(default=5, ge=1)
    DISCOVERY_INITIAL_DELAY: float = Field(default=10.0, ge=0)
    DISCOVERY_MAX_DELAY: float = Field(default=300.0, ge=0)

    # Push retries (fixed delay per failure kind)
    PUSH_MAX_ATTEMPTS: int = Field(default=3, ge=1)
    PUSH_RATE_LIMIT_DELAY: float = Field(default=60.0, ge=0)
    PUSH_NETWORK_DELAY: float = Field(default=15.0, ge=0)
    PUSH_OTHER_DELAY: float = Field(default=5.0, ge=0)

    def to_tuning_config(self) -> TuningConfig:
        """Convert the settings into the plain dataclass used by the run."""
        return TuningConfig(
            divergence_check_pause=self.DIVERGENCE_CHECK_PAUSE,
            inter_repository_pause=self.INTER_REPOSITORY_PAUSE,
            discovery_max_attempts=self.DISCOVERY_MAX_ATTEMPTS,
            discovery_initial_delay=self.DISCOVERY_INITIAL_DELAY,
            discovery_max_delay=self.DISCOVERY_MAX_DELAY,
            push_max_attempts=self.PUSH_MAX_ATTEMPTS,
            push_rate_limit_delay=self.PUSH_RATE_LIMIT_DELAY,
            push_network_delay=self.PUSH_NETWORK_DELAY,
            push_other_delay=self.PUSH_OTHER_DELAY,
        )
