"""Contains logic for discovering the forks owned by an account."""

from typing import Any

import structlog
from githubkit.exception import RequestFailed

from fork_sync_manager.configuration.models import TuningConfig
from fork_sync_manager.github.abc import ForkHostingClientBase
from fork_sync_manager.synchronize.exceptions import DiscoveryError
from fork_sync_manager.synchronize.models import ForkRecord
from fork_sync_manager.utils.constants import REPOSITORY_PAGE_SIZE
from fork_sync_manager.utils.github import qualify_repository_name
from fork_sync_manager.utils.retry import SleepFunction, exponential_delay, retry_rate_limit_only, retry_with_backoff

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def list_account_forks(
    client: ForkHostingClientBase,
    account: str,
    tuning: TuningConfig,
    per_page: int = REPOSITORY_PAGE_SIZE,
    sleep: SleepFunction | None = None,
) -> list[Any]:
    """List every fork owned by the account, page by page.

    Stops on the first page holding fewer than per_page entries. Rate limited
    page fetches are retried with exponential backoff; any other failure is
    raised to the caller.
    """
    delay_for = exponential_delay(initial_delay=tuning.discovery_initial_delay, max_delay=tuning.discovery_max_delay)
    forks: list[Any] = []
    page = 1
    while True:
        repositories: list[Any] = await retry_with_backoff(
            lambda: client.list_account_repositories_page(page=page, per_page=per_page),
            max_attempts=tuning.discovery_max_attempts,
            delay_for=delay_for,
            should_retry=retry_rate_limit_only,
            sleep=sleep,
            operation_name="list_account_repositories_page",
        )
        page_forks = [repository for repository in repositories if getattr(repository, "fork", False)]
        forks.extend(page_forks)
        logger.info("Fetched repositories page", account=account, page=page, repositories=len(repositories), forks=len(page_forks))
        if len(repositories) < per_page:
            break
        page += 1
    return forks


async def discover_forks(
    client: ForkHostingClientBase,
    account: str,
    tuning: TuningConfig,
    specific_repo: str | None = None,
    sleep: SleepFunction | None = None,
) -> list[ForkRecord]:
    """Produce the ordered list of forks to consider in this run.

    When a specific repository is named, exactly that repository is looked up
    and returned, whether or not it is a fork.

    Raises:
        DiscoveryError: If the repositories cannot be listed or looked up.
    """
    if specific_repo:
        full_name = qualify_repository_name(specific_repo, account)
        logger.info("Looking up specific repository", repository=full_name)
        try:
            repository = await client.get_repository(full_name)
        except RequestFailed as exc:
            raise DiscoveryError(account, f"could not look up {full_name} (HTTP {exc.response.status_code})") from exc
        except Exception as exc:
            raise DiscoveryError(account, f"could not look up {full_name}: {exc}") from exc
        return [ForkRecord.from_github_repository(repository)]

    logger.info("Fetching all forks", account=account)
    try:
        listed_forks = await list_account_forks(client, account, tuning, sleep=sleep)
    except RequestFailed as exc:
        raise DiscoveryError(account, f"listing repositories failed (HTTP {exc.response.status_code})") from exc
    except Exception as exc:
        raise DiscoveryError(account, f"listing repositories failed: {exc}") from exc

    # The listing endpoint omits the parent, so each fork is fetched in full.
    records: list[ForkRecord] = []
    for listed in listed_forks:
        try:
            repository = await client.get_repository(listed.full_name)
        except Exception as exc:
            raise DiscoveryError(account, f"could not resolve the parent of {listed.full_name}: {exc}") from exc
        records.append(ForkRecord.from_github_repository(repository))

    logger.info("Discovered forks", account=account, total_forks=len(records))
    return records
