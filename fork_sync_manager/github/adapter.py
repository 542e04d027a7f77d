"""GitHub client adapter for the githubkit library."""

import structlog
from githubkit import Response
from githubkit.exception import RequestFailed
from githubkit.versions.latest.models import BranchWithProtection, FullRepository, MergedUpstream, MinimalRepository

from fork_sync_manager.utils.constants import DEFAULT_GITHUB_API_URL
from fork_sync_manager.utils.github import github_html_url, split_repository_name
from fork_sync_manager.utils.retry import retry_on_rate_limit

from .abc import ForkHostingClientBase
from .client import GitHubClient

logger = structlog.get_logger(__name__)


class GitHubKitAdapter(ForkHostingClientBase):
    """GitHub client adapter for the githubkit library."""

    def __init__(self, client: GitHubClient, account: str, github_api_url: str = DEFAULT_GITHUB_API_URL) -> None:
        """Initialize the GitHub client adapter with an already-initialized client."""
        self.client = client
        self.account = account
        self.github_api_url = github_api_url

    @retry_on_rate_limit()
    async def verify_authentication(self) -> None:
        """Query the rate limit endpoint, which every valid credential may read."""
        await self.client.rest.rate_limit.async_get()

    # Discovery
    async def list_account_repositories_page(self, page: int, per_page: int = 100) -> list[MinimalRepository]:
        """List one page of repositories owned by the account.

        Not retried here: discovery owns the retry policy for listing pages.
        """
        logger.debug("Fetching account repositories page", account=self.account, page=page, per_page=per_page)
        response: Response[list[MinimalRepository]] = await self.client.rest.repos.async_list_for_user(
            username=self.account,
            type="owner",
            sort="full_name",
            per_page=per_page,
            page=page,
        )
        return response.parsed_data

    @retry_on_rate_limit()
    async def get_repository(self, full_name: str) -> FullRepository:
        """Get the full metadata of a repository, including its parent."""
        owner, repo_name = await split_repository_name(full_name)
        response: Response[FullRepository] = await self.client.rest.repos.async_get(owner=owner, repo=repo_name)
        return response.parsed_data

    # Branches
    @retry_on_rate_limit()
    async def get_branch_head_sha(self, full_name: str, branch: str) -> str | None:
        """Get the head commit of a branch.

        Returns None when the branch does not exist or the repository is empty
        (GitHub answers 404 or 409 respectively).
        """
        owner, repo_name = await split_repository_name(full_name)
        try:
            response: Response[BranchWithProtection] = await self.client.rest.repos.async_get_branch(owner=owner, repo=repo_name, branch=branch)
        except RequestFailed as exc:
            if exc.response.status_code in (404, 409):
                logger.debug("Branch has no head commit", repository=full_name, branch=branch, status_code=exc.response.status_code)
                return None
            raise
        return response.parsed_data.commit.sha

    @retry_on_rate_limit()
    async def branch_exists(self, full_name: str, branch: str) -> bool:
        """Check if a branch exists in the repository."""
        owner, repo_name = await split_repository_name(full_name)
        try:
            await self.client.rest.repos.async_get_branch(owner=owner, repo=repo_name, branch=branch)
            return True
        except RequestFailed as exc:
            if exc.response.status_code == 404:
                return False
            raise

    # Writes
    @retry_on_rate_limit()
    async def merge_upstream(self, full_name: str, branch: str) -> str | None:
        """Use the merge-upstream endpoint to sync a fork branch.

        Returns the reported merge type, or None when GitHub reports a conflict
        it cannot resolve (409) or refuses the merge (422).
        """
        owner, repo_name = await split_repository_name(full_name)
        try:
            response: Response[MergedUpstream] = await self.client.rest.repos.async_merge_upstream(owner=owner, repo=repo_name, branch=branch)
        except RequestFailed as exc:
            if exc.response.status_code in (409, 422):
                logger.info("Hosting API could not merge upstream", repository=full_name, branch=branch, status_code=exc.response.status_code)
                return None
            raise
        merge_type = response.parsed_data.merge_type or "merge"
        logger.info("Hosting API merged upstream", repository=full_name, branch=branch, merge_type=merge_type)
        return merge_type

    def clone_url(self, full_name: str) -> str:
        """Return the HTTPS clone URL of a repository."""
        return f"{github_html_url(self.github_api_url)}/{full_name}.git"
