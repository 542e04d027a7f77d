"""Unit tests for the GitHubKitAdapter class and related GitHub operations."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from fork_sync_manager.github.adapter import GitHubKitAdapter

from .utils import FakeRequestFailed


class DummyResponse:
    """A dummy response object to mock GitHub API responses."""

    def __init__(self, status_code: int = 200, sha: str = "abc123") -> None:
        """Initialize the dummy response with a status code and SHA."""
        self.status_code: int = status_code
        self.parsed_data = MagicMock()
        self.parsed_data.commit.sha = sha


def make_adapter(github_api_url: str = "https://api.github.com") -> GitHubKitAdapter:
    return GitHubKitAdapter(MagicMock(), "octocat", github_api_url)


@pytest.mark.asyncio
async def test_get_branch_head_sha() -> None:
    """Test that the head commit of a branch is returned."""
    adapter = make_adapter()
    adapter.client.rest.repos.async_get_branch = AsyncMock(return_value=DummyResponse(sha="head-sha"))

    assert await adapter.get_branch_head_sha("octocat/Hello-World", "main") == "head-sha"
    adapter.client.rest.repos.async_get_branch.assert_awaited_once_with(owner="octocat", repo="Hello-World", branch="main")


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [pytest.param(404, id="missing branch"), pytest.param(409, id="empty repository")])
async def test_get_branch_head_sha_none(status_code: int) -> None:
    """Test that a missing branch or empty repository has no head."""
    adapter = make_adapter()
    adapter.client.rest.repos.async_get_branch = AsyncMock(side_effect=FakeRequestFailed(status_code))

    assert await adapter.get_branch_head_sha("octocat/Hello-World", "main") is None


@pytest.mark.asyncio
async def test_branch_exists_not_found() -> None:
    """Test that branch_exists returns False when the branch does not exist."""
    adapter = make_adapter()
    adapter.client.rest.repos.async_get_branch = AsyncMock(side_effect=FakeRequestFailed(404))
    assert await adapter.branch_exists("upstream/Hello-World", "trunk") is False


@pytest.mark.asyncio
async def test_branch_exists_other_error() -> None:
    """Test that branch_exists raises for non-404 errors."""
    adapter = make_adapter()
    adapter.client.rest.repos.async_get_branch = AsyncMock(side_effect=FakeRequestFailed(500))
    with pytest.raises(FakeRequestFailed):
        await adapter.branch_exists("upstream/Hello-World", "main")


@pytest.mark.asyncio
async def test_list_account_repositories_page() -> None:
    """Test that the listing asks for repositories owned by the account."""
    adapter = make_adapter()
    response = MagicMock()
    response.parsed_data = ["repo"]
    adapter.client.rest.repos.async_list_for_user = AsyncMock(return_value=response)

    assert await adapter.list_account_repositories_page(page=2, per_page=50) == ["repo"]
    adapter.client.rest.repos.async_list_for_user.assert_awaited_once_with(
        username="octocat", type="owner", sort="full_name", per_page=50, page=2
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [pytest.param(409, id="conflict"), pytest.param(422, id="unprocessable")])
async def test_merge_upstream_refused(status_code: int) -> None:
    """Test that a refused merge-upstream call returns None."""
    adapter = make_adapter()
    adapter.client.rest.repos.async_merge_upstream = AsyncMock(side_effect=FakeRequestFailed(status_code))
    assert await adapter.merge_upstream("octocat/Hello-World", "main") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("merge_type", ["merge", "fast-forward", "none"])
async def test_merge_upstream_returns_merge_type(merge_type: str) -> None:
    """Test that an accepted merge-upstream call returns the reported merge type."""
    adapter = make_adapter()
    response = MagicMock()
    response.parsed_data.merge_type = merge_type
    adapter.client.rest.repos.async_merge_upstream = AsyncMock(return_value=response)

    assert await adapter.merge_upstream("octocat/Hello-World", "main") == merge_type
    adapter.client.rest.repos.async_merge_upstream.assert_awaited_once_with(owner="octocat", repo="Hello-World", branch="main")


@pytest.mark.parametrize(
    "api_url,expected",
    [
        pytest.param("https://api.github.com", "https://github.com/octocat/Hello-World.git", id="github.com"),
        pytest.param("https://ghe.example.com/api/v3", "https://ghe.example.com/octocat/Hello-World.git", id="enterprise"),
    ],
)
def test_clone_url(api_url: str, expected: str) -> None:
    """Test that clone URLs point at the web host."""
    assert make_adapter(api_url).clone_url("octocat/Hello-World") == expected
