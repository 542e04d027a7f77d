"""Fakes shared by the unit tests."""

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace
from typing import Any

from githubkit.exception import RequestFailed

from fork_sync_manager.configuration.models import TuningConfig
from fork_sync_manager.git.exceptions import GitCommandError
from fork_sync_manager.github.abc import ForkHostingClientBase
from fork_sync_manager.synchronize.models import DivergenceResult, ForkRecord, UpstreamBranchSource


class FakeRequestFailed(RequestFailed):
    """A RequestFailed carrying only a status code and headers."""

    def __init__(self, status_code: int, headers: dict[str, str] | None = None, message: str = "") -> None:
        """Initialize the fake failure without a real HTTP exchange."""
        Exception.__init__(self, message or f"Request failed with status code {status_code}")
        self.request = SimpleNamespace(method="GET", url="https://api.github.com/fake")
        self.response = SimpleNamespace(status_code=status_code, headers=headers or {})


def git_error(stderr: str, command: list[str] | None = None) -> GitCommandError:
    """Build a git failure with the given error output."""
    return GitCommandError(command or ["push", "origin"], 128, stderr)


class SleepRecorder:
    """Stands in for asyncio.sleep and records every requested delay."""

    def __init__(self) -> None:
        """Initialize with no recorded delays."""
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        """Record the delay and return at once."""
        self.delays.append(delay)


def no_pause_tuning(**overrides: Any) -> TuningConfig:
    """Tuning with every pause and delay set to zero."""
    values: dict[str, Any] = {
        "divergence_check_pause": 0.0,
        "inter_repository_pause": 0.0,
        "discovery_initial_delay": 0.0,
        "discovery_max_delay": 0.0,
        "push_rate_limit_delay": 0.0,
        "push_network_delay": 0.0,
        "push_other_delay": 0.0,
    }
    values.update(overrides)
    return TuningConfig(**values)


def make_fork(
    full_name: str = "octocat/Hello-World",
    parent_full_name: str | None = "upstream/Hello-World",
    default_branch: str = "main",
    **kwargs: Any,
) -> ForkRecord:
    """Build a fork record."""
    return ForkRecord(full_name=full_name, parent_full_name=parent_full_name, default_branch=default_branch, **kwargs)


def make_divergence(fork: ForkRecord | None = None, upstream_branch: str = "main") -> DivergenceResult:
    """Build a divergence result for a fork that needs a sync."""
    return DivergenceResult(
        fork=fork or make_fork(),
        upstream_branch=upstream_branch,
        upstream_branch_source=UpstreamBranchSource.API,
        fork_sha="fork-sha",
        upstream_sha="upstream-sha",
    )


class FakeHostingClient(ForkHostingClientBase):
    """In-memory hosting platform holding repositories and branch heads."""

    def __init__(self, account: str = "octocat") -> None:
        """Initialize an empty platform for the account."""
        self.account = account
        self.repositories: dict[str, SimpleNamespace] = {}
        self.branches: dict[tuple[str, str], str] = {}
        self.verify_error: Exception | None = None
        self.list_errors: list[Exception] = []
        self.merge_upstream_result: str | None = None
        self.calls: list[tuple[str, ...]] = []

    def add_repository(
        self,
        full_name: str,
        parent: str | None = None,
        default_branch: str = "main",
        fork: bool | None = None,
        language: str | None = None,
        description: str | None = None,
        updated_at: datetime | None = None,
    ) -> SimpleNamespace:
        """Register a repository. Repositories with a parent are forks unless told otherwise."""
        repository = SimpleNamespace(
            full_name=full_name,
            fork=parent is not None if fork is None else fork,
            parent=SimpleNamespace(full_name=parent) if parent else None,
            default_branch=default_branch,
            pushed_at=None,
            updated_at=updated_at,
            language=language,
            description=description,
        )
        self.repositories[full_name] = repository
        return repository

    def set_head(self, full_name: str, branch: str, sha: str) -> None:
        """Set the head commit of a branch."""
        self.branches[(full_name, branch)] = sha

    async def verify_authentication(self) -> None:
        """Raise the configured error, if any."""
        self.calls.append(("verify_authentication",))
        if self.verify_error is not None:
            raise self.verify_error

    async def list_account_repositories_page(self, page: int, per_page: int = 100) -> list[Any]:
        """Return one page of the account's repositories, in insertion order."""
        self.calls.append(("list_account_repositories_page", str(page)))
        if self.list_errors:
            raise self.list_errors.pop(0)
        owned = [repository for name, repository in self.repositories.items() if name.startswith(f"{self.account}/")]
        start = (page - 1) * per_page
        return owned[start : start + per_page]

    async def get_repository(self, full_name: str) -> Any:
        """Return a repository or fail with 404."""
        self.calls.append(("get_repository", full_name))
        if full_name not in self.repositories:
            raise FakeRequestFailed(404)
        return self.repositories[full_name]

    async def get_branch_head_sha(self, full_name: str, branch: str) -> str | None:
        """Return the head commit of a branch, if it exists."""
        self.calls.append(("get_branch_head_sha", full_name, branch))
        return self.branches.get((full_name, branch))

    async def branch_exists(self, full_name: str, branch: str) -> bool:
        """Return whether the branch has a head."""
        self.calls.append(("branch_exists", full_name, branch))
        return (full_name, branch) in self.branches

    async def merge_upstream(self, full_name: str, branch: str) -> str | None:
        """Return the configured merge-upstream answer."""
        self.calls.append(("merge_upstream", full_name, branch))
        return self.merge_upstream_result

    def clone_url(self, full_name: str) -> str:
        """Return a clone URL for the repository."""
        return f"https://github.com/{full_name}.git"


class FakeWorkingCopy:
    """Scripted stand-in for a local clone.

    ``merge_results`` holds the answers of successive merge attempts and
    ``push_errors`` the failures of successive pushes before one succeeds.
    """

    def __init__(
        self,
        path: Path | None = None,
        has_commits: bool = True,
        contains_upstream: bool = False,
        merge_results: list[bool] | None = None,
        reset_error: Exception | None = None,
        push_errors: list[Exception] | None = None,
        fetch_error: Exception | None = None,
    ) -> None:
        """Initialize the working copy with scripted answers."""
        self.path = path or Path("/tmp/fake")
        self._has_commits = has_commits
        self.contains_upstream = contains_upstream
        self.merge_results = list(merge_results or [])
        self.reset_error = reset_error
        self.push_errors = list(push_errors or [])
        self.fetch_error = fetch_error
        self.operations: list[tuple[Any, ...]] = []

    async def has_commits(self) -> bool:
        return self._has_commits

    async def checkout_branch(self, branch: str, start_point: str) -> None:
        self.operations.append(("checkout", branch, start_point))

    async def add_remote(self, name: str, url: str) -> None:
        self.operations.append(("add_remote", name, url))

    async def fetch(self, remote: str, branch: str) -> None:
        self.operations.append(("fetch", remote, branch))
        if self.fetch_error is not None:
            raise self.fetch_error

    async def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        return self.contains_upstream

    async def merge(self, ref: str, message: str, allow_unrelated_histories: bool = False) -> bool:
        self.operations.append(("merge", ref, allow_unrelated_histories))
        return self.merge_results.pop(0) if self.merge_results else False

    async def abort_merge(self) -> None:
        self.operations.append(("abort_merge",))

    async def reset_hard(self, ref: str) -> None:
        self.operations.append(("reset_hard", ref))
        if self.reset_error is not None:
            raise self.reset_error

    async def push(self, remote: str, branch: str, force: bool = False) -> None:
        self.operations.append(("push", remote, branch, force))
        if self.push_errors:
            raise self.push_errors.pop(0)


class FakeCloner:
    """Stands in for GitWorkingCopy.clone, handing out scripted working copies per fork URL."""

    def __init__(self, working_copies: dict[str, FakeWorkingCopy] | None = None, default: FakeWorkingCopy | None = None) -> None:
        """Initialize with working copies keyed by clone URL."""
        self.working_copies = working_copies or {}
        self.default = default
        self.errors: dict[str, Exception] = {}
        self.cloned: list[str] = []
        self.environments: list[dict[str, str] | None] = []
        self.destinations: list[Path] = []

    async def __call__(self, url: str, destination: Path, env: dict[str, str] | None = None, secret: str | None = None) -> Any:
        """Return the working copy scripted for url."""
        self.cloned.append(url)
        self.destinations.append(destination)
        self.environments.append(dict(env) if env is not None else None)
        if url in self.errors:
            raise self.errors[url]
        if url in self.working_copies:
            return self.working_copies[url]
        if self.default is not None:
            return self.default
        return FakeWorkingCopy(path=destination, contains_upstream=True)
