"""Base ABC for repository hosting clients."""

from abc import ABC, abstractmethod
from typing import Any


class ForkHostingClientBase(ABC):
    """Base ABC for the hosting platform operations a fork sync needs."""

    @abstractmethod
    async def verify_authentication(self) -> None:
        """Make a cheap authenticated call, raising if the credentials are rejected."""
        pass

    # Discovery
    @abstractmethod
    async def list_account_repositories_page(self, page: int, per_page: int) -> list[Any]:
        """List one page of repositories owned by the account."""
        pass

    @abstractmethod
    async def get_repository(self, full_name: str) -> Any:
        """Get the full metadata of a repository."""
        pass

    # Branches
    @abstractmethod
    async def get_branch_head_sha(self, full_name: str, branch: str) -> str | None:
        """Get the head commit of a branch, or None if the branch has no commit."""
        pass

    @abstractmethod
    async def branch_exists(self, full_name: str, branch: str) -> bool:
        """Check whether a branch exists in a repository."""
        pass

    # Writes
    @abstractmethod
    async def merge_upstream(self, full_name: str, branch: str) -> str | None:
        """Ask the platform to merge the upstream branch into the fork.

        Returns the merge type the platform reports ("merge", "fast-forward" or
        "none" when nothing was missing), or None when it refuses the merge.
        """
        pass

    @abstractmethod
    def clone_url(self, full_name: str) -> str:
        """Return the HTTPS clone URL of a repository."""
        pass
