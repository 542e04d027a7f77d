"""Custom exceptions for the synchronize module.

Structural errors stop the whole run. Repository errors are caught at the
per-fork boundary and recorded as that fork's outcome.
"""


class ForkSyncError(Exception):
    """Base class for fork sync errors."""

    pass


class StructuralError(ForkSyncError):
    """Raised when the run cannot proceed at all."""

    pass


class AuthenticationError(StructuralError):
    """Raised when the hosting platform rejects the configured credentials."""

    pass


class DiscoveryError(StructuralError):
    """Raised when the forks of the account cannot be enumerated."""

    def __init__(self, account: str, message: str) -> None:
        """Initializes the exception with the account being listed."""
        super().__init__(f"Failed to discover forks of {account}: {message}")
        self.account = account


class RunTimeoutError(StructuralError):
    """Raised when reconciliation does not finish within the run timeout."""

    def __init__(self, timeout: float) -> None:
        """Initializes the exception with the exceeded timeout."""
        super().__init__(f"Fork sync did not finish within {timeout} seconds")
        self.timeout = timeout


class RepositoryError(ForkSyncError):
    """Raised when one repository cannot be processed."""

    def __init__(self, full_name: str, message: str) -> None:
        """Initializes the exception with the repository it concerns."""
        super().__init__(message)
        self.full_name = full_name


class EmptyRepositoryError(RepositoryError):
    """Raised when a fork has no commits at all."""

    def __init__(self, full_name: str) -> None:
        """Initializes the exception for an empty repository."""
        super().__init__(full_name, f"{full_name} is empty")


class UpstreamBranchNotFoundError(RepositoryError):
    """Raised when the upstream branch to sync from has no head commit."""

    def __init__(self, full_name: str, parent_full_name: str, branch: str) -> None:
        """Initializes the exception with the missing upstream branch."""
        super().__init__(full_name, f"Branch '{branch}' not found on upstream {parent_full_name}")
        self.parent_full_name = parent_full_name
        self.branch = branch


class CloneError(RepositoryError):
    """Raised when a fork or its upstream cannot be cloned or fetched."""

    pass


class PublishError(RepositoryError):
    """Raised when the reconciled branch cannot be pushed to the fork."""

    pass
