"""Custom exceptions for the git module."""


class GitCommandError(Exception):
    """Raised when a git command exits with a non-zero status."""

    def __init__(self, command: list[str], returncode: int, stderr: str) -> None:
        """Initializes the exception with the (redacted) command and its error output."""
        super().__init__(f"git {' '.join(command)} failed with exit code {returncode}: {stderr.strip()}")
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
