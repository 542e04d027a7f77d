"""Thin asynchronous wrapper around the git command line for local working copies."""

import asyncio
import base64
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Self

import structlog

from fork_sync_manager.git.exceptions import GitCommandError
from fork_sync_manager.utils.constants import BOT_USER_EMAIL, BOT_USER_NAME
from fork_sync_manager.utils.github import redact_secret

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass
class GitResult:
    """Captured result of a git invocation."""

    returncode: int
    stdout: str
    stderr: str


def build_git_environment(token: str | None, github_html_url: str, user_name: str = BOT_USER_NAME, user_email: str = BOT_USER_EMAIL) -> dict[str, str]:
    """Build the environment variables git runs with.

    The access token travels as an HTTP authorization header scoped to the
    GitHub host through GIT_CONFIG_* variables, so it never appears in argv,
    remote URLs or any config file on disk.
    """
    env = {
        "GIT_TERMINAL_PROMPT": "0",
        "GIT_AUTHOR_NAME": user_name,
        "GIT_AUTHOR_EMAIL": user_email,
        "GIT_COMMITTER_NAME": user_name,
        "GIT_COMMITTER_EMAIL": user_email,
    }
    if token:
        credentials = base64.b64encode(f"x-access-token:{token}".encode()).decode()
        env["GIT_CONFIG_COUNT"] = "1"
        env["GIT_CONFIG_KEY_0"] = f"http.{github_html_url.rstrip('/')}/.extraheader"
        env["GIT_CONFIG_VALUE_0"] = f"AUTHORIZATION: basic {credentials}"
    return env


async def run_git(args: list[str], cwd: Path, env: dict[str, str] | None = None, secret: str | None = None, check: bool = True) -> GitResult:
    """Run git with the given arguments and capture its output.

    Raises:
        GitCommandError: If check is set and git exits with a non-zero status.
    """
    command = ["git", *args]
    logger.debug("Running git command", args=args, cwd=str(cwd))
    process = await asyncio.create_subprocess_exec(
        *command,
        cwd=str(cwd),
        env={**os.environ, **(env or {})},
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout_bytes, stderr_bytes = await process.communicate()
    except BaseException:
        # git never outlives a cancelled wait
        if process.returncode is None:
            logger.warning("Killing interrupted git command", args=args)
            process.kill()
            await process.wait()
        raise
    result = GitResult(
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=redact_secret(stdout_bytes.decode(errors="replace"), secret),
        stderr=redact_secret(stderr_bytes.decode(errors="replace"), secret),
    )
    if check and result.returncode != 0:
        raise GitCommandError(args, result.returncode, result.stderr)
    return result


class GitWorkingCopy:
    """A local clone of a repository."""

    def __init__(self, path: Path, env: dict[str, str] | None = None, secret: str | None = None) -> None:
        """Initialize the working copy for an existing clone at path."""
        self.path = path
        self.env = env or {}
        self.secret = secret

    @classmethod
    async def clone(cls, url: str, destination: Path, env: dict[str, str] | None = None, secret: str | None = None) -> Self:
        """Clone url into destination, which must not exist yet."""
        await run_git(["clone", "--no-tags", url, str(destination)], cwd=destination.parent, env=env, secret=secret)
        return cls(destination, env=env, secret=secret)

    async def run(self, *args: str, check: bool = True) -> GitResult:
        """Run a git command inside the working copy."""
        return await run_git(list(args), cwd=self.path, env=self.env, secret=self.secret, check=check)

    async def has_commits(self) -> bool:
        """Return whether HEAD points at a commit (False for empty repositories)."""
        result = await self.run("rev-parse", "--verify", "--quiet", "HEAD", check=False)
        return result.returncode == 0

    async def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        """Return whether ancestor is reachable from descendant."""
        result = await self.run("merge-base", "--is-ancestor", ancestor, descendant, check=False)
        if result.returncode not in (0, 1):
            raise GitCommandError(["merge-base", "--is-ancestor", ancestor, descendant], result.returncode, result.stderr)
        return result.returncode == 0

    async def checkout_branch(self, branch: str, start_point: str) -> None:
        """Check out branch, (re)creating it at start_point."""
        await self.run("checkout", "-B", branch, start_point)

    async def add_remote(self, name: str, url: str) -> None:
        """Add a named remote."""
        await self.run("remote", "add", name, url)

    async def fetch(self, remote: str, branch: str) -> None:
        """Fetch a single branch from a remote."""
        await self.run("fetch", "--no-tags", remote, f"+refs/heads/{branch}:refs/remotes/{remote}/{branch}")

    async def merge(self, ref: str, message: str, allow_unrelated_histories: bool = False) -> bool:
        """Merge ref into the current branch. Returns False if the merge failed."""
        args = ["merge", "--no-edit", "-m", message]
        if allow_unrelated_histories:
            args.append("--allow-unrelated-histories")
        args.append(ref)
        result = await self.run(*args, check=False)
        if result.returncode != 0:
            logger.info("Merge failed", ref=ref, allow_unrelated_histories=allow_unrelated_histories, stderr=result.stderr.strip())
            return False
        return True

    async def abort_merge(self) -> None:
        """Abort an in-progress merge, if any."""
        result = await self.run("merge", "--abort", check=False)
        if result.returncode != 0:
            logger.debug("No merge to abort", stderr=result.stderr.strip())

    async def reset_hard(self, ref: str) -> None:
        """Point the current branch and working tree at ref, discarding local commits."""
        await self.run("reset", "--hard", ref)

    async def push(self, remote: str, branch: str, force: bool = False) -> None:
        """Push the local branch to the same branch on a remote."""
        args = ["push", remote, f"refs/heads/{branch}:refs/heads/{branch}"]
        if force:
            args.insert(1, "--force")
        await self.run(*args)

    async def push_current_branch(self) -> None:
        """Push the checked out branch to its configured upstream."""
        await self.run("push")

    async def add(self, *paths: str) -> None:
        """Stage paths."""
        await self.run("add", "--", *paths)

    async def has_staged_changes(self) -> bool:
        """Return whether the index differs from HEAD."""
        result = await self.run("diff", "--staged", "--quiet", check=False)
        if result.returncode not in (0, 1):
            raise GitCommandError(["diff", "--staged", "--quiet"], result.returncode, result.stderr)
        return result.returncode == 1

    async def commit(self, message: str) -> None:
        """Commit the staged changes."""
        await self.run("commit", "-m", message)

    async def pull_rebase(self) -> None:
        """Rebase the current branch onto its upstream."""
        await self.run("pull", "--rebase")
