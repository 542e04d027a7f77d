"""Contains logic for deciding whether a fork needs to be synced."""

import structlog

from fork_sync_manager.github.abc import ForkHostingClientBase
from fork_sync_manager.synchronize.branches import resolve_upstream_branch
from fork_sync_manager.synchronize.exceptions import EmptyRepositoryError, UpstreamBranchNotFoundError
from fork_sync_manager.synchronize.models import DivergenceResult, ForkRecord

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def check_divergence(client: ForkHostingClientBase, fork: ForkRecord) -> DivergenceResult:
    """Compare the head of the fork's default branch with the upstream head.

    Read-only: nothing on the fork is modified.

    Raises:
        ValueError: If the fork has no parent.
        EmptyRepositoryError: If the fork's default branch has no commit.
        UpstreamBranchNotFoundError: If the resolved upstream branch has no commit.
    """
    if fork.parent_full_name is None:
        raise ValueError(f"{fork.full_name} has no parent repository")

    fork_sha = await client.get_branch_head_sha(fork.full_name, fork.default_branch)
    if fork_sha is None:
        raise EmptyRepositoryError(fork.full_name)

    upstream_branch, source = await resolve_upstream_branch(client, fork)
    upstream_sha = await client.get_branch_head_sha(fork.parent_full_name, upstream_branch)
    if upstream_sha is None:
        raise UpstreamBranchNotFoundError(fork.full_name, fork.parent_full_name, upstream_branch)

    result = DivergenceResult(
        fork=fork,
        upstream_branch=upstream_branch,
        upstream_branch_source=source,
        fork_sha=fork_sha,
        upstream_sha=upstream_sha,
    )
    logger.info(
        "Checked fork divergence",
        repository=fork.full_name,
        parent=fork.parent_full_name,
        upstream_branch=upstream_branch,
        fork_sha=fork_sha,
        upstream_sha=upstream_sha,
        needs_sync=result.needs_sync,
    )
    return result
