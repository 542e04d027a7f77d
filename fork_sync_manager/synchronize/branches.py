"""Resolution of the upstream branch a fork is synced from.

Both divergence checking and reconciliation use the branch resolved here, so
a fork is always compared with and merged from the same upstream branch.
"""

import structlog
from githubkit.exception import RequestFailed

from fork_sync_manager.github.abc import ForkHostingClientBase
from fork_sync_manager.synchronize.models import ForkRecord, UpstreamBranchSource
from fork_sync_manager.utils.constants import CONVENTIONAL_BRANCH_NAMES

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def resolve_upstream_branch(
    client: ForkHostingClientBase,
    fork: ForkRecord,
    candidates: tuple[str, ...] = CONVENTIONAL_BRANCH_NAMES,
) -> tuple[str, UpstreamBranchSource]:
    """Determine the default branch of a fork's parent.

    Tries, in order: the parent's default branch as reported by the API, the
    first conventional branch name that exists on the parent, and finally the
    fork's own default branch.
    """
    if fork.parent_full_name is None:
        raise ValueError(f"{fork.full_name} has no parent repository")
    parent = fork.parent_full_name

    try:
        parent_repository = await client.get_repository(parent)
        default_branch = getattr(parent_repository, "default_branch", None)
        if isinstance(default_branch, str) and default_branch:
            return default_branch, UpstreamBranchSource.API
        logger.info("Parent repository reported no default branch", parent=parent)
    except RequestFailed as exc:
        logger.info("Could not read parent repository metadata", parent=parent, status_code=exc.response.status_code)

    for candidate in candidates:
        if await client.branch_exists(parent, candidate):
            logger.info("Resolved upstream branch by probing", parent=parent, branch=candidate)
            return candidate, UpstreamBranchSource.PROBE

    logger.warning(
        "Could not resolve upstream default branch, falling back to the fork's branch",
        parent=parent,
        branch=fork.default_branch,
    )
    return fork.default_branch, UpstreamBranchSource.FALLBACK
