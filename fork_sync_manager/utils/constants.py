"""Shared constants used across the application."""

# Run Defaults
# ------------

DEFAULT_GITHUB_API_URL = "https://api.github.com"
"""Default GitHub REST API URL."""

DEFAULT_BATCH_SIZE = 25
"""Default number of forks processed sequentially by one batch worker."""

DEFAULT_MAX_PARALLEL_JOBS = 5
"""Default number of batch workers allowed to run at the same time."""

DEFAULT_RUN_TIMEOUT_SECONDS = 7200.0
"""Default upper bound on the reconciliation stage of a run."""

REPOSITORY_PAGE_SIZE = 100
"""Number of repositories requested per listing page (GitHub's maximum)."""

# Branch Resolution
# -----------------

CONVENTIONAL_BRANCH_NAMES = ("main", "master", "develop", "trunk")
"""Branch names probed, in order, when the upstream default branch is unknown."""

# Git
# ---

ORIGIN_REMOTE = "origin"
UPSTREAM_REMOTE = "upstream"

MERGE_COMMIT_MESSAGE_TEMPLATE = "Merge upstream '{parent}:{branch}' into '{fork_branch}'"
"""Commit message used by the merge strategies."""

BOT_USER_NAME = "github-actions[bot]"
BOT_USER_EMAIL = "github-actions[bot]@users.noreply.github.com"

README_COMMIT_MESSAGE_TEMPLATE = "docs: Update fork repository list ({total} total, {synced} synced)"
"""Commit message used when the status README changes."""

# Reporting
# ---------

NOT_AVAILABLE = "N/A"
"""Placeholder for values missing from the status README."""

DEFAULT_README_PATH = "README.md"
