"""Sets up the authenticated githubkit client."""

from pathlib import Path
from typing import TypeAlias

import structlog
from githubkit import GitHub
from githubkit.auth import AppAuthStrategy, TokenAuthStrategy

from fork_sync_manager.configuration.models import GitHubAuthenticationType

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

GitHubClient: TypeAlias = GitHub[TokenAuthStrategy]


async def get_github_app_installation_token(
    github_app_id: int,
    github_app_private_key_path: Path,
    github_app_installation_id: int,
    github_api_url: str,
) -> str:
    """Mint an installation access token using GitHub App credentials.

    The same token authenticates both the REST client and git over HTTPS.
    """
    if not (github_app_id and github_app_private_key_path and github_app_installation_id):
        raise RuntimeError("GitHub App authentication requires app_id, private_key_path, and installation_id in config.")
    try:
        with open(github_app_private_key_path) as f:
            private_key = f.read()
        auth = AppAuthStrategy(app_id=github_app_id, private_key=private_key)
        app_client = GitHub(auth=auth, base_url=github_api_url, http_cache=False)
        resp = await app_client.rest.apps.async_create_installation_access_token(installation_id=github_app_installation_id)
        return resp.parsed_data.token
    except Exception as e:
        raise ValueError(f"Failed to get GitHub App installation token: {e}") from e


async def get_github_pat_client(github_pat_token: str, github_api_url: str) -> GitHubClient:
    """Returns an authenticated GitHub client using a token."""
    if not github_pat_token:
        raise RuntimeError("GitHub PAT authentication requires github_pat_token in config.")
    # Disable HTTP caching to always get fresh data
    return GitHub(auth=TokenAuthStrategy(github_pat_token), base_url=github_api_url, http_cache=False)


async def get_github_client(
    github_auth_type: GitHubAuthenticationType,
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
    github_api_url: str,
) -> tuple[GitHubClient, str]:
    """Returns an authenticated GitHub client and the token it authenticates with.

    Supports custom base URL for GitHub Enterprise Server (GHES).
    Raises RuntimeError if no valid credentials are found.
    """
    if github_auth_type == GitHubAuthenticationType.APP:
        if not (github_app_id and github_app_private_key_path and github_app_installation_id):
            raise RuntimeError("GitHub App authentication requires app_id, private_key_path, and installation_id in config.")
        logger.info("Minting GitHub App installation token", github_app_id=github_app_id, installation_id=github_app_installation_id)
        token = await get_github_app_installation_token(github_app_id, github_app_private_key_path, github_app_installation_id, github_api_url)
    elif github_auth_type == GitHubAuthenticationType.PAT:
        if not github_pat_token:
            raise RuntimeError("GitHub PAT authentication requires github_pat_token in config.")
        token = github_pat_token
    else:
        raise RuntimeError(f"Unsupported GitHub authentication type: {github_auth_type}")
    return await get_github_pat_client(token, github_api_url), token
