"""Contains utility functions for GitHub interactions."""


async def split_repository_name(repo: str | None) -> tuple[str, str]:
    """Splits a full repository name into owner and repository."""
    if repo is None:
        raise ValueError("A repository name in the format 'owner/repo' is required.")
    repo = repo.strip("/")
    parts = repo.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError("Repository must be in the format 'owner/repo' with no leading/trailing slashes or extra parts.")
    owner, repository = parts
    return owner, repository


def qualify_repository_name(repo: str, account: str) -> str:
    """Prefix a bare repository name with the account that owns it."""
    repo = repo.strip().strip("/")
    if "/" in repo:
        return repo
    return f"{account}/{repo}"


def github_html_url(github_api_url: str) -> str:
    """Derive the web URL of a GitHub instance from its REST API URL.

    e.g., "https://api.github.com" -> "https://github.com"
    or "https://github.example.com/api/v3" -> "https://github.example.com"
    """
    if "api.github.com" in github_api_url:
        return "https://github.com"
    return github_api_url.rstrip("/").replace("/api/v3", "").replace("/api", "")


def redact_secret(text: str, secret: str | None) -> str:
    """Replace every occurrence of a secret in text with a placeholder."""
    if not secret:
        return text
    return text.replace(secret, "***")
