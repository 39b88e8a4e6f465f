"""GitHub authentication handlers."""

import logging
import os
import subprocess  # nosec B404
from abc import ABC, abstractmethod
from dataclasses import dataclass

from .exceptions import GitHubAuthenticationError

logger = logging.getLogger(__name__)

TOKEN_ENV_VAR = "GITHUB_TOKEN"  # nosec B105


@dataclass(frozen=True)
class AuthToken:
    """Authentication token with metadata."""

    token: str
    token_type: str = "Bearer"

    def to_header(self) -> dict[str, str]:
        """Convert to authorization header."""
        return {"Authorization": f"{self.token_type} {self.token}"}


class AuthProvider(ABC):
    """Abstract base class for authentication providers."""

    @abstractmethod
    async def get_token(self) -> AuthToken:
        """Get authentication token."""
        pass


class PersonalAccessTokenAuth(AuthProvider):
    """Personal Access Token authentication provider.

    Covers both classic PATs and the OAuth tokens handed out by ``gh auth token``.
    """

    def __init__(self, token: str):
        """Initialize PAT authentication.

        Args:
            token: GitHub Personal Access Token
        """
        if not token or not token.strip():
            raise GitHubAuthenticationError("Personal Access Token is required")
        self._token = AuthToken(token=token.strip(), token_type="Bearer")  # nosec B106

    async def get_token(self) -> AuthToken:
        """Get authentication token."""
        return self._token


def _token_from_gh_cli() -> str:
    """Ask the gh CLI for its stored token, returning an empty string on failure."""
    try:
        result = subprocess.run(  # nosec B603 B607
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            check=True,
            timeout=10,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"gh auth token unavailable: {e}")
        return ""
    return result.stdout.strip()


def resolve_token() -> str:
    """Resolve a GitHub token from the environment or the gh CLI.

    ``GITHUB_TOKEN`` wins; otherwise ``gh auth token`` is consulted.

    Returns:
        Token string

    Raises:
        GitHubAuthenticationError: If no token can be found
    """
    token = os.getenv(TOKEN_ENV_VAR, "").strip()
    if token:
        logger.debug(f"Using token from {TOKEN_ENV_VAR}")
        return token

    token = _token_from_gh_cli()
    if token:
        logger.debug("Using token from gh CLI")
        return token

    raise GitHubAuthenticationError(
        f"authentication failed: set {TOKEN_ENV_VAR} or run `gh auth login`"
    )


def auth_from_environment() -> PersonalAccessTokenAuth:
    """Build an auth provider from whatever credentials the environment offers."""
    return PersonalAccessTokenAuth(resolve_token())
