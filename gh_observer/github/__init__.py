"""GitHub API client package."""

from .auth import (
    AuthProvider,
    AuthToken,
    PersonalAccessTokenAuth,
    auth_from_environment,
    resolve_token,
)
from .checks import CHECK_ROLLUP_QUERY, fetch_check_snapshot, normalize_contexts
from .client import GitHubClient, GitHubClientConfig, GitHubResponse
from .exceptions import (
    GitHubAuthenticationError,
    GitHubConnectionError,
    GitHubError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    GitHubServerError,
    GitHubTimeoutError,
    GitHubValidationError,
    RepositoryDetectionError,
)
from .pulls import (
    detect_current_pr,
    detect_owner_repo,
    fetch_pr_metadata,
    parse_owner_repo_from_url,
)
from .rate_limiting import RateLimitInfo, RateLimitManager

__all__ = [
    "CHECK_ROLLUP_QUERY",
    "AuthProvider",
    "AuthToken",
    "GitHubAuthenticationError",
    "GitHubClient",
    "GitHubClientConfig",
    "GitHubConnectionError",
    "GitHubError",
    "GitHubNotFoundError",
    "GitHubRateLimitError",
    "GitHubResponse",
    "GitHubServerError",
    "GitHubTimeoutError",
    "GitHubValidationError",
    "PersonalAccessTokenAuth",
    "RateLimitInfo",
    "RateLimitManager",
    "RepositoryDetectionError",
    "auth_from_environment",
    "detect_current_pr",
    "detect_owner_repo",
    "fetch_check_snapshot",
    "fetch_pr_metadata",
    "normalize_contexts",
    "parse_owner_repo_from_url",
    "resolve_token",
]
