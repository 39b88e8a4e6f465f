"""Pull request lookup: local repository detection and PR metadata."""

import logging
import re
import subprocess  # nosec B404
from datetime import datetime
from typing import Any

from ..models import PRMetadata
from .client import GitHubClient
from .exceptions import GitHubValidationError, RepositoryDetectionError

logger = logging.getLogger(__name__)

_SSH_REMOTE = re.compile(r"^git@github\.com:([^/]+)/(.+?)(?:\.git)?/?$")
_HTTPS_REMOTE = re.compile(r"^https://github\.com/([^/]+)/(.+?)(?:\.git)?/?$")


def parse_owner_repo_from_url(url: str) -> tuple[str, str]:
    """Extract owner and repository name from a GitHub remote URL.

    Accepts ``git@github.com:owner/repo(.git)`` and
    ``https://github.com/owner/repo(.git)``.

    Raises:
        RepositoryDetectionError: If the URL is not a GitHub remote
    """
    url = url.strip()
    for pattern in (_SSH_REMOTE, _HTTPS_REMOTE):
        match = pattern.match(url)
        if match:
            return match.group(1), match.group(2).rstrip("/")

    raise RepositoryDetectionError(
        f"unable to parse owner/repo from remote URL: {url}"
    )


def _run(command: list[str]) -> str:
    result = subprocess.run(  # nosec B603
        command, capture_output=True, text=True, check=True, timeout=30
    )
    return result.stdout.strip()


def detect_owner_repo() -> tuple[str, str]:
    """Read owner/repo from the ``origin`` remote of the current checkout."""
    try:
        url = _run(["git", "remote", "get-url", "origin"])
    except (OSError, subprocess.SubprocessError) as e:
        raise RepositoryDetectionError(f"failed to get git remote: {e}") from e

    return parse_owner_repo_from_url(url)


def detect_current_pr() -> int:
    """Ask the gh CLI which pull request the current branch belongs to."""
    try:
        output = _run(["gh", "pr", "view", "--json", "number", "--jq", ".number"])
    except (OSError, subprocess.SubprocessError) as e:
        raise RepositoryDetectionError(
            "not on a PR branch or gh CLI not available"
        ) from e

    try:
        return int(output)
    except ValueError as e:
        raise RepositoryDetectionError(f"invalid PR number: {output!r}") from e


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a GitHub ISO-8601 timestamp; empty values become None.

    Raises:
        GitHubValidationError: If the value is present but malformed
    """
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise GitHubValidationError(f"invalid timestamp {value!r}") from e


def _committer_date(commit: dict[str, Any]) -> str | None:
    details = commit.get("commit") or {}
    committer = details.get("committer") or {}
    return committer.get("date")


async def fetch_pr_metadata(
    client: GitHubClient, owner: str, repo: str, pr_number: int
) -> PRMetadata:
    """Fetch the PR title and the timestamp of its head commit.

    Args:
        client: GitHub API client
        owner: Repository owner
        repo: Repository name
        pr_number: Pull request number

    Returns:
        PR metadata

    Raises:
        GitHubError: If either API call fails or the payload is malformed
    """
    pull = await client.get_pull(owner, repo, pr_number)

    head_sha = (pull.get("head") or {}).get("sha")
    if not head_sha:
        raise GitHubValidationError(f"PR #{pr_number} has no head commit")

    commit = await client.get_commit(owner, repo, head_sha)

    metadata = PRMetadata(
        number=int(pull.get("number", pr_number)),
        title=pull.get("title") or "",
        head_sha=head_sha,
        head_commit_time=parse_timestamp(_committer_date(commit)),
    )
    logger.debug(f"Fetched metadata for {owner}/{repo}#{pr_number} ({head_sha[:7]})")
    return metadata
