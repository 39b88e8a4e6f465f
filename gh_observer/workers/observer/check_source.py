"""GitHub implementation of the check source."""

from ...github.checks import fetch_check_snapshot
from ...github.client import GitHubClient
from ...github.pulls import fetch_pr_metadata
from ...models import PRMetadata, Snapshot
from .interfaces import CheckSource


class GitHubCheckSource(CheckSource):
    """Reads PR metadata over REST and the check rollup over GraphQL."""

    def __init__(self, github_client: GitHubClient):
        """Initialize check source.

        Args:
            github_client: GitHub API client
        """
        self.github_client = github_client

    async def fetch_metadata(self, owner: str, repo: str, pr_number: int) -> PRMetadata:
        """Fetch PR metadata."""
        return await fetch_pr_metadata(self.github_client, owner, repo, pr_number)

    async def fetch_snapshot(self, owner: str, repo: str, pr_number: int) -> Snapshot:
        """Fetch the current check snapshot."""
        return await fetch_check_snapshot(self.github_client, owner, repo, pr_number)
