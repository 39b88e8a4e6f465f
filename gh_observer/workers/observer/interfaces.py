"""Abstract contract between the observer and wherever checks come from."""

from abc import ABC, abstractmethod

from ...models import PRMetadata, Snapshot


class CheckSource(ABC):
    """Source of PR metadata and check snapshots.

    Implementations do all network I/O and must hand back statuses already
    normalized to the lowercase check enums. Failures are raised as
    exceptions; the scheduler turns them into events.
    """

    @abstractmethod
    async def fetch_metadata(self, owner: str, repo: str, pr_number: int) -> PRMetadata:
        """Fetch the PR number, title and head commit timestamp.

        Args:
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number

        Returns:
            PR metadata
        """
        pass

    @abstractmethod
    async def fetch_snapshot(self, owner: str, repo: str, pr_number: int) -> Snapshot:
        """Fetch every check of the PR's head commit.

        Args:
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number

        Returns:
            Snapshot with the checks and the remaining API budget
        """
        pass
