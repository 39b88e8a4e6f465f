"""Observation model: everything the observer knows about the watched PR.

The state is written only by :meth:`PollScheduler.handle`, one event at a
time. Renderers read it but never write it.
"""

import enum
from dataclasses import dataclass, field
from datetime import UTC, datetime

from ...models import PRMetadata, Snapshot


class ObserverPhase(str, enum.Enum):
    """Lifecycle phase of the poll scheduler."""

    AWAITING_METADATA = "awaiting_metadata"
    POLLING = "polling"
    CONVERGED = "converged"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Terminal phases accept no further events."""
        return self in (
            ObserverPhase.CONVERGED,
            ObserverPhase.CANCELLED,
            ObserverPhase.FAILED,
        )


@dataclass
class ObservationState:
    """Mutable state of one observer run."""

    owner: str
    repo: str
    pr_number: int
    metadata: PRMetadata | None = None
    snapshot: Snapshot | None = None
    rate_limit_remaining: int | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_update: datetime | None = None
    error: Exception | None = None
    phase: ObserverPhase = ObserverPhase.AWAITING_METADATA
    exit_code: int = 0
    polls: int = 0

    @property
    def converged(self) -> bool:
        """True once every check reached a final state."""
        return self.phase is ObserverPhase.CONVERGED

    @property
    def finished(self) -> bool:
        """True once the scheduler stopped for any reason."""
        return self.phase.is_terminal

    @property
    def head_commit_time(self) -> datetime | None:
        """Push time of the head commit, when metadata is known."""
        return self.metadata.head_commit_time if self.metadata else None

    @property
    def title(self) -> str:
        """PR title, empty until metadata arrives."""
        return self.metadata.title if self.metadata else ""
