"""Events consumed and commands emitted by the poll scheduler."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from ...models import PRMetadata, Snapshot


def _utcnow() -> datetime:
    return datetime.now(UTC)


# Events


@dataclass(frozen=True)
class Started:
    """The observer was launched."""


@dataclass(frozen=True)
class Tick:
    """A poll timer fired."""

    at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class MetadataFetched:
    """The one-time PR metadata fetch succeeded."""

    metadata: PRMetadata


@dataclass(frozen=True)
class MetadataFailed:
    """The PR metadata fetch failed; the observer cannot start."""

    error: Exception


@dataclass(frozen=True)
class SnapshotFetched:
    """A check snapshot arrived."""

    snapshot: Snapshot
    at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class SnapshotFailed:
    """A check snapshot fetch failed."""

    error: Exception


@dataclass(frozen=True)
class CancelRequested:
    """The operator asked to quit."""

    reason: str = "quit"


Event = (
    Started
    | Tick
    | MetadataFetched
    | MetadataFailed
    | SnapshotFetched
    | SnapshotFailed
    | CancelRequested
)


# Commands


@dataclass(frozen=True)
class FetchMetadata:
    """Start the PR metadata fetch."""


@dataclass(frozen=True)
class FetchSnapshot:
    """Start a check snapshot fetch."""


@dataclass(frozen=True)
class ScheduleTick:
    """Arm the poll timer."""

    delay: float


@dataclass(frozen=True)
class Stop:
    """Stop all timers; the run is over."""


Command = FetchMetadata | FetchSnapshot | ScheduleTick | Stop
