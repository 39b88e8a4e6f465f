"""Observer core: timing, aggregation, scheduling, layout and display."""

from .aggregator import ExitSignal, exit_signal, is_converged, summarize
from .check_source import GitHubCheckSource
from .display import KeyReader, ObserverRenderer, check_icon, print_snapshot
from .events import (
    CancelRequested,
    FetchMetadata,
    FetchSnapshot,
    MetadataFailed,
    MetadataFetched,
    ScheduleTick,
    SnapshotFailed,
    SnapshotFetched,
    Started,
    Stop,
    Tick,
)
from .interfaces import CheckSource
from .scheduler import ObserverRunner, PollScheduler, TickDecision, decide_tick
from .state import ObservationState, ObserverPhase
from .timing import final_duration, format_duration, queue_latency, runtime

__all__ = [
    "CancelRequested",
    "CheckSource",
    "ExitSignal",
    "FetchMetadata",
    "FetchSnapshot",
    "GitHubCheckSource",
    "KeyReader",
    "MetadataFailed",
    "MetadataFetched",
    "ObservationState",
    "ObserverPhase",
    "ObserverRenderer",
    "ObserverRunner",
    "PollScheduler",
    "ScheduleTick",
    "SnapshotFailed",
    "SnapshotFetched",
    "Started",
    "Stop",
    "Tick",
    "TickDecision",
    "check_icon",
    "decide_tick",
    "exit_signal",
    "final_duration",
    "format_duration",
    "is_converged",
    "print_snapshot",
    "queue_latency",
    "runtime",
    "summarize",
]
