"""Poll scheduler: the observer's state machine and its asyncio runtime.

``PollScheduler.handle`` is the single place where the observation state
changes. It consumes one event, mutates the state and returns the commands
the runtime should carry out (start a fetch, arm the timer, stop).
``ObserverRunner`` owns the event queue, the timer and the fetch tasks.

Phases::

    AWAITING_METADATA --metadata ok--> POLLING --all checks completed--> CONVERGED
            |                              |
            +--metadata failed--> FAILED   +--operator quit--> CANCELLED
"""

import asyncio
import itertools
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from .aggregator import exit_signal, is_converged
from .events import (
    CancelRequested,
    Command,
    Event,
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
from .state import ObservationState, ObserverPhase

logger = logging.getLogger(__name__)

# Below this many remaining API calls a tick skips its fetch.
LOW_RATE_LIMIT_THRESHOLD = 10
BACKOFF_MULTIPLIER = 3

# Queue priorities; lower is served first.
URGENT = 0
NORMAL = 1


@dataclass(frozen=True)
class TickDecision:
    """What a timer tick does: fetch or not, and when the next tick fires."""

    fetch: bool
    next_interval: float

    @property
    def is_backoff(self) -> bool:
        """True when the tick was spent waiting out a low API budget."""
        return not self.fetch


def decide_tick(rate_limit_remaining: int | None, base_interval: float) -> TickDecision:
    """Decide what a poll tick does given the last known API budget.

    An unknown budget (no snapshot yet) is not treated as low.
    """
    if rate_limit_remaining is not None and rate_limit_remaining < LOW_RATE_LIMIT_THRESHOLD:
        return TickDecision(fetch=False, next_interval=base_interval * BACKOFF_MULTIPLIER)
    return TickDecision(fetch=True, next_interval=base_interval)


class PollScheduler:
    """Transition function over an :class:`ObservationState`."""

    def __init__(self, state: ObservationState, base_interval: float):
        """Initialize scheduler.

        Args:
            state: Observation state this scheduler owns
            base_interval: Poll interval in seconds
        """
        if base_interval <= 0:
            raise ValueError("base_interval must be positive")
        self.state = state
        self.base_interval = base_interval

    def handle(self, event: Event) -> list[Command]:
        """Apply one event and return the commands it triggers."""
        state = self.state
        if state.phase.is_terminal:
            logger.debug(
                f"Discarding {type(event).__name__} in terminal phase {state.phase.value}"
            )
            return []

        if isinstance(event, CancelRequested):
            return self._on_cancel(event)
        if isinstance(event, Started):
            return [FetchMetadata(), ScheduleTick(self.base_interval)]
        if isinstance(event, MetadataFetched):
            return self._on_metadata(event)
        if isinstance(event, MetadataFailed):
            return self._on_metadata_failed(event)
        if isinstance(event, Tick):
            return self._on_tick()
        if isinstance(event, SnapshotFetched):
            return self._on_snapshot(event)
        if isinstance(event, SnapshotFailed):
            return self._on_snapshot_failed(event)

        raise TypeError(f"Unknown scheduler event: {event!r}")

    def _on_cancel(self, event: CancelRequested) -> list[Command]:
        logger.info(f"Observer cancelled ({event.reason})")
        self.state.phase = ObserverPhase.CANCELLED
        self.state.exit_code = 0
        return [Stop()]

    def _on_metadata(self, event: MetadataFetched) -> list[Command]:
        if self.state.phase is not ObserverPhase.AWAITING_METADATA:
            logger.debug("Ignoring repeated metadata")
            return []

        self.state.metadata = event.metadata
        self.state.phase = ObserverPhase.POLLING
        logger.info(f"Watching PR #{event.metadata.number}: {event.metadata.title}")
        return [FetchSnapshot()]

    def _on_metadata_failed(self, event: MetadataFailed) -> list[Command]:
        logger.error(f"Failed to fetch PR info: {event.error}")
        self.state.error = event.error
        self.state.phase = ObserverPhase.FAILED
        self.state.exit_code = 1
        return [Stop()]

    def _on_tick(self) -> list[Command]:
        if self.state.phase is ObserverPhase.AWAITING_METADATA:
            return [ScheduleTick(self.base_interval)]

        decision = decide_tick(self.state.rate_limit_remaining, self.base_interval)
        if decision.is_backoff:
            logger.warning(
                f"Rate limit low ({self.state.rate_limit_remaining} remaining), "
                f"next poll in {decision.next_interval:.0f}s"
            )
            return [ScheduleTick(decision.next_interval)]

        return [FetchSnapshot(), ScheduleTick(decision.next_interval)]

    def _on_snapshot(self, event: SnapshotFetched) -> list[Command]:
        state = self.state
        state.snapshot = event.snapshot
        state.rate_limit_remaining = event.snapshot.rate_limit_remaining
        state.last_update = event.at
        state.error = None
        state.polls += 1

        if not is_converged(event.snapshot):
            return []

        signal = exit_signal(event.snapshot)
        state.exit_code = signal.exit_code
        state.phase = ObserverPhase.CONVERGED
        logger.info(
            f"All {len(event.snapshot)} checks completed: {signal.value} "
            f"after {state.polls} polls"
        )
        return [Stop()]

    def _on_snapshot_failed(self, event: SnapshotFailed) -> list[Command]:
        logger.warning(f"Failed to fetch checks: {event.error}")
        self.state.error = event.error
        return []


class ObserverRunner:
    """Runs a :class:`PollScheduler` on the asyncio event loop.

    One consumer task takes events from a priority queue and applies them in
    arrival order; cancellation jumps the queue. Fetches run as independent
    tasks and report back by posting events, so snapshots may be applied in a
    different order than their fetches were issued. Once the run stops, late
    fetch results are dropped by the scheduler.
    """

    def __init__(
        self,
        source: CheckSource,
        state: ObservationState,
        base_interval: float,
        on_update: Callable[[ObservationState], None] | None = None,
    ):
        """Initialize runner.

        Args:
            source: Where metadata and snapshots come from
            state: Observation state to drive
            base_interval: Poll interval in seconds
            on_update: Called after every applied event
        """
        self.source = source
        self.state = state
        self.scheduler = PollScheduler(state, base_interval)
        self.on_update = on_update

        self._queue: asyncio.PriorityQueue[tuple[int, int, Event]] = (
            asyncio.PriorityQueue()
        )
        self._sequence = itertools.count()
        self._timer: asyncio.Task[None] | None = None
        self._fetches: set[asyncio.Task[None]] = set()

    def post(self, event: Event, priority: int = NORMAL) -> None:
        """Queue an event for the consumer."""
        self._queue.put_nowait((priority, next(self._sequence), event))

    def cancel(self, reason: str = "quit") -> None:
        """Ask the run to stop as soon as the consumer wakes up."""
        self.post(CancelRequested(reason), priority=URGENT)

    async def run(self) -> ObservationState:
        """Run until the scheduler reaches a terminal phase.

        Returns:
            The final observation state
        """
        self.post(Started())

        try:
            while not self.state.finished:
                _, _, event = await self._queue.get()
                commands = self.scheduler.handle(event)
                self._execute(commands)

                if self.on_update is not None:
                    self.on_update(self.state)
        finally:
            self._cancel_timer()

        return self.state

    def _execute(self, commands: list[Command]) -> None:
        for command in commands:
            if isinstance(command, FetchMetadata):
                self._spawn(self._fetch_metadata())
            elif isinstance(command, FetchSnapshot):
                self._spawn(self._fetch_snapshot())
            elif isinstance(command, ScheduleTick):
                self._arm_timer(command.delay)
            elif isinstance(command, Stop):
                self._cancel_timer()

    def _spawn(self, coroutine: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coroutine)
        self._fetches.add(task)
        task.add_done_callback(self._fetches.discard)

    def _arm_timer(self, delay: float) -> None:
        self._cancel_timer()
        self._timer = asyncio.create_task(self._fire_after(delay))

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _fire_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self.post(Tick(at=datetime.now(UTC)))

    async def _fetch_metadata(self) -> None:
        state = self.state
        try:
            metadata = await self.source.fetch_metadata(
                state.owner, state.repo, state.pr_number
            )
        except Exception as e:
            self.post(MetadataFailed(e))
        else:
            self.post(MetadataFetched(metadata))

    async def _fetch_snapshot(self) -> None:
        state = self.state
        try:
            snapshot = await self.source.fetch_snapshot(
                state.owner, state.repo, state.pr_number
            )
        except Exception as e:
            self.post(SnapshotFailed(e))
        else:
            self.post(SnapshotFetched(snapshot, at=datetime.now(UTC)))
