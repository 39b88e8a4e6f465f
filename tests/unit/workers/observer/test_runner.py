"""
Unit tests for the asyncio observer runner.

Why: The runner turns scheduler commands into real tasks and timers; a bug
     here shows up as a hung observer or one that never stops polling.

What: Tests convergence, cancellation priority, transient fetch failures,
      metadata failures and the low rate-limit backoff on a live event loop.

How: Drives ObserverRunner with a ScriptedCheckSource and a short poll
     interval, bounding every run with asyncio.wait_for.
"""

import asyncio
from collections.abc import Callable

import pytest

from gh_observer.models import CheckConclusion, CheckRun, CheckStatus, PRMetadata, Snapshot
from gh_observer.workers.observer.events import Tick
from gh_observer.workers.observer.scheduler import ObserverRunner
from gh_observer.workers.observer.state import ObservationState, ObserverPhase
from tests.fixtures.observer import ScriptedCheckSource

INTERVAL = 0.01
TIMEOUT = 5.0


def _state() -> ObservationState:
    return ObservationState(owner="octo", repo="widgets", pr_number=42)


class TestObserverRunner:
    """Test ObserverRunner end to end against a scripted source."""

    @pytest.mark.asyncio
    async def test_runs_until_converged(
        self,
        pr_metadata: PRMetadata,
        make_check: Callable[..., CheckRun],
        make_snapshot: Callable[..., Snapshot],
    ) -> None:
        """Test that the runner polls until every check completes."""
        source = ScriptedCheckSource(
            pr_metadata,
            [
                make_snapshot(make_check("build", status=CheckStatus.QUEUED)),
                make_snapshot(make_check("build", status=CheckStatus.IN_PROGRESS)),
                make_snapshot(make_check("build")),
            ],
        )
        updates: list[ObserverPhase] = []
        runner = ObserverRunner(
            source, _state(), INTERVAL, on_update=lambda s: updates.append(s.phase)
        )

        state = await asyncio.wait_for(runner.run(), TIMEOUT)

        assert state.phase is ObserverPhase.CONVERGED
        assert state.exit_code == 0
        assert state.polls == 3
        assert source.metadata_calls == [("octo", "widgets", 42)]
        assert len(source.snapshot_calls) == 3
        assert updates[0] is ObserverPhase.AWAITING_METADATA
        assert updates[-1] is ObserverPhase.CONVERGED

    @pytest.mark.asyncio
    async def test_failed_check_exits_one(
        self,
        pr_metadata: PRMetadata,
        make_check: Callable[..., CheckRun],
        make_snapshot: Callable[..., Snapshot],
    ) -> None:
        """Test that a completed failure converges with exit code 1."""
        source = ScriptedCheckSource(
            pr_metadata,
            [
                make_snapshot(
                    make_check("lint"),
                    make_check("test", conclusion=CheckConclusion.FAILURE),
                )
            ],
        )

        state = await asyncio.wait_for(
            ObserverRunner(source, _state(), INTERVAL).run(), TIMEOUT
        )

        assert state.converged
        assert state.exit_code == 1

    @pytest.mark.asyncio
    async def test_cancel_jumps_the_queue(self, pr_metadata: PRMetadata) -> None:
        """Test that a cancel posted behind other events is handled first."""
        source = ScriptedCheckSource(pr_metadata)
        runner = ObserverRunner(source, _state(), INTERVAL)
        runner.post(Tick())
        runner.cancel("SIGTERM")

        state = await asyncio.wait_for(runner.run(), TIMEOUT)

        assert state.phase is ObserverPhase.CANCELLED
        assert state.exit_code == 0
        assert source.metadata_calls == []

    @pytest.mark.asyncio
    async def test_cancel_while_polling(
        self,
        pr_metadata: PRMetadata,
        make_check: Callable[..., CheckRun],
        make_snapshot: Callable[..., Snapshot],
    ) -> None:
        """Test that cancelling mid-run stops polling with exit code 0."""
        source = ScriptedCheckSource(
            pr_metadata,
            [make_snapshot(make_check("build", status=CheckStatus.IN_PROGRESS))],
        )
        runner: ObserverRunner

        def cancel_after_two_polls(state: ObservationState) -> None:
            if state.polls >= 2:
                runner.cancel()

        runner = ObserverRunner(
            source, _state(), INTERVAL, on_update=cancel_after_two_polls
        )

        state = await asyncio.wait_for(runner.run(), TIMEOUT)
        calls_at_stop = len(source.snapshot_calls)
        await asyncio.sleep(INTERVAL * 5)

        assert state.phase is ObserverPhase.CANCELLED
        assert state.exit_code == 0
        assert len(source.snapshot_calls) == calls_at_stop

    @pytest.mark.asyncio
    async def test_metadata_failure_stops(self) -> None:
        """Test that a metadata error ends the run with exit code 1."""
        source = ScriptedCheckSource(None, metadata_error=RuntimeError("404 Not Found"))

        state = await asyncio.wait_for(
            ObserverRunner(source, _state(), INTERVAL).run(), TIMEOUT
        )

        assert state.phase is ObserverPhase.FAILED
        assert state.exit_code == 1
        assert str(state.error) == "404 Not Found"
        assert source.snapshot_calls == []

    @pytest.mark.asyncio
    async def test_transient_snapshot_failure(
        self,
        pr_metadata: PRMetadata,
        make_check: Callable[..., CheckRun],
        make_snapshot: Callable[..., Snapshot],
    ) -> None:
        """Test that a failed poll is retried on the next tick."""
        source = ScriptedCheckSource(
            pr_metadata,
            [ConnectionError("reset by peer"), make_snapshot(make_check("build"))],
        )

        state = await asyncio.wait_for(
            ObserverRunner(source, _state(), INTERVAL).run(), TIMEOUT
        )

        assert state.converged
        assert state.error is None
        assert state.polls == 1
        assert len(source.snapshot_calls) >= 2

    @pytest.mark.asyncio
    async def test_low_rate_limit_stops_fetching(
        self,
        pr_metadata: PRMetadata,
        make_check: Callable[..., CheckRun],
        make_snapshot: Callable[..., Snapshot],
    ) -> None:
        """Test that ticks skip fetching once the budget drops below 10."""
        interval = 0.05
        source = ScriptedCheckSource(
            pr_metadata,
            [
                make_snapshot(
                    make_check("build", status=CheckStatus.IN_PROGRESS),
                    rate_limit_remaining=5,
                )
            ],
        )
        runner = ObserverRunner(source, _state(), interval)
        asyncio.get_running_loop().call_later(interval * 6, runner.cancel)

        state = await asyncio.wait_for(runner.run(), TIMEOUT)

        assert state.phase is ObserverPhase.CANCELLED
        assert state.rate_limit_remaining == 5
        assert len(source.snapshot_calls) == 1
