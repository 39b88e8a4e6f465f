"""
Test configuration and shared fixtures.

Provides factories for check runs, snapshots and PR metadata so unit and
integration tests can describe CI states in a line or two.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from gh_observer.models import CheckConclusion, CheckRun, CheckStatus, PRMetadata, Snapshot

# Fixed clock used across timing, layout and display tests.
NOW = datetime(2026, 3, 2, 12, 0, 0, tzinfo=UTC)
PUSHED_AT = NOW - timedelta(minutes=5)


@pytest.fixture
def now() -> datetime:
    """
    Fixed "current time".

    Why: Durations rendered relative to the wall clock make assertions flaky
    What: Returns a constant timezone-aware datetime
    How: Tests pass it explicitly as ``now=`` to pure functions
    """
    return NOW


@pytest.fixture
def pushed_at() -> datetime:
    """Head commit push time, five minutes before ``now``."""
    return PUSHED_AT


@pytest.fixture
def make_check() -> Callable[..., CheckRun]:
    """
    Factory for check runs.

    Why: Most tests only care about one or two fields of a check
    What: Builds a CheckRun with sensible defaults for everything else
    How: Keyword overrides are passed straight to the dataclass
    """

    def _make(
        name: str = "build",
        status: CheckStatus | str = CheckStatus.COMPLETED,
        conclusion: CheckConclusion | str = CheckConclusion.SUCCESS,
        **kwargs: Any,
    ) -> CheckRun:
        if status != CheckStatus.COMPLETED and conclusion == CheckConclusion.SUCCESS:
            conclusion = ""
        return CheckRun(name=name, status=status, conclusion=conclusion, **kwargs)

    return _make


@pytest.fixture
def make_snapshot() -> Callable[..., Snapshot]:
    """Factory for snapshots with a healthy rate limit by default."""

    def _make(*checks: CheckRun, rate_limit_remaining: int = 5000) -> Snapshot:
        return Snapshot.from_checks(
            checks, rate_limit_remaining=rate_limit_remaining, captured_at=NOW
        )

    return _make


@pytest.fixture
def pr_metadata() -> PRMetadata:
    """Metadata of the PR most tests observe."""
    return PRMetadata(
        number=42,
        title="Add retry support",
        head_sha="abc1234def",
        head_commit_time=PUSHED_AT,
    )
