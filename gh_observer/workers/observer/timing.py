"""Timing calculations for check runs.

All functions are pure and never return a negative duration: clock skew
between GitHub's services can put a check's start before the commit it
runs against, and such values are clamped to zero.
"""

from datetime import UTC, datetime, timedelta

from ...models import CheckRun, CheckStatus

ZERO = timedelta(0)


def _now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now(UTC)


def _clamp(delta: timedelta) -> timedelta:
    return delta if delta > ZERO else ZERO


def queue_latency(reference_time: datetime | None, check: CheckRun) -> timedelta:
    """Time between the reference event (usually the push) and the check start."""
    if check.started_at is None or reference_time is None:
        return ZERO
    return _clamp(check.started_at - reference_time)


def runtime(check: CheckRun, now: datetime | None = None) -> timedelta:
    """Elapsed time of a check that is still running."""
    if check.status != CheckStatus.IN_PROGRESS or check.started_at is None:
        return ZERO
    return _clamp(_now(now) - check.started_at)


def final_duration(check: CheckRun, now: datetime | None = None) -> timedelta:
    """Total runtime of a finished check.

    A check can briefly report ``completed`` before GitHub fills in
    ``completed_at``; the elapsed time since start stands in until it does.
    """
    if check.started_at is None:
        return ZERO
    if check.completed_at is not None:
        return _clamp(check.completed_at - check.started_at)
    if check.status == CheckStatus.COMPLETED:
        return _clamp(_now(now) - check.started_at)
    return ZERO


def elapsed_since(moment: datetime | None, now: datetime | None = None) -> timedelta:
    """Time since ``moment``, zero when it is unknown or in the future."""
    if moment is None:
        return ZERO
    return _clamp(_now(now) - moment)


def format_duration(duration: timedelta | float) -> str:
    """Render a duration compactly, e.g. ``"1h 30m"``, ``"2m 5s"``, ``"45s"``.

    Rounds to the nearest second (halves round up). Zero-valued units are
    left out; a zero or negative duration renders as ``"0s"``.
    """
    seconds = duration.total_seconds() if isinstance(duration, timedelta) else duration
    total = int(seconds + 0.5) if seconds > 0 else 0
    if total <= 0:
        return "0s"

    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)

    parts = [
        f"{value}{unit}"
        for value, unit in ((hours, "h"), (minutes, "m"), (secs, "s"))
        if value > 0
    ]
    return " ".join(parts)
