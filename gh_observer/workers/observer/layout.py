"""Column layout for check rows.

Widths are derived from scratch for every snapshot, so rows within one
render line up while a newly appearing long name may widen later renders.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from ...models import CheckRun, CheckStatus
from .timing import (
    ZERO,
    elapsed_since,
    final_duration,
    format_duration,
    queue_latency,
    runtime,
)

MIN_NAME_WIDTH = 20
MAX_NAME_WIDTH = 60
MIN_TIME_WIDTH = 5
ELLIPSIS = "…"
PLACEHOLDER = "-"

QUEUE_HEADER = "Startup"
NAME_HEADER = "Workflow/Job"
DURATION_HEADER = "Duration"


@dataclass(frozen=True)
class ColumnWidths:
    """Widths of the queue-latency, name and duration columns."""

    queue: int = MIN_TIME_WIDTH
    name: int = MIN_NAME_WIDTH
    duration: int = MIN_TIME_WIDTH


def queue_text(
    check: CheckRun, head_commit_time: datetime | None, now: datetime | None = None
) -> str:
    """Startup column: how long the check waited (or has been waiting) to start."""
    if check.status == CheckStatus.QUEUED:
        if head_commit_time is None:
            return PLACEHOLDER
        return format_duration(elapsed_since(head_commit_time, now))

    latency = queue_latency(head_commit_time, check)
    if latency > ZERO:
        return format_duration(latency)
    return PLACEHOLDER


def duration_text(check: CheckRun, now: datetime | None = None) -> str:
    """Duration column: final duration when done, runtime while running."""
    if check.status == CheckStatus.COMPLETED:
        duration = final_duration(check, now)
    elif check.status == CheckStatus.IN_PROGRESS:
        duration = runtime(check, now)
    else:
        return PLACEHOLDER

    if duration > ZERO:
        return format_duration(duration)
    return PLACEHOLDER


def truncate_name(name: str, max_width: int = MAX_NAME_WIDTH) -> str:
    """Cut ``name`` to ``max_width`` characters, the last one an ellipsis."""
    if len(name) <= max_width:
        return name
    return name[: max_width - 1] + ELLIPSIS


def calculate_column_widths(
    checks: Iterable[CheckRun],
    head_commit_time: datetime | None,
    now: datetime | None = None,
) -> ColumnWidths:
    """Size each column to its widest cell, within the min/max bounds."""
    queue_width = MIN_TIME_WIDTH
    name_width = MIN_NAME_WIDTH
    duration_width = MIN_TIME_WIDTH

    for check in checks:
        queue_width = max(queue_width, len(queue_text(check, head_commit_time, now)))
        name_width = max(name_width, min(len(check.display_name), MAX_NAME_WIDTH))
        duration_width = max(duration_width, len(duration_text(check, now)))

    return ColumnWidths(queue=queue_width, name=name_width, duration=duration_width)


def align_columns(
    queue: str, name: str, duration: str, widths: ColumnWidths
) -> tuple[str, str, str]:
    """Pad one row: times right-aligned, the (truncated) name left-aligned."""
    return (
        queue.rjust(widths.queue),
        truncate_name(name, widths.name).ljust(widths.name),
        duration.rjust(widths.duration),
    )


def header_columns(widths: ColumnWidths) -> tuple[str, str, str]:
    """Column headers padded to the same widths as the rows."""
    return (
        QUEUE_HEADER.rjust(widths.queue),
        NAME_HEADER.ljust(widths.name),
        DURATION_HEADER.rjust(widths.duration),
    )
