"""Terminal presentation of an observation.

``ObserverRenderer`` turns an :class:`ObservationState` into rich renderables
for the live view. ``print_snapshot`` writes the plain one-shot view used
when stdout is not a terminal. ``KeyReader`` turns a ``q`` keypress into a
cancel request.

Color scheme (ANSI 256-color indexes, configurable)
---------------------------------------------------
- success : passed checks
- failure : failed and timed-out checks
- running : in-progress checks, action required, rate-limit warning
- queued  : queued, cancelled and skipped checks
"""

import asyncio
import logging
import os
import sys
import termios
import tty
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any, TextIO

from rich.console import Console, Group, RenderableType
from rich.spinner import Spinner
from rich.text import Text

from ...config import ColorConfig
from ...models import CheckConclusion, CheckRun, CheckStatus, PRMetadata, Snapshot
from .aggregator import exit_signal, summarize
from .layout import (
    ColumnWidths,
    align_columns,
    calculate_column_widths,
    duration_text,
    header_columns,
    queue_text,
)
from .state import ObservationState, ObserverPhase
from .timing import elapsed_since, format_duration

logger = logging.getLogger(__name__)

STARTUP_WAIT = timedelta(minutes=2)
STARTUP_GRACE = timedelta(minutes=3)
RATE_LIMIT_WARNING = 100
QUIT_KEYS = ("q", "Q", "\x03")

_CONCLUSION_ICONS: dict[str, str] = {
    CheckConclusion.SUCCESS.value: "✓",
    CheckConclusion.FAILURE.value: "✗",
    CheckConclusion.CANCELLED.value: "⊗",
    CheckConclusion.SKIPPED.value: "⊘",
    CheckConclusion.TIMED_OUT.value: "⏱",
    CheckConclusion.ACTION_REQUIRED.value: "!",
}

_STATUS_ICONS: dict[str, str] = {
    CheckStatus.IN_PROGRESS.value: "◐",
    CheckStatus.QUEUED.value: "⏸",
}

UNKNOWN_ICON = "?"


def _raw(value: Any) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def check_icon(status: CheckStatus | str, conclusion: CheckConclusion | str) -> str:
    """Icon for a check's status, or for its conclusion once completed."""
    if status == CheckStatus.COMPLETED:
        return _CONCLUSION_ICONS.get(_raw(conclusion), UNKNOWN_ICON)
    return _STATUS_ICONS.get(_raw(status), UNKNOWN_ICON)


class ObserverRenderer:
    """Renders an :class:`ObservationState` for ``rich.live.Live``."""

    def __init__(self, colors: ColorConfig | None = None, console: Console | None = None):
        self.colors = colors or ColorConfig()
        self.console = console or Console()

        self.success_style = f"bold color({self.colors.success})"
        self.failure_style = f"bold color({self.colors.failure})"
        self.running_style = f"bold color({self.colors.running})"
        self.queued_style = f"color({self.colors.queued})"
        self.error_style = "bold color(9)"
        self.header_style = "bold underline"
        self.info_style = "color(12)"

        self._spinner = Spinner("dots", style=self.running_style)

    def style_for(self, check: CheckRun) -> str:
        """Rich style for one check row."""
        if check.status == CheckStatus.COMPLETED:
            if check.conclusion == CheckConclusion.SUCCESS:
                return self.success_style
            if check.conclusion in (CheckConclusion.FAILURE, CheckConclusion.TIMED_OUT):
                return self.failure_style
            if check.conclusion == CheckConclusion.ACTION_REQUIRED:
                return self.running_style
            return self.queued_style
        if check.status == CheckStatus.IN_PROGRESS:
            return self.running_style
        return self.queued_style

    def render(self, state: ObservationState, now: datetime | None = None) -> RenderableType:
        """Build the whole view for the current state."""
        now = now or datetime.now(UTC)

        if state.phase is ObserverPhase.FAILED or (
            state.error is not None and state.snapshot is None and state.metadata is None
        ):
            return Text(f"Error: {state.error}", style=self.error_style)

        parts: list[RenderableType] = []
        if state.metadata is not None:
            parts.append(
                Text(f"PR #{state.pr_number}: {state.title}", style=self.header_style)
            )
            parts.append(Text(""))

        snapshot = state.snapshot
        if snapshot is None or snapshot.is_empty:
            parts.extend(self._render_startup(state, now))
        else:
            parts.extend(self._render_checks(snapshot, state.head_commit_time, now))
            parts.append(Text(""))
            parts.append(self._render_summary(snapshot))

        if state.error is not None:
            parts.append(Text(""))
            parts.append(Text(f"Error: {state.error}", style=self.error_style))

        parts.append(Text(""))
        parts.append(self._render_footer(state, now))
        if not state.finished:
            parts.append(Text(""))
            parts.append(Text("Press q to quit"))
        return Group(*parts)

    def _render_startup(
        self, state: ObservationState, now: datetime
    ) -> list[RenderableType]:
        since_start = elapsed_since(state.started_at, now)
        elapsed = format_duration(since_start)

        if since_start < STARTUP_WAIT:
            return [
                self._spinner_line(f"Startup Phase ({elapsed} elapsed):"),
                Text("  ⏳ Waiting for Actions to start..."),
                Text("  💡 GitHub typically takes 30-90s to queue jobs after PR creation"),
            ]
        if since_start < STARTUP_GRACE:
            return [
                self._spinner_line(f"Still waiting ({elapsed} elapsed)..."),
                Text("  ⏳ Checks may be delayed or not configured for this PR"),
            ]
        return [
            Text("No checks found.", style=self.queued_style),
            Text(
                "  This PR may not have workflows configured, "
                "or they may have been skipped."
            ),
        ]

    def _spinner_line(self, message: str) -> RenderableType:
        spinner = self._spinner
        spinner.text = Text(message, style=self.running_style)
        return spinner

    def _render_checks(
        self,
        snapshot: Snapshot,
        head_commit_time: datetime | None,
        now: datetime,
    ) -> list[RenderableType]:
        widths = calculate_column_widths(snapshot.checks, head_commit_time, now)
        header_queue, header_name, header_duration = header_columns(widths)

        lines: list[RenderableType] = [
            Text(f"{header_queue}   {header_name}  {header_duration}", style="bold"),
            Text(""),
        ]
        for check in snapshot.checks:
            lines.append(self._render_row(check, head_commit_time, widths, now))
            lines.extend(self._render_annotations(check))
        return lines

    def _render_row(
        self,
        check: CheckRun,
        head_commit_time: datetime | None,
        widths: ColumnWidths,
        now: datetime,
    ) -> Text:
        style = self.style_for(check)
        queue_col, name_col, duration_col = align_columns(
            queue_text(check, head_commit_time, now),
            check.display_name,
            duration_text(check, now),
            widths,
        )
        return Text.assemble(
            (queue_col, self.queued_style),
            " ",
            (check_icon(check.status, check.conclusion), style),
            " ",
            name_col,
            "  ",
            (duration_col, style),
        )

    def _render_annotations(self, check: CheckRun) -> list[Text]:
        indent = " " * 4
        lines = []
        for annotation in check.annotations:
            label = annotation.title or annotation.message
            if annotation.location:
                label = f"{annotation.location}: {label}"
            lines.append(
                Text.assemble(
                    indent,
                    ("│ ", "color(9)"),
                    (label, "color(243)"),
                )
            )
        return lines

    def _render_summary(self, snapshot: Snapshot) -> Text:
        counts = summarize(snapshot)
        buckets = (
            ("passed", self.success_style),
            ("failed", self.failure_style),
            ("running", self.running_style),
            ("queued", self.queued_style),
            ("other", self.queued_style),
        )

        summary = Text()
        for bucket, style in buckets:
            if not counts[bucket]:
                continue
            if summary.plain:
                summary.append("  ")
            summary.append(f"{counts[bucket]} {bucket}", style=style)
        return summary

    def _render_footer(self, state: ObservationState, now: datetime) -> Text:
        footer = Text()
        if state.last_update is not None:
            since = format_duration(elapsed_since(state.last_update, now))
            footer.append(f"Last updated: {since} ago", style=self.info_style)
        else:
            footer.append("Waiting for first update...", style=self.info_style)

        remaining = state.rate_limit_remaining
        if remaining is not None and remaining < RATE_LIMIT_WARNING:
            footer.append(f"  [Rate limit: {remaining} remaining]", style=self.running_style)
        return footer


def format_snapshot(
    metadata: PRMetadata, snapshot: Snapshot, now: datetime | None = None
) -> list[str]:
    """Plain-text lines of the one-shot view, without colors."""
    now = now or datetime.now(UTC)
    lines = [f"PR #{metadata.number}: {metadata.title}", ""]

    if snapshot.is_empty:
        since_push = format_duration(elapsed_since(metadata.head_commit_time, now))
        lines.append(f"No checks found (commit pushed {since_push} ago)")
        lines.append("Checks may still be starting up or not configured for this PR")
        return lines

    head_commit_time = metadata.head_commit_time
    widths = calculate_column_widths(snapshot.checks, head_commit_time, now)
    header_queue, header_name, header_duration = header_columns(widths)
    lines.append(f"{header_queue}   {header_name}  {header_duration}")
    lines.append("")

    for check in snapshot.checks:
        queue_col, name_col, duration_col = align_columns(
            queue_text(check, head_commit_time, now),
            check.display_name,
            duration_text(check, now),
            widths,
        )
        icon = check_icon(check.status, check.conclusion)
        lines.append(f"{queue_col} {icon} {name_col}  {duration_col}")
    return lines


def print_snapshot(
    metadata: PRMetadata,
    snapshot: Snapshot,
    file: TextIO | None = None,
    now: datetime | None = None,
) -> int:
    """Print the one-shot view and return the process exit code.

    The exit code reflects the checks that have completed so far; checks
    still running do not fail the run.
    """
    out = file or sys.stdout
    for line in format_snapshot(metadata, snapshot, now):
        print(line, file=out)

    if snapshot.is_empty:
        return 0
    return exit_signal(snapshot).exit_code


class KeyReader:
    """Reads single keypresses from a terminal and reports quit requests.

    Puts stdin into cbreak mode so keys arrive without Enter, and registers
    a reader on the event loop. Terminal settings are restored on exit.
    """

    def __init__(
        self,
        on_quit: Callable[[], None],
        stream: TextIO | None = None,
    ):
        self.on_quit = on_quit
        self.stream = stream or sys.stdin
        self._fd: int | None = None
        self._saved_attrs: list[Any] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def active(self) -> bool:
        """True while the reader is attached to the terminal."""
        return self._fd is not None

    def start(self) -> None:
        """Attach to the terminal if stdin is one; otherwise do nothing."""
        if not self.stream.isatty():
            logger.debug("stdin is not a terminal, keyboard input disabled")
            return

        fd = self.stream.fileno()
        self._saved_attrs = termios.tcgetattr(fd)
        tty.setcbreak(fd)
        self._loop = asyncio.get_running_loop()
        self._loop.add_reader(fd, self._on_readable)
        self._fd = fd

    def stop(self) -> None:
        """Detach from the terminal and restore its settings."""
        if self._fd is None:
            return

        if self._loop is not None:
            self._loop.remove_reader(self._fd)
        if self._saved_attrs is not None:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_attrs)
        self._fd = None
        self._saved_attrs = None
        self._loop = None

    def handle_key(self, key: str) -> None:
        """React to one keypress."""
        if key in QUIT_KEYS:
            self.on_quit()

    def _on_readable(self) -> None:
        if self._fd is None:
            return
        data = os.read(self._fd, 1)
        if data:
            self.handle_key(data.decode(errors="ignore"))

    def __enter__(self) -> "KeyReader":
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()
