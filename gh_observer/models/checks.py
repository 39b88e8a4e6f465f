"""Check run and snapshot value objects.

These are the flat shapes every check source normalizes into. Nothing past
the source boundary ever sees GraphQL typenames or REST payloads.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from .enums import FAILING_CONCLUSIONS, CheckConclusion, CheckStatus


@dataclass(frozen=True)
class Annotation:
    """A message a check attached to a file and line."""

    message: str
    path: str = ""
    start_line: int = 0
    title: str = ""
    level: str = ""

    @property
    def location(self) -> str:
        """``path:line`` or just the path when no line is known."""
        if self.path and self.start_line:
            return f"{self.path}:{self.start_line}"
        return self.path


@dataclass(frozen=True)
class CheckRun:
    """One CI check observed at the head commit."""

    name: str
    status: CheckStatus | str
    workflow_name: str = ""
    conclusion: CheckConclusion | str = ""
    started_at: datetime | None = None
    completed_at: datetime | None = None
    details_url: str = ""
    summary: str = ""
    annotations: tuple[Annotation, ...] = ()

    @property
    def identity(self) -> tuple[str, str]:
        """Key that identifies a check within one snapshot."""
        return (self.workflow_name, self.name)

    @property
    def display_name(self) -> str:
        """``Workflow / Job`` for grouped checks, otherwise the bare job name."""
        if self.workflow_name:
            return f"{self.workflow_name} / {self.name}"
        return self.name

    @property
    def is_completed(self) -> bool:
        """Check if check run is completed."""
        return self.status == CheckStatus.COMPLETED

    @property
    def is_failed(self) -> bool:
        """Completed with a conclusion that fails the run."""
        return self.is_completed and self.conclusion in FAILING_CONCLUSIONS


@dataclass(frozen=True)
class Snapshot:
    """All checks and the remaining API budget captured at one poll."""

    checks: tuple[CheckRun, ...] = ()
    rate_limit_remaining: int = 0
    captured_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_checks(
        cls,
        checks: Iterable[CheckRun],
        rate_limit_remaining: int,
        captured_at: datetime | None = None,
    ) -> "Snapshot":
        """Build a snapshot, collapsing duplicate identities.

        When two checks share ``(workflow_name, name)`` the later one wins but
        keeps the position of the first.
        """
        by_identity: dict[tuple[str, str], CheckRun] = {}
        for check in checks:
            by_identity[check.identity] = check

        return cls(
            checks=tuple(by_identity.values()),
            rate_limit_remaining=rate_limit_remaining,
            captured_at=captured_at or datetime.now(UTC),
        )

    def __len__(self) -> int:
        return len(self.checks)

    @property
    def is_empty(self) -> bool:
        """True while no check has reported yet."""
        return not self.checks
