"""Enums for check run state."""

import enum


class CheckStatus(str, enum.Enum):
    """Check run status enum."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, value: str | None) -> "CheckStatus | str":
        """Normalize a raw status, passing unrecognized values through lowercased."""
        raw = (value or "").strip().lower()
        try:
            return cls(raw)
        except ValueError:
            return raw


class CheckConclusion(str, enum.Enum):
    """Check run conclusion enum."""

    SUCCESS = "success"
    FAILURE = "failure"
    NEUTRAL = "neutral"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"
    ACTION_REQUIRED = "action_required"
    STALE = "stale"
    SKIPPED = "skipped"

    @classmethod
    def parse(cls, value: str | None) -> "CheckConclusion | str":
        """Normalize a raw conclusion; an empty string means no conclusion yet."""
        raw = (value or "").strip().lower()
        try:
            return cls(raw)
        except ValueError:
            return raw


# Conclusions that make the whole run fail.
FAILING_CONCLUSIONS = (
    CheckConclusion.FAILURE,
    CheckConclusion.TIMED_OUT,
    CheckConclusion.ACTION_REQUIRED,
)
