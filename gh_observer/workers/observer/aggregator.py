"""Snapshot aggregation: convergence and the overall pass/fail signal."""

import enum
from collections import Counter

from ...models import FAILING_CONCLUSIONS, CheckConclusion, CheckStatus, Snapshot


class ExitSignal(str, enum.Enum):
    """Overall outcome of a converged snapshot."""

    SUCCESS = "success"
    FAILURE = "failure"

    @property
    def exit_code(self) -> int:
        """Process exit code for this outcome."""
        return 1 if self is ExitSignal.FAILURE else 0


def is_converged(snapshot: Snapshot | None) -> bool:
    """True once at least one check exists and every check is completed.

    An empty snapshot never counts: right after a push GitHub may not have
    queued anything yet.
    """
    if snapshot is None or snapshot.is_empty:
        return False
    return all(check.status == CheckStatus.COMPLETED for check in snapshot.checks)


def exit_signal(snapshot: Snapshot) -> ExitSignal:
    """Failure if any completed check failed, timed out or needs action.

    Only meaningful once :func:`is_converged` holds.
    """
    for check in snapshot.checks:
        if check.is_completed and check.conclusion in FAILING_CONCLUSIONS:
            return ExitSignal.FAILURE
    return ExitSignal.SUCCESS


def summarize(snapshot: Snapshot | None) -> Counter[str]:
    """Count checks per display bucket: passed, failed, running, queued, other."""
    counts: Counter[str] = Counter()
    if snapshot is None:
        return counts

    for check in snapshot.checks:
        if check.status == CheckStatus.COMPLETED:
            if check.conclusion in FAILING_CONCLUSIONS:
                counts["failed"] += 1
            elif check.conclusion == CheckConclusion.SUCCESS:
                counts["passed"] += 1
            else:
                counts["other"] += 1
        elif check.status == CheckStatus.IN_PROGRESS:
            counts["running"] += 1
        elif check.status == CheckStatus.QUEUED:
            counts["queued"] += 1
        else:
            counts["other"] += 1
    return counts
