"""Value objects shared by the check source, the observer core and the display."""

from .checks import Annotation, CheckRun, Snapshot
from .enums import FAILING_CONCLUSIONS, CheckConclusion, CheckStatus
from .pull_request import PRMetadata

__all__ = [
    "FAILING_CONCLUSIONS",
    "Annotation",
    "CheckConclusion",
    "CheckRun",
    "CheckStatus",
    "PRMetadata",
    "Snapshot",
]
