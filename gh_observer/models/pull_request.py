"""Pull request metadata."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class PRMetadata:
    """Facts about the watched pull request, fetched once at startup."""

    number: int
    title: str
    head_sha: str = ""
    head_commit_time: datetime | None = None
