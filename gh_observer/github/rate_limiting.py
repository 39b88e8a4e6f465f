"""GitHub API rate limit tracking."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class RateLimitInfo:
    """Rate limit information from GitHub API."""

    limit: int
    remaining: int
    reset: int
    used: int = 0
    resource: str = "core"


@dataclass
class RateLimitManager:
    """Tracks the latest GitHub rate limit budget per resource.

    The manager only records what GitHub reports. Deciding what to do with a
    shrinking budget is left to the poll scheduler.
    """

    _rate_limits: dict[str, RateLimitInfo] = field(default_factory=dict)

    def get_rate_limit(self, resource: str = "core") -> RateLimitInfo | None:
        """Get current rate limit info for resource."""
        return self._rate_limits.get(resource)

    def update_rate_limit(self, headers: dict[str, str]) -> None:
        """Update rate limit info from response headers.

        Args:
            headers: HTTP response headers from GitHub API
        """
        if "X-RateLimit-Limit" not in headers:
            return

        try:
            rate_limit = RateLimitInfo(
                limit=int(headers.get("X-RateLimit-Limit", 5000)),
                remaining=int(headers.get("X-RateLimit-Remaining", 0)),
                reset=int(headers.get("X-RateLimit-Reset", 0)),
                used=int(headers.get("X-RateLimit-Used", 0)),
                resource=headers.get("X-RateLimit-Resource", "core"),
            )
        except (ValueError, TypeError):
            logger.debug("Ignoring malformed rate limit headers")
            return

        self._rate_limits[rate_limit.resource] = rate_limit

    def update_from_graphql(self, payload: dict[str, Any] | None) -> None:
        """Update the graphql budget from a ``rateLimit`` query field.

        Args:
            payload: The ``rateLimit`` object of a GraphQL response
        """
        if not payload or "remaining" not in payload:
            return

        try:
            reset_at = payload.get("resetAt")
            reset = (
                int(datetime.fromisoformat(reset_at.replace("Z", "+00:00")).timestamp())
                if reset_at
                else 0
            )
            self._rate_limits["graphql"] = RateLimitInfo(
                limit=int(payload.get("limit", 5000)),
                remaining=int(payload["remaining"]),
                reset=reset,
                used=int(payload.get("used", 0)),
                resource="graphql",
            )
        except (ValueError, TypeError, AttributeError):
            logger.debug("Ignoring malformed GraphQL rateLimit payload")

    def remaining(self, resource: str = "core") -> int | None:
        """Remaining calls for resource, or None when unknown."""
        rate_limit = self.get_rate_limit(resource)
        return rate_limit.remaining if rate_limit else None
