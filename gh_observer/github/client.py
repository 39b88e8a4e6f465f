"""GitHub API client with authentication and rate limit tracking."""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, NoReturn
from urllib.parse import urljoin

import aiohttp

from .auth import AuthProvider
from .exceptions import (
    GitHubAuthenticationError,
    GitHubConnectionError,
    GitHubError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    GitHubServerError,
    GitHubTimeoutError,
    GitHubValidationError,
)
from .rate_limiting import RateLimitManager

logger = logging.getLogger(__name__)


@dataclass
class GitHubClientConfig:
    """Configuration for GitHub client."""

    base_url: str = "https://api.github.com"
    graphql_url: str = "https://api.github.com/graphql"
    timeout: int = 30
    user_agent: str = "gh-observer/0.1"
    max_concurrent_requests: int = 4


@dataclass
class GitHubResponse:
    """Decoded response body plus the headers it came with."""

    status: int
    data: Any
    headers: dict[str, str] = field(default_factory=dict)


class GitHubClient:
    """Async GitHub API client for the REST and GraphQL endpoints."""

    def __init__(
        self,
        auth: AuthProvider,
        config: GitHubClientConfig | None = None,
    ) -> None:
        """Initialize GitHub client.

        Args:
            auth: Authentication provider
            config: Client configuration
        """
        self.auth = auth
        self.config = config or GitHubClientConfig()
        self.rate_limiter = RateLimitManager()

        # HTTP session will be initialized on first use
        self._session: aiohttp.ClientSession | None = None
        self._session_lock = asyncio.Lock()
        self._request_semaphore = asyncio.Semaphore(self.config.max_concurrent_requests)

    async def __aenter__(self) -> "GitHubClient":
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def _ensure_session(self) -> None:
        """Ensure HTTP session is initialized."""
        if self._session is None or self._session.closed:
            async with self._session_lock:
                if self._session is None or self._session.closed:
                    timeout = aiohttp.ClientTimeout(total=self.config.timeout)
                    self._session = aiohttp.ClientSession(
                        timeout=timeout,
                        headers={
                            "User-Agent": self.config.user_agent,
                            "Accept": "application/vnd.github+json",
                        },
                    )

    async def close(self) -> None:
        """Close HTTP session and cleanup resources."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _generate_correlation_id(self) -> str:
        """Generate correlation ID for request tracking."""
        return str(uuid.uuid4())[:8]

    async def _make_request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        correlation_id: str | None = None,
    ) -> GitHubResponse:
        """Make HTTP request with error translation.

        Args:
            method: HTTP method
            url: Request URL
            params: Query parameters
            data: Request body data
            correlation_id: Request correlation ID

        Returns:
            Decoded response

        Raises:
            GitHubError: Various GitHub API errors
        """
        if not correlation_id:
            correlation_id = self._generate_correlation_id()

        auth_token = await self.auth.get_token()
        request_headers = auth_token.to_header()

        await self._ensure_session()
        if not self._session:
            raise GitHubConnectionError("Failed to initialize HTTP session")

        request_kwargs: dict[str, Any] = {
            "params": params,
            "headers": request_headers,
        }
        if data is not None:
            request_kwargs["json"] = data

        try:
            async with self._request_semaphore:
                start_time = time.time()

                logger.debug(f"GitHub API request [{correlation_id}] {method} {url}")

                async with self._session.request(method, url, **request_kwargs) as response:
                    request_time = time.time() - start_time
                    headers = dict(response.headers)
                    self.rate_limiter.update_rate_limit(headers)

                    logger.debug(
                        f"GitHub API response [{correlation_id}] "
                        f"{response.status} in {request_time:.2f}s"
                    )

                    if response.status in (200, 201):
                        payload = await response.json(content_type=None)
                        return GitHubResponse(response.status, payload, headers)
                    if response.status == 204:
                        return GitHubResponse(response.status, None, headers)

                    await self._handle_error_response(response, correlation_id)

        except TimeoutError as e:
            raise GitHubTimeoutError(f"Request timeout for {method} {url}") from e

        except aiohttp.ClientError as e:
            raise GitHubConnectionError(
                f"Connection error for {method} {url}: {e}"
            ) from e

        except ValueError as e:
            raise GitHubValidationError(
                f"Invalid JSON in response for {method} {url}: {e}"
            ) from e

    async def _handle_error_response(
        self, response: aiohttp.ClientResponse, correlation_id: str
    ) -> NoReturn:
        """Handle error responses from GitHub API.

        Args:
            response: HTTP response
            correlation_id: Request correlation ID

        Raises:
            GitHubError: Appropriate error based on status code
        """
        try:
            error_data = await response.json(content_type=None)
        except (ValueError, aiohttp.ContentTypeError):
            error_data = {"message": await response.text()}
        if not isinstance(error_data, dict):
            error_data = {"message": str(error_data)}

        error_message = error_data.get("message") or f"HTTP {response.status}"

        logger.warning(
            f"GitHub API error [{correlation_id}] {response.status}: {error_message}"
        )

        if response.status == 401:
            raise GitHubAuthenticationError(error_message, response.status, error_data)
        elif response.status in (403, 429):
            if response.status == 429 or "rate limit" in error_message.lower():
                reset_time = response.headers.get("X-RateLimit-Reset")
                remaining = response.headers.get("X-RateLimit-Remaining", "0")
                limit = response.headers.get("X-RateLimit-Limit", "0")

                raise GitHubRateLimitError(
                    error_message,
                    reset_time=int(reset_time) if reset_time else None,
                    remaining=int(remaining),
                    limit=int(limit),
                )
            raise GitHubAuthenticationError(error_message, response.status, error_data)
        elif response.status == 404:
            raise GitHubNotFoundError(error_message, response.status, error_data)
        elif response.status == 422:
            raise GitHubValidationError(error_message, response.status, error_data)
        elif 500 <= response.status < 600:
            raise GitHubServerError(error_message, response.status, error_data)
        else:
            raise GitHubError(error_message, response.status, error_data)

    async def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make GET request to GitHub API.

        Args:
            path: API path (e.g., '/repos/owner/repo/pulls/1')
            params: Query parameters

        Returns:
            JSON response data
        """
        url = urljoin(self.config.base_url.rstrip("/") + "/", path.lstrip("/"))
        response = await self._make_request("GET", url, params)
        json_data: dict[str, Any] = response.data or {}
        return json_data

    async def graphql(
        self, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Run a GraphQL query and return its ``data`` object.

        Args:
            query: GraphQL query document
            variables: Query variables

        Returns:
            The ``data`` member of the response

        Raises:
            GitHubError: If the transport fails or GraphQL reports errors
        """
        response = await self._make_request(
            "POST",
            self.config.graphql_url,
            data={"query": query, "variables": variables or {}},
        )
        payload = response.data or {}

        errors = payload.get("errors")
        if errors:
            messages = "; ".join(
                str(error.get("message", error)) if isinstance(error, dict) else str(error)
                for error in errors
            )
            raise GitHubError(
                f"GraphQL query failed: {messages}",
                response.status,
                payload,
            )

        data: dict[str, Any] = payload.get("data") or {}
        self.rate_limiter.update_from_graphql(data.get("rateLimit"))
        return data

    # Convenience methods for the endpoints the observer needs

    async def get_pull(self, owner: str, repo: str, pull_number: int) -> dict[str, Any]:
        """Get specific pull request.

        Args:
            owner: Repository owner
            repo: Repository name
            pull_number: Pull request number

        Returns:
            Pull request data
        """
        return await self.get(f"/repos/{owner}/{repo}/pulls/{pull_number}")

    async def get_commit(self, owner: str, repo: str, ref: str) -> dict[str, Any]:
        """Get a single commit.

        Args:
            owner: Repository owner
            repo: Repository name
            ref: Commit SHA, branch or tag

        Returns:
            Commit data
        """
        return await self.get(f"/repos/{owner}/{repo}/commits/{ref}")
