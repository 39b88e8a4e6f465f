"""
Unit tests for GitHub API client.

Why: Ensure the client translates HTTP outcomes into the GitHub exception
     hierarchy, tracks rate limits, and speaks both REST and GraphQL.

What: Tests GitHubClient request handling, error mapping, GraphQL error
      arrays, rate limit bookkeeping, and the convenience methods.

How: Uses aioresponses to stand in for api.github.com so the real aiohttp
     code paths run without network access.
"""

from typing import Any
from unittest.mock import AsyncMock, Mock

import aiohttp
import pytest
from aioresponses import aioresponses

from gh_observer.github.client import GitHubClient, GitHubClientConfig
from gh_observer.github.exceptions import (
    GitHubAuthenticationError,
    GitHubConnectionError,
    GitHubError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    GitHubServerError,
    GitHubTimeoutError,
    GitHubValidationError,
)

API = "https://api.github.com"
GRAPHQL = "https://api.github.com/graphql"


class TestGitHubClientConfig:
    """Test GitHubClientConfig data class."""

    def test_github_client_config_defaults(self) -> None:
        """Test GitHubClientConfig with default values."""
        config = GitHubClientConfig()

        assert config.base_url == "https://api.github.com"
        assert config.graphql_url == "https://api.github.com/graphql"
        assert config.timeout == 30
        assert config.user_agent == "gh-observer/0.1"
        assert config.max_concurrent_requests == 4

    def test_github_client_config_custom(self) -> None:
        """Test GitHubClientConfig with custom values."""
        config = GitHubClientConfig(
            base_url="https://github.example.com/api/v3",
            graphql_url="https://github.example.com/api/graphql",
            timeout=60,
            user_agent="observer-test",
        )

        assert config.base_url == "https://github.example.com/api/v3"
        assert config.graphql_url == "https://github.example.com/api/graphql"
        assert config.timeout == 60
        assert config.user_agent == "observer-test"


class TestGitHubClient:
    """Test GitHubClient class."""

    @pytest.fixture
    def mock_auth(self) -> Mock:
        """Create mock authentication provider."""
        auth = Mock()
        auth.get_token = AsyncMock()
        auth.get_token.return_value = Mock(
            token="test_token",
            token_type="Bearer",
            to_header=Mock(return_value={"Authorization": "Bearer test_token"}),
        )
        return auth

    @pytest.fixture
    def github_client(self, mock_auth: Mock) -> GitHubClient:
        """Create GitHubClient instance with mock auth."""
        return GitHubClient(auth=mock_auth, config=GitHubClientConfig())

    def test_github_client_creation(self, mock_auth: Mock) -> None:
        """Test GitHubClient creation."""
        config = GitHubClientConfig()
        client = GitHubClient(auth=mock_auth, config=config)

        assert client.auth == mock_auth
        assert client.config == config
        assert client._session is None

    @pytest.mark.asyncio
    async def test_context_manager(self, github_client: GitHubClient) -> None:
        """Test GitHubClient as async context manager."""
        async with github_client as client:
            assert client._session is not None
            assert not client._session.closed

        assert github_client._session is None

    @pytest.mark.asyncio
    async def test_get_request_success(self, github_client: GitHubClient) -> None:
        """Test successful GET request."""
        with aioresponses() as mocked:
            mocked.get(f"{API}/user", payload={"login": "octocat", "id": 1})

            async with github_client:
                result = await github_client.get("/user")

        assert result == {"login": "octocat", "id": 1}

    @pytest.mark.asyncio
    async def test_get_sends_auth_header(
        self, github_client: GitHubClient, mock_auth: Mock
    ) -> None:
        """Test that every request carries the provider's Authorization header."""
        with aioresponses() as mocked:
            mocked.get(f"{API}/user", payload={})

            async with github_client:
                await github_client.get("/user")

            request = next(iter(mocked.requests.values()))[0]

        assert request.kwargs["headers"]["Authorization"] == "Bearer test_token"
        assert request.kwargs["headers"]["User-Agent"] == "gh-observer/0.1"
        mock_auth.get_token.assert_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "payload", "expected"),
        [
            (401, {"message": "Bad credentials"}, GitHubAuthenticationError),
            (403, {"message": "Resource not accessible"}, GitHubAuthenticationError),
            (404, {"message": "Not Found"}, GitHubNotFoundError),
            (422, {"message": "Validation Failed"}, GitHubValidationError),
            (502, {"message": "Bad Gateway"}, GitHubServerError),
            (418, {"message": "I'm a teapot"}, GitHubError),
        ],
    )
    async def test_error_status_mapping(
        self,
        github_client: GitHubClient,
        status: int,
        payload: dict[str, Any],
        expected: type[GitHubError],
    ) -> None:
        """Test that HTTP error statuses map onto the exception hierarchy."""
        with aioresponses() as mocked:
            mocked.get(f"{API}/repos/o/r", status=status, payload=payload)

            async with github_client:
                with pytest.raises(expected) as exc_info:
                    await github_client.get("/repos/o/r")

        assert type(exc_info.value) is expected
        assert exc_info.value.status_code == status
        assert payload["message"] in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_rate_limit_error(self, github_client: GitHubClient) -> None:
        """Test that a 403 mentioning the rate limit becomes GitHubRateLimitError."""
        with aioresponses() as mocked:
            mocked.get(
                f"{API}/user",
                status=403,
                payload={"message": "API rate limit exceeded for user ID 1."},
                headers={
                    "X-RateLimit-Limit": "5000",
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": "1234567890",
                },
            )

            async with github_client:
                with pytest.raises(GitHubRateLimitError) as exc_info:
                    await github_client.get("/user")

        assert exc_info.value.remaining == 0
        assert exc_info.value.limit == 5000
        assert exc_info.value.reset_time == 1234567890

    @pytest.mark.asyncio
    async def test_secondary_rate_limit_429(self, github_client: GitHubClient) -> None:
        """Test that 429 responses are rate limit errors regardless of message."""
        with aioresponses() as mocked:
            mocked.get(f"{API}/user", status=429, payload={"message": "slow down"})

            async with github_client:
                with pytest.raises(GitHubRateLimitError):
                    await github_client.get("/user")

    @pytest.mark.asyncio
    async def test_connection_error(self, github_client: GitHubClient) -> None:
        """Test that aiohttp client errors become GitHubConnectionError."""
        with aioresponses() as mocked:
            mocked.get(
                f"{API}/user", exception=aiohttp.ClientConnectionError("refused")
            )

            async with github_client:
                with pytest.raises(GitHubConnectionError):
                    await github_client.get("/user")

    @pytest.mark.asyncio
    async def test_timeout_error(self, github_client: GitHubClient) -> None:
        """Test that timeouts become GitHubTimeoutError."""
        with aioresponses() as mocked:
            mocked.get(f"{API}/user", exception=TimeoutError())

            async with github_client:
                with pytest.raises(GitHubTimeoutError):
                    await github_client.get("/user")

    @pytest.mark.asyncio
    async def test_malformed_json_response(self, github_client: GitHubClient) -> None:
        """Test that an unparseable body becomes GitHubValidationError."""
        with aioresponses() as mocked:
            mocked.get(f"{API}/user", status=200, body="not json")

            async with github_client:
                with pytest.raises(GitHubValidationError):
                    await github_client.get("/user")

    @pytest.mark.asyncio
    async def test_failed_request_is_not_retried(
        self, github_client: GitHubClient
    ) -> None:
        """Test that a failed request is attempted exactly once."""
        with aioresponses() as mocked:
            mocked.get(f"{API}/user", exception=aiohttp.ClientConnectionError("x"))
            mocked.get(f"{API}/user", payload={"login": "octocat"})

            async with github_client:
                with pytest.raises(GitHubConnectionError):
                    await github_client.get("/user")

                assert sum(len(calls) for calls in mocked.requests.values()) == 1

                result = await github_client.get("/user")

        assert result["login"] == "octocat"

    @pytest.mark.asyncio
    async def test_rate_limit_update(self, github_client: GitHubClient) -> None:
        """Test rate limit info update from response headers."""
        with aioresponses() as mocked:
            mocked.get(
                f"{API}/user",
                payload={"login": "octocat"},
                headers={
                    "X-RateLimit-Limit": "5000",
                    "X-RateLimit-Remaining": "4500",
                    "X-RateLimit-Reset": "1234567890",
                    "X-RateLimit-Used": "500",
                    "X-RateLimit-Resource": "core",
                },
            )

            async with github_client:
                await github_client.get("/user")

        rate_limit = github_client.rate_limiter.get_rate_limit("core")
        assert rate_limit is not None
        assert rate_limit.limit == 5000
        assert rate_limit.remaining == 4500
        assert rate_limit.used == 500

    @pytest.mark.asyncio
    async def test_graphql_returns_data(self, github_client: GitHubClient) -> None:
        """Test that graphql() unwraps ``data`` and records the rateLimit field."""
        with aioresponses() as mocked:
            mocked.post(
                GRAPHQL,
                payload={
                    "data": {
                        "viewer": {"login": "octocat"},
                        "rateLimit": {
                            "limit": 5000,
                            "remaining": 4321,
                            "used": 679,
                            "resetAt": "2026-03-02T13:00:00Z",
                        },
                    }
                },
            )

            async with github_client:
                data = await github_client.graphql("query { viewer { login } }")

        assert data["viewer"]["login"] == "octocat"
        assert github_client.rate_limiter.remaining("graphql") == 4321

    @pytest.mark.asyncio
    async def test_graphql_posts_query_and_variables(
        self, github_client: GitHubClient
    ) -> None:
        """Test the GraphQL request body."""
        with aioresponses() as mocked:
            mocked.post(GRAPHQL, payload={"data": {}})

            async with github_client:
                await github_client.graphql("query Q { x }", {"prNumber": 7})

            request = next(iter(mocked.requests.values()))[0]

        assert request.kwargs["json"] == {
            "query": "query Q { x }",
            "variables": {"prNumber": 7},
        }

    @pytest.mark.asyncio
    async def test_graphql_errors_raise(self, github_client: GitHubClient) -> None:
        """Test that a GraphQL ``errors`` array raises GitHubError."""
        with aioresponses() as mocked:
            mocked.post(
                GRAPHQL,
                payload={
                    "data": None,
                    "errors": [{"message": "Could not resolve to a Repository"}],
                },
            )

            async with github_client:
                with pytest.raises(GitHubError) as exc_info:
                    await github_client.graphql("query { x }")

        assert "Could not resolve to a Repository" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_convenience_method_get_pull(
        self, github_client: GitHubClient
    ) -> None:
        """Test get_pull convenience method."""
        with aioresponses() as mocked:
            mocked.get(
                f"{API}/repos/owner/repo/pulls/42",
                payload={"number": 42, "title": "Add retry support"},
            )

            async with github_client:
                result = await github_client.get_pull("owner", "repo", 42)

        assert result["number"] == 42

    @pytest.mark.asyncio
    async def test_convenience_method_get_commit(
        self, github_client: GitHubClient
    ) -> None:
        """Test get_commit convenience method."""
        with aioresponses() as mocked:
            mocked.get(
                f"{API}/repos/owner/repo/commits/abc123",
                payload={"sha": "abc123"},
            )

            async with github_client:
                result = await github_client.get_commit("owner", "repo", "abc123")

        assert result["sha"] == "abc123"
