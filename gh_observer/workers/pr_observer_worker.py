"""PR Observer Worker.

This module implements the worker that watches the CI checks of one pull
request until they all finish, managing configuration, credentials, the
poll scheduler and the terminal display.
"""

import asyncio
import contextlib
import logging
import signal
import sys
from collections.abc import Callable, Iterator
from typing import TextIO

from rich.console import Console
from rich.live import Live

from ..config import ObserverConfig
from ..github.auth import auth_from_environment
from ..github.client import GitHubClient, GitHubClientConfig
from ..github.exceptions import GitHubValidationError
from ..github.pulls import detect_current_pr, detect_owner_repo
from .observer.check_source import GitHubCheckSource
from .observer.display import KeyReader, ObserverRenderer, print_snapshot
from .observer.interfaces import CheckSource
from .observer.scheduler import ObserverRunner
from .observer.state import ObservationState

logger = logging.getLogger(__name__)

# Redraw cadence for elapsed times and the spinner, independent of polling.
REDRAW_INTERVAL = 0.25


@contextlib.contextmanager
def _log_streams_to(stream: TextIO, replacing: TextIO) -> Iterator[None]:
    """Point root stream handlers writing to ``replacing`` at ``stream``."""
    swapped: list[logging.StreamHandler[TextIO]] = []
    for handler in logging.getLogger().handlers:
        if isinstance(handler, logging.StreamHandler) and handler.stream is replacing:
            handler.setStream(stream)
            swapped.append(handler)
    try:
        yield
    finally:
        for handler in swapped:
            handler.setStream(replacing)


class PRObserverWorker:
    """Watches one PR's checks until they converge or the operator quits.

    Manages the lifecycle of an observation including:
    - PR number and repository detection
    - Credential resolution and GitHub client setup
    - The live view, or a one-shot snapshot when stdout is not a terminal
    - Signal and keyboard handling for a clean exit
    """

    def __init__(
        self,
        config: ObserverConfig,
        pr_number: int | None = None,
        owner: str | None = None,
        repo: str | None = None,
        source: CheckSource | None = None,
        console: Console | None = None,
    ):
        """Initialize PR observer worker.

        Args:
            config: Loaded configuration
            pr_number: PR to watch; detected from the current branch if omitted
            owner: Repository owner; detected from the git remote if omitted
            repo: Repository name; detected from the git remote if omitted
            source: Check source; a GitHub-backed one is built if omitted
            console: Console to draw on
        """
        self.config = config
        self.pr_number = pr_number
        self.owner = owner
        self.repo = repo
        self.source = source
        self.console = console or Console()

        self.github_client: GitHubClient | None = None
        self.runner: ObserverRunner | None = None
        self.state: ObservationState | None = None

    async def initialize(self) -> None:
        """Resolve what to watch and build the check source."""
        logger.info("Initializing PR observer...")

        try:
            if self.pr_number is None:
                self.pr_number = await asyncio.to_thread(detect_current_pr)

            if self.owner is None or self.repo is None:
                self.owner, self.repo = await asyncio.to_thread(detect_owner_repo)

            if self.source is None:
                self.github_client = await self._create_github_client()
                self.source = GitHubCheckSource(self.github_client)

            logger.info(f"Observing {self.owner}/{self.repo}#{self.pr_number}")

        except Exception as e:
            logger.error(f"Failed to initialize PR observer: {e}")
            await self.cleanup()
            raise

    async def _create_github_client(self) -> GitHubClient:
        """Create GitHub API client from the resolved credentials."""
        auth_provider = await asyncio.to_thread(auth_from_environment)

        settings = self.config.github
        return GitHubClient(
            auth=auth_provider,
            config=GitHubClientConfig(
                base_url=settings.api_url,
                graphql_url=settings.graphql_url,
                timeout=settings.timeout,
                user_agent=settings.user_agent,
            ),
        )

    def _require_target(self) -> tuple[CheckSource, str, str, int]:
        if (
            self.source is None
            or self.owner is None
            or self.repo is None
            or self.pr_number is None
        ):
            raise RuntimeError("Worker not initialized. Call initialize() first.")
        return self.source, self.owner, self.repo, self.pr_number

    async def run(self, interactive: bool | None = None) -> int:
        """Observe the PR and return the process exit code.

        Args:
            interactive: Force live (True) or snapshot (False) mode; by default
                the live view is used only when the console is a terminal
        """
        if interactive is None:
            interactive = self.console.is_terminal

        if interactive:
            return await self.run_live()
        return await self.run_snapshot()

    async def run_snapshot(self) -> int:
        """Print the current checks once and exit."""
        source, owner, repo, pr_number = self._require_target()

        metadata = await source.fetch_metadata(owner, repo, pr_number)
        if metadata.head_commit_time is None:
            raise GitHubValidationError(
                f"PR #{pr_number} head commit has no committer date"
            )

        snapshot = await source.fetch_snapshot(owner, repo, pr_number)
        return print_snapshot(metadata, snapshot, file=self.console.file)

    async def run_live(self) -> int:
        """Poll and redraw until every check completes or the operator quits."""
        source, owner, repo, pr_number = self._require_target()

        state = ObservationState(owner=owner, repo=repo, pr_number=pr_number)
        renderer = ObserverRenderer(self.config.colors, self.console)
        self.state = state

        original_stderr = sys.stderr
        with Live(
            renderer.render(state),
            console=self.console,
            auto_refresh=False,
            redirect_stderr=True,
        ) as live:

            def redraw(_: ObservationState | None = None) -> None:
                live.update(renderer.render(state), refresh=True)

            self.runner = ObserverRunner(
                source, state, self.config.refresh_interval, on_update=redraw
            )

            with _log_streams_to(sys.stderr, replacing=original_stderr):
                self._setup_signal_handlers(self.runner.cancel)
                redraw_task = asyncio.create_task(self._redraw_loop(redraw))
                try:
                    with KeyReader(self.runner.cancel):
                        await self.runner.run()
                finally:
                    redraw_task.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await redraw_task
                    self._remove_signal_handlers()

            redraw()

        logger.info(
            f"PR observer stopped in phase {state.phase.value} "
            f"with exit code {state.exit_code}"
        )
        return state.exit_code

    async def _redraw_loop(self, redraw: Callable[[], None]) -> None:
        while True:
            await asyncio.sleep(REDRAW_INTERVAL)
            redraw()

    def _setup_signal_handlers(self, cancel: Callable[[str], None]) -> None:
        """Turn SIGINT and SIGTERM into cancel requests."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, cancel, signal.Signals(sig).name)

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(sig)

    async def cleanup(self) -> None:
        """Clean up resources."""
        try:
            if self.github_client:
                await self.github_client.close()
            logger.debug("Cleanup completed")

        except Exception as e:
            logger.error(f"Error during cleanup: {e}")
