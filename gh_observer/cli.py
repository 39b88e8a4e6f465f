"""Command-line entry point for gh-observer."""

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from pydantic import ValidationError

from . import __version__
from .config import (
    ConfigurationError,
    ConfigurationValidationError,
    ObserverConfig,
    load_config,
)
from .github.exceptions import GitHubError, RepositoryDetectionError
from .workers.pr_observer_worker import PRObserverWorker

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _pr_number(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid PR number: {value}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"invalid PR number: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="gh-observer",
        description="Watch the CI checks of a GitHub pull request until they finish.",
    )
    parser.add_argument(
        "pr_number",
        nargs="?",
        type=_pr_number,
        help="Pull request number (default: the PR of the current branch)",
    )
    parser.add_argument("--config", help="Configuration file path")
    parser.add_argument("--log-level", help="Log level (default: from config, WARNING)")
    parser.add_argument(
        "--interval",
        help="Poll interval, in seconds or as a duration such as 5s or 1m",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def apply_overrides(config: ObserverConfig, args: argparse.Namespace) -> ObserverConfig:
    """Apply command-line overrides on top of the loaded configuration.

    Raises:
        ConfigurationValidationError: If an override is invalid
    """
    try:
        if args.interval is not None:
            config.refresh_interval = args.interval
        if args.log_level is not None:
            config.log_level = args.log_level
    except ValidationError as e:
        raise ConfigurationValidationError(
            f"Invalid command-line option: {e}", validation_errors=e.errors()
        ) from e
    return config


def configure_logging(level: str) -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=LOG_FORMAT,
    )


async def observe(config: ObserverConfig, pr_number: int | None) -> int:
    """Run one observation and return its exit code."""
    worker = PRObserverWorker(config, pr_number=pr_number)

    try:
        await worker.initialize()
        return await worker.run()
    finally:
        await worker.cleanup()


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for gh-observer."""
    args = build_parser().parse_args(argv)

    try:
        config = apply_overrides(load_config(args.config), args)
    except ConfigurationError as e:
        print(f"Failed to load config: {e}", file=sys.stderr)
        return 1

    configure_logging(config.log_level.value)

    try:
        return asyncio.run(observe(config, args.pr_number))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except RepositoryDetectionError as e:
        logger.error(f"Failed to detect repository or PR: {e}")
        if args.pr_number is None:
            print(
                "Make sure you're on a PR branch or provide a PR number: "
                "gh-observer <number>",
                file=sys.stderr,
            )
        return 1
    except GitHubError as e:
        logger.error(f"GitHub request failed: {e}")
        return 1
