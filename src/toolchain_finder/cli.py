"""
Command-line interface for the toolchain finder.

Prints the label of the most recent toolchain on a channel that ships every
required component for every required target, e.g.

    $ toolchain-finder --channel nightly --profile default
    nightly-2025-09-06

Exit codes: 0 on success, 1 when no viable build was found or a manifest
could not be retrieved, 2 on invalid configuration.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

import httpx

from . import __version__
from .audit_logger import AuditLogger
from .config import (
    SystemConfig,
    create_default_config,
    load_config_from_file,
    save_config_to_file,
)
from .enums import Channel, Profile, TargetMode
from .exceptions import InvalidConfigurationError, ToolchainFinderError
from .label_formatter import format_label
from .manifest_client import ManifestClient
from .models import Requirement, SearchOutcome
from .platforms import TIER_1_TARGETS
from .search_engine import BackwardSearchEngine
from .target_resolver import detect_host_target, resolve_targets

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def apply_arguments(config: SystemConfig, args: argparse.Namespace) -> SystemConfig:
    """Override configuration values with the options given on the command line."""
    search = config.search
    if args.channel is not None:
        search.channel = Channel(args.channel)
    if args.profile is not None:
        search.profile = Profile(args.profile)
    if args.max_age is not None:
        search.max_age_days = args.max_age
    if args.targets is not None:
        search.target_mode = TargetMode(args.targets)
    if args.force_date:
        search.force_date = True
    if args.component:
        search.components = list(dict.fromkeys(search.components + args.component))
    if args.host is not None:
        search.host_target = args.host
    if args.dist_server is not None:
        config.source.dist_server = args.dist_server.rstrip("/")
    if args.verbose:
        config.logging.level = "debug" if args.verbose > 1 else "info"
    if args.log_format is not None:
        config.logging.output_format = args.log_format
    return config


def build_requirement(config: SystemConfig) -> Requirement:
    """
    Turn the search configuration into a Requirement.

    The host triple is detected only when neither the command line nor the
    configuration names one. Detection failure is fatal only in 'current' mode.

    Raises:
        InvalidConfigurationError: If the targets cannot be resolved
    """
    search = config.search
    host_target = search.host_target
    if not host_target:
        try:
            host_target = detect_host_target()
        except InvalidConfigurationError:
            if search.target_mode == TargetMode.CURRENT:
                raise
            host_target = None

    tier1 = config.platforms.tier1_targets
    targets = resolve_targets(
        search.target_mode,
        host_target or "",
        TIER_1_TARGETS if tier1 is None else tier1,
    )

    return Requirement(
        channel=search.channel,
        targets=targets,
        host_target=host_target,
        max_age_days=search.max_age_days,
        profile=search.profile,
        components=frozenset(search.components),
    )


async def find_toolchain(
    config: SystemConfig,
    logger: Optional[AuditLogger] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> tuple[str, SearchOutcome]:
    """
    Run the whole search for a configuration.

    Args:
        config: System configuration
        logger: Optional audit logger
        transport: Optional httpx transport (used for offline testing)

    Returns:
        Tuple of (toolchain label, search outcome)

    Raises:
        ToolchainFinderError: If no label can be produced
    """
    requirement = build_requirement(config)

    async with ManifestClient.from_config(
        config.source, logger=logger, transport=transport
    ) as client:
        engine = BackwardSearchEngine(client, logger=logger)
        outcome = await engine.search(requirement)

    label = format_label(requirement.channel, outcome, config.search.force_date)
    return label, outcome


def print_error(error: BaseException) -> None:
    """Print an error and the chain of its causes to stderr."""
    print(str(error), file=sys.stderr)
    cause = error.__cause__
    while cause is not None:
        print(f"\tcaused by: {cause}", file=sys.stderr)
        cause = cause.__cause__


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="toolchain-finder",
        description="Determines the last known complete build of a Rust toolchain.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--channel", "-c",
        choices=[c.value for c in Channel],
        help="Release channel to use (default: stable)",
    )
    parser.add_argument(
        "--profile", "-p",
        choices=[p.value for p in Profile],
        help="Which component profile to use (default: default)",
    )
    parser.add_argument(
        "--max-age", "-a",
        type=int,
        metavar="DAYS",
        help=(
            "Number of days back to search for viable builds, relative to the "
            "latest release of the channel (default: 90)"
        ),
    )
    parser.add_argument(
        "--targets", "-t",
        choices=[m.value for m in TargetMode],
        help="Check all tier-1 targets or only the current target (default: all)",
    )
    parser.add_argument(
        "--force-date", "-d",
        action="store_true",
        help=(
            "Print date-stamped toolchains like stable-2025-08-07 instead of "
            "version numbers for stable and beta releases"
        ),
    )
    parser.add_argument(
        "--component",
        action="append",
        metavar="NAME",
        help="Additional component that must be available (repeatable)",
    )
    parser.add_argument(
        "--host",
        metavar="TRIPLE",
        help="Host target triple to use instead of the detected one",
    )
    parser.add_argument(
        "--dist-server",
        metavar="URL",
        help="Distribution server (default: $RUSTUP_DIST_SERVER or https://static.rust-lang.org)",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to a JSON configuration file",
    )
    parser.add_argument(
        "--init-config",
        metavar="PATH",
        help="Write the default configuration to PATH and exit",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Log search progress to stderr (-vv for debug output)",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json", "both"],
        help="Log output format (default: text)",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.init_config:
        config_path = Path(args.init_config)
        if config_path.exists():
            print(f"Configuration already exists at: {config_path}", file=sys.stderr)
            return EXIT_CONFIG_ERROR
        try:
            save_config_to_file(create_default_config(), config_path)
        except OSError as e:
            print(f"Error saving config: {e}", file=sys.stderr)
            return EXIT_CONFIG_ERROR
        print(f"Configuration created at: {config_path}")
        return EXIT_OK

    try:
        if args.config:
            config = load_config_from_file(Path(args.config))
        else:
            config = create_default_config()
        config = apply_arguments(config, args)
        logger = AuditLogger.from_level_name(
            config.logging.level,
            output_format=config.logging.output_format,
        )
    except (InvalidConfigurationError, ValueError) as e:
        print_error(e)
        return EXIT_CONFIG_ERROR

    try:
        label, _ = asyncio.run(find_toolchain(config, logger=logger))
    except InvalidConfigurationError as e:
        print_error(e)
        return EXIT_CONFIG_ERROR
    except ToolchainFinderError as e:
        print_error(e)
        return EXIT_FAILURE

    print(label)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
