"""
Configuration dataclasses for the toolchain finder.

This module defines the configuration structures used throughout the system:
where manifests are fetched from, the search requirement defaults, the
platform policy override, and logging. It also loads and saves the JSON
configuration file and applies environment overrides.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .enums import Channel, ErrorCode, Profile, TargetMode
from .exceptions import InvalidConfigurationError

DEFAULT_DIST_SERVER = "https://static.rust-lang.org"
DIST_SERVER_ENV = "RUSTUP_DIST_SERVER"


@dataclass
class ManifestSourceConfig:
    """Where and how release manifests are retrieved."""

    dist_server: str = DEFAULT_DIST_SERVER
    timeout_seconds: float = 30.0
    headers: dict[str, str] = field(default_factory=dict)
    not_published_statuses: list[int] = field(default_factory=lambda: [404])
    allow_insecure: bool = False


@dataclass
class SearchConfig:
    """Defaults for the search requirement."""

    channel: Channel = Channel.STABLE
    profile: Optional[Profile] = Profile.DEFAULT
    max_age_days: int = 90
    target_mode: TargetMode = TargetMode.ALL
    force_date: bool = False
    components: list[str] = field(default_factory=list)
    host_target: Optional[str] = None  # None: detect at runtime


@dataclass
class PlatformConfig:
    """Override of the built-in platform policy."""

    tier1_targets: Optional[list[str]] = None  # None: use platforms.TIER_1_TARGETS


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "warn"
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class SystemConfig:
    """Main system configuration combining all sub-configurations."""

    source: ManifestSourceConfig = field(default_factory=ManifestSourceConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    platforms: PlatformConfig = field(default_factory=PlatformConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _enum_value(enum_cls, raw, default):
    """Parse an enum from its string value, raising a configuration error on mismatch."""
    if raw is None:
        return default
    try:
        return enum_cls(raw)
    except ValueError as e:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidConfigurationError(
            code=ErrorCode.INVALID_CONFIGURATION.value,
            message=f"Invalid {enum_cls.__name__.lower()} {raw!r} (expected one of: {allowed})",
            details={"value": raw},
        ) from e


def create_default_config(env_file: Optional[Path] = None) -> SystemConfig:
    """
    Create the default configuration, honouring environment overrides.

    A .env file (the given one, or the nearest one found from the working
    directory) is loaded first, without overriding variables already set.

    Args:
        env_file: Optional explicit .env file to load

    Returns:
        SystemConfig with default settings
    """
    load_dotenv(dotenv_path=env_file, override=False)

    config = SystemConfig()
    dist_server = os.getenv(DIST_SERVER_ENV, "").strip()
    if dist_server:
        config.source.dist_server = dist_server.rstrip("/")
    return config


def load_config_from_file(config_path: Path) -> SystemConfig:
    """
    Load configuration from a JSON file on top of the defaults.

    Args:
        config_path: Path to the configuration file

    Returns:
        SystemConfig with file values applied

    Raises:
        InvalidConfigurationError: If the file is missing, unreadable or invalid
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise InvalidConfigurationError(
            code=ErrorCode.INVALID_CONFIGURATION.value,
            message=f"Configuration file not found: {config_path}",
            details={"path": str(config_path)},
        ) from e
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidConfigurationError(
            code=ErrorCode.INVALID_CONFIGURATION.value,
            message=f"Could not read configuration file {config_path}: {e}",
            details={"path": str(config_path)},
        ) from e

    if not isinstance(data, dict):
        raise InvalidConfigurationError(
            code=ErrorCode.INVALID_CONFIGURATION.value,
            message=f"Configuration file {config_path} must contain a JSON object",
            details={"path": str(config_path)},
        )

    config = create_default_config()

    try:
        # Parse source config
        source_data = data.get("source", {})
        source = config.source
        if source_data.get("dist_server"):
            source.dist_server = str(source_data["dist_server"]).rstrip("/")
        source.timeout_seconds = float(source_data.get("timeout_seconds", source.timeout_seconds))
        source.headers = dict(source_data.get("headers", source.headers))
        source.not_published_statuses = [
            int(status)
            for status in source_data.get("not_published_statuses", source.not_published_statuses)
        ]
        source.allow_insecure = bool(source_data.get("allow_insecure", source.allow_insecure))

        # Parse search config
        search_data = data.get("search", {})
        search = config.search
        search.channel = _enum_value(Channel, search_data.get("channel"), search.channel)
        if "profile" in search_data and search_data["profile"] is None:
            search.profile = None
        else:
            search.profile = _enum_value(Profile, search_data.get("profile"), search.profile)
        search.max_age_days = int(search_data.get("max_age_days", search.max_age_days))
        search.target_mode = _enum_value(
            TargetMode, search_data.get("target_mode"), search.target_mode
        )
        search.force_date = bool(search_data.get("force_date", search.force_date))
        search.components = [str(c) for c in search_data.get("components", search.components)]
        search.host_target = search_data.get("host_target", search.host_target)

        # Parse platform override
        platforms_data = data.get("platforms", {})
        tier1 = platforms_data.get("tier1_targets")
        if tier1 is not None:
            config.platforms.tier1_targets = [str(t) for t in tier1]

        # Parse logging config
        logging_data = data.get("logging", {})
        config.logging.level = logging_data.get("level", config.logging.level)
        config.logging.output_format = logging_data.get(
            "output_format", config.logging.output_format
        )
    except (TypeError, ValueError, AttributeError) as e:
        raise InvalidConfigurationError(
            code=ErrorCode.INVALID_CONFIGURATION.value,
            message=f"Invalid value in configuration file {config_path}: {e}",
            details={"path": str(config_path)},
        ) from e

    return config


def save_config_to_file(config: SystemConfig, config_path: Path) -> None:
    """
    Save configuration to a JSON file.

    Args:
        config: SystemConfig to save
        config_path: Path to save the configuration
    """
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "source": {
            "dist_server": config.source.dist_server,
            "timeout_seconds": config.source.timeout_seconds,
            "headers": config.source.headers,
            "not_published_statuses": config.source.not_published_statuses,
            "allow_insecure": config.source.allow_insecure,
        },
        "search": {
            "channel": config.search.channel.value,
            "profile": config.search.profile.value if config.search.profile else None,
            "max_age_days": config.search.max_age_days,
            "target_mode": config.search.target_mode.value,
            "force_date": config.search.force_date,
            "components": config.search.components,
            "host_target": config.search.host_target,
        },
        "platforms": {
            "tier1_targets": config.platforms.tier1_targets,
        },
        "logging": {
            "level": config.logging.level,
            "output_format": config.logging.output_format,
        },
    }

    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
