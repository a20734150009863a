"""
Toolchain Finder - last known complete build of a Rust toolchain.

This package searches a release channel backward from its latest manifest for
the most recent release that ships every required component for every
required target, and reports it as a toolchain label.
"""

__version__ = "0.1.0"
__author__ = "Toolchain Finder Team"

from toolchain_finder.exceptions import (
    ToolchainFinderError,
    NetworkError,
    MalformedManifestError,
    WindowExhaustedError,
    InvalidConfigurationError,
)
from toolchain_finder.enums import (
    Channel,
    Profile,
    TargetMode,
    ManifestStatus,
    SearchState,
    ErrorCode,
    LogLevel,
)
from toolchain_finder.config import (
    ManifestSourceConfig,
    SearchConfig,
    PlatformConfig,
    LoggingConfig,
    SystemConfig,
    create_default_config,
    load_config_from_file,
    save_config_to_file,
)
from toolchain_finder.models import (
    PackageTargets,
    Manifest,
    Requirement,
    ProbeRecord,
    SearchOutcome,
)
from toolchain_finder.platforms import (
    PLATFORM_POLICY_VERSION,
    TIER_1_TARGETS,
    PLATFORM_RESTRICTED_COMPONENTS,
)
from toolchain_finder.audit_logger import (
    AuditLogger,
    LogEntry,
)
from toolchain_finder.manifest_client import (
    ManifestClient,
    ManifestResponse,
    parse_manifest,
)
from toolchain_finder.target_resolver import (
    detect_host_target,
    resolve_targets,
)
from toolchain_finder.availability import (
    AvailabilityEvaluator,
)
from toolchain_finder.search_engine import (
    BackwardSearchEngine,
    ManifestSource,
    candidate_dates,
    window_floor,
)
from toolchain_finder.label_formatter import (
    extract_version,
    format_label,
)
from toolchain_finder.cli import (
    main as cli_main,
    create_parser,
    find_toolchain,
)

__all__ = [
    # Exceptions
    "ToolchainFinderError",
    "NetworkError",
    "MalformedManifestError",
    "WindowExhaustedError",
    "InvalidConfigurationError",
    # Enums
    "Channel",
    "Profile",
    "TargetMode",
    "ManifestStatus",
    "SearchState",
    "ErrorCode",
    "LogLevel",
    # Configuration
    "ManifestSourceConfig",
    "SearchConfig",
    "PlatformConfig",
    "LoggingConfig",
    "SystemConfig",
    "create_default_config",
    "load_config_from_file",
    "save_config_to_file",
    # Models
    "PackageTargets",
    "Manifest",
    "Requirement",
    "ProbeRecord",
    "SearchOutcome",
    # Platform policy
    "PLATFORM_POLICY_VERSION",
    "TIER_1_TARGETS",
    "PLATFORM_RESTRICTED_COMPONENTS",
    # Audit Logger
    "AuditLogger",
    "LogEntry",
    # Manifest Client
    "ManifestClient",
    "ManifestResponse",
    "parse_manifest",
    # Target Resolver
    "detect_host_target",
    "resolve_targets",
    # Availability Evaluator
    "AvailabilityEvaluator",
    # Search Engine
    "BackwardSearchEngine",
    "ManifestSource",
    "candidate_dates",
    "window_floor",
    # Label Formatter
    "extract_version",
    "format_label",
    # CLI
    "cli_main",
    "create_parser",
    "find_toolchain",
]
