"""
Enumeration types for the toolchain finder.

These enums provide type-safe constants for channels, profiles, search
states, and error codes throughout the system.
"""

from enum import Enum


class Channel(Enum):
    """Release channel of the toolchain."""

    STABLE = "stable"
    BETA = "beta"
    NIGHTLY = "nightly"

    @property
    def has_version(self) -> bool:
        """Whether releases on this channel are identified by a semantic version."""
        return self is not Channel.NIGHTLY


class Profile(Enum):
    """Component profile as published in the manifest's profile table."""

    COMPLETE = "complete"
    DEFAULT = "default"
    MINIMAL = "minimal"


class TargetMode(Enum):
    """Which set of targets a requirement covers."""

    ALL = "all"
    CURRENT = "current"


class ManifestStatus(Enum):
    """Result status of a dated manifest lookup."""

    FOUND = "found"
    NOT_PUBLISHED = "not_published"


class SearchState(Enum):
    """States of the backward search."""

    INIT = "init"
    PROBING = "probing"
    FOUND = "found"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class ErrorCode(Enum):
    """Error codes carried by ToolchainFinderError subclasses."""

    NETWORK_ERROR = "network_error"
    TLS_ERROR = "tls_error"
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    CHANNEL_NOT_FOUND = "channel_not_found"
    PARSE_ERROR = "parse_error"
    WINDOW_EXHAUSTED = "window_exhausted"
    INVALID_CONFIGURATION = "invalid_configuration"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
