"""
Exception classes for the toolchain finder.

All exceptions inherit from ToolchainFinderError and provide structured
error information with codes, messages, and optional details.

A day without a published release is not an error: the manifest client
reports it as ManifestStatus.NOT_PUBLISHED and the search engine skips it.
"""

from typing import Optional


class ToolchainFinderError(Exception):
    """Base exception for all toolchain finder errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class NetworkError(ToolchainFinderError):
    """Raised when a manifest cannot be retrieved (connection, timeout, HTTP status)."""

    pass


class MalformedManifestError(ToolchainFinderError):
    """Raised when a manifest document does not match the expected upstream format."""

    pass


class WindowExhaustedError(ToolchainFinderError):
    """Raised when no release within the look-back window satisfies the requirement."""

    pass


class InvalidConfigurationError(ToolchainFinderError):
    """Raised when the search inputs are unusable (empty target or component set)."""

    pass
