"""
Manifest Client for release channel manifests.

This module provides an async client that retrieves the channel manifests
published on the distribution server and parses them into Manifest objects.

Addressing scheme:
- latest:  {dist_server}/dist/channel-rust-{channel}.toml
- dated:   {dist_server}/dist/{YYYY-MM-DD}/channel-rust-{channel}.toml

A missing dated manifest (HTTP 404) means no release was published that day
and is reported as ManifestStatus.NOT_PUBLISHED. Every other failure raises.
"""

import datetime
import time
import tomllib
from dataclasses import dataclass
from typing import Any, Iterable, Optional
from urllib.parse import urlparse

import httpx

from .audit_logger import AuditLogger
from .config import DEFAULT_DIST_SERVER, ManifestSourceConfig
from .enums import Channel, ErrorCode, LogLevel, ManifestStatus
from .exceptions import InvalidConfigurationError, MalformedManifestError, NetworkError
from .models import Manifest, PackageTargets

SUPPORTED_MANIFEST_VERSIONS = frozenset({"2"})

_LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})


@dataclass
class ManifestResponse:
    """Result of a dated manifest lookup."""

    status: ManifestStatus
    url: str
    http_status_code: int
    manifest: Optional[Manifest] = None
    response_time_ms: float = 0.0


def _malformed(url: str, message: str) -> MalformedManifestError:
    return MalformedManifestError(
        code=ErrorCode.PARSE_ERROR.value,
        message=f"Malformed manifest at {url}: {message}",
        details={"url": url},
    )


def _parse_date(raw: Any, url: str) -> datetime.date:
    if isinstance(raw, datetime.datetime):
        return raw.date()
    if isinstance(raw, datetime.date):
        return raw
    if isinstance(raw, str):
        try:
            return datetime.date.fromisoformat(raw)
        except ValueError:
            pass
    raise _malformed(url, f"invalid date {raw!r}")


def _parse_package(name: str, raw: Any, url: str) -> PackageTargets:
    if not isinstance(raw, dict):
        raise _malformed(url, f"package {name!r} is not a table")

    version = raw.get("version", "")
    if not isinstance(version, str):
        raise _malformed(url, f"package {name!r} has a non-string version")

    raw_targets = raw.get("target", {})
    if not isinstance(raw_targets, dict):
        raise _malformed(url, f"package {name!r} has an invalid target table")

    targets = {}
    for target, info in raw_targets.items():
        if not isinstance(info, dict) or not isinstance(info.get("available"), bool):
            raise _malformed(url, f"package {name!r} target {target!r} lacks 'available'")
        targets[target] = info["available"]

    return PackageTargets(version=version, targets=targets)


def parse_manifest(channel: Channel, content: bytes, url: str = "<memory>") -> Manifest:
    """
    Parse a channel manifest document.

    Only the fields needed for availability checks are read; everything else
    (download URLs, hashes, extensions) is ignored.

    Args:
        channel: Channel the document was fetched for
        content: Raw TOML document
        url: Source URL, used in error messages

    Returns:
        The parsed Manifest

    Raises:
        MalformedManifestError: If the document is not a v2 channel manifest
    """
    try:
        data = tomllib.loads(content.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        raise _malformed(url, str(e)) from e

    manifest_version = data.get("manifest-version")
    if manifest_version not in SUPPORTED_MANIFEST_VERSIONS:
        raise _malformed(url, f"unsupported manifest-version {manifest_version!r}")

    if "date" not in data:
        raise _malformed(url, "missing 'date'")
    release_date = _parse_date(data["date"], url)

    raw_packages = data.get("pkg")
    if not isinstance(raw_packages, dict):
        raise _malformed(url, "missing 'pkg' table")
    packages = {
        name: _parse_package(name, raw, url)
        for name, raw in raw_packages.items()
    }

    raw_profiles = data.get("profiles", {})
    if not isinstance(raw_profiles, dict):
        raise _malformed(url, "invalid 'profiles' table")
    profiles = {}
    for profile, components in raw_profiles.items():
        if not isinstance(components, list) or not all(isinstance(c, str) for c in components):
            raise _malformed(url, f"profile {profile!r} is not a list of names")
        profiles[profile] = list(components)

    raw_renames = data.get("renames", {})
    if not isinstance(raw_renames, dict):
        raise _malformed(url, "invalid 'renames' table")
    renames = {}
    for old_name, rename in raw_renames.items():
        if not isinstance(rename, dict) or not isinstance(rename.get("to"), str):
            raise _malformed(url, f"rename {old_name!r} lacks 'to'")
        renames[old_name] = rename["to"]

    return Manifest(
        channel=channel,
        date=release_date,
        manifest_version=manifest_version,
        packages=packages,
        profiles=profiles,
        renames=renames,
    )


class ManifestClient:
    """
    Async client for channel manifests.

    One request per call, no automatic retries. The latest manifest of each
    channel is cached for the lifetime of the client.
    """

    def __init__(
        self,
        dist_server: str = DEFAULT_DIST_SERVER,
        timeout: float = 30.0,
        headers: Optional[dict[str, str]] = None,
        not_published_statuses: Iterable[int] = (404,),
        allow_insecure: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the manifest client.

        Args:
            dist_server: Base URL of the distribution server (without /dist)
            timeout: Per-request timeout in seconds
            headers: Extra request headers, e.g. for authenticated mirrors
            not_published_statuses: HTTP statuses meaning "no release that day"
            allow_insecure: Accept plain HTTP for local mirrors
            transport: Optional httpx transport (used for offline testing)
            logger: Optional audit logger

        Raises:
            InvalidConfigurationError: If the dist server URL is not acceptable
        """
        self._dist_server = dist_server.rstrip("/")
        self._validate_dist_server(self._dist_server, allow_insecure)
        self._timeout = timeout
        self._headers = dict(headers or {})
        self._not_published_statuses = frozenset(not_published_statuses)
        self._transport = transport
        self._logger = logger
        self._client: Optional[httpx.AsyncClient] = None
        self._latest_cache: dict[Channel, Manifest] = {}

    @classmethod
    def from_config(
        cls,
        config: ManifestSourceConfig,
        logger: Optional[AuditLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ManifestClient":
        """Create a client from a ManifestSourceConfig."""
        return cls(
            dist_server=config.dist_server,
            timeout=config.timeout_seconds,
            headers=config.headers,
            not_published_statuses=config.not_published_statuses,
            allow_insecure=config.allow_insecure,
            transport=transport,
            logger=logger,
        )

    async def __aenter__(self) -> "ManifestClient":
        """Async context manager entry."""
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    @staticmethod
    def _validate_dist_server(dist_server: str, allow_insecure: bool) -> None:
        """Only HTTPS servers are accepted, plain HTTP only for local mirrors when allowed."""
        parsed = urlparse(dist_server)
        scheme = parsed.scheme.lower()
        if scheme == "https":
            return
        if scheme == "http" and allow_insecure and parsed.hostname in _LOCAL_HOSTS:
            return
        raise InvalidConfigurationError(
            code=ErrorCode.INVALID_CONFIGURATION.value,
            message=f"Distribution server must use HTTPS: {dist_server}",
            details={"dist_server": dist_server, "scheme": parsed.scheme},
        )

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                verify=True,
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
                headers=self._headers,
                transport=self._transport,
            )
        return self._client

    @property
    def dist_server(self) -> str:
        """Get the distribution server base URL."""
        return self._dist_server

    def latest_url(self, channel: Channel) -> str:
        """URL of the channel's latest manifest."""
        return f"{self._dist_server}/dist/channel-rust-{channel.value}.toml"

    def dated_url(self, channel: Channel, day: datetime.date) -> str:
        """URL of the channel's manifest archived for a given date."""
        return f"{self._dist_server}/dist/{day.isoformat()}/channel-rust-{channel.value}.toml"

    async def fetch_latest(self, channel: Channel) -> Manifest:
        """
        Fetch the channel's latest manifest.

        Args:
            channel: Release channel

        Returns:
            The latest Manifest

        Raises:
            NetworkError: On any retrieval failure, including a missing channel
            MalformedManifestError: If the document cannot be parsed
        """
        cached = self._latest_cache.get(channel)
        if cached is not None:
            return cached

        url = self.latest_url(channel)
        response, _ = await self._get(url)

        if response.status_code != 200:
            if response.status_code in self._not_published_statuses:
                code = ErrorCode.CHANNEL_NOT_FOUND
                message = f"No manifest found for release channel {channel.value} at {url}"
            else:
                code = ErrorCode.HTTP_ERROR
                message = f"Error getting latest manifest from {url}: HTTP {response.status_code}"
            self._log_error(message, url, response.status_code)
            raise NetworkError(
                code=code.value,
                message=message,
                details={"url": url, "http_status_code": response.status_code},
            )

        manifest = parse_manifest(channel, response.content, url)
        self._latest_cache[channel] = manifest
        self._log_info(
            "Fetched latest manifest",
            {"channel": channel.value, "date": manifest.date.isoformat(), "url": url},
        )
        return manifest

    async def fetch_for_date(self, channel: Channel, day: datetime.date) -> ManifestResponse:
        """
        Fetch the channel's manifest archived for a given date.

        Args:
            channel: Release channel
            day: Release date to look up

        Returns:
            ManifestResponse, NOT_PUBLISHED if nothing was released that day

        Raises:
            NetworkError: On connection failure, timeout or unexpected HTTP status
            MalformedManifestError: If the document cannot be parsed
        """
        url = self.dated_url(channel, day)
        response, response_time_ms = await self._get(url)

        if response.status_code in self._not_published_statuses:
            self._log_debug(
                "No release published",
                {"channel": channel.value, "date": day.isoformat(), "status": response.status_code},
            )
            return ManifestResponse(
                status=ManifestStatus.NOT_PUBLISHED,
                url=url,
                http_status_code=response.status_code,
                response_time_ms=response_time_ms,
            )

        if response.status_code != 200:
            message = f"Error getting manifest from {url}: HTTP {response.status_code}"
            self._log_error(message, url, response.status_code)
            raise NetworkError(
                code=ErrorCode.HTTP_ERROR.value,
                message=message,
                details={"url": url, "http_status_code": response.status_code},
            )

        return ManifestResponse(
            status=ManifestStatus.FOUND,
            url=url,
            http_status_code=200,
            manifest=parse_manifest(channel, response.content, url),
            response_time_ms=response_time_ms,
        )

    async def _get(self, url: str) -> tuple[httpx.Response, float]:
        """Perform one GET request, translating transport failures into NetworkError."""
        client = self._ensure_client()
        start_time = time.perf_counter()

        try:
            response = await client.get(url)
        except httpx.TimeoutException as e:
            message = f"Request to {url} timed out after {self._timeout}s"
            self._log_error(message, url, error=e)
            raise NetworkError(
                code=ErrorCode.TIMEOUT.value,
                message=message,
                details={"url": url, "timeout_seconds": self._timeout},
            ) from e
        except httpx.ConnectError as e:
            error_msg = str(e)
            if "ssl" in error_msg.lower() or "certificate" in error_msg.lower():
                code = ErrorCode.TLS_ERROR
                message = f"TLS connection error for {url}: {error_msg}"
            else:
                code = ErrorCode.NETWORK_ERROR
                message = f"Connection error for {url}: {error_msg}"
            self._log_error(message, url, error=e)
            raise NetworkError(code=code.value, message=message, details={"url": url}) from e
        except httpx.HTTPError as e:
            message = f"Error making request to {url}: {e}"
            self._log_error(message, url, error=e)
            raise NetworkError(
                code=ErrorCode.NETWORK_ERROR.value,
                message=message,
                details={"url": url},
            ) from e

        return response, (time.perf_counter() - start_time) * 1000

    def _log_info(self, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(LogLevel.INFO, "ManifestClient", message, data)

    def _log_debug(self, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(LogLevel.DEBUG, "ManifestClient", message, data)

    def _log_error(
        self,
        message: str,
        url: str,
        status_code: Optional[int] = None,
        error: Optional[Exception] = None,
    ) -> None:
        if self._logger:
            self._logger.log_error(
                "ManifestClient",
                message,
                error=error,
                request_url=url,
                response_status_code=status_code,
            )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
