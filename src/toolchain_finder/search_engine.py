"""
Backward Search Engine for the toolchain finder.

This module walks a channel's release history backward from its latest
manifest, one calendar day at a time, and stops at the first (most recent)
date whose manifest satisfies the requirement.

States: INIT -> PROBING -> FOUND | EXHAUSTED | FAILED

- Days without a published release are skipped.
- The window floor (anchor - max_age_days) is inclusive.
- Exactly one fetch is awaited per probed day; dates are never fetched
  concurrently.
- Any error raised by the manifest source moves the engine to FAILED and
  propagates unchanged.
"""

import datetime
from typing import Iterator, Optional, Protocol

from .audit_logger import AuditLogger
from .availability import AvailabilityEvaluator, AvailabilityPlan
from .enums import Channel, ErrorCode, LogLevel, ManifestStatus, SearchState
from .exceptions import InvalidConfigurationError, MalformedManifestError, ToolchainFinderError
from .label_formatter import extract_version
from .manifest_client import ManifestResponse
from .models import Manifest, ProbeRecord, Requirement, SearchOutcome

TERMINAL_STATES = frozenset({SearchState.FOUND, SearchState.EXHAUSTED, SearchState.FAILED})


class ManifestSource(Protocol):
    """Anything that can provide channel manifests (ManifestClient in production)."""

    async def fetch_latest(self, channel: Channel) -> Manifest:
        ...

    async def fetch_for_date(self, channel: Channel, day: datetime.date) -> ManifestResponse:
        ...


def window_floor(anchor: datetime.date, max_age_days: int) -> datetime.date:
    """Oldest date searched: anchor - max_age_days, clamped to datetime.date.min."""
    span = min(max_age_days, (anchor - datetime.date.min).days)
    return anchor - datetime.timedelta(days=span)


def candidate_dates(anchor: datetime.date, max_age_days: int) -> Iterator[datetime.date]:
    """Yield anchor, anchor - 1 day, ... down to the window floor inclusive."""
    floor = window_floor(anchor, max_age_days)
    for offset in range((anchor - floor).days + 1):
        yield anchor - datetime.timedelta(days=offset)


class BackwardSearchEngine:
    """
    Finds the most recent release satisfying a requirement.

    The engine is reusable: every call to search() starts again from INIT.
    """

    def __init__(
        self,
        source: ManifestSource,
        evaluator: Optional[AvailabilityEvaluator] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the search engine.

        Args:
            source: Manifest source, usually a ManifestClient
            evaluator: Availability evaluator (default: built-in platform policy)
            logger: Optional audit logger
        """
        self._source = source
        self._evaluator = evaluator or AvailabilityEvaluator()
        self._logger = logger
        self._state = SearchState.INIT

    @property
    def state(self) -> SearchState:
        """Current state of the most recent search."""
        return self._state

    def validate(self, requirement: Requirement) -> None:
        """
        Reject unusable requirements before any network access.

        Raises:
            InvalidConfigurationError: On an empty target set, negative window
                or an empty component set
        """
        if not requirement.targets:
            raise InvalidConfigurationError(
                code=ErrorCode.INVALID_CONFIGURATION.value,
                message="Requirement has an empty target set",
            )
        if requirement.max_age_days < 0:
            raise InvalidConfigurationError(
                code=ErrorCode.INVALID_CONFIGURATION.value,
                message=f"max age must not be negative, got {requirement.max_age_days}",
                details={"max_age_days": requirement.max_age_days},
            )
        if requirement.profile is None:
            if not requirement.components:
                raise InvalidConfigurationError(
                    code=ErrorCode.INVALID_CONFIGURATION.value,
                    message="Requirement has neither a profile nor components",
                )
            self._evaluator.build_plan(
                requirement.components, requirement.targets, requirement.host_target
            )

    async def search(self, requirement: Requirement) -> SearchOutcome:
        """
        Run the backward search.

        Args:
            requirement: What has to be available

        Returns:
            SearchOutcome in state FOUND or EXHAUSTED

        Raises:
            InvalidConfigurationError: If the requirement is unusable
            NetworkError: If a manifest cannot be retrieved
            MalformedManifestError: If a manifest cannot be understood
        """
        self._state = SearchState.INIT
        try:
            return await self._run(requirement)
        except ToolchainFinderError as e:
            self._log_error(f"Search failed: {e.message}", e)
            raise
        finally:
            if self._state not in TERMINAL_STATES:
                self._transition(SearchState.FAILED, {"channel": requirement.channel.value})

    async def _run(self, requirement: Requirement) -> SearchOutcome:
        self.validate(requirement)
        channel = requirement.channel

        latest = await self._source.fetch_latest(channel)
        anchor = latest.date
        floor = window_floor(anchor, requirement.max_age_days)
        self._transition(
            SearchState.PROBING,
            {
                "channel": channel.value,
                "anchor_date": anchor.isoformat(),
                "floor_date": floor.isoformat(),
            },
        )

        plans: dict[frozenset[str], AvailabilityPlan] = {}
        probes: list[ProbeRecord] = []

        for day in candidate_dates(anchor, requirement.max_age_days):
            if day == anchor:
                manifest = latest
            else:
                response = await self._source.fetch_for_date(channel, day)
                if response.status == ManifestStatus.NOT_PUBLISHED:
                    probes.append(ProbeRecord(date=day, status=ManifestStatus.NOT_PUBLISHED))
                    continue
                manifest = self._checked_manifest(response, day, anchor)

            components = self._evaluator.resolve_components(manifest, requirement)
            plan = plans.get(components)
            if plan is None:
                plan = self._evaluator.build_plan(
                    components, requirement.targets, requirement.host_target
                )
                plans[components] = plan

            missing = self._evaluator.find_missing(manifest, plan)
            probes.append(ProbeRecord(
                date=day,
                status=ManifestStatus.FOUND,
                satisfied=not missing,
                missing=tuple(missing),
            ))

            if not missing:
                version = extract_version(channel, manifest.rust_version)
                self._transition(
                    SearchState.FOUND,
                    {"channel": channel.value, "date": day.isoformat(), "version": version},
                )
                return SearchOutcome(
                    state=SearchState.FOUND,
                    channel=channel,
                    anchor_date=anchor,
                    floor_date=floor,
                    date=day,
                    version=version,
                    probes=tuple(probes),
                )

            self._log(
                LogLevel.INFO,
                "Release does not satisfy requirement",
                {
                    "date": day.isoformat(),
                    "missing": [
                        f"{component}@{target}" if target else component
                        for component, target in missing
                    ],
                },
            )

        self._transition(
            SearchState.EXHAUSTED,
            {"channel": channel.value, "probed": len(probes)},
        )
        return SearchOutcome(
            state=SearchState.EXHAUSTED,
            channel=channel,
            anchor_date=anchor,
            floor_date=floor,
            probes=tuple(probes),
        )

    def _checked_manifest(
        self,
        response: ManifestResponse,
        day: datetime.date,
        anchor: datetime.date,
    ) -> Manifest:
        manifest = response.manifest
        if manifest is None:
            raise MalformedManifestError(
                code=ErrorCode.PARSE_ERROR.value,
                message=f"Manifest source returned no document for {day.isoformat()}",
                details={"url": response.url},
            )
        if manifest.date > anchor:
            raise MalformedManifestError(
                code=ErrorCode.PARSE_ERROR.value,
                message=(
                    f"Manifest at {response.url} is dated {manifest.date.isoformat()}, "
                    f"after the latest release {anchor.isoformat()}"
                ),
                details={"url": response.url},
            )
        if manifest.date != day:
            self._log(
                LogLevel.WARN,
                "Archived manifest date differs from its directory",
                {"url": response.url, "expected": day.isoformat(), "actual": manifest.date.isoformat()},
            )
        return manifest

    def _transition(self, state: SearchState, data: dict) -> None:
        self._state = state
        self._log(LogLevel.INFO, f"Search state: {state.value}", data)

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "BackwardSearchEngine", message, data)

    def _log_error(self, message: str, error: Exception) -> None:
        if self._logger:
            self._logger.log_error("BackwardSearchEngine", message, error=error)
