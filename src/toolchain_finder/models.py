"""
Data models for the toolchain finder.

This module defines the parsed manifest view, the immutable search
requirement, and the search outcome.
"""

import datetime
from dataclasses import dataclass, field
from typing import Optional

from .enums import Channel, ManifestStatus, Profile, SearchState

# Target key used by target-independent packages (e.g. rust-src)
WILDCARD_TARGET = "*"


@dataclass(frozen=True)
class PackageTargets:
    """Per-target availability of one package within a manifest."""

    version: str
    targets: dict[str, bool] = field(default_factory=dict)

    def is_available(self, target: str) -> bool:
        """Check availability for a target, falling back to the wildcard entry."""
        if target in self.targets:
            return self.targets[target]
        return self.targets.get(WILDCARD_TARGET, False)


@dataclass(frozen=True)
class Manifest:
    """A channel snapshot as of one release date."""

    channel: Channel
    date: datetime.date
    manifest_version: str
    packages: dict[str, PackageTargets]
    profiles: dict[str, list[str]] = field(default_factory=dict)
    renames: dict[str, str] = field(default_factory=dict)

    def has_package(self, name: str) -> bool:
        """Check whether a package is present in this release at all."""
        return name in self.packages

    @property
    def rust_version(self) -> Optional[str]:
        """Raw version string of the top-level 'rust' package, if present."""
        package = self.packages.get("rust")
        return package.version if package else None


@dataclass(frozen=True)
class Requirement:
    """Immutable input to the backward search."""

    channel: Channel
    targets: frozenset[str]
    host_target: Optional[str]
    max_age_days: int
    profile: Optional[Profile] = Profile.DEFAULT
    components: frozenset[str] = frozenset()


@dataclass(frozen=True)
class ProbeRecord:
    """One candidate date visited by the search."""

    date: datetime.date
    status: ManifestStatus
    satisfied: bool = False
    missing: tuple[tuple[str, Optional[str]], ...] = ()


@dataclass(frozen=True)
class SearchOutcome:
    """Terminal result of a search that did not fail."""

    state: SearchState  # FOUND or EXHAUSTED
    channel: Channel
    anchor_date: datetime.date
    floor_date: datetime.date
    date: Optional[datetime.date] = None
    version: Optional[str] = None
    probes: tuple[ProbeRecord, ...] = ()

    @property
    def found(self) -> bool:
        return self.state == SearchState.FOUND
