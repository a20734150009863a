"""
Builders for channel manifests used across the test suite.

Produces both in-memory Manifest objects and TOML documents shaped like the
ones on the distribution server, plus an in-memory manifest source.
"""

import datetime
import json
from typing import Iterable, Optional

from toolchain_finder.enums import Channel, ManifestStatus
from toolchain_finder.manifest_client import ManifestResponse
from toolchain_finder.models import Manifest, PackageTargets
from toolchain_finder.platforms import TIER_1_TARGETS

DEFAULT_PROFILE = ["rustc", "cargo", "rust-std", "rust-docs", "rustfmt", "clippy"]
MINIMAL_PROFILE = ["rustc", "cargo", "rust-std"]


def rust_version_for(channel: Channel, day: datetime.date) -> str:
    if channel == Channel.STABLE:
        return f"1.89.0 (29483883e {day.isoformat()})"
    if channel == Channel.BETA:
        return f"1.90.0-beta.7 (fe55f6f4a {day.isoformat()})"
    return f"1.91.0-nightly (a1dbb4438 {day.isoformat()})"


def build_manifest(
    day: datetime.date,
    channel: Channel = Channel.NIGHTLY,
    components: Iterable[str] = DEFAULT_PROFILE,
    targets: Iterable[str] = TIER_1_TARGETS,
    unavailable: Iterable[tuple[str, str]] = (),
    absent: Iterable[str] = (),
    extra_packages: Optional[dict[str, PackageTargets]] = None,
    renames: Optional[dict[str, str]] = None,
) -> Manifest:
    """
    Build a manifest where every component is available on every target,
    except for the (component, target) pairs in unavailable and the
    components in absent.
    """
    targets = list(targets)
    unavailable = set(unavailable)
    absent = set(absent)

    packages = {
        "rust": PackageTargets(
            version=rust_version_for(channel, day),
            targets={target: True for target in targets},
        ),
    }
    for component in components:
        if component in absent:
            continue
        packages[component] = PackageTargets(
            version=rust_version_for(channel, day),
            targets={target: (component, target) not in unavailable for target in targets},
        )
    packages.update(extra_packages or {})

    return Manifest(
        channel=channel,
        date=day,
        manifest_version="2",
        packages=packages,
        profiles={
            "minimal": [c for c in MINIMAL_PROFILE if c in components],
            "default": [c for c in DEFAULT_PROFILE if c in components],
            "complete": list(components),
        },
        renames=dict(renames or {}),
    )


def _key(name: str) -> str:
    return json.dumps(name)


def manifest_to_toml(manifest: Manifest) -> bytes:
    """Render a Manifest as a v2 channel manifest document."""
    lines = [
        f'date = "{manifest.date.isoformat()}"',
        f'manifest-version = "{manifest.manifest_version}"',
        "",
    ]
    for name, package in manifest.packages.items():
        lines.append(f"[pkg.{_key(name)}]")
        lines.append(f"version = {json.dumps(package.version)}")
        lines.append("")
        for target, available in package.targets.items():
            lines.append(f"[pkg.{_key(name)}.target.{_key(target)}]")
            lines.append(f"available = {'true' if available else 'false'}")
            if available:
                lines.append(f'url = "https://static.rust-lang.org/dist/{name}-{target}.tar.gz"')
                lines.append('hash = "0000"')
            lines.append("")
    for old_name, new_name in manifest.renames.items():
        lines.append(f"[renames.{_key(old_name)}]")
        lines.append(f"to = {json.dumps(new_name)}")
        lines.append("")
    if manifest.profiles:
        lines.append("[profiles]")
        for profile, members in manifest.profiles.items():
            lines.append(f"{_key(profile)} = {json.dumps(members)}")
        lines.append("")
    return "\n".join(lines).encode("utf-8")


class FakeManifestSource:
    """In-memory manifest source; dates without a manifest are not published."""

    def __init__(
        self,
        latest: Manifest,
        archive: Optional[dict[datetime.date, Manifest]] = None,
        errors: Optional[dict[datetime.date, Exception]] = None,
    ) -> None:
        self.latest = latest
        self.archive = dict(archive or {})
        self.errors = dict(errors or {})
        self.latest_calls = 0
        self.fetched_dates: list[datetime.date] = []

    async def fetch_latest(self, channel: Channel) -> Manifest:
        self.latest_calls += 1
        return self.latest

    async def fetch_for_date(self, channel: Channel, day: datetime.date) -> ManifestResponse:
        self.fetched_dates.append(day)
        if day in self.errors:
            raise self.errors[day]
        url = f"memory://dist/{day.isoformat()}/channel-rust-{channel.value}.toml"
        manifest = self.archive.get(day)
        if manifest is None:
            return ManifestResponse(
                status=ManifestStatus.NOT_PUBLISHED, url=url, http_status_code=404
            )
        return ManifestResponse(
            status=ManifestStatus.FOUND, url=url, http_status_code=200, manifest=manifest
        )
