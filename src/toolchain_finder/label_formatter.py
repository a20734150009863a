"""
Label Formatter: turns a search outcome into a toolchain label.

Labels:
- stable/beta: the release version ("1.89.0", "1.90.0-beta.7"), or
  "<channel>-<date>" when forced or when no version can be read
- nightly: always "nightly-<date>"
"""

import re
from typing import Optional

from .enums import Channel, ErrorCode
from .exceptions import WindowExhaustedError
from .models import SearchOutcome

_STABLE_VERSION = re.compile(r"^(\d+\.\d+\.\d+)")
_BETA_VERSION = re.compile(r"^(\d+\.\d+\.\d+(?:-beta(?:\.\d+)?)?)")


def extract_version(channel: Channel, raw_version: Optional[str]) -> Optional[str]:
    """
    Read the release version from the 'rust' package version string.

    "1.89.0 (29483883e 2025-08-04)" -> "1.89.0" on stable,
    "1.90.0-beta.7 (fe55f6f4a 2025-09-06)" -> "1.90.0-beta.7" on beta.
    Nightly releases have no version.
    """
    if not channel.has_version or not raw_version:
        return None
    pattern = _STABLE_VERSION if channel == Channel.STABLE else _BETA_VERSION
    match = pattern.match(raw_version.strip())
    return match.group(1) if match else None


def exhausted_error(outcome: SearchOutcome) -> WindowExhaustedError:
    """Build the error reported when a search found nothing."""
    max_age_days = (outcome.anchor_date - outcome.floor_date).days
    return WindowExhaustedError(
        code=ErrorCode.WINDOW_EXHAUSTED.value,
        message=f"no viable {outcome.channel.value} build found within {max_age_days} days",
        details={
            "channel": outcome.channel.value,
            "anchor_date": outcome.anchor_date.isoformat(),
            "floor_date": outcome.floor_date.isoformat(),
            "probed": len(outcome.probes),
        },
    )


def format_label(channel: Channel, outcome: SearchOutcome, force_date: bool = False) -> str:
    """
    Format the toolchain label for a found release.

    Args:
        channel: Release channel searched
        outcome: Search outcome
        force_date: Prefer "<channel>-<date>" over the version on stable/beta

    Returns:
        The toolchain label

    Raises:
        WindowExhaustedError: If the outcome carries no release
    """
    if not outcome.found or outcome.date is None:
        raise exhausted_error(outcome)

    if channel.has_version and not force_date and outcome.version:
        return outcome.version

    return f"{channel.value}-{outcome.date.isoformat()}"
