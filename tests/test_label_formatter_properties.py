"""
Property-based tests for the Label Formatter.

Uses Hypothesis to verify version extraction and label selection per channel.
"""

import datetime

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from toolchain_finder.enums import Channel, SearchState
from toolchain_finder.exceptions import WindowExhaustedError
from toolchain_finder.label_formatter import extract_version, format_label
from toolchain_finder.models import SearchOutcome


@st.composite
def semver_strategy(draw) -> str:
    """Generate MAJOR.MINOR.PATCH strings."""
    parts = draw(st.lists(st.integers(min_value=0, max_value=200), min_size=3, max_size=3))
    return ".".join(str(p) for p in parts)


def release_date_strategy() -> st.SearchStrategy[datetime.date]:
    return st.dates(min_value=datetime.date(2016, 1, 1), max_value=datetime.date(2030, 12, 31))


def found_outcome(channel: Channel, day: datetime.date, version=None) -> SearchOutcome:
    return SearchOutcome(
        state=SearchState.FOUND,
        channel=channel,
        anchor_date=day,
        floor_date=day - datetime.timedelta(days=90),
        date=day,
        version=version,
    )


class TestVersionExtraction:
    """The release version is read from the 'rust' package version string."""

    @given(version=semver_strategy(), day=release_date_strategy())
    @settings(max_examples=100)
    def test_stable_version_is_extracted(self, version: str, day: datetime.date) -> None:
        raw = f"{version} (29483883e {day.isoformat()})"

        assert extract_version(Channel.STABLE, raw) == version

    @given(version=semver_strategy(), build=st.integers(min_value=1, max_value=20))
    @settings(max_examples=100)
    def test_beta_version_keeps_prerelease(self, version: str, build: int) -> None:
        raw = f"{version}-beta.{build} (fe55f6f4a 2025-09-06)"

        assert extract_version(Channel.BETA, raw) == f"{version}-beta.{build}"
        assert extract_version(Channel.STABLE, raw) == version

    @given(raw=st.one_of(st.none(), st.text(max_size=40)))
    @settings(max_examples=50)
    def test_nightly_has_no_version(self, raw) -> None:
        assert extract_version(Channel.NIGHTLY, raw) is None

    @pytest.mark.parametrize("raw", [None, "", "nightly", "1.89 (29483883e 2025-08-04)"])
    def test_unreadable_versions(self, raw) -> None:
        assert extract_version(Channel.STABLE, raw) is None


class TestLabelProperty:
    """Stable and beta labels are versions unless dates are forced; nightly is always dated."""

    @given(day=release_date_strategy(), version=semver_strategy())
    @settings(max_examples=100)
    def test_stable_label_is_version(self, day: datetime.date, version: str) -> None:
        outcome = found_outcome(Channel.STABLE, day, version)

        assert format_label(Channel.STABLE, outcome) == version
        assert format_label(Channel.STABLE, outcome, force_date=True) == f"stable-{day.isoformat()}"

    @given(day=release_date_strategy(), force_date=st.booleans())
    @settings(max_examples=100)
    def test_nightly_label_is_dated(self, day: datetime.date, force_date: bool) -> None:
        outcome = found_outcome(Channel.NIGHTLY, day)

        assert format_label(Channel.NIGHTLY, outcome, force_date) == f"nightly-{day.isoformat()}"

    @given(day=release_date_strategy())
    @settings(max_examples=50)
    def test_missing_version_falls_back_to_date(self, day: datetime.date) -> None:
        outcome = found_outcome(Channel.BETA, day)

        assert format_label(Channel.BETA, outcome) == f"beta-{day.isoformat()}"

    @given(max_age_days=st.integers(min_value=0, max_value=365))
    @settings(max_examples=50)
    def test_exhausted_outcome_has_no_label(self, max_age_days: int) -> None:
        anchor = datetime.date(2025, 9, 7)
        outcome = SearchOutcome(
            state=SearchState.EXHAUSTED,
            channel=Channel.STABLE,
            anchor_date=anchor,
            floor_date=anchor - datetime.timedelta(days=max_age_days),
        )

        with pytest.raises(WindowExhaustedError) as excinfo:
            format_label(Channel.STABLE, outcome)

        assert excinfo.value.code == "window_exhausted"
        assert excinfo.value.message == (
            f"no viable stable build found within {max_age_days} days"
        )
