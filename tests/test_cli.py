"""
Tests for the command-line interface.

Covers option handling, exit codes, and a full run against a mocked
distribution server.
"""

import asyncio
import datetime
import json

import httpx
import pytest

from manifest_factory import build_manifest, manifest_to_toml
from toolchain_finder import cli
from toolchain_finder.config import DIST_SERVER_ENV, SystemConfig
from toolchain_finder.enums import Channel, Profile, SearchState, TargetMode
from toolchain_finder.exceptions import NetworkError, WindowExhaustedError
from toolchain_finder.models import SearchOutcome

ANCHOR = datetime.date(2025, 9, 7)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    monkeypatch.delenv(DIST_SERVER_ENV, raising=False)


def fake_find_toolchain(result=None, error=None, seen=None):
    async def find_toolchain(config, logger=None, transport=None):
        if seen is not None:
            seen.append(config)
        if error is not None:
            raise error
        return result

    return find_toolchain


def found(label: str):
    return label, SearchOutcome(
        state=SearchState.FOUND,
        channel=Channel.NIGHTLY,
        anchor_date=ANCHOR,
        floor_date=ANCHOR - datetime.timedelta(days=90),
        date=ANCHOR,
    )


class TestArguments:
    """Command-line options override the configuration."""

    def test_options_are_applied(self) -> None:
        args = cli.create_parser().parse_args([
            "-c", "nightly", "-p", "minimal", "-a", "30", "-t", "current", "-d",
            "--component", "clippy", "--component", "rust-src",
            "--host", "aarch64-apple-darwin",
            "--dist-server", "https://mirror.example.org/",
            "-vv", "--log-format", "json",
        ])

        config = cli.apply_arguments(SystemConfig(), args)

        assert config.search.channel == Channel.NIGHTLY
        assert config.search.profile == Profile.MINIMAL
        assert config.search.max_age_days == 30
        assert config.search.target_mode == TargetMode.CURRENT
        assert config.search.force_date is True
        assert config.search.components == ["clippy", "rust-src"]
        assert config.search.host_target == "aarch64-apple-darwin"
        assert config.source.dist_server == "https://mirror.example.org"
        assert config.logging.level == "debug"
        assert config.logging.output_format == "json"

    def test_defaults_leave_config_untouched(self) -> None:
        args = cli.create_parser().parse_args([])

        config = cli.apply_arguments(SystemConfig(), args)

        assert config == SystemConfig()

    def test_unknown_channel_is_a_usage_error(self) -> None:
        with pytest.raises(SystemExit) as excinfo:
            cli.create_parser().parse_args(["-c", "canary"])

        assert excinfo.value.code == 2

    def test_current_mode_uses_host(self) -> None:
        config = SystemConfig()
        config.search.target_mode = TargetMode.CURRENT
        config.search.host_target = "x86_64-pc-windows-gnu"

        requirement = cli.build_requirement(config)

        assert requirement.targets == frozenset({"x86_64-pc-windows-gnu"})
        assert requirement.host_target == "x86_64-pc-windows-gnu"

    def test_tier1_override(self) -> None:
        config = SystemConfig()
        config.search.host_target = "x86_64-unknown-linux-gnu"
        config.platforms.tier1_targets = ["x86_64-unknown-linux-gnu", "aarch64-apple-darwin"]

        requirement = cli.build_requirement(config)

        assert requirement.targets == frozenset(config.platforms.tier1_targets)


class TestExitCodes:
    """main() prints the label on success and maps failures to exit codes."""

    def test_label_is_printed(self, monkeypatch, capsys) -> None:
        seen = []
        monkeypatch.setattr(
            cli, "find_toolchain", fake_find_toolchain(found("nightly-2025-09-06"), seen=seen)
        )

        exit_code = cli.main(["-c", "nightly"])

        assert exit_code == cli.EXIT_OK
        assert capsys.readouterr().out == "nightly-2025-09-06\n"
        assert seen[0].search.channel == Channel.NIGHTLY

    def test_exhausted_window_fails(self, monkeypatch, capsys) -> None:
        error = WindowExhaustedError(
            code="window_exhausted", message="no viable stable build found within 90 days"
        )
        monkeypatch.setattr(cli, "find_toolchain", fake_find_toolchain(error=error))

        exit_code = cli.main([])

        captured = capsys.readouterr()
        assert exit_code == cli.EXIT_FAILURE
        assert captured.out == ""
        assert "no viable stable build found within 90 days" in captured.err

    def test_network_error_prints_cause_chain(self, monkeypatch, capsys) -> None:
        cause = httpx.ConnectError("Name or service not known")
        error = NetworkError(code="network_error", message="Connection error")
        error.__cause__ = cause
        monkeypatch.setattr(cli, "find_toolchain", fake_find_toolchain(error=error))

        exit_code = cli.main([])

        err = capsys.readouterr().err
        assert exit_code == cli.EXIT_FAILURE
        assert "Connection error" in err
        assert "\tcaused by: Name or service not known" in err

    def test_negative_max_age_is_a_configuration_error(self, capsys) -> None:
        exit_code = cli.main(["-a", "-1", "--host", "x86_64-unknown-linux-gnu"])

        assert exit_code == cli.EXIT_CONFIG_ERROR
        assert "must not be negative" in capsys.readouterr().err

    def test_insecure_dist_server_is_a_configuration_error(self) -> None:
        exit_code = cli.main([
            "--dist-server", "http://static.rust-lang.org",
            "--host", "x86_64-unknown-linux-gnu",
        ])

        assert exit_code == cli.EXIT_CONFIG_ERROR

    def test_missing_config_file(self, tmp_path) -> None:
        assert cli.main(["--config", str(tmp_path / "missing.json")]) == cli.EXIT_CONFIG_ERROR

    def test_invalid_log_level_in_config_file(self, tmp_path) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"logging": {"level": "chatty"}}))

        assert cli.main(["--config", str(path)]) == cli.EXIT_CONFIG_ERROR

    def test_config_file_values_are_used(self, monkeypatch, tmp_path) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"search": {"channel": "beta", "max_age_days": 14}}))
        seen = []
        monkeypatch.setattr(
            cli, "find_toolchain", fake_find_toolchain(found("1.90.0-beta.7"), seen=seen)
        )

        assert cli.main(["--config", str(path), "-a", "7"]) == cli.EXIT_OK
        assert seen[0].search.channel == Channel.BETA
        assert seen[0].search.max_age_days == 7


class TestInitConfig:
    """--init-config writes the defaults once."""

    def test_writes_default_config(self, tmp_path, capsys) -> None:
        path = tmp_path / "finder" / "config.json"

        assert cli.main(["--init-config", str(path)]) == cli.EXIT_OK

        data = json.loads(path.read_text())
        assert data["search"]["channel"] == "stable"
        assert data["search"]["max_age_days"] == 90
        assert str(path) in capsys.readouterr().out

    def test_refuses_to_overwrite(self, tmp_path) -> None:
        path = tmp_path / "config.json"
        path.write_text("{}")

        assert cli.main(["--init-config", str(path)]) == cli.EXIT_CONFIG_ERROR
        assert path.read_text() == "{}"


class TestFindToolchain:
    """A full search against a mocked distribution server."""

    def test_nightly_search_over_http(self) -> None:
        documents = {
            "/dist/channel-rust-nightly.toml": manifest_to_toml(
                build_manifest(ANCHOR, unavailable=[("clippy", "i686-pc-windows-msvc")])
            ),
            "/dist/2025-09-05/channel-rust-nightly.toml": manifest_to_toml(
                build_manifest(datetime.date(2025, 9, 5))
            ),
        }
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(request.url.path)
            content = documents.get(request.url.path)
            if content is None:
                return httpx.Response(404)
            return httpx.Response(200, content=content)

        config = SystemConfig()
        config.search.channel = Channel.NIGHTLY
        config.search.host_target = "x86_64-unknown-linux-gnu"

        label, outcome = asyncio.run(
            cli.find_toolchain(config, transport=httpx.MockTransport(handler))
        )

        assert label == "nightly-2025-09-05"
        assert outcome.date == datetime.date(2025, 9, 5)
        assert requested == [
            "/dist/channel-rust-nightly.toml",
            "/dist/2025-09-06/channel-rust-nightly.toml",
            "/dist/2025-09-05/channel-rust-nightly.toml",
        ]

    def test_stable_search_reports_version(self) -> None:
        document = manifest_to_toml(build_manifest(ANCHOR, channel=Channel.STABLE))

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=document)

        config = SystemConfig()
        config.search.host_target = "x86_64-unknown-linux-gnu"

        label, _ = asyncio.run(cli.find_toolchain(config, transport=httpx.MockTransport(handler)))

        assert label == "1.89.0"

    def test_huge_max_age_is_searched(self, monkeypatch, capsys) -> None:
        document = manifest_to_toml(build_manifest(ANCHOR, channel=Channel.STABLE))

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=document)

        real_find_toolchain = cli.find_toolchain

        async def find_toolchain(config, logger=None, transport=None):
            return await real_find_toolchain(
                config, logger=logger, transport=httpx.MockTransport(handler)
            )

        monkeypatch.setattr(cli, "find_toolchain", find_toolchain)

        exit_code = cli.main(["-a", "1000000", "--host", "x86_64-unknown-linux-gnu"])

        assert exit_code == cli.EXIT_OK
        assert capsys.readouterr().out == "1.89.0\n"
