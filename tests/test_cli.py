"""Tests for the command-line entry point."""

from __future__ import annotations

import textwrap
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from extfilter_exporter import __version__
from extfilter_exporter.cli import _build_parser, main


class TestParser:
    def test_defaults_are_none(self) -> None:
        args = _build_parser().parse_args([])
        assert args.listen_address is None
        assert args.telemetry_path is None
        assert args.stats_path is None
        assert args.config is None
        assert args.log_level is None

    def test_dotted_flags(self) -> None:
        args = _build_parser().parse_args(
            [
                "--web.listen-address", ":9600",
                "--web.telemetry-path", "/m",
                "--extfilter.stats-path", "/tmp/stats",
            ]
        )
        assert args.listen_address == ":9600"
        assert args.telemetry_path == "/m"
        assert args.stats_path == Path("/tmp/stats")

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as excinfo:
            _build_parser().parse_args(["--version"])
        assert excinfo.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestMain:
    @pytest.fixture(autouse=True)
    def _no_default_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            "extfilter_exporter.config._DEFAULT_CONFIG_PATH",
            Path("/nonexistent/path/config.toml"),
        )

    def test_missing_stats_path_exits(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main([])
        assert excinfo.value.code == 1
        assert "stats file is not provided" in capsys.readouterr().err

    def test_bad_config_exits(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["--config", str(tmp_path / "missing.toml")])
        assert excinfo.value.code == 1
        assert "Cannot read config file" in capsys.readouterr().err

    def test_bad_listen_address_exits(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["--extfilter.stats-path", "/tmp/stats", "--web.listen-address", "nope"])
        assert excinfo.value.code == 1
        assert "Invalid command-line option" in capsys.readouterr().err

    def test_starts_and_stops_server(self, tmp_path: Path) -> None:
        config = tmp_path / "config.toml"
        config.write_text(
            textwrap.dedent(
                """\
                [web]
                listen_address = "127.0.0.1:9600"
                telemetry_path = "/extfilter"
                """
            )
        )
        server = MagicMock()
        with patch("extfilter_exporter.server.MetricsServer", return_value=server) as cls, \
                patch("extfilter_exporter.cli._wait_for_shutdown") as wait:
            main(["--config", str(config), "--extfilter.stats-path", str(tmp_path / "s")])

        host, port, _app = cls.call_args.args
        assert (host, port) == ("127.0.0.1", 9600)
        server.start.assert_called_once()
        wait.assert_called_once()
        server.stop.assert_called_once()

    def test_bind_failure_exits(self, tmp_path: Path) -> None:
        with patch(
            "extfilter_exporter.server.MetricsServer",
            side_effect=OSError("Address already in use"),
        ), pytest.raises(SystemExit) as excinfo:
            main(["--extfilter.stats-path", str(tmp_path / "s")])
        assert excinfo.value.code == 1
