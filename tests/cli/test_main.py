"""Tests for the command-line entry point."""

from __future__ import annotations

import pytest

from cli import __main__ as entry
from cli.config import CLIConfig


class TestParseArgs:
    def test_defaults_match_config(self):
        config = entry.build_config(entry.parse_args([]))
        assert config == CLIConfig()

    def test_options_reach_config(self):
        args = entry.parse_args(
            [
                "--host", "tutor.local",
                "--port", "9001",
                "--api-path", "/v2/solve",
                "--connect-timeout", "2.5",
            ]
        )  # fmt: skip
        config = entry.build_config(args)
        assert config.solve_url == "http://tutor.local:9001/v2/solve"
        assert config.connect_timeout == 2.5
        assert args.debug is False

    def test_bad_port_exits(self):
        with pytest.raises(SystemExit):
            entry.parse_args(["--port", "http"])


class TestCliEntry:
    def test_runs_main_with_built_config(self, monkeypatch):
        seen = {}

        async def fake_main(config, debug=False):
            seen["config"] = config
            seen["debug"] = debug

        monkeypatch.setattr(entry, "main", fake_main)
        entry.cli_entry(["--port", "8123", "--debug"])

        assert seen["config"].port == 8123
        assert seen["debug"] is True

    def test_ctrl_c_exits_cleanly(self, monkeypatch):
        async def interrupted(config, debug=False):
            raise KeyboardInterrupt

        monkeypatch.setattr(entry, "main", interrupted)
        with pytest.raises(SystemExit) as excinfo:
            entry.cli_entry([])
        assert excinfo.value.code == 0
