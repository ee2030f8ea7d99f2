"""Tests for the service entry point."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest

from slice_search.config import ConfigurationError
from slice_search.main import main, parse_args
from tests.unit.conftest import build_settings

if TYPE_CHECKING:
    from pathlib import Path


@pytest.mark.unit
class TestParseArgs:
    """Tests for parse_args."""

    def test_defaults(self) -> None:
        """Without flags nothing is overridden."""
        args = parse_args([])

        assert args.config is None
        assert args.host is None
        assert args.port is None

    def test_overrides(self) -> None:
        """Flags are parsed with the right types."""
        args = parse_args(["--config", "alt.yaml", "--host", "127.0.0.1", "--port", "9001"])

        assert args.config == "alt.yaml"
        assert args.port == 9001


@pytest.mark.unit
class TestMain:
    """Tests for main."""

    def test_configuration_error_exits_1(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Invalid configuration is reported on stderr."""
        with patch(
            "slice_search.main.get_settings",
            side_effect=ConfigurationError("Configuration file not found: x.yaml"),
        ):
            assert main([]) == 1

        assert "FATAL: Configuration error" in capsys.readouterr().err

    def test_runs_uvicorn_with_overrides(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Command line host and port win over the config file."""
        monkeypatch.setenv("CONFIG_PATH", "config.yaml")
        settings = build_settings(tmp_path / "store")

        with (
            patch("slice_search.main.get_settings", return_value=settings),
            patch("slice_search.main.create_app") as create_app,
            patch("slice_search.main.uvicorn.run") as run,
        ):
            assert main(["--config", "alt.yaml", "--port", "9001"]) == 0

        run.assert_called_once()
        assert run.call_args.args[0] is create_app.return_value
        assert run.call_args.kwargs["host"] == "127.0.0.1"
        assert run.call_args.kwargs["port"] == 9001
        assert os.environ["CONFIG_PATH"] == "alt.yaml"
