"""Tests for CLI module."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import yaml

from replaydeck import __version__
from replaydeck.cli import ReplayDeck, build_overrides, setup_logging
from replaydeck.config import ConfigError
from replaydeck.models.enums import ArtifactKind


def _write_config(tmp_path: Path) -> Path:
    config_path = tmp_path / "replaydeck.yaml"
    config_path.write_text(
        yaml.dump(
            {
                "version": 1,
                "input": {"dir": str(tmp_path)},
                "queue": {"dir": str(tmp_path / "queue"), "slots": 4},
                "export": {"transition": "FADE"},
            }
        )
    )
    return config_path


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_configures_logging_with_default_level(self) -> None:
        # Given/When: Calling setup_logging without a level
        with patch("replaydeck.cli.configure_logging") as mock_configure:
            setup_logging()

        # Then: configure_logging is called with WARNING
        mock_configure.assert_called_once_with(log_level="WARNING")

    def test_configures_logging_with_custom_level(self) -> None:
        with patch("replaydeck.cli.configure_logging") as mock_configure:
            setup_logging("DEBUG")

        mock_configure.assert_called_once_with(log_level="DEBUG")


class TestBuildOverrides:
    """Tests for mapping CLI flags onto config sections."""

    def test_only_given_flags_are_mapped(self) -> None:
        # Given/When: A few flags
        overrides = build_overrides(slots=5, port=8000, input_pattern="clip.+mp4")

        # Then: Only those keys appear, grouped by section
        assert overrides == {
            "queue": {"slots": 5},
            "server": {"port": 8000},
            "input": {"pattern": "clip.+mp4"},
        }

    def test_no_flags_means_no_overrides(self) -> None:
        assert build_overrides() == {}


class TestReplayDeckValidate:
    """Tests for validate command."""

    def test_validate_valid_config(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        # Given: A valid config file
        config_path = _write_config(tmp_path)

        # When: Validating the config with a port override
        cli = ReplayDeck()
        cli.validate(str(config_path), port=8000)

        # Then: Success message and resolved values are printed
        captured = capsys.readouterr()
        assert "✓ Config valid" in captured.out
        assert "(4 slots)" in captured.out
        assert "Transition: FADE" in captured.out
        assert "ws://127.0.0.1:8000/ws" in captured.out

    def test_validate_defaults_without_file(self, capsys: pytest.CaptureFixture[str]) -> None:
        cli = ReplayDeck()
        cli.validate()

        captured = capsys.readouterr()
        assert "✓ Config valid: (defaults)" in captured.out
        assert "(9 slots)" in captured.out

    def test_validate_invalid_config_exits(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        # Given: A config with an unknown transition
        config_path = tmp_path / "replaydeck.yaml"
        config_path.write_text(yaml.dump({"export": {"transition": "BOGUS"}}))

        # When/Then: Validating raises SystemExit
        cli = ReplayDeck()
        with pytest.raises(SystemExit) as exc_info:
            cli.validate(str(config_path))

        # Then: Exit code is 1 and error is printed
        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert "✗ Config invalid" in captured.err
        assert "transition" in captured.err

    def test_validate_nonexistent_config_exits(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        cli = ReplayDeck()
        with pytest.raises(SystemExit) as exc_info:
            cli.validate(str(tmp_path / "nonexistent.yaml"))

        assert exc_info.value.code == 1
        assert "✗ Config invalid" in capsys.readouterr().err


class TestReplayDeckRun:
    """Tests for run command."""

    def test_run_config_error_exits(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        # Given: Application.run raises ConfigError
        config_path = _write_config(tmp_path)
        mock_app = MagicMock()
        mock_app.run = AsyncMock(side_effect=ConfigError("Test error"))

        with (
            patch("replaydeck.cli.setup_logging"),
            patch("replaydeck.cli.Application", return_value=mock_app),
        ):
            # When/Then: Running raises SystemExit
            cli = ReplayDeck()
            with pytest.raises(SystemExit) as exc_info:
                cli.run(str(config_path))

        # Then: Exit code is 1 and error is printed
        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert "✗ Config invalid" in captured.err
        assert "Test error" in captured.err

    def test_run_startup_failure_exits(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        # Given: The input directory is missing at startup
        config_path = _write_config(tmp_path)
        mock_app = MagicMock()
        mock_app.run = AsyncMock(side_effect=FileNotFoundError("Input directory does not exist"))

        with (
            patch("replaydeck.cli.setup_logging"),
            patch("replaydeck.cli.Application", return_value=mock_app),
        ):
            cli = ReplayDeck()
            with pytest.raises(SystemExit) as exc_info:
                cli.run(str(config_path))

        assert exc_info.value.code == 1
        assert "✗ Startup failed" in capsys.readouterr().err

    def test_run_passes_overrides_and_handles_interrupt(self, tmp_path: Path) -> None:
        # Given: A config file and an Application interrupted by Ctrl-C
        config_path = _write_config(tmp_path)
        mock_app = MagicMock()
        mock_app.run = AsyncMock(side_effect=KeyboardInterrupt())

        with (
            patch("replaydeck.cli.setup_logging") as mock_setup,
            patch("replaydeck.cli.Application", return_value=mock_app) as mock_cls,
        ):
            # When: Running with CLI overrides
            cli = ReplayDeck()
            cli.run(str(config_path), slots=7, transition="wipe", log_level="DEBUG")

        # Then: Overrides reached the config and logging used DEBUG
        mock_setup.assert_called_once_with("DEBUG")
        cfg = mock_cls.call_args.args[0]
        assert cfg.queue.slots == 7
        assert cfg.export.transition == "WIPE"
        assert cfg.input.dir == tmp_path


class TestReplayDeckInspect:
    """Tests for read-only commands."""

    def test_slots_prints_disk_state(
        self,
        queue_dir: Path,
        put_artifact: Callable[..., Path],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        # Given: Slot 1 uncut and slot 2 cut
        put_artifact(1)
        put_artifact(2)
        put_artifact(2, ArtifactKind.CUT)

        # When: Listing three slots
        ReplayDeck().slots(str(queue_dir), slots=3)

        # Then: One line per slot
        assert capsys.readouterr().out.splitlines() == ["#01 uncut", "#02 cut", "#03 clear"]

    def test_transitions_lists_cycle_order(self, capsys: pytest.CaptureFixture[str]) -> None:
        ReplayDeck().transitions()

        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 12
        assert lines[0].startswith("CUTX")
        assert lines[1] == "PERL  dissolve 300ms"

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        ReplayDeck().version()

        assert capsys.readouterr().out.strip() == __version__
