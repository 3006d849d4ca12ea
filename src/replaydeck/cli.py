"""CLI entrypoint for the ReplayDeck application."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()

import fire  # type: ignore[import-untyped]

from replaydeck import __version__
from replaydeck.app import Application
from replaydeck.config import ConfigError, load_config
from replaydeck.logging_setup import configure_logging
from replaydeck.models.config import Config
from replaydeck.models.transitions import TRANSITIONS
from replaydeck.pool.manager import SlotPool


def setup_logging(level: str = "WARNING") -> None:
    """Configure logging for CLI."""
    configure_logging(log_level=level)


def build_overrides(
    *,
    input: str | None = None,
    input_pattern: str | None = None,
    queue: str | None = None,
    slots: int | None = None,
    output: str | None = None,
    editor: str | None = None,
    transition: str | None = None,
    host: str | None = None,
    port: int | None = None,
) -> dict[str, dict[str, Any]]:
    """Map CLI flags onto config sections, skipping flags that were not given."""
    flags: dict[tuple[str, str], Any] = {
        ("input", "dir"): input,
        ("input", "pattern"): input_pattern,
        ("queue", "dir"): queue,
        ("queue", "slots"): slots,
        ("output", "path"): output,
        ("editor", "program"): editor,
        ("export", "transition"): transition,
        ("server", "host"): host,
        ("server", "port"): port,
    }
    overrides: dict[str, dict[str, Any]] = {}
    for (section, key), value in flags.items():
        if value is not None:
            overrides.setdefault(section, {})[key] = value
    return overrides


def _config_path(config: str | None) -> Path | None:
    return Path(config) if config else None


def _describe(cfg: Config) -> list[str]:
    return [
        f"  Input: {cfg.input.dir} (pattern {cfg.input.pattern!r})",
        f"  Queue: {cfg.queue.dir} ({cfg.queue.slots} slots)",
        f"  Output: {cfg.output.path}",
        f"  Editor: {cfg.editor.program}",
        f"  Transition: {cfg.export.transition}",
        f"  Control endpoint: ws://{cfg.server.host}:{cfg.server.port}/ws",
    ]


class ReplayDeck:
    """ReplayDeck CLI - replay slot pool and export controller."""

    def run(
        self,
        config: str | None = None,
        input: str | None = None,
        input_pattern: str | None = None,
        queue: str | None = None,
        slots: int | None = None,
        output: str | None = None,
        editor: str | None = None,
        transition: str | None = None,
        host: str | None = None,
        port: int | None = None,
        log_level: str = "WARNING",
    ) -> None:
        """Watch the input directory and serve the control endpoint.

        Args:
            config: Optional path to YAML config file
            input: Directory of incoming replay files
            input_pattern: Regular expression for replay file names
            queue: Queue directory holding the slot files
            slots: Number of slots
            output: Path of the exported video
            editor: Path of the interactive editor program
            transition: Initial transition id
            host: Control endpoint bind address
            port: Control endpoint port
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR, NONE)
        """
        setup_logging(log_level)

        overrides = build_overrides(
            input=input,
            input_pattern=input_pattern,
            queue=queue,
            slots=slots,
            output=output,
            editor=editor,
            transition=transition,
            host=host,
            port=port,
        )
        try:
            cfg = load_config(_config_path(config), overrides)
            app = Application(cfg)
            asyncio.run(app.run())
        except ConfigError as e:
            print(f"✗ Config invalid: {e}", file=sys.stderr)
            sys.exit(1)
        except (OSError, RuntimeError, TimeoutError) as e:
            print(f"✗ Startup failed: {e}", file=sys.stderr)
            sys.exit(1)
        except KeyboardInterrupt:
            pass  # Handled by signal handlers

    def validate(
        self,
        config: str | None = None,
        input: str | None = None,
        input_pattern: str | None = None,
        queue: str | None = None,
        slots: int | None = None,
        output: str | None = None,
        editor: str | None = None,
        transition: str | None = None,
        host: str | None = None,
        port: int | None = None,
    ) -> None:
        """Resolve and validate the configuration without running.

        Args:
            config: Optional path to YAML config file
        """
        overrides = build_overrides(
            input=input,
            input_pattern=input_pattern,
            queue=queue,
            slots=slots,
            output=output,
            editor=editor,
            transition=transition,
            host=host,
            port=port,
        )
        try:
            cfg = load_config(_config_path(config), overrides)
        except ConfigError as e:
            print(f"✗ Config invalid: {e}", file=sys.stderr)
            sys.exit(1)

        print(f"✓ Config valid: {config or '(defaults)'}")
        for line in _describe(cfg):
            print(line)

    def slots(self, queue: str = ".", slots: int = 9) -> None:
        """Print the state of each slot as found on disk.

        Args:
            queue: Queue directory holding the slot files
            slots: Number of slots
        """
        pool = SlotPool(Path(queue), slots)
        for index, state in enumerate(pool.refresh_state(), start=1):
            print(f"#{index:02d} {state}")

    def transitions(self) -> None:
        """List transition ids in cycling order."""
        for descriptor in TRANSITIONS:
            print(f"{descriptor.id}  {descriptor.effect} {descriptor.duration_ms}ms")

    def version(self) -> None:
        """Print the installed version."""
        print(__version__)


def main() -> None:
    """Main CLI entrypoint."""
    # Strip --help/-h when it's the only arg so Fire shows its commands list
    if len(sys.argv) == 2 and sys.argv[1] in ("--help", "-h"):
        sys.argv.pop()
    fire.Fire(ReplayDeck)


if __name__ == "__main__":
    main()
