"""External interactive editor launcher."""

from __future__ import annotations

import asyncio
import json
import logging
from importlib import resources
from pathlib import Path

from replaydeck.errors import ExternalToolError
from replaydeck.interfaces import EditorLauncher

logger = logging.getLogger(__name__)

_DEFAULT_SETTINGS_RESOURCE = "editor_settings.json"


def load_editor_settings(settings_file: Path | None = None) -> str:
    """Return the editor settings blob as compact JSON.

    Uses the bundled settings unless a file is given. The file must contain
    valid JSON.
    """
    if settings_file is None:
        raw = (
            resources.files("replaydeck.resources")
            .joinpath(_DEFAULT_SETTINGS_RESOURCE)
            .read_text(encoding="utf-8")
        )
    else:
        raw = settings_file.read_text(encoding="utf-8")
    return json.dumps(json.loads(raw), separators=(",", ":"))


class SubprocessEditorLauncher(EditorLauncher):
    """Runs `<program> --settings-json <blob> <media>` and waits for it to exit."""

    def __init__(self, program: str, settings_json: str) -> None:
        self.program = program
        self._settings_json = settings_json

    def build_command(self, media_path: Path) -> list[str]:
        return [self.program, "--settings-json", self._settings_json, str(media_path)]

    async def open(self, media_path: Path) -> None:
        cmd = self.build_command(media_path)
        logger.info("Starting editor: program=%s media=%s", self.program, media_path)
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as exc:
            raise ExternalToolError("editor", f"failed to start {self.program}: {exc}", exc) from exc

        returncode = await process.wait()
        if returncode != 0:
            raise ExternalToolError("editor", f"{self.program} exited with code {returncode}")
        logger.info("Editor exited: media=%s", media_path.name)
