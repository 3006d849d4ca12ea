"""External editor and video assembler adapters."""

from replaydeck.tools.assembler import FfmpegAssembler
from replaydeck.tools.editor import SubprocessEditorLauncher, load_editor_settings

__all__ = ["FfmpegAssembler", "SubprocessEditorLauncher", "load_editor_settings"]
