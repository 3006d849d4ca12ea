"""Input source implementations."""

from replaydeck.sources.input_folder import InputFolderSource

__all__ = ["InputFolderSource"]
