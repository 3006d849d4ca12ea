"""Serialized execution of pool mutations."""

from replaydeck.runtime.ingestion import IngestionSerializer, RegexFilenameMatcher
from replaydeck.runtime.lane import SerialLane

__all__ = ["IngestionSerializer", "RegexFilenameMatcher", "SerialLane"]
