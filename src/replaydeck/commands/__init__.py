"""Operator commands."""

from replaydeck.commands.orchestrator import CommandOrchestrator
from replaydeck.commands.validation import Command, parse_command

__all__ = ["Command", "CommandOrchestrator", "parse_command"]
