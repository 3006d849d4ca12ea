"""Protocol-boundary validation of inbound command messages."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from replaydeck.errors import CommandValidationError
from replaydeck.models.enums import CommandName
from replaydeck.models.state import CommandRequest


@dataclass(frozen=True)
class Command:
    """A command that passed boundary validation."""

    name: CommandName
    slot: int = 0


def parse_command(payload: Any, capacity: int) -> Command:
    """Validate a `{cmd, slot}` payload against the pool capacity.

    Accepts a decoded mapping, a JSON string, or a `CommandRequest`.
    EDIT/CLEAR need `slot` in 1..capacity, every other command needs `slot == 0`.

    Raises:
        CommandValidationError: If the payload is malformed or the command/slot
            combination is not recognized
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as exc:
            raise CommandValidationError("invalid request: payload is not valid JSON") from exc

    if isinstance(payload, CommandRequest):
        request = payload
    else:
        if not isinstance(payload, dict):
            raise CommandValidationError("invalid request")
        try:
            request = CommandRequest.model_validate(payload)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(x) for x in err['loc'])}: {err['msg']}" for err in exc.errors()
            )
            raise CommandValidationError(f"invalid request: {problems}") from exc

    try:
        name = CommandName(request.cmd)
    except ValueError:
        raise CommandValidationError("invalid command in request") from None

    if name.targets_slot:
        if not 1 <= request.slot <= capacity:
            raise CommandValidationError("invalid command in request")
    elif request.slot != 0:
        raise CommandValidationError("invalid command in request")

    return Command(name=name, slot=request.slot)
