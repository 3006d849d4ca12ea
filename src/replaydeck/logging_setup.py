from __future__ import annotations

import json
import logging
import logging.config
import os

_STANDARD_LOGRECORD_ATTRS = {
    "name",
    "msg",
    "message",
    "asctime",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
}

# "none" silences everything but fatal errors.
_LEVEL_ALIASES = {"NONE": "CRITICAL", "WARN": "WARNING"}

DEFAULT_CONSOLE_FORMAT = (
    "%(asctime)s %(levelname)s [slot %(slot)s] %(module)s:%(lineno)d %(message)s"
)


class _SlotFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "slot") or getattr(record, "slot") in (None, ""):
            record.slot = "-"
        return True


class _JsonExtraFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = _extract_extras(record)
        if not extras:
            return base
        extras_json = json.dumps(extras, indent=2, default=str, sort_keys=True)
        return f"{base}\n{extras_json}"


def _extract_extras(record: logging.LogRecord) -> dict[str, object]:
    extras: dict[str, object] = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_LOGRECORD_ATTRS or key == "slot":
            continue
        extras[key] = value
    return extras


def normalize_level(log_level: str) -> str:
    name = str(log_level).upper()
    name = _LEVEL_ALIASES.get(name, name)
    if name not in logging.getLevelNamesMapping():
        raise ValueError(f"Unknown log level: {log_level}")
    return name


def _install_slot_filter() -> None:
    root = logging.getLogger()
    for handler in root.handlers:
        if any(isinstance(f, _SlotFilter) for f in handler.filters):
            continue
        handler.addFilter(_SlotFilter())


def configure_logging(*, log_level: str = "WARNING") -> None:
    """Configure root logging with a consistent format.

    Records carry the affected `slot` (or `-`); other `extra=` fields are
    appended as JSON. `CONSOLE_LOG_FORMAT` overrides the line format.
    """
    console_level_name = normalize_level(log_level)
    console_fmt = os.getenv("CONSOLE_LOG_FORMAT", DEFAULT_CONSOLE_FORMAT)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "()": "replaydeck.logging_setup._JsonExtraFormatter",
                    "format": console_fmt,
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": console_level_name,
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                }
            },
            "root": {"level": "DEBUG", "handlers": ["console"]},
        }
    )

    _install_slot_filter()
    logging.captureWarnings(True)

    # Uvicorn access lines are noise next to command logs.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
