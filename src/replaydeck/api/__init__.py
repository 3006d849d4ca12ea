"""FastAPI control endpoint."""

from replaydeck.api.server import APIServer, create_app

__all__ = ["APIServer", "create_app"]
