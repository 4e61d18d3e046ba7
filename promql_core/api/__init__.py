"""HTTP API over the formatter service."""

from .server import app

__all__ = ["app"]
