"""HTTP API for triggering exports and polling their status."""

from .app import create_app

__all__ = ["create_app"]
