"""CLI command modules."""

from . import config, export, serve

__all__ = [
    "config",
    "export",
    "serve",
]
