"""
ghexport - GitHub issues and pull requests exporter.

Pages through the GitHub GraphQL API, writes complete JSON snapshots,
and tracks each export as an asynchronous operation that can be polled.
"""

__version__ = "0.1.0"
__app_name__ = "ghexport"
