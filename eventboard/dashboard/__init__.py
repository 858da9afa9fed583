"""Web UI for Eventboard.

Provides the event grid, search bar and add-event popup using FastAPI
and HTMX.
"""

from .app import create_app

__all__ = ["create_app"]
