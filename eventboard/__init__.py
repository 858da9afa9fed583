"""Eventboard: browse, filter and add events from a remote event service."""

__version__ = "0.1.0"
