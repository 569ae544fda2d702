"""Storage module."""

from .cursor_store import CursorStore, ICursorStore

__all__ = ["CursorStore", "ICursorStore"]
