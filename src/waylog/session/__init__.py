"""Session state tracking."""

from waylog.session.state import SessionState
from waylog.session.tracker import SessionTracker, restore_from_disk

__all__ = ["SessionState", "SessionTracker", "restore_from_disk"]
