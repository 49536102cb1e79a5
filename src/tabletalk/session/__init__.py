"""Per-sender conversation memory."""

from .store import PendingAction, Session, SessionStore

__all__ = ["PendingAction", "Session", "SessionStore"]
