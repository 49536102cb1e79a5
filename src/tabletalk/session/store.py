"""In-memory per-sender conversation state with TTL eviction."""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from tabletalk.llm.client import Message, ToolCall

logger = logging.getLogger(__name__)

DEFAULT_MAX_HISTORY = 15
DEFAULT_TTL_SECONDS = 30 * 60
DEFAULT_SWEEP_INTERVAL_SECONDS = 10 * 60


@dataclass
class Session:
    """Conversation history for one sender."""

    history: list[Message] = field(default_factory=list)
    last_access: float = 0.0


@dataclass(frozen=True)
class PendingAction:
    """A batch of tool calls waiting for the sender's approval."""

    tool_calls: tuple[ToolCall, ...]
    original_message: str
    created_at: float


class SessionStore:
    """Owns every sender's session and pending action.

    All state is process-local. Sessions are created lazily on first
    access and evicted by :meth:`sweep` once idle for longer than the TTL;
    pending actions expire on the same TTL measured from their creation.
    Mutations happen on a single event loop, so no locking is needed.
    """

    def __init__(
        self,
        max_history: int = DEFAULT_MAX_HISTORY,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the store.

        Args:
            max_history: Messages kept per sender (oldest dropped first)
            ttl_seconds: Idle time after which state is evicted
            sweep_interval_seconds: Delay between background sweeps
            clock: Time source returning seconds, injectable for tests
        """
        self.max_history = max_history
        self.ttl_seconds = ttl_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._pending: dict[str, PendingAction] = {}
        self._sweep_task: asyncio.Task[None] | None = None

    def _session(self, sender: str) -> Session:
        session = self._sessions.get(sender)
        if session is None:
            session = self._sessions[sender] = Session()
        session.last_access = self._clock()
        return session

    def get_history(self, sender: str) -> list[Message]:
        """Return a copy of the sender's history, creating the session if needed."""
        return list(self._session(sender).history)

    def append(self, sender: str, role: str, content: str) -> None:
        """Append one message, dropping the oldest beyond ``max_history``."""
        history = self._session(sender).history
        history.append(Message(role=role, content=content))
        if len(history) > self.max_history:
            del history[: len(history) - self.max_history]

    def clear(self, sender: str) -> None:
        """Forget the sender's session and pending action."""
        self._sessions.pop(sender, None)
        self._pending.pop(sender, None)

    def has_pending(self, sender: str) -> bool:
        return sender in self._pending

    def get_pending(self, sender: str) -> PendingAction | None:
        return self._pending.get(sender)

    def set_pending(
        self, sender: str, tool_calls: list[ToolCall], original_message: str
    ) -> PendingAction:
        """Store a pending action for the sender, replacing any previous one."""
        action = PendingAction(
            tool_calls=tuple(tool_calls),
            original_message=original_message,
            created_at=self._clock(),
        )
        self._pending[sender] = action
        return action

    def clear_pending(self, sender: str) -> None:
        self._pending.pop(sender, None)

    def inspect(self, sender: str) -> dict[str, Any]:
        """Snapshot of the sender's state for diagnostics."""
        history = self.get_history(sender)
        return {
            "history_length": len(history),
            "history": [{"role": m.role, "content": m.content} for m in history],
            "has_pending_action": self.has_pending(sender),
        }

    def sweep(self, now: float | None = None) -> int:
        """Evict sessions and pending actions older than the TTL.

        Args:
            now: Reference time (defaults to the store clock)

        Returns:
            Number of evicted entries
        """
        if now is None:
            now = self._clock()

        stale_sessions = [
            sender
            for sender, session in list(self._sessions.items())
            if now - session.last_access > self.ttl_seconds
        ]
        for sender in stale_sessions:
            del self._sessions[sender]
            logger.info("Evicted idle session for %s", sender)

        stale_pending = [
            sender
            for sender, action in list(self._pending.items())
            if now - action.created_at > self.ttl_seconds
        ]
        for sender in stale_pending:
            del self._pending[sender]
            logger.info("Evicted stale pending action for %s", sender)

        return len(stale_sessions) + len(stale_pending)

    def start_sweeper(self) -> None:
        """Start the periodic background sweep on the running event loop."""
        if self._sweep_task and not self._sweep_task.done():
            return  # Already running

        async def sweeper() -> None:
            while True:
                await asyncio.sleep(self.sweep_interval_seconds)
                self.sweep()

        self._sweep_task = asyncio.create_task(sweeper())

    async def stop_sweeper(self) -> None:
        """Stop the background sweep."""
        if self._sweep_task and not self._sweep_task.done():
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
        self._sweep_task = None

    @property
    def sweeper_running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()
