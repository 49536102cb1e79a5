"""Conversation orchestration.

- :class:`Orchestrator` runs the bounded LLM/tool loop
- :class:`ConfirmationGate` holds mutating batches for user approval
- :class:`ChatService` is the entry point combining both with session memory
"""

from .confirmation import ConfirmationGate, ReplyKind, classify_reply
from .finalizer import finalize_response
from .loop import ConversationState, LoopResult, LoopStatus, Orchestrator
from .replies import ChatReply
from .service import ChatService, build_service

__all__ = [
    "ChatReply",
    "ChatService",
    "ConfirmationGate",
    "ConversationState",
    "LoopResult",
    "LoopStatus",
    "Orchestrator",
    "ReplyKind",
    "build_service",
    "classify_reply",
    "finalize_response",
]
