"""Human confirmation for mutating tool calls.

Any batch that creates or updates a record is parked as a pending action
and summarized back to the user. The next message from that sender is then
classified as an approval, a rejection, a fresh request or an unclear reply,
and the gate acts accordingly before normal orchestration resumes.
"""

import json
import logging
from enum import StrEnum

from tabletalk.agent.replies import ChatReply
from tabletalk.config.schema import ConfirmationConfig, MessagesConfig
from tabletalk.datastore.tables import TableResolver
from tabletalk.llm.client import ToolCall
from tabletalk.session.store import SessionStore
from tabletalk.tools.catalog import is_mutating
from tabletalk.tools.gateway import ToolGateway
from tabletalk.tools.inputs import parse_tool_input

logger = logging.getLogger(__name__)


class ReplyKind(StrEnum):
    """How a reply to a pending confirmation is interpreted."""

    AFFIRMATIVE = "affirmative"  # Run the pending batch
    NEGATIVE = "negative"  # Drop the pending batch
    NEW_REQUEST = "new_request"  # Drop the batch and treat the text as a new turn
    AMBIGUOUS = "ambiguous"  # Keep waiting for yes/cancel


def _contains_any(text: str, tokens: list[str]) -> bool:
    return any(token.lower() in text for token in tokens if token)


def classify_reply(text: str, keywords: ConfirmationConfig) -> ReplyKind:
    """Classify a reply by case-insensitive keyword containment.

    Affirmative tokens win over negative ones, which win over new-request
    tokens. This is a heuristic: false positives are expected.
    """
    lowered = (text or "").lower()
    if _contains_any(lowered, keywords.affirmative):
        return ReplyKind.AFFIRMATIVE
    if _contains_any(lowered, keywords.negative):
        return ReplyKind.NEGATIVE
    if _contains_any(lowered, keywords.new_request):
        return ReplyKind.NEW_REQUEST
    return ReplyKind.AMBIGUOUS


class ConfirmationGate:
    """Holds mutating tool batches until the sender approves them."""

    def __init__(
        self,
        store: SessionStore,
        gateway: ToolGateway,
        tables: TableResolver,
        messages: MessagesConfig | None = None,
        keywords: ConfirmationConfig | None = None,
    ):
        self.store = store
        self.gateway = gateway
        self.tables = tables
        self.messages = messages or MessagesConfig()
        self.keywords = keywords or ConfirmationConfig()

    @staticmethod
    def requires_confirmation(tool_calls: list[ToolCall]) -> bool:
        """Check whether any call in the batch mutates a record."""
        return any(is_mutating(call.name) for call in tool_calls)

    def describe(self, tool_calls: list[ToolCall] | tuple[ToolCall, ...]) -> str:
        """Human-readable summary of a batch awaiting approval."""
        lines = [self.messages.confirm_header, ""]
        for call in tool_calls:
            args = call.arguments or {}
            fields = args.get("fields") or {}
            if call.name == "create_record":
                label = self.tables.label(args.get("tableId"))
                lines.append(f"🆕 **Create new {label}**")
            elif call.name == "update_record":
                lines.append("🔄 **Update record**")
                lines.append(f"   🆔 Record ID: {args.get('recordId')}")
            else:
                lines.append(f"🔍 {call.name}")
                fields = {}
            if isinstance(fields, dict):
                for name, value in fields.items():
                    lines.append(f"   📝 {name}: {json.dumps(value, ensure_ascii=False)}")
            else:
                lines.append(f"   📝 {json.dumps(fields, ensure_ascii=False)}")
            lines.append("")
        lines.append(self.messages.confirm_question)
        return "\n".join(lines)

    def request_approval(
        self, sender: str, tool_calls: list[ToolCall], original_message: str
    ) -> ChatReply:
        """Park the batch as the sender's pending action and ask for approval.

        Every call is validated and the summary built before anything is
        stored, so a malformed batch never becomes a pending action.

        Raises:
            UnknownToolError: If a call names a tool outside the catalog
            pydantic.ValidationError: If a call's arguments are malformed
        """
        for call in tool_calls:
            parse_tool_input(call.name, call.arguments)
        summary = self.describe(tool_calls)

        self.store.set_pending(sender, tool_calls, original_message)
        logger.info(
            "Awaiting approval from %s for %s", sender, [call.name for call in tool_calls]
        )
        return ChatReply(response=summary, needs_confirmation=True)

    async def resolve(self, sender: str, text: str) -> ChatReply | None:
        """Resolve the sender's pending action against an inbound message.

        Args:
            sender: Sender identifier
            text: Inbound message

        Returns:
            The reply to send, or None when the message should continue to
            the orchestration loop (no pending action, or a new request)
        """
        action = self.store.get_pending(sender)
        if action is None:
            return None

        kind = classify_reply(text, self.keywords)
        logger.info("Reply from %s to pending action classified as %s", sender, kind)

        if kind is ReplyKind.AFFIRMATIVE:
            # Cleared up front: a half-applied batch is never replayed
            self.store.clear_pending(sender)
            for call in action.tool_calls:
                try:
                    await self.gateway.execute(call)
                except Exception as e:
                    logger.error("Approved tool %s failed for %s: %s", call.name, sender, e)
                    return ChatReply(
                        success=False,
                        response=self.messages.action_failed.format(error=e),
                    )
                logger.info("Approved tool %s completed", call.name)
            return ChatReply(response=self.messages.action_completed, action_completed=True)

        if kind is ReplyKind.NEGATIVE:
            self.store.clear_pending(sender)
            return ChatReply(response=self.messages.action_cancelled, action_cancelled=True)

        if kind is ReplyKind.AMBIGUOUS:
            return ChatReply(response=self.messages.clarification, needs_clarification=True)

        self.store.clear_pending(sender)
        return None
