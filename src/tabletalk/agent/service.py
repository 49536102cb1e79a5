"""Chat service: the single entry point for inbound messages."""

import logging
from typing import Any

from tabletalk.agent.confirmation import ConfirmationGate
from tabletalk.agent.finalizer import finalize_response
from tabletalk.agent.loop import LoopStatus, Orchestrator
from tabletalk.agent.prompts import build_system_prompt
from tabletalk.agent.replies import ChatReply
from tabletalk.config.schema import MessagesConfig, TabletalkConfig
from tabletalk.datastore import DataStoreClient, TableResolver, create_datastore_client
from tabletalk.llm.client import LLMClient
from tabletalk.llm.factory import create_llm_client
from tabletalk.session.store import SessionStore
from tabletalk.tools.gateway import ToolGateway

logger = logging.getLogger(__name__)


class ChatService:
    """Routes a message through the confirmation gate and the orchestration loop."""

    def __init__(
        self,
        store: SessionStore,
        gate: ConfirmationGate,
        orchestrator: Orchestrator,
        messages: MessagesConfig | None = None,
    ):
        self.store = store
        self.gate = gate
        self.orchestrator = orchestrator
        self.messages = messages or MessagesConfig()

    async def handle_message(self, sender: str, text: str) -> ChatReply:
        """Handle one inbound message from ``sender``.

        A pending confirmation is resolved first. Otherwise the message is
        added to the sender's history and the loop runs; a mutating batch
        suspends the loop and becomes a confirmation request.

        Never raises: unexpected faults come back as ``success=False``.
        """
        logger.info("Message from %s: %s", sender, text)
        try:
            reply = await self.gate.resolve(sender, text)
            if reply is not None:
                return reply

            self.store.append(sender, "user", text)
            result = await self.orchestrator.run(self.store.get_history(sender))

            if result.status is LoopStatus.SUSPENDED:
                return self.gate.request_approval(sender, result.pending_calls or [], text)

            response = finalize_response(result, self.messages)
            self.store.append(sender, "assistant", response)
            logger.info(
                "Replied to %s after %d steps (%s), tools: %s",
                sender,
                result.steps,
                result.status,
                ", ".join(result.tools_executed),
            )
            return ChatReply(
                response=response,
                tools_executed=result.tools_executed,
                steps=result.steps,
            )
        except Exception as e:
            logger.exception("Unhandled error while handling message from %s", sender)
            return ChatReply(success=False, error=str(e))

    def clear_session(self, sender: str) -> None:
        """Forget the sender's history and pending action."""
        self.store.clear(sender)
        logger.info("Cleared memory for %s", sender)

    def inspect_session(self, sender: str) -> dict[str, Any]:
        """Snapshot of the sender's history and pending state."""
        return self.store.inspect(sender)

    async def close(self) -> None:
        """Close the HTTP clients behind the LLM and the data store."""
        for client in (self.orchestrator.llm, self.orchestrator.gateway.datastore):
            close = getattr(client, "close", None)
            if close is not None:
                await close()


def build_service(
    config: TabletalkConfig,
    llm: LLMClient | None = None,
    datastore: DataStoreClient | None = None,
    store: SessionStore | None = None,
) -> ChatService:
    """Wire a ChatService from configuration.

    Clients not passed in are created from ``config``, which reads their
    API keys and raises ConfigError when one is missing.

    Args:
        config: Tabletalk configuration
        llm: Optional LLM client override
        datastore: Optional data-store client override
        store: Optional session store override

    Returns:
        Ready-to-use ChatService
    """
    tables = TableResolver(config.tables)
    if datastore is None:
        datastore = create_datastore_client(config, tables)
    if llm is None:
        llm = create_llm_client(config)
    if store is None:
        store = SessionStore(
            max_history=config.memory.max_history,
            ttl_seconds=config.memory.ttl_seconds,
            sweep_interval_seconds=config.memory.sweep_interval_seconds,
        )

    gateway = ToolGateway(datastore, tables)
    gate = ConfirmationGate(
        store,
        gateway,
        tables,
        messages=config.messages,
        keywords=config.confirmation,
    )
    orchestrator = Orchestrator(
        llm=llm,
        gateway=gateway,
        system_prompt=build_system_prompt(config),
        max_steps=config.agent.max_steps,
        max_messages=config.agent.max_messages,
        messages=config.messages,
    )
    return ChatService(store, gate, orchestrator, messages=config.messages)
