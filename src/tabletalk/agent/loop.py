"""Step-bounded tool-calling loop."""

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from tabletalk.config.schema import MessagesConfig
from tabletalk.llm.client import CompletionResponse, LLMClient, LLMError, Message, ToolCall, ToolResult
from tabletalk.tools.catalog import get_tool_schemas, is_mutating
from tabletalk.tools.gateway import ToolGateway, format_tool_error, serialize_result
from tabletalk.tools.inputs import UnknownToolError

logger = logging.getLogger(__name__)


class LoopStatus(StrEnum):
    """Terminal state of one orchestration run."""

    FINISHED = "finished"  # LLM produced a final answer
    ABORTED = "aborted"  # Step or message cap reached
    SUSPENDED = "suspended"  # Mutating batch handed to the confirmation gate
    FAILED = "failed"  # Upstream LLM error


@dataclass
class LoopResult:
    """Outcome of :meth:`Orchestrator.run`."""

    status: LoopStatus
    text: str = ""
    steps: int = 0
    tools_executed: list[str] = field(default_factory=list)
    pending_calls: list[ToolCall] | None = None
    messages: list[Message] = field(default_factory=list)


class ConversationState:
    """Maintains the transcript for one orchestration run."""

    def __init__(self, system_prompt: str, history: list[Message] | None = None):
        """Initialize conversation state.

        Args:
            system_prompt: System message for the LLM
            history: Prior messages, oldest first
        """
        self.messages: list[Message] = [Message(role="system", content=system_prompt)]
        self.messages.extend(history or [])

    @property
    def length(self) -> int:
        """Number of conversation messages, not counting the system prompt."""
        return len(self.messages) - 1

    def add_assistant_message(self, response: CompletionResponse) -> None:
        """Add an assistant turn including its tool calls."""
        self.messages.append(
            Message(
                role="assistant",
                content=response.content,
                tool_calls=tuple(response.tool_calls or ()),
            )
        )

    def add_tool_results(self, results: list[ToolResult]) -> None:
        """Add every result of one batch as a single message."""
        self.messages.append(Message(role="tool", tool_results=tuple(results)))


class Orchestrator:
    """Alternates LLM calls and tool executions until a final answer.

    Each run is bounded by ``max_steps`` LLM invocations and
    ``max_messages`` transcript entries. A batch containing any mutating
    call is not executed: the run stops in the SUSPENDED state and hands the
    batch back so the caller can ask the user for confirmation.
    """

    def __init__(
        self,
        llm: LLMClient,
        gateway: ToolGateway,
        system_prompt: str,
        max_steps: int = 10,
        max_messages: int = 25,
        messages: MessagesConfig | None = None,
        tool_schemas: list[dict[str, Any]] | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            llm: LLM client for generating responses
            gateway: Tool gateway executing read-only calls
            system_prompt: System prompt for every LLM call
            max_steps: Maximum LLM invocations per run
            max_messages: Maximum transcript length per run
            messages: User-facing texts
            tool_schemas: Tool definitions (defaults to the full catalog)
        """
        self.llm = llm
        self.gateway = gateway
        self.system_prompt = system_prompt
        self.max_steps = max_steps
        self.max_messages = max_messages
        self.messages = messages or MessagesConfig()
        self.tool_schemas = tool_schemas if tool_schemas is not None else get_tool_schemas()

    async def run(self, history: list[Message]) -> LoopResult:
        """Drive the conversation until it finishes, suspends, fails or hits a cap.

        Args:
            history: Conversation so far, ending with the new user message

        Returns:
            LoopResult describing how the run ended

        Raises:
            UnknownToolError: If the LLM names a tool outside the dispatch table
        """
        state = ConversationState(self.system_prompt, history)
        tools_executed: list[str] = []
        steps = 0

        while steps < self.max_steps and state.length < self.max_messages:
            steps += 1
            logger.info("Step %d (%d messages)", steps, state.length)

            try:
                response = await self.llm.complete(messages=state.messages, tools=self.tool_schemas)
            except LLMError as e:
                logger.error("LLM call failed at step %d: %s", steps, e)
                return LoopResult(
                    status=LoopStatus.FAILED,
                    text=self.messages.llm_error.format(error=e),
                    steps=steps,
                    tools_executed=tools_executed,
                    messages=state.messages,
                )

            if not response.tool_calls:
                logger.info("Finished after %d steps", steps)
                return LoopResult(
                    status=LoopStatus.FINISHED,
                    text=response.content or "",
                    steps=steps,
                    tools_executed=tools_executed,
                    messages=state.messages,
                )

            state.add_assistant_message(response)
            calls = list(response.tool_calls)
            logger.info("Tool batch: %s", [call.name for call in calls])

            if any(is_mutating(call.name) for call in calls):
                return LoopResult(
                    status=LoopStatus.SUSPENDED,
                    steps=steps,
                    tools_executed=tools_executed,
                    pending_calls=calls,
                    messages=state.messages,
                )

            results = []
            for call in calls:
                tools_executed.append(call.name)
                results.append(await self._execute_tool_call(call))
            state.add_tool_results(results)

        logger.warning(
            "Safety cap reached (steps=%d, messages=%d), aborting", steps, state.length
        )
        return LoopResult(
            status=LoopStatus.ABORTED,
            steps=steps,
            tools_executed=tools_executed,
            messages=state.messages,
        )

    async def _execute_tool_call(self, call: ToolCall) -> ToolResult:
        """Execute one read-only call, capturing failures as an error result.

        Args:
            call: The tool call to execute

        Returns:
            Tool result correlated to the call
        """
        try:
            payload = await self.gateway.execute(call)
        except UnknownToolError:
            raise
        except Exception as e:
            logger.warning("Tool %s failed: %s", call.name, e)
            return ToolResult(tool_call_id=call.id, content=format_tool_error(e), is_error=True)

        return ToolResult(tool_call_id=call.id, content=serialize_result(payload))
