"""LLM client implementations."""

from .anthropic import AnthropicClient
from .client import CompletionResponse, LLMClient, LLMError, Message, ToolCall, ToolResult
from .factory import create_llm_client

__all__ = [
    "AnthropicClient",
    "CompletionResponse",
    "LLMClient",
    "LLMError",
    "Message",
    "ToolCall",
    "ToolResult",
    "create_llm_client",
]
