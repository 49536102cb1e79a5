"""Factory function for creating the LLM client from configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tabletalk.config.loader import resolve_secret
from tabletalk.llm.anthropic import AnthropicClient

if TYPE_CHECKING:
    from tabletalk.config.schema import TabletalkConfig


def create_llm_client(config: TabletalkConfig) -> AnthropicClient:
    """Create the Anthropic client described by ``config``.

    Args:
        config: Tabletalk configuration.

    Returns:
        A configured AnthropicClient.

    Raises:
        ConfigError: If the API key is not available.
    """
    api_key = resolve_secret(
        config.credentials.llm_api_key_env,
        config.credentials.override_file,
    )
    return AnthropicClient(
        api_key=api_key,
        model=config.model.name,
        max_tokens=config.model.max_tokens,
        timeout=config.model.timeout,
        temperature=config.model.temperature,
    )
