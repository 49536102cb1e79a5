"""Guarantees a non-empty user-facing response for every loop outcome."""

from tabletalk.agent.loop import LoopResult, LoopStatus
from tabletalk.config.schema import MessagesConfig


def finalize_response(result: LoopResult, messages: MessagesConfig) -> str:
    """Pick the text to send back for a finished, aborted or failed run.

    Args:
        result: Outcome of the orchestration loop
        messages: User-facing texts

    Returns:
        Non-empty response text
    """
    text = (result.text or "").strip()
    if text:
        return result.text

    if result.status is LoopStatus.ABORTED:
        return messages.partial_success if result.tools_executed else messages.retry_request

    return messages.done if result.tools_executed else messages.not_understood
