"""Reply model returned by the chat service."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ChatReply(BaseModel):
    """Outcome of handling one inbound message.

    Only ``success`` is always set; the flags describe which branch of the
    confirmation protocol produced the reply. Serialized with camelCase
    aliases (``needsConfirmation``...) for HTTP clients.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    response: str | None = None
    tools_executed: list[str] | None = None
    steps: int | None = None
    needs_confirmation: bool | None = None
    action_completed: bool | None = None
    action_cancelled: bool | None = None
    needs_clarification: bool | None = None
    error: str | None = None
