"""API routes for the Tabletalk server."""

import logging
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tabletalk import __version__
from tabletalk.agent.replies import ChatReply
from tabletalk.agent.service import ChatService
from tabletalk.config.schema import TabletalkConfig

logger = logging.getLogger(__name__)

DEFAULT_SENDER = "default"


class QueryRequest(BaseModel):
    """Request body for the query endpoint."""

    message: str = Field(min_length=1)
    sender: str = DEFAULT_SENDER


class ClearMemoryRequest(BaseModel):
    """Request body for the clear-memory endpoint."""

    sender: str = DEFAULT_SENDER


class ClearMemoryResponse(BaseModel):
    """Response body for the clear-memory endpoint."""

    success: bool
    message: str


class MemoryResponse(BaseModel):
    """Snapshot of one sender's memory."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    sender: str
    history_length: int
    history: list[dict[str, Any]]
    has_pending_action: bool


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    model: str
    version: str


class DataStoreCheckResponse(BaseModel):
    """Result of the data-store connectivity check."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    message: str | None = None
    sample_record: dict[str, Any] | None = None
    error: str | None = None


def create_router(config: TabletalkConfig, service: ChatService) -> APIRouter:
    """Create API router around a chat service.

    Args:
        config: Tabletalk configuration
        service: Chat service handling messages

    Returns:
        Configured API router
    """
    router = APIRouter()

    @router.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy", model=config.model.name, version=__version__)

    @router.post("/query", response_model=ChatReply, response_model_exclude_none=True)
    async def query(request: QueryRequest) -> ChatReply:
        """Handle one natural-language message.

        Failures are reported in the body (``success: false``), never as 5xx.
        """
        return await service.handle_message(request.sender, request.message)

    @router.post("/clear-memory", response_model=ClearMemoryResponse)
    async def clear_memory(request: ClearMemoryRequest) -> ClearMemoryResponse:
        """Forget a sender's history and pending action."""
        service.clear_session(request.sender)
        return ClearMemoryResponse(success=True, message=f"Memory cleared for {request.sender}")

    @router.get("/memory", response_model=MemoryResponse)
    @router.get("/memory/{sender}", response_model=MemoryResponse)
    async def memory(sender: str = DEFAULT_SENDER) -> MemoryResponse:
        """Inspect a sender's history and pending state."""
        return MemoryResponse(sender=sender, **service.inspect_session(sender))

    @router.get(
        "/check-datastore", response_model=DataStoreCheckResponse, response_model_exclude_none=True
    )
    async def check_datastore() -> DataStoreCheckResponse:
        """Fetch one project record to verify data-store connectivity."""
        datastore = service.orchestrator.gateway.datastore
        try:
            records = await datastore.get_all("projects", max_records=1)
        except Exception as e:
            logger.error("Data-store check failed: %s", e)
            return DataStoreCheckResponse(success=False, error=str(e))

        return DataStoreCheckResponse(
            success=True,
            message="✅ Connection OK",
            sample_record=records[0] if records else None,
        )

    return router
