"""Manual-testing endpoints that call the data store without the LLM.

Disabled unless ``server.diagnostics_enabled`` is set. When
``server.diagnostics_key`` is configured, every request must carry it in
the ``x-test-key`` header.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from tabletalk.config.schema import TabletalkConfig
from tabletalk.tools.gateway import ToolGateway
from tabletalk.tools.inputs import (
    CreateRecordInput,
    FindOfficeInput,
    GetAllRecordsInput,
    SearchRecordsInput,
    SearchTransactionsInput,
    UpdateRecordInput,
)

logger = logging.getLogger(__name__)


class ListOfficesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    base_id: str | None = Field(default=None, alias="baseId")
    project_id: str = Field(alias="projectId")
    floor_number: int | float | str = Field(alias="floorNumber")


class DiagnosticsResponse(BaseModel):
    ok: bool = True
    out: Any = None
    count: int | None = None


def create_diagnostics_router(config: TabletalkConfig, gateway: ToolGateway) -> APIRouter:
    """Create the ``/test`` router.

    Args:
        config: Tabletalk configuration
        gateway: Tool gateway whose data-store operations are exposed

    Returns:
        Router guarded by the diagnostics key
    """

    async def verify_key(x_test_key: str | None = Header(default=None)) -> None:
        expected = config.server.diagnostics_key
        if expected and x_test_key != expected:
            raise HTTPException(status_code=403, detail="Forbidden: missing/invalid x-test-key")

    router = APIRouter(prefix="/test", dependencies=[Depends(verify_key)])

    async def run(label: str, coro: Any) -> Any:
        try:
            return await coro
        except Exception as e:
            logger.warning("Diagnostics %s failed: %s", label, e)
            raise HTTPException(status_code=400, detail=str(e)) from e

    @router.post("/search", response_model=DiagnosticsResponse)
    async def search(request: SearchRecordsInput) -> DiagnosticsResponse:
        return DiagnosticsResponse(out=await run("search", gateway.search_records(request)))

    @router.post("/search-transactions", response_model=DiagnosticsResponse)
    async def search_transactions(request: SearchTransactionsInput) -> DiagnosticsResponse:
        out = await run("search-transactions", gateway.search_transactions(request))
        return DiagnosticsResponse(out=out)

    @router.post("/list-offices", response_model=DiagnosticsResponse)
    async def list_offices(request: ListOfficesRequest) -> DiagnosticsResponse:
        out = await run(
            "list-offices",
            gateway.list_offices_on_floor(
                request.project_id, request.floor_number, base_id=request.base_id
            ),
        )
        return DiagnosticsResponse(out=out, count=len(out))

    @router.post("/find-office", response_model=DiagnosticsResponse)
    async def find_office(request: FindOfficeInput) -> DiagnosticsResponse:
        return DiagnosticsResponse(out=await run("find-office", gateway.find_office(request)))

    @router.post("/get-all", response_model=DiagnosticsResponse)
    async def get_all(request: GetAllRecordsInput) -> DiagnosticsResponse:
        out = await run("get-all", gateway.get_all_records(request))
        return DiagnosticsResponse(out=out[0] if out else None, count=len(out))

    @router.post("/create", response_model=DiagnosticsResponse)
    async def create(request: CreateRecordInput) -> DiagnosticsResponse:
        return DiagnosticsResponse(out=await run("create", gateway.create_record(request)))

    @router.post("/update", response_model=DiagnosticsResponse)
    async def update(request: UpdateRecordInput) -> DiagnosticsResponse:
        return DiagnosticsResponse(out=await run("update", gateway.update_record(request)))

    return router
