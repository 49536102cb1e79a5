"""Typed tool inputs.

Each tool in the catalog has one pydantic model validating the arguments
the LLM sent. Field aliases keep the camelCase names exposed in the tool
schemas (``tableId``, ``recordId``...), while Python code uses snake_case.
"""

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field


class UnknownToolError(LookupError):
    """Raised when a tool name has no entry in the dispatch table."""


class ToolInput(BaseModel):
    """Common base for tool inputs."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    tool_name: ClassVar[str]

    base_id: str | None = Field(default=None, alias="baseId")


class SearchRecordsInput(ToolInput):
    tool_name: ClassVar[str] = "search_records"

    table_id: str = Field(alias="tableId")
    search_term: str = Field(alias="searchTerm")


class SearchTransactionsInput(ToolInput):
    tool_name: ClassVar[str] = "search_transactions"

    customer_id: str = Field(alias="customerId")
    project_id: str = Field(alias="projectId")


class GetAllRecordsInput(ToolInput):
    tool_name: ClassVar[str] = "get_all_records"

    table_id: str = Field(alias="tableId")
    max_records: int | None = Field(default=100, alias="maxRecords", ge=1)


class CreateRecordInput(ToolInput):
    tool_name: ClassVar[str] = "create_record"

    table_id: str = Field(alias="tableId")
    fields: dict[str, Any] = Field(default_factory=dict)


class UpdateRecordInput(ToolInput):
    tool_name: ClassVar[str] = "update_record"

    table_id: str = Field(alias="tableId")
    record_id: str = Field(alias="recordId")
    fields: dict[str, Any] = Field(default_factory=dict)


class GetTableFieldsInput(ToolInput):
    tool_name: ClassVar[str] = "get_table_fields"

    table_id: str = Field(alias="tableId")


class FindOfficeInput(ToolInput):
    tool_name: ClassVar[str] = "find_office_by_floor_and_number"

    project_id: str = Field(alias="projectId")
    floor_number: int | float | str = Field(alias="floorNumber")
    office_number: int | float | str = Field(alias="officeNumber")


TOOL_INPUTS: dict[str, type[ToolInput]] = {
    model.tool_name: model
    for model in (
        SearchRecordsInput,
        SearchTransactionsInput,
        GetAllRecordsInput,
        CreateRecordInput,
        UpdateRecordInput,
        GetTableFieldsInput,
        FindOfficeInput,
    )
}


def parse_tool_input(name: str, arguments: dict[str, Any]) -> ToolInput:
    """Validate raw LLM arguments into the input model for ``name``.

    Raises:
        UnknownToolError: If ``name`` is not in the dispatch table
        pydantic.ValidationError: If the arguments do not fit the model
    """
    try:
        model = TOOL_INPUTS[name]
    except KeyError:
        raise UnknownToolError(f"Unknown tool: {name}") from None
    return model.model_validate(arguments or {})
