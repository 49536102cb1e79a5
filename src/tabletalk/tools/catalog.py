"""The fixed set of tools offered to the LLM."""

from typing import Any

from tabletalk.tools.base import ToolParameter, ToolSchema

_BASE_ID = ToolParameter(
    name="baseId",
    type="string",
    description="Airtable base ID (defaults to the configured base)",
    required=False,
)
_TABLE_ID = ToolParameter(
    name="tableId",
    type="string",
    description="Table ID or table name",
)

TOOL_SCHEMAS: list[ToolSchema] = [
    ToolSchema(
        name="search_records",
        description="Search for records in a table by text",
        parameters=[
            _BASE_ID,
            _TABLE_ID,
            ToolParameter(name="searchTerm", type="string", description="Text to look for"),
        ],
    ),
    ToolSchema(
        name="search_transactions",
        description="Search for existing transactions by customer and project",
        parameters=[
            _BASE_ID,
            ToolParameter(name="customerId", type="string", description="Customer record ID"),
            ToolParameter(name="projectId", type="string", description="Project record ID"),
        ],
    ),
    ToolSchema(
        name="get_all_records",
        description="Get all records from a table",
        parameters=[
            _BASE_ID,
            _TABLE_ID,
            ToolParameter(
                name="maxRecords",
                type="number",
                description="Maximum number of records to return",
                required=False,
                default=100,
            ),
        ],
    ),
    ToolSchema(
        name="create_record",
        description="Create a new record",
        parameters=[
            _BASE_ID,
            _TABLE_ID,
            ToolParameter(name="fields", type="object", description="Field name -> value"),
        ],
        mutating=True,
    ),
    ToolSchema(
        name="update_record",
        description="Update a single record",
        parameters=[
            _BASE_ID,
            _TABLE_ID,
            ToolParameter(name="recordId", type="string", description="ID of the record"),
            ToolParameter(name="fields", type="object", description="Field name -> new value"),
        ],
        mutating=True,
    ),
    ToolSchema(
        name="get_table_fields",
        description="Get the available fields in a table with sample values",
        parameters=[_BASE_ID, _TABLE_ID],
    ),
    ToolSchema(
        name="find_office_by_floor_and_number",
        description=(
            "Find an office record based on floor number and office number "
            "within the same project"
        ),
        parameters=[
            _BASE_ID,
            ToolParameter(name="projectId", type="string", description="Project record ID"),
            ToolParameter(name="floorNumber", type="number", description="Floor number"),
            ToolParameter(name="officeNumber", type="number", description="Office number"),
        ],
    ),
]

MUTATING_TOOLS: frozenset[str] = frozenset(s.name for s in TOOL_SCHEMAS if s.mutating)


def get_tool_schemas() -> list[dict[str, Any]]:
    """Tool definitions in OpenAI function format, ready for the LLM client."""
    return [schema.to_openai_format() for schema in TOOL_SCHEMAS]


def is_mutating(tool_name: str) -> bool:
    """Check whether a tool creates or modifies a persisted record."""
    return tool_name in MUTATING_TOOLS
