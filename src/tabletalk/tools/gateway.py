"""Tool gateway: dispatches LLM tool calls to data-store operations."""

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from tabletalk.config.schema import TablesConfig
from tabletalk.datastore.client import DataStoreClient, Record
from tabletalk.datastore.tables import TableResolver
from tabletalk.llm.client import ToolCall
from tabletalk.tools.inputs import (
    CreateRecordInput,
    FindOfficeInput,
    GetAllRecordsInput,
    GetTableFieldsInput,
    SearchRecordsInput,
    SearchTransactionsInput,
    ToolInput,
    UpdateRecordInput,
    parse_tool_input,
)

logger = logging.getLogger(__name__)

FIELD_SAMPLE_SIZE = 5
SELECT_FIELD_MAX_VALUES = 10

# Backend error substring -> diagnostic fed back to the LLM
KNOWN_TOOL_ERRORS: list[tuple[str, str]] = [
    (
        "Unknown field name",
        "The given field does not exist in the table. "
        "Check the field names with get_table_fields.",
    ),
    (
        "status code 422",
        "Invalid data or a field that does not exist. Check with get_table_fields.",
    ),
    (
        "INVALID_MULTIPLE_CHOICE_OPTIONS",
        "The value is not one of the allowed options. "
        "Check the available values with get_table_fields before updating.",
    ),
]


def format_tool_error(error: Exception) -> str:
    """Turn a tool failure into a diagnostic the LLM can act on.

    Known backend errors are replaced with a specific hint; anything else
    is passed through as its message.
    """
    message = str(error)
    for needle, hint in KNOWN_TOOL_ERRORS:
        if needle in message:
            message = hint
            break
    return f"Error: {message}"


def serialize_result(result: Any) -> str:
    """Render a tool payload as the text content of a tool result."""
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2, ensure_ascii=False, default=str)


def _links_to(value: Any, record_id: str) -> bool:
    if isinstance(value, list):
        return record_id in value
    return value == record_id


def _format_number(value: int | float | str) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _floor_formula(field: str, floor: int | float | str) -> str:
    try:
        number = float(floor)
    except (TypeError, ValueError):
        escaped = str(floor).replace('"', '\\"')
        return f'{{{field}}} = "{escaped}"'
    return f"{{{field}}} = {_format_number(number)}"


class ToolRefusedError(Exception):
    """Raised when a tool call breaks a data rule and is not sent to the store."""


class ToolGateway:
    """Maps a tool call onto one data-store operation.

    Every handler returns a JSON-serializable payload (or a descriptive
    text when nothing matched). Calls breaking a data rule raise
    :class:`ToolRefusedError`; errors raised by the data store propagate
    to the caller untouched.
    """

    def __init__(self, datastore: DataStoreClient, tables: TableResolver):
        self.datastore = datastore
        self.tables = tables
        self.config: TablesConfig = tables.tables

        self._handlers: dict[type[ToolInput], Callable[[Any], Awaitable[Any]]] = {
            SearchRecordsInput: self.search_records,
            SearchTransactionsInput: self.search_transactions,
            GetAllRecordsInput: self.get_all_records,
            CreateRecordInput: self.create_record,
            UpdateRecordInput: self.update_record,
            GetTableFieldsInput: self.get_table_fields,
            FindOfficeInput: self.find_office,
        }

    async def execute(self, call: ToolCall) -> Any:
        """Execute one tool call.

        Args:
            call: Tool call produced by the LLM

        Returns:
            Tool payload

        Raises:
            UnknownToolError: If the tool name is not in the dispatch table
            pydantic.ValidationError: If the arguments are malformed
            ToolRefusedError: If the call breaks a data rule
            DataStoreError: If the data store rejects the operation
            UnknownTableError: If the table reference does not resolve
        """
        logger.info("Running tool %s (%s)", call.name, call.id)
        tool_input = parse_tool_input(call.name, call.arguments)
        return await self._handlers[type(tool_input)](tool_input)

    async def search_records(self, args: SearchRecordsInput) -> dict[str, Any]:
        records = await self.datastore.search(args.table_id, args.search_term, base_id=args.base_id)
        return {"found": len(records), "records": records}

    async def search_transactions(self, args: SearchTransactionsInput) -> dict[str, Any]:
        """Find transactions linked to both the customer and the project."""
        logger.info(
            "Searching transactions for customer %s, project %s",
            args.customer_id,
            args.project_id,
        )
        rows = await self.datastore.get_all(
            self.tables.table_id("transactions"), base_id=args.base_id
        )
        matching = [
            r
            for r in rows
            if _links_to(r["fields"].get(self.config.transaction_customer_field), args.customer_id)
            and _links_to(r["fields"].get(self.config.transaction_project_field), args.project_id)
        ]
        logger.info("Found %d matching transactions", len(matching))
        return {"found": len(matching), "transactions": matching}

    async def get_all_records(self, args: GetAllRecordsInput) -> list[Record]:
        return await self.datastore.get_all(
            args.table_id, max_records=args.max_records, base_id=args.base_id
        )

    async def create_record(self, args: CreateRecordInput) -> Record:
        # A transaction must always be linked to an office
        if self.tables.is_table(args.table_id, "transactions"):
            office = args.fields.get(self.config.transaction_office_field)
            if not isinstance(office, list) or not office:
                logger.warning("Refusing to create a transaction without an office link")
                raise ToolRefusedError(
                    "Cannot create a transaction without a matching office. "
                    "Ask for the floor number and office number first."
                )
        return await self.datastore.create(args.table_id, args.fields, base_id=args.base_id)

    async def update_record(self, args: UpdateRecordInput) -> Record:
        return await self.datastore.update(
            args.table_id, args.record_id, args.fields, base_id=args.base_id
        )

    async def get_table_fields(self, args: GetTableFieldsInput) -> dict[str, Any]:
        """Discover fields by sampling a few records.

        Fields with between 2 and 10 distinct sampled values are flagged as
        probable select fields so the LLM can reuse existing options.
        """
        records = await self.datastore.get_all(
            args.table_id, max_records=FIELD_SAMPLE_SIZE, base_id=args.base_id
        )

        examples: dict[str, list[Any]] = {}
        for record in records:
            for name, value in record["fields"].items():
                values = examples.setdefault(name, [])
                if value is None:
                    continue
                if isinstance(value, list):
                    values.extend(value)
                else:
                    values.append(value)

        analysis = {}
        for name, values in examples.items():
            unique = []
            for value in values:
                if value not in unique:
                    unique.append(value)
            analysis[name] = {
                "hasValues": bool(values),
                "uniqueValues": unique,
                "possibleSelectField": 1 < len(unique) <= SELECT_FIELD_MAX_VALUES,
                "sampleValue": values[0] if values else None,
            }

        return {
            "availableFields": list(examples),
            "fieldAnalysis": analysis,
            "sampleRecord": records[0]["fields"] if records else {},
        }

    async def list_offices_on_floor(
        self,
        project_id: str,
        floor_number: int | float | str,
        base_id: str | None = None,
    ) -> list[Record]:
        """Offices of a project on one floor."""
        formula = _floor_formula(self.config.office_floor_field, floor_number)
        rows = await self.datastore.list_by_formula(
            self.tables.table_id("offices"), formula, base_id=base_id
        )
        offices = [
            r
            for r in rows
            if isinstance(r["fields"].get(self.config.office_project_field), list)
            and project_id in r["fields"][self.config.office_project_field]
        ]
        logger.info(
            "Floor %s has %d offices (%d for project)", floor_number, len(rows), len(offices)
        )
        return offices

    def _office_number(self, record: Record) -> Any:
        for field in self.config.office_number_fields:
            value = record["fields"].get(field)
            if value:
                return value
        return None

    async def find_office(self, args: FindOfficeInput) -> Record | str:
        """Locate an office by floor and number, listing the floor when there is no match."""
        offices = await self.list_offices_on_floor(
            args.project_id, args.floor_number, base_id=args.base_id
        )
        wanted = _format_number(args.office_number)

        for office in offices:
            if _format_number(self._office_number(office) or "") == wanted:
                logger.info("Matched office %s", office["id"])
                return office

        floor = _format_number(args.floor_number)
        logger.warning("No office %s on floor %s", wanted, floor)
        if not offices:
            return f"No offices were found on floor {floor} in this project."

        lines = [f"No matching office was found. Offices on floor {floor}:"]
        lines.extend(f"- number: {self._office_number(o)} (ID: {o['id']})" for o in offices)
        lines.append("Please choose one of them.")
        return "\n".join(lines)
