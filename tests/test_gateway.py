"""Tests for the tool gateway and table resolution."""

import pytest
from pydantic import ValidationError

from tabletalk.datastore.client import DataStoreError
from tabletalk.datastore.tables import UnknownTableError, validate_record_id
from tabletalk.llm.client import ToolCall
from tabletalk.tools.gateway import ToolRefusedError, format_tool_error, serialize_result
from tabletalk.tools.inputs import UnknownToolError

from conftest import CUSTOMERS, OFFICES, PROJECTS, TRANSACTIONS


def _call(name, **arguments):
    return ToolCall(id=f"call_{name}", name=name, arguments=arguments)


@pytest.mark.parametrize(
    "ref,expected",
    [
        (CUSTOMERS, CUSTOMERS),
        ("customers", CUSTOMERS),
        ("Customer", CUSTOMERS),
        (" project ", PROJECTS),
        ("לקוחות", CUSTOMERS),
        ("פרוייקטים", PROJECTS),
        ("משרדים", OFFICES),
    ],
)
def test_resolve_table(tables, ref, expected):
    """Test that IDs, logical names and aliases resolve to table IDs."""
    assert tables.resolve(ref) == expected


@pytest.mark.parametrize("ref", ["planets", "", None])
def test_resolve_unknown_table(tables, ref):
    """Test that unknown references are rejected."""
    with pytest.raises(UnknownTableError, match="Invalid table ID"):
        tables.resolve(ref)


def test_table_labels(tables):
    """Test singular labels used in confirmation summaries."""
    assert tables.label("customers") == "customer"
    assert tables.label(TRANSACTIONS) == "transaction"
    assert tables.label("leads") == "record"
    assert tables.label("planets") == "record"


@pytest.mark.parametrize(
    "record_id,valid",
    [
        ("recAbCdEfGhIjKlMn", True),
        ("recAbCdEfGhIjKlMnOp", True),
        ("rec0000000000001", False),
        ("tblAbCdEfGhIjKlMn", False),
        ("", False),
        (None, False),
    ],
)
def test_validate_record_id(record_id, valid):
    """Test the record ID shape check."""
    assert validate_record_id(record_id) is valid


def test_format_tool_error_known():
    """Test that known backend errors become actionable hints."""
    error = DataStoreError(
        "Update record failed: INVALID_MULTIPLE_CHOICE_OPTIONS: "
        'Insufficient permissions to create new select option ""Gold"" (status code 422)'
    )

    text = format_tool_error(error)

    assert text.startswith("Error: ")
    assert "get_table_fields" in text


def test_format_tool_error_passthrough():
    """Test that unknown errors keep their message."""
    assert format_tool_error(RuntimeError("boom")) == "Error: boom"


def test_serialize_result():
    """Test that text passes through and payloads become JSON."""
    assert serialize_result("plain text") == "plain text"
    assert serialize_result({"name": "דנה"}) == '{\n  "name": "דנה"\n}'


@pytest.mark.asyncio
async def test_search_records(gateway, datastore):
    """Test text search wraps the matches with a count."""
    result = await gateway.execute(_call("search_records", tableId="לקוחות", searchTerm="dana"))

    assert result["found"] == 1
    assert result["records"][0]["id"] == "recCustomer000001"
    assert datastore.calls == [("search", CUSTOMERS, "dana")]


@pytest.mark.asyncio
async def test_search_transactions_requires_both_links(gateway, datastore):
    """Test that only transactions linked to the customer and project match."""
    datastore.records[TRANSACTIONS] = [
        {"id": "recT1", "fields": {"לקוחות": ["recC1"], "פרוייקט": ["recP1"]}},
        {"id": "recT2", "fields": {"לקוחות": ["recC1"], "פרוייקט": ["recP2"]}},
        {"id": "recT3", "fields": {"לקוחות": ["recC2"], "פרוייקט": ["recP1"]}},
        {"id": "recT4", "fields": {}},
    ]

    result = await gateway.execute(
        _call("search_transactions", customerId="recC1", projectId="recP1")
    )

    assert result["found"] == 1
    assert [t["id"] for t in result["transactions"]] == ["recT1"]


@pytest.mark.asyncio
async def test_get_all_records_default_limit(gateway, datastore):
    """Test that get_all_records caps results at 100 by default."""
    await gateway.execute(_call("get_all_records", tableId="projects"))

    assert datastore.calls == [("get_all", PROJECTS, 100)]


@pytest.mark.asyncio
async def test_create_transaction_without_office_is_refused(gateway, datastore):
    """Test that a transaction needs a linked office."""
    with pytest.raises(ToolRefusedError, match="without a matching office"):
        await gateway.execute(
            _call("create_record", tableId="עסקאות", fields={"לקוחות": ["recCustomer000001"]})
        )

    with pytest.raises(ToolRefusedError):
        await gateway.execute(
            _call("create_record", tableId=TRANSACTIONS, fields={"משרד": []})
        )

    assert datastore.operations("create") == []


@pytest.mark.asyncio
async def test_create_transaction_with_office(gateway, datastore):
    """Test that a transaction linked to an office is created."""
    fields = {"לקוחות": ["recCustomer000001"], "משרד": ["recOffice00000012"]}

    result = await gateway.execute(_call("create_record", tableId=TRANSACTIONS, fields=fields))

    assert result["fields"] == fields
    assert datastore.operations("create") == [("create", TRANSACTIONS, fields)]


@pytest.mark.asyncio
async def test_update_record(gateway, datastore):
    """Test that updates reach the data store unchanged."""
    result = await gateway.execute(
        _call(
            "update_record",
            tableId="customers",
            recordId="recCustomer000001",
            fields={"Phone": "050-1234567"},
        )
    )

    assert result["fields"]["Phone"] == "050-1234567"


@pytest.mark.asyncio
async def test_update_record_missing_propagates(gateway):
    """Test that data-store errors propagate to the caller."""
    with pytest.raises(DataStoreError, match="NOT_FOUND"):
        await gateway.execute(
            _call("update_record", tableId="customers", recordId="recMissing0000001", fields={})
        )


@pytest.mark.asyncio
async def test_get_table_fields(gateway, datastore):
    """Test field discovery from sampled records."""
    datastore.records[CUSTOMERS] = [
        {"id": f"recC{i}", "fields": {"Name": f"Customer {i}", "Status": status}}
        for i, status in enumerate(["New", "Lead", "New", "Signed"])
    ] + [{"id": "recC9", "fields": {"Name": "Solo", "Tags": ["vip", "vip"], "Notes": None}}]

    result = await gateway.execute(_call("get_table_fields", tableId="customers"))

    assert datastore.calls == [("get_all", CUSTOMERS, 5)]
    assert result["availableFields"] == ["Name", "Status", "Tags", "Notes"]
    assert result["fieldAnalysis"]["Status"]["uniqueValues"] == ["New", "Lead", "Signed"]
    assert result["fieldAnalysis"]["Status"]["possibleSelectField"] is True
    assert result["fieldAnalysis"]["Tags"]["possibleSelectField"] is False
    assert result["fieldAnalysis"]["Notes"]["hasValues"] is False
    assert result["fieldAnalysis"]["Notes"]["sampleValue"] is None
    assert result["sampleRecord"] == {"Name": "Customer 0", "Status": "New"}


@pytest.mark.asyncio
async def test_get_table_fields_empty_table(gateway):
    """Test field discovery on a table without records."""
    result = await gateway.execute(_call("get_table_fields", tableId="leads"))

    assert result == {"availableFields": [], "fieldAnalysis": {}, "sampleRecord": {}}


@pytest.mark.asyncio
async def test_find_office_match(gateway, datastore):
    """Test locating an office by floor and number."""
    result = await gateway.execute(
        _call(
            "find_office_by_floor_and_number",
            projectId="recProject0000001",
            floorNumber=3,
            officeNumber="14",
        )
    )

    assert result["id"] == "recOffice00000014"
    assert datastore.operations("list_by_formula") == [("list_by_formula", OFFICES, "{קומה} = 3")]


@pytest.mark.asyncio
async def test_find_office_lists_floor_when_missing(gateway):
    """Test that a miss lists the offices on the floor."""
    result = await gateway.execute(
        _call(
            "find_office_by_floor_and_number",
            projectId="recProject0000001",
            floorNumber=3,
            officeNumber=99,
        )
    )

    assert result.startswith("No matching office was found. Offices on floor 3:")
    assert "- number: 12 (ID: recOffice00000012)" in result
    assert "- number: 14 (ID: recOffice00000014)" in result


@pytest.mark.asyncio
async def test_find_office_other_project(gateway):
    """Test that offices of other projects are ignored."""
    result = await gateway.execute(
        _call(
            "find_office_by_floor_and_number",
            projectId="recProjectOther01",
            floorNumber=3.0,
            officeNumber=12,
        )
    )

    assert result == "No offices were found on floor 3 in this project."


@pytest.mark.asyncio
async def test_unknown_tool(gateway):
    """Test that unknown tool names are rejected."""
    with pytest.raises(UnknownToolError):
        await gateway.execute(_call("drop_table"))


@pytest.mark.asyncio
async def test_invalid_arguments(gateway):
    """Test that missing required arguments fail validation."""
    with pytest.raises(ValidationError):
        await gateway.execute(_call("update_record", tableId="customers"))
