"""Tests for reply classification and the confirmation gate."""

import pytest
from pydantic import ValidationError

from tabletalk.agent.confirmation import ConfirmationGate, ReplyKind, classify_reply
from tabletalk.config.schema import ConfirmationConfig
from tabletalk.datastore.client import DataStoreError
from tabletalk.llm.client import ToolCall

from conftest import CUSTOMERS, TRANSACTIONS

CREATE_CUSTOMER = ToolCall(
    id="call_create",
    name="create_record",
    arguments={"tableId": "customers", "fields": {"Name": "Dana Cohen", "Phone": "050-1234567"}},
)
UPDATE_CUSTOMER = ToolCall(
    id="call_update",
    name="update_record",
    arguments={
        "tableId": CUSTOMERS,
        "recordId": "recCustomer000001",
        "fields": {"Status": "Completed registration"},
    },
)


@pytest.fixture
def gate(store, gateway, tables, config):
    return ConfirmationGate(
        store, gateway, tables, messages=config.messages, keywords=config.confirmation
    )


@pytest.mark.parametrize(
    "text,expected",
    [
        ("yes", ReplyKind.AFFIRMATIVE),
        ("Yes please", ReplyKind.AFFIRMATIVE),
        ("כן", ReplyKind.AFFIRMATIVE),
        ("אישור", ReplyKind.AFFIRMATIVE),
        ("cancel that", ReplyKind.NEGATIVE),
        ("CANCEL", ReplyKind.NEGATIVE),
        ("ביטול", ReplyKind.NEGATIVE),
        ("update the phone instead", ReplyKind.NEW_REQUEST),
        ("change the note", ReplyKind.NEW_REQUEST),
        ("not now", ReplyKind.AMBIGUOUS),
        ("חפש את הלקוח", ReplyKind.NEW_REQUEST),
        ("maybe later", ReplyKind.AMBIGUOUS),
        ("", ReplyKind.AMBIGUOUS),
    ],
)
def test_classify_reply(text, expected):
    """Test keyword classification against the default lists."""
    assert classify_reply(text, ConfirmationConfig()) is expected


def test_classify_reply_affirmative_wins():
    """Test that an affirmative token beats a negative one in the same reply."""
    assert classify_reply("yes, not cancel", ConfirmationConfig()) is ReplyKind.AFFIRMATIVE


def test_classify_reply_custom_keywords():
    """Test that keyword lists come from configuration."""
    keywords = ConfirmationConfig(affirmative=["sure"], negative=["nope"], new_request=[])

    assert classify_reply("sure thing", keywords) is ReplyKind.AFFIRMATIVE
    assert classify_reply("yes", keywords) is ReplyKind.AMBIGUOUS


def test_requires_confirmation():
    """Test that a single mutating call makes the whole batch need approval."""
    search = ToolCall(id="s", name="search_records", arguments={})

    assert not ConfirmationGate.requires_confirmation([search])
    assert ConfirmationGate.requires_confirmation([search, CREATE_CUSTOMER])


def test_describe_create(gate):
    """Test the summary of a create call."""
    text = gate.describe([CREATE_CUSTOMER])

    assert text.startswith("🔔 **Confirmation required:**")
    assert "🆕 **Create new customer**" in text
    assert '   📝 Name: "Dana Cohen"' in text
    assert '   📝 Phone: "050-1234567"' in text
    assert text.endswith("❓ **Proceed with this action? (yes/cancel)**")


def test_describe_update(gate):
    """Test the summary of an update call."""
    text = gate.describe([UPDATE_CUSTOMER])

    assert "🔄 **Update record**" in text
    assert "   🆔 Record ID: recCustomer000001" in text
    assert '   📝 Status: "Completed registration"' in text


def test_describe_unknown_table_label(gate):
    """Test that tables without a label fall back to a generic one."""
    call = ToolCall(id="c", name="create_record", arguments={"tableId": "leads", "fields": {}})

    assert "🆕 **Create new record**" in gate.describe([call])


def test_describe_lists_read_only_calls(gate):
    """Test that read-only calls in a mixed batch are listed by name."""
    search = ToolCall(id="s", name="search_records", arguments={"tableId": "customers"})

    text = gate.describe([search, CREATE_CUSTOMER])

    assert "🔍 search_records" in text
    assert "🆕 **Create new customer**" in text


def test_request_approval_parks_batch(gate, store):
    """Test that requesting approval stores the pending action."""
    reply = gate.request_approval("alice", [CREATE_CUSTOMER], "add Dana")

    assert reply.needs_confirmation is True
    assert reply.success is True
    assert store.get_pending("alice").tool_calls == (CREATE_CUSTOMER,)
    assert store.get_pending("alice").original_message == "add Dana"


@pytest.mark.asyncio
async def test_resolve_without_pending(gate):
    """Test that messages pass through when nothing is pending."""
    assert await gate.resolve("alice", "yes") is None


@pytest.mark.asyncio
async def test_resolve_affirmative_executes(gate, store, datastore):
    """Test that approval runs the batch and clears the pending action."""
    store.set_pending("alice", [CREATE_CUSTOMER], "add Dana")

    reply = await gate.resolve("alice", "yes")

    assert reply.action_completed is True
    assert reply.response == "✅ The action was completed successfully!"
    assert not store.has_pending("alice")
    assert datastore.operations("create") == [
        ("create", CUSTOMERS, {"Name": "Dana Cohen", "Phone": "050-1234567"})
    ]


@pytest.mark.asyncio
async def test_resolve_affirmative_runs_calls_in_order(gate, store, datastore):
    """Test that every call of an approved batch runs in order."""
    store.set_pending("alice", [CREATE_CUSTOMER, UPDATE_CUSTOMER], "add and update")

    await gate.resolve("alice", "כן")

    assert [call[0] for call in datastore.calls] == ["create", "update"]


@pytest.mark.asyncio
async def test_resolve_affirmative_failure(gate, store, datastore):
    """Test that a failing approved call is reported and never replayed."""
    datastore.failures["create"] = DataStoreError("Create record failed: boom (status code 500)")
    store.set_pending("alice", [CREATE_CUSTOMER, UPDATE_CUSTOMER], "add and update")

    reply = await gate.resolve("alice", "approve")

    assert reply.success is False
    assert reply.response.startswith("❌ The action failed:")
    assert "boom" in reply.response
    assert not store.has_pending("alice")
    assert datastore.operations("update") == []


@pytest.mark.asyncio
async def test_resolve_negative_cancels(gate, store, datastore):
    """Test that a rejection drops the batch without running it."""
    store.set_pending("alice", [CREATE_CUSTOMER], "add Dana")

    reply = await gate.resolve("alice", "cancel")

    assert reply.action_cancelled is True
    assert not store.has_pending("alice")
    assert datastore.calls == []


@pytest.mark.asyncio
async def test_resolve_ambiguous_keeps_pending(gate, store, datastore):
    """Test that an unclear reply asks again and keeps the batch."""
    store.set_pending("alice", [CREATE_CUSTOMER], "add Dana")

    reply = await gate.resolve("alice", "maybe later")

    assert reply.needs_clarification is True
    assert store.has_pending("alice")
    assert datastore.calls == []


@pytest.mark.asyncio
async def test_resolve_new_request_supersedes(gate, store, datastore):
    """Test that a fresh request drops the batch and continues normally."""
    store.set_pending("alice", [CREATE_CUSTOMER], "add Dana")

    reply = await gate.resolve("alice", "find the project in Raanana")

    assert reply is None
    assert not store.has_pending("alice")
    assert datastore.calls == []


def test_describe_non_mapping_fields(gate):
    """Test that fields sent as a string are shown as-is."""
    call = ToolCall(
        id="c",
        name="update_record",
        arguments={"tableId": "customers", "recordId": "recCustomer000001", "fields": "Done"},
    )

    text = gate.describe([call])

    assert '   📝 "Done"' in text


def test_request_approval_rejects_malformed_batch(gate, store):
    """Test that a batch with malformed arguments is never parked."""
    call = ToolCall(
        id="c",
        name="update_record",
        arguments={
            "tableId": "customers",
            "recordId": "recCustomer000001",
            "fields": '{"status": "Done"}',
        },
    )

    with pytest.raises(ValidationError):
        gate.request_approval("alice", [CREATE_CUSTOMER, call], "update Dana")

    assert not store.has_pending("alice")


@pytest.mark.asyncio
async def test_resolve_affirmative_transaction_without_office(gate, store, datastore):
    """Test that an approved transaction without an office is reported as failed."""
    create = ToolCall(
        id="c",
        name="create_record",
        arguments={"tableId": TRANSACTIONS, "fields": {"לקוחות": ["recCustomer000001"]}},
    )
    store.set_pending("alice", [create], "open a transaction")

    reply = await gate.resolve("alice", "yes")

    assert reply.success is False
    assert reply.action_completed is None
    assert "office" in reply.response
    assert not store.has_pending("alice")
    assert datastore.operations("create") == []
