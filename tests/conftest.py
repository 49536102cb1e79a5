"""Pytest configuration and shared fixtures."""

import re
from itertools import count
from typing import Any

import pytest

from tabletalk.agent.confirmation import ConfirmationGate
from tabletalk.agent.loop import Orchestrator
from tabletalk.agent.service import ChatService
from tabletalk.config.schema import TabletalkConfig
from tabletalk.datastore.client import DataStoreError, Record
from tabletalk.datastore.tables import TableResolver
from tabletalk.llm.client import CompletionResponse, Message, ToolCall
from tabletalk.session.store import SessionStore
from tabletalk.tools.gateway import ToolGateway

TRANSACTIONS = "tblSgYN8CbQcxeT0j"
CUSTOMERS = "tblcTFGg6WyKkO5kq"
PROJECTS = "tbl9p6XdUrecy2h7G"
OFFICES = "tbl7etO9Yn3VH9QpT"


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MockLLM:
    """Mock LLM client returning scripted responses in order.

    With ``repeat_last=True`` the final response is returned forever,
    which simulates an LLM that never stops calling tools.
    """

    def __init__(self, responses: list[CompletionResponse | Exception], repeat_last: bool = False):
        self.responses = responses
        self.repeat_last = repeat_last
        self.call_count = 0
        self.calls: list[dict[str, Any]] = []

    async def complete(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> CompletionResponse:
        self.calls.append({"messages": list(messages), "tools": tools})
        index = self.call_count
        if index >= len(self.responses):
            if not self.repeat_last:
                raise AssertionError("MockLLM ran out of scripted responses")
            index = len(self.responses) - 1
        self.call_count += 1

        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        return response


class FakeDataStore:
    """In-memory data store recording every call it receives."""

    def __init__(self, tables: TableResolver, records: dict[str, list[Record]] | None = None):
        self.tables = tables
        self.records: dict[str, list[Record]] = {k: list(v) for k, v in (records or {}).items()}
        self.calls: list[tuple[Any, ...]] = []
        self.failures: dict[str, Exception] = {}
        self._ids = count(1)

    def _table(self, table: str) -> list[Record]:
        return self.records.setdefault(self.tables.resolve(table), [])

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.failures:
            raise self.failures[operation]

    async def search(self, table: str, term: str, base_id: str | None = None) -> list[Record]:
        self.calls.append(("search", self.tables.resolve(table), term))
        self._maybe_fail("search")
        needle = term.lower()
        return [r for r in self._table(table) if needle in str(r["fields"]).lower()]

    async def get_all(
        self, table: str, max_records: int | None = None, base_id: str | None = None
    ) -> list[Record]:
        self.calls.append(("get_all", self.tables.resolve(table), max_records))
        self._maybe_fail("get_all")
        rows = self._table(table)
        return rows[:max_records] if max_records is not None else list(rows)

    async def list_by_formula(
        self, table: str, formula: str, base_id: str | None = None
    ) -> list[Record]:
        self.calls.append(("list_by_formula", self.tables.resolve(table), formula))
        self._maybe_fail("list_by_formula")
        field, value = re.match(r"\{(.+?)\} = (.+)", formula).groups()
        value = value.strip('"')
        return [r for r in self._table(table) if str(r["fields"].get(field)) == value]

    async def create(
        self, table: str, fields: dict[str, Any], base_id: str | None = None
    ) -> Record:
        self.calls.append(("create", self.tables.resolve(table), dict(fields)))
        self._maybe_fail("create")
        record = {"id": f"rec{next(self._ids):014d}", "fields": dict(fields)}
        self._table(table).append(record)
        return record

    async def update(
        self,
        table: str,
        record_id: str,
        fields: dict[str, Any],
        base_id: str | None = None,
    ) -> Record:
        self.calls.append(("update", self.tables.resolve(table), record_id, dict(fields)))
        self._maybe_fail("update")
        for record in self._table(table):
            if record["id"] == record_id:
                record["fields"].update(fields)
                return record
        raise DataStoreError(
            "Update record failed: NOT_FOUND: Could not find record (status code 404)",
            status_code=404,
            error_type="NOT_FOUND",
        )

    def operations(self, name: str) -> list[tuple[Any, ...]]:
        return [call for call in self.calls if call[0] == name]


def text_response(text: str) -> CompletionResponse:
    return CompletionResponse(content=text, finish_reason="stop")


def tool_response(*calls: ToolCall, text: str = "") -> CompletionResponse:
    return CompletionResponse(content=text, tool_calls=list(calls), finish_reason="tool_calls")


@pytest.fixture
def config() -> TabletalkConfig:
    """Provide a default configuration for tests."""
    return TabletalkConfig()


@pytest.fixture
def tables(config) -> TableResolver:
    return TableResolver(config.tables)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> SessionStore:
    return SessionStore(max_history=15, ttl_seconds=1800, sweep_interval_seconds=600, clock=clock)


@pytest.fixture
def datastore(tables) -> FakeDataStore:
    return FakeDataStore(
        tables,
        {
            CUSTOMERS: [{"id": "recCustomer000001", "fields": {"Name": "Dana Levi"}}],
            PROJECTS: [{"id": "recProject0000001", "fields": {"Name": "Park Raanana"}}],
            TRANSACTIONS: [],
            OFFICES: [
                {
                    "id": "recOffice00000012",
                    "fields": {"קומה": 3, "מס׳ משרד": 12, "פרוייקט": ["recProject0000001"]},
                },
                {
                    "id": "recOffice00000014",
                    "fields": {"קומה": 3, "מס׳ משרד": 14, "פרוייקט": ["recProject0000001"]},
                },
            ],
        },
    )


@pytest.fixture
def gateway(datastore, tables) -> ToolGateway:
    return ToolGateway(datastore, tables)


@pytest.fixture
def make_service(config, store, gateway, tables):
    """Build a ChatService around a scripted LLM."""

    def _make(llm: MockLLM) -> ChatService:
        gate = ConfirmationGate(
            store, gateway, tables, messages=config.messages, keywords=config.confirmation
        )
        orchestrator = Orchestrator(
            llm=llm,
            gateway=gateway,
            system_prompt="You are a test assistant.",
            max_steps=config.agent.max_steps,
            max_messages=config.agent.max_messages,
            messages=config.messages,
        )
        return ChatService(store, gate, orchestrator, messages=config.messages)

    return _make
