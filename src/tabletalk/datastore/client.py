"""Airtable data-store client using httpx.

Every operation takes a table reference that is resolved through a
:class:`TableResolver`, so callers may pass canonical table IDs or
human-friendly aliases. Failures are raised as :class:`DataStoreError`
carrying the backend error type, message and HTTP status.
"""

import json
import logging
import re
from typing import Any, Protocol

import httpx

from tabletalk.datastore.tables import TableResolver, validate_record_id

logger = logging.getLogger(__name__)

Record = dict[str, Any]

COMPUTED_FIELD_PATTERN = re.compile(
    r'Field\s+"([^"]+)"\s+cannot accept a value because the field is computed',
    re.IGNORECASE,
)


class DataStoreError(Exception):
    """Raised when the data store rejects or fails a request."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_type: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error_type = error_type


class DataStoreClient(Protocol):
    """Protocol for record storage backends used by the tool gateway."""

    async def search(self, table: str, term: str, base_id: str | None = None) -> list[Record]:
        """Return records whose field values contain ``term``."""
        ...

    async def get_all(
        self, table: str, max_records: int | None = None, base_id: str | None = None
    ) -> list[Record]:
        """Return every record of a table, optionally truncated."""
        ...

    async def list_by_formula(
        self, table: str, formula: str, base_id: str | None = None
    ) -> list[Record]:
        """Return records matching a backend filter formula."""
        ...

    async def create(
        self, table: str, fields: dict[str, Any], base_id: str | None = None
    ) -> Record:
        """Create one record and return it."""
        ...

    async def update(
        self,
        table: str,
        record_id: str,
        fields: dict[str, Any],
        base_id: str | None = None,
    ) -> Record:
        """Update one record and return it."""
        ...


def _simplify(record: dict[str, Any]) -> Record:
    return {"id": record.get("id"), "fields": record.get("fields") or {}}


def unwrap_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Strip accidental ``{"fields": {...}}`` nesting produced by the LLM."""
    payload = fields
    for _ in range(2):
        inner = payload.get("fields") if isinstance(payload, dict) else None
        if isinstance(inner, dict) and len(payload) == 1:
            payload = inner
        else:
            break
    return dict(payload)


def computed_field_from_error(error: Exception) -> str | None:
    """Return the field name if ``error`` reports writing to a computed field."""
    match = COMPUTED_FIELD_PATTERN.search(str(error))
    return match.group(1) if match else None


class AirtableClient:
    """Data-store client for the Airtable REST API."""

    def __init__(
        self,
        api_key: str,
        tables: TableResolver,
        base_id: str,
        api_url: str = "https://api.airtable.com/v0",
        timeout: int = 30,
        page_size: int = 100,
        create_max_retries: int = 10,
    ):
        """Initialize Airtable client.

        Args:
            api_key: Airtable personal access token
            tables: Resolver used to validate table references
            base_id: Default base ID when a call does not name one
            api_url: REST API root
            timeout: Request timeout in seconds
            page_size: Records requested per page
            create_max_retries: Attempts allowed when creates hit computed fields
        """
        self.tables = tables
        self.base_id = base_id
        self.page_size = page_size
        self.create_max_retries = create_max_retries

        self.client = httpx.AsyncClient(
            base_url=api_url.rstrip("/") + "/",
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
        )

    def _path(self, base_id: str | None, table: str, record_id: str | None = None) -> str:
        table_id = self.tables.resolve(table)
        path = f"{base_id or self.base_id}/{table_id}"
        if record_id:
            path += f"/{record_id}"
        return path

    async def _request(self, operation: str, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise DataStoreError(f"{operation} failed: {e}") from e

        if response.is_error:
            raise self._error_from_response(operation, response)
        return response.json()

    @staticmethod
    def _error_from_response(operation: str, response: httpx.Response) -> DataStoreError:
        error_type = None
        message = response.reason_phrase
        try:
            body = response.json()
        except ValueError:
            body = None

        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            error_type = error.get("type")
            message = error.get("message") or message
        elif isinstance(error, str):
            error_type = error

        detail = f"{error_type}: {message}" if error_type else message
        return DataStoreError(
            f"{operation} failed: {detail} (status code {response.status_code})",
            status_code=response.status_code,
            error_type=error_type,
        )

    async def _select(
        self,
        operation: str,
        path: str,
        params: dict[str, Any] | None = None,
        max_records: int | None = None,
    ) -> list[Record]:
        records: list[Record] = []
        query: dict[str, Any] = {"pageSize": self.page_size, **(params or {})}

        while True:
            data = await self._request(operation, "GET", path, params=query)
            records.extend(_simplify(r) for r in data.get("records", []))
            offset = data.get("offset")
            if not offset or (max_records is not None and len(records) >= max_records):
                break
            query["offset"] = offset

        return records[:max_records] if max_records is not None else records

    async def search(self, table: str, term: str, base_id: str | None = None) -> list[Record]:
        """Search every field of every record for ``term``.

        Airtable has no search-all-fields query, so pages are pulled and
        filtered client-side against the serialized field values.
        """
        path = self._path(base_id, table)
        logger.info("Searching %r in table %s", term, path)

        needle = str(term or "").lower()
        records = await self._select("Search", path)
        found = [
            r for r in records if needle in json.dumps(r["fields"], ensure_ascii=False).lower()
        ]
        logger.info("Search matched %d of %d records", len(found), len(records))
        return found

    async def get_all(
        self, table: str, max_records: int | None = None, base_id: str | None = None
    ) -> list[Record]:
        path = self._path(base_id, table)
        logger.info("Fetching records from %s (max=%s)", path, max_records)
        records = await self._select("Get all records", path, max_records=max_records)
        logger.info("Fetched %d records from %s", len(records), path)
        return records

    async def list_by_formula(
        self, table: str, formula: str, base_id: str | None = None
    ) -> list[Record]:
        path = self._path(base_id, table)
        logger.info("Listing %s with formula %s", path, formula)
        return await self._select("List records", path, params={"filterByFormula": formula})

    async def create(
        self, table: str, fields: dict[str, Any], base_id: str | None = None
    ) -> Record:
        """Create a record, dropping computed fields the backend refuses.

        Only the "field is computed" rejection triggers a retry: the named
        field is removed and the request resent, up to ``create_max_retries``
        attempts. Any other error propagates immediately.
        """
        path = self._path(base_id, table)
        payload = unwrap_fields(fields)
        logger.info("Creating record in %s with fields %s", path, list(payload))

        for attempt in range(1, self.create_max_retries + 1):
            try:
                data = await self._request(
                    "Create record",
                    "POST",
                    path,
                    json={"fields": payload, "typecast": True},
                )
            except DataStoreError as e:
                computed = computed_field_from_error(e)
                if computed is None or computed not in payload:
                    raise
                logger.warning(
                    "Dropping computed field %r and retrying create (attempt %d)",
                    computed,
                    attempt,
                )
                del payload[computed]
                continue

            record = _simplify(data)
            logger.info("Created record %s", record["id"])
            return record

        raise DataStoreError("Create failed after removing computed fields multiple times")

    async def update(
        self,
        table: str,
        record_id: str,
        fields: dict[str, Any],
        base_id: str | None = None,
    ) -> Record:
        if not validate_record_id(record_id):
            raise DataStoreError(f"Update record failed: Invalid Record ID: {record_id}")

        path = self._path(base_id, table, record_id)
        logger.info("Updating record %s with fields %s", record_id, list(fields))
        data = await self._request(
            "Update record",
            "PATCH",
            path,
            json={"fields": unwrap_fields(fields), "typecast": True},
        )
        return _simplify(data)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()
