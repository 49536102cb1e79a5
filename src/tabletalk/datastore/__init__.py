"""Data-store access: Airtable client, table resolution and factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tabletalk.config.loader import resolve_secret

from .client import AirtableClient, DataStoreClient, DataStoreError, Record
from .tables import TableResolver, UnknownTableError, validate_record_id

if TYPE_CHECKING:
    from tabletalk.config.schema import TabletalkConfig


def create_datastore_client(config: TabletalkConfig, tables: TableResolver) -> AirtableClient:
    """Create the Airtable client described by ``config``.

    Raises:
        ConfigError: If the API key is not available.
    """
    api_key = resolve_secret(
        config.credentials.datastore_api_key_env,
        config.credentials.override_file,
    )
    return AirtableClient(
        api_key=api_key,
        tables=tables,
        base_id=config.datastore.base_id,
        api_url=config.datastore.api_url,
        timeout=config.datastore.timeout,
        page_size=config.datastore.page_size,
        create_max_retries=config.datastore.create_max_retries,
    )


__all__ = [
    "AirtableClient",
    "DataStoreClient",
    "DataStoreError",
    "Record",
    "TableResolver",
    "UnknownTableError",
    "create_datastore_client",
    "validate_record_id",
]
