"""Table reference resolution and record-id validation."""

from tabletalk.config.schema import TablesConfig

RECORD_ID_PREFIX = "rec"
RECORD_ID_MIN_LENGTH = 17


class UnknownTableError(ValueError):
    """Raised when a table reference matches neither an ID nor an alias."""


class TableResolver:
    """Maps human-friendly table names onto canonical Airtable table IDs.

    A reference resolves if it is already one of the configured table IDs,
    a logical table name (``"customers"``), or one of the configured aliases.
    Names are matched case-insensitively after trimming.
    """

    def __init__(self, tables: TablesConfig):
        self.tables = tables
        self._ids = dict(tables.ids)
        self._aliases: dict[str, str] = {name.lower(): tid for name, tid in self._ids.items()}
        for alias, logical in tables.aliases.items():
            if logical in self._ids:
                self._aliases[alias.strip().lower()] = self._ids[logical]

    def resolve(self, ref: str | None) -> str:
        """Resolve a table reference to its table ID.

        Args:
            ref: Table ID, logical name or alias

        Returns:
            Canonical table ID

        Raises:
            UnknownTableError: If the reference is not recognized
        """
        if not ref:
            raise UnknownTableError("Invalid table ID: missing table reference")
        if ref in self._ids.values():
            return ref
        table_id = self._aliases.get(str(ref).strip().lower())
        if table_id is None:
            raise UnknownTableError(f"Invalid table ID: {ref}")
        return table_id

    def table_id(self, logical_name: str) -> str:
        """Return the table ID configured for a logical name."""
        return self._ids[logical_name]

    def is_table(self, ref: str | None, logical_name: str) -> bool:
        """Check whether ``ref`` points at the given logical table."""
        try:
            return self.resolve(ref) == self._ids.get(logical_name)
        except UnknownTableError:
            return False

    def label(self, ref: str | None, default: str = "record") -> str:
        """Human label for a table reference, used in confirmation summaries."""
        for logical, label in self.tables.labels.items():
            if self.is_table(ref, logical):
                return label
        return default


def validate_record_id(record_id: object) -> bool:
    """Check that ``record_id`` looks like an Airtable record ID."""
    return (
        isinstance(record_id, str)
        and record_id.startswith(RECORD_ID_PREFIX)
        and len(record_id) >= RECORD_ID_MIN_LENGTH
    )
