"""Tools exposed to the LLM and the gateway that executes them.

The catalog is fixed: read-only lookups (search, list, field discovery,
office lookup) run immediately, while ``create_record`` and
``update_record`` are flagged as mutating and go through user
confirmation first.

Usage::

    from tabletalk.tools import ToolGateway, get_tool_schemas

    gateway = ToolGateway(datastore, tables)
    result = await gateway.execute(tool_call)
"""

from .catalog import MUTATING_TOOLS, TOOL_SCHEMAS, get_tool_schemas, is_mutating
from .gateway import ToolGateway, ToolRefusedError, format_tool_error, serialize_result
from .inputs import UnknownToolError, parse_tool_input

__all__ = [
    "MUTATING_TOOLS",
    "TOOL_SCHEMAS",
    "ToolGateway",
    "ToolRefusedError",
    "UnknownToolError",
    "format_tool_error",
    "get_tool_schemas",
    "is_mutating",
    "parse_tool_input",
    "serialize_result",
]
