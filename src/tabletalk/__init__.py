"""Tabletalk - conversational CRUD over Airtable tables driven by an LLM.

Tabletalk lets natural-language requests search, create and update records
in a fixed set of tables. An LLM tool-calling loop decides which data-store
operations to run; anything that creates or modifies a record is held back
until the user explicitly confirms it.

Key modules:

- :mod:`tabletalk.agent` - Orchestration loop, confirmation gate, chat service
- :mod:`tabletalk.session` - Per-sender conversation history with TTL eviction
- :mod:`tabletalk.tools` - Tool catalog, typed inputs and the tool gateway
- :mod:`tabletalk.datastore` - Airtable REST client and table resolution
- :mod:`tabletalk.llm` - LLM client abstraction (Anthropic Messages API)
- :mod:`tabletalk.server` - FastAPI application and routes
"""

__version__ = "0.2.0"
