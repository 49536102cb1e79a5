"""Pydantic models for tabletalk.yaml configuration."""

from pydantic import BaseModel, Field


class ModelConfig(BaseModel):
    """LLM model configuration."""

    name: str = Field(default="claude-sonnet-4-20250514", description="Anthropic model name")
    max_tokens: int = Field(default=4000, description="Maximum tokens per response", ge=1)
    temperature: float = Field(default=0.7, description="Sampling temperature", ge=0.0, le=1.0)
    timeout: int = Field(default=120, description="Request timeout in seconds", ge=1)


class AgentConfig(BaseModel):
    """Orchestration loop configuration."""

    max_steps: int = Field(
        default=10, description="Maximum LLM invocations per inbound message", ge=1, le=50
    )
    max_messages: int = Field(
        default=25, description="Maximum transcript length before the loop aborts", ge=2, le=200
    )
    response_language: str = Field(
        default="Hebrew", description="Language the assistant must answer in"
    )


class MemoryConfig(BaseModel):
    """Conversation memory configuration."""

    max_history: int = Field(default=15, description="Messages kept per sender", ge=1)
    ttl_seconds: int = Field(
        default=30 * 60, description="Idle time before a session is evicted", ge=1
    )
    sweep_interval_seconds: int = Field(
        default=10 * 60, description="Interval between eviction sweeps", ge=1
    )


class ConfirmationConfig(BaseModel):
    """Keyword lists used to classify replies to a pending confirmation.

    Matching is case-insensitive substring containment. These are heuristics,
    so the lists are tuned per deployment rather than hardcoded.
    """

    affirmative: list[str] = Field(
        default=["כן", "אישור", "אוקיי", "בצע", "yes", "confirm", "approve"],
        description="Tokens that approve the pending action",
    )
    negative: list[str] = Field(
        default=["לא", "ביטול", "cancel"],
        description="Tokens that reject the pending action",
    )
    new_request: list[str] = Field(
        default=[
            "עדכן",
            "שנה",
            "תמצא",
            "חפש",
            "צור",
            "הוסף",
            "מחק",
            "הצג",
            "השלים",
            "העביר",
            "update",
            "change",
            "find",
            "search",
            "create",
            "add",
            "delete",
            "show",
        ],
        description="Tokens that mark a reply as a fresh request superseding the pending action",
    )


class MessagesConfig(BaseModel):
    """User-facing response texts."""

    confirm_header: str = Field(default="🔔 **Confirmation required:**")
    confirm_question: str = Field(default="❓ **Proceed with this action? (yes/cancel)**")
    action_completed: str = Field(default="✅ The action was completed successfully!")
    action_failed: str = Field(default="❌ The action failed: {error}")
    action_cancelled: str = Field(default="❌ The action was cancelled as requested.")
    clarification: str = Field(
        default=(
            "I did not understand the reply. "
            'Please answer "yes" to confirm or "cancel" to cancel.'
        )
    )
    llm_error: str = Field(default="❌ A communication error occurred: {error}")
    partial_success: str = Field(
        default="✅ The action was partially completed. Please check the results in the system."
    )
    retry_request: str = Field(
        default="❌ I could not complete the request. Please rephrase or split it into smaller steps."
    )
    done: str = Field(default="✅ The action was completed.")
    not_understood: str = Field(default="❌ I did not understand the request. Please rephrase.")


class DataStoreConfig(BaseModel):
    """Airtable connection configuration."""

    base_id: str = Field(default="appL1FfUaRbmPNI01", description="Airtable base ID")
    api_url: str = Field(default="https://api.airtable.com/v0", description="Airtable REST root")
    timeout: int = Field(default=30, description="Request timeout in seconds", ge=1)
    page_size: int = Field(default=100, description="Records per page", ge=1, le=100)
    create_max_retries: int = Field(
        default=10,
        description="Attempts when a create is rejected because of a computed field",
        ge=1,
        le=50,
    )


class TablesConfig(BaseModel):
    """Table identifiers, aliases and the link fields the tools rely on."""

    ids: dict[str, str] = Field(
        default={
            "transactions": "tblSgYN8CbQcxeT0j",
            "customers": "tblcTFGg6WyKkO5kq",
            "projects": "tbl9p6XdUrecy2h7G",
            "leads": "tbl3ZCmqfit2L0iQ0",
            "offices": "tbl7etO9Yn3VH9QpT",
            "flowers": "tblNJzcMRtyMdH14d",
            "control": "tblYxAM0xNp0z9EoN",
            "employees": "tbl8JT0j7C35yMcc2",
        },
        description="Logical table name -> Airtable table ID",
    )
    aliases: dict[str, str] = Field(
        default={
            "customer": "customers",
            "לקוחות": "customers",
            "project": "projects",
            "פרויקטים": "projects",
            "פרוייקטים": "projects",
            "פרויקט": "projects",
            "עסקאות": "transactions",
            "לידים": "leads",
            "משרדים": "offices",
            "פרחים": "flowers",
            "בקרה": "control",
            "עובדים": "employees",
        },
        description="Extra human-friendly names -> logical table name",
    )
    labels: dict[str, str] = Field(
        default={"transactions": "transaction", "customers": "customer", "projects": "project"},
        description="Singular labels used in confirmation summaries",
    )
    transaction_customer_field: str = Field(default="לקוחות")
    transaction_project_field: str = Field(default="פרוייקט")
    transaction_office_field: str = Field(default="משרד")
    office_floor_field: str = Field(default="קומה")
    office_project_field: str = Field(default="פרוייקט")
    office_number_fields: list[str] = Field(
        default=["מס׳ משרד duplicate", "מס׳ משרד", "מספר משרד"],
        description="Candidate field names holding an office number, in priority order",
    )


class CredentialsConfig(BaseModel):
    """Where API keys are read from."""

    llm_api_key_env: str = Field(
        default="CLAUDE_API_KEY", description="Environment variable holding the Anthropic key"
    )
    datastore_api_key_env: str = Field(
        default="AIRTABLE_API_KEY", description="Environment variable holding the Airtable key"
    )
    override_file: str | None = Field(
        default="env_config.txt",
        description="Optional local KEY=VALUE file consulted when a variable is unset",
    )


class ServerConfig(BaseModel):
    """API server configuration."""

    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(default=3000, description="Server port", ge=1, le=65535)
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins",
    )
    diagnostics_enabled: bool = Field(
        default=False, description="Expose the /test data-store endpoints"
    )
    diagnostics_key: str | None = Field(
        default=None, description="Value required in the x-test-key header, if set"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Root log level")


class TabletalkConfig(BaseModel):
    """Root configuration schema for Tabletalk."""

    model: ModelConfig = Field(default_factory=ModelConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    memory: MemoryConfig = Field(default_factory=MemoryConfig)
    confirmation: ConfirmationConfig = Field(default_factory=ConfirmationConfig)
    messages: MessagesConfig = Field(default_factory=MessagesConfig)
    datastore: DataStoreConfig = Field(default_factory=DataStoreConfig)
    tables: TablesConfig = Field(default_factory=TablesConfig)
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
