"""Ingress models — Change-data-capture connectors feeding an index.

An ingress has a requested ``state`` (what the client asks for) and an
observed ``status`` (what the server reports). Clients request state
transitions; the status follows on the server's schedule.

Ingress payloads are a tagged union on ``type``. Known connector types get a
typed ``config``; any other type is kept as a ``GenericIngress`` with an
opaque config so newer servers do not break older clients.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    ValidationError,
    model_validator,
)

IngressState = Literal["running", "paused", "resyncing"]
IngressStatus = Literal["stopped", "starting", "running", "syncing", "paused", "failed"]
SyncMode = Literal["polling", "listen"]


class PostgresIngressConfig(BaseModel):
    """Connection and sync settings for a PostgreSQL table.

    Every field is optional so server replies that redact the DSN still parse.
    ``CreatePostgresIngressParams`` requires ``dsn`` and ``table``.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    dsn: str | None = Field(default=None, description="PostgreSQL connection string (servers may omit it)")
    table: str | None = Field(default=None, description="Table to sync")
    schema_: str | None = Field(default=None, alias="schema", description='PostgreSQL schema (server default "public")')
    primary_key: str | None = Field(default=None, description='Primary key column (server default "id")')
    columns: list[str] | None = Field(default=None, description="Columns to sync; all when empty")
    column_mapping: dict[str, str] | None = Field(default=None, description="Column renames")
    updated_at_column: str | None = Field(default=None, description="Timestamp column used for change detection")
    where_clause: str | None = Field(default=None, description="SQL WHERE condition filtering rows")
    sync_mode: SyncMode | None = Field(default=None, description='"polling" or "listen"')
    poll_interval: str | None = Field(default=None, description='Poll interval, e.g. "10s", "1m"')
    batch_size: int | None = Field(default=None, description="Documents per batch")
    auto_triggers: bool | None = Field(default=None, description="Create LISTEN triggers automatically")


class IngressStatistics(BaseModel):
    """Sync counters reported by the server."""

    model_config = ConfigDict(extra="allow")

    last_sync_at: str | None = Field(default=None, description="Timestamp of the last sync")
    documents_synced: int = Field(default=0, description="Documents written to the index")
    documents_deleted: int = Field(default=0, description="Documents removed from the index")
    full_sync_complete: bool = Field(default=False, description="Whether the initial full sync finished")
    last_error: str | None = Field(default=None, description="Most recent sync error")
    error_count: int = Field(default=0, description="Number of sync errors")


class _IngressBase(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(description="Ingress identifier")
    index_id: str = Field(description="Index the ingress writes into")
    status: IngressStatus | str = Field(default="stopped", description="Observed lifecycle status")
    statistics: IngressStatistics = Field(default_factory=IngressStatistics, description="Sync counters")


class PostgresIngress(_IngressBase):
    """Ingress syncing a PostgreSQL table."""

    type: Literal["postgres"] = "postgres"
    config: PostgresIngressConfig


class GenericIngress(_IngressBase):
    """Ingress of a connector type this client has no typed model for."""

    type: str
    config: dict[str, Any] = Field(default_factory=dict)


def _ingress_tag(value: Any) -> str:
    kind = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return "postgres" if kind == "postgres" else "generic"


Ingress = Annotated[
    Union[
        Annotated[PostgresIngress, Tag("postgres")],
        Annotated[GenericIngress, Tag("generic")],
    ],
    Discriminator(_ingress_tag),
]

_ingress_adapter: TypeAdapter[Ingress] = TypeAdapter(Ingress)


def parse_ingress(data: Any) -> PostgresIngress | GenericIngress | None:
    """Parse a server ingress payload into its typed variant.

    Payloads are not rejected: one that does not fit its variant is kept as
    an unvalidated ``GenericIngress``. ``None`` (a 204) stays ``None``.
    """
    if data is None or not isinstance(data, Mapping):
        return data
    try:
        return _ingress_adapter.validate_python(data)
    except ValidationError:
        return GenericIngress.model_construct(**data)


class CreateIngressParams(BaseModel):
    """Body of a create-ingress request for any connector type."""

    id: str = Field(description="Ingress identifier")
    type: str = Field(description="Connector type")
    config: dict[str, Any] = Field(default_factory=dict, description="Connector-specific settings")


class CreatePostgresIngressParams(BaseModel):
    """Body of a create-ingress request for a PostgreSQL connector."""

    id: str = Field(description="Ingress identifier")
    type: Literal["postgres"] = "postgres"
    config: PostgresIngressConfig

    @model_validator(mode="after")
    def _require_connection(self) -> CreatePostgresIngressParams:
        missing = [name for name in ("dsn", "table") if getattr(self.config, name) is None]
        if missing:
            raise ValueError(f"postgres ingress config requires {', '.join(missing)}")
        return self
