"""Index models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class IndexConfig(BaseModel):
    """Configuration of a single search index as reported by the server."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(description="Index identifier")
    primary_key: str | None = Field(
        default=None,
        alias="primaryKey",
        description="Document field used as the primary key",
    )


class AddDocumentsResult(BaseModel):
    """Result of a bulk document upload."""

    model_config = ConfigDict(extra="allow")

    indexed: int = Field(default=0, description="Number of documents indexed")
