"""Search request and response models.

Filters and ranges are compiled into the server's textual query syntax by
``bright.core.query``; these models only carry the structured input.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

SortOrder = Literal["asc", "desc"]


class FieldValue(BaseModel):
    """Equality constraint on one field, optionally weighted."""

    value: Any = Field(description="Value the field must match")
    boost: int | float | None = Field(default=None, description="Relevance boost applied to this clause")


class RangeFilter(BaseModel):
    """Comparison bounds on one ordered field. All set bounds are conjoined."""

    gt: Any = Field(default=None, description="Exclusive lower bound")
    gte: Any = Field(default=None, description="Inclusive lower bound")
    lt: Any = Field(default=None, description="Exclusive upper bound")
    lte: Any = Field(default=None, description="Inclusive upper bound")


class SortSpec(BaseModel):
    """Explicit sort on one field."""

    field: str = Field(description="Field to sort on")
    order: SortOrder = Field(default="asc", description="Sort direction")


# A bare scalar, a FieldValue, or a mapping with ``value`` / ``boost`` keys.
FilterValue = Any
FieldFilter = Mapping[str, FilterValue]
FieldRangeFilter = Mapping[str, Union[RangeFilter, Mapping[str, Any], None]]
# "price" (ascending), "-price" (descending), or an explicit spec.
SortField = Union[str, SortSpec, Mapping[str, Any]]


class SearchParams(BaseModel):
    """Parameters of a search call.

    ``filter`` and ``range`` keys should name fields of the indexed documents.
    ``attributes_to_exclude`` is a projection hint; the server applies it.
    """

    model_config = ConfigDict(extra="forbid")

    q: str | None = Field(default=None, description="Free-text query")
    filter: dict[str, Any] | None = Field(default=None, description="Per-field equality constraints")
    range: dict[str, Any] | None = Field(default=None, description="Per-field comparison bounds")
    offset: int | None = Field(default=None, ge=0, description="Number of hits to skip")
    limit: int | None = Field(default=None, ge=0, description="Maximum number of hits")
    page: int | None = Field(default=None, ge=0, description="Page number")
    sort: list[Any] | None = Field(default=None, description="Sort fields in precedence order")
    attributes_to_retrieve: list[str] | None = Field(default=None, description="Fields to return")
    attributes_to_exclude: list[str] | None = Field(default=None, description="Fields to omit from hits")


class SearchResponse(BaseModel):
    """Search results.

    Hits are returned as plain dicts; their shape is a contract with the
    server and is not validated here.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    hits: list[dict[str, Any]] = Field(default_factory=list, description="Matching documents")
    total_hits: int = Field(default=0, alias="totalHits", description="Total number of matches")
    total_pages: int = Field(default=0, alias="totalPages", description="Total number of pages")
