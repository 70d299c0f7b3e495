"""Query compiler — Turns structured filters into Bright's textual query syntax.

Compilation rules:
  - filter ``{"genre": "scifi"}``                     → ``genre:scifi``
  - filter ``{"price": FieldValue(value=10, boost=2)}`` → ``price:10^2``
  - range  ``{"year": RangeFilter(gte=1990, lt=2000)}`` → ``year:>=1990 year:<2000``
  - free text comes first, then filter clauses, then range clauses,
    separated by single spaces.

Whole-number floats render without a fraction (``10.0`` → ``10``).

A ``None`` value means "not set" and is skipped; ``0``, ``False`` and ``""``
are real values and are emitted.

Values are interpolated as-is. The query language gives ``:``, ``^`` and
whitespace a meaning, and no escaping is applied: a value containing them may
be read differently by the server.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any

from bright.models.search import (
    FieldFilter,
    FieldRangeFilter,
    FieldValue,
    FilterValue,
    RangeFilter,
    SortField,
    SortSpec,
)

DESCENDING_PREFIX = "-"

# Emission order of range bounds
_RANGE_OPERATORS: tuple[tuple[str, str], ...] = (
    ("gt", ">"),
    ("gte", ">="),
    ("lt", "<"),
    ("lte", "<="),
)


def format_value(value: Any) -> str:
    """Render a filter value as a query token."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _filter_clause(field: str, value: FilterValue) -> str | None:
    boost = None
    if isinstance(value, FieldValue):
        value, boost = value.value, value.boost
    elif isinstance(value, Mapping) and "value" in value:
        value, boost = value["value"], value.get("boost")

    if value is None:
        return None
    if boost is not None:
        return f"{field}:{format_value(value)}^{format_value(boost)}"
    return f"{field}:{format_value(value)}"


def _range_clauses(field: str, bounds: RangeFilter | Mapping[str, Any]) -> list[str]:
    if isinstance(bounds, RangeFilter):
        bounds = bounds.model_dump()

    clauses: list[str] = []
    for key, operator in _RANGE_OPERATORS:
        bound = bounds.get(key)
        if bound is not None:
            clauses.append(f"{field}:{operator}{format_value(bound)}")
    return clauses


def build_filter_query(
    filter: FieldFilter | None = None,
    range: FieldRangeFilter | None = None,
) -> str:
    """Compile equality filters and range bounds into query clauses.

    Args:
        filter: Field name to a scalar, a ``FieldValue``, or a mapping with
            ``value`` and optional ``boost``.
        range: Field name to a ``RangeFilter`` or a mapping with any of
            ``gt``, ``gte``, ``lt``, ``lte``.

    Returns:
        Space-separated clauses, or ``""`` when nothing is set.
    """
    parts: list[str] = []

    for field, value in (filter or {}).items():
        clause = _filter_clause(field, value)
        if clause is not None:
            parts.append(clause)

    for field, bounds in (range or {}).items():
        if bounds is None:
            continue
        parts.extend(_range_clauses(field, bounds))

    return " ".join(parts)


def compile_query(
    q: str | None = None,
    filter: FieldFilter | None = None,
    range: FieldRangeFilter | None = None,
) -> str | None:
    """Build the full ``q`` parameter from free text and structured filters.

    Returns:
        The query string, or ``None`` if it would be empty (the parameter
        should then be omitted).
    """
    filter_query = build_filter_query(filter, range)
    full_query = " ".join(part for part in (q, filter_query) if part)
    return full_query or None


def normalize_sort_field(sort: SortField) -> str:
    """Serialize one sort field for the ``sort[]`` parameter.

    ``"price"`` and ``"-price"`` pass through unchanged. An explicit spec
    becomes ``"-price"`` for descending order and ``"price"`` otherwise.
    """
    if isinstance(sort, SortSpec):
        field, order = sort.field, sort.order
    elif isinstance(sort, Mapping) and "field" in sort:
        field, order = str(sort["field"]), sort.get("order")
    else:
        return str(sort)

    return f"{DESCENDING_PREFIX}{field}" if order == "desc" else field


def normalize_sort(sort: Iterable[SortField] | None) -> list[str]:
    """Serialize a sequence of sort fields, keeping precedence order."""
    return [normalize_sort_field(s) for s in sort or ()]
