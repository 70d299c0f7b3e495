"""Error taxonomy — Typed errors decoded from Bright server responses.

The server reports failures with a JSON envelope::

    {"error": "Index 'books' not found", "code": "INDEX_NOT_FOUND", "details": {...}}

``create_bright_error`` turns ``(status_code, envelope)`` into exactly one
``BrightError``. Classification order:
  1. A known ``code`` picks its kind from a fixed table.
  2. A missing or unrecognised ``code`` falls back to the HTTP status
     (400, 403, 404, 409, 307/503, 500) and picks a category kind.
  3. Anything else becomes a ``GENERIC`` error carrying the raw values.

Callers branch on ``error.kind`` / ``error.category`` (or the ``is_*``
shorthands) instead of on exception subclasses.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Broad error category shared by several codes."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CLUSTER = "cluster"
    AUTHORIZATION = "authorization"
    CONFLICT = "conflict"
    INTERNAL = "internal"
    UNKNOWN = "unknown"


class ErrorCode(str, Enum):
    """Error codes sent by the server in the ``code`` field."""

    # Validation (400)
    MISSING_PARAMETER = "MISSING_PARAMETER"
    INVALID_PARAMETER = "INVALID_PARAMETER"
    INVALID_REQUEST_BODY = "INVALID_REQUEST_BODY"
    CONFLICTING_PARAMETERS = "CONFLICTING_PARAMETERS"
    INVALID_FORMAT = "INVALID_FORMAT"
    PARSE_ERROR = "PARSE_ERROR"
    # Not found (404)
    INDEX_NOT_FOUND = "INDEX_NOT_FOUND"
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    # Cluster (307 / 503)
    NOT_LEADER = "NOT_LEADER"
    CLUSTER_UNAVAILABLE = "CLUSTER_UNAVAILABLE"
    # Authorization (403)
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    LEADER_ONLY_OPERATION = "LEADER_ONLY_OPERATION"
    # Conflict (409)
    RESOURCE_ALREADY_EXISTS = "RESOURCE_ALREADY_EXISTS"
    # Internal (500)
    UUID_GENERATION_FAILED = "UUID_GENERATION_FAILED"
    SERIALIZATION_FAILED = "SERIALIZATION_FAILED"
    RAFT_APPLY_FAILED = "RAFT_APPLY_FAILED"
    INDEX_OPERATION_FAILED = "INDEX_OPERATION_FAILED"
    DOCUMENT_OPERATION_FAILED = "DOCUMENT_OPERATION_FAILED"
    BATCH_OPERATION_FAILED = "BATCH_OPERATION_FAILED"
    SEARCH_FAILED = "SEARCH_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    @property
    def kind(self) -> ErrorKind:
        return _CODE_KINDS[self]

    @property
    def category(self) -> ErrorCategory:
        return _CODE_KINDS[self].category

    @property
    def default_status(self) -> int:
        """HTTP status the server conventionally pairs with this code."""
        return _DEFAULT_STATUS[self]

    @classmethod
    def parse(cls, value: Any) -> ErrorCode | None:
        """Return the member for ``value``, or ``None`` if it is not a known code."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class ErrorKind(str, Enum):
    """Concrete error variant.

    One kind per error code, plus one per category for errors classified
    from the HTTP status alone, plus ``GENERIC``. The ``INTERNAL_ERROR`` code
    maps to the ``INTERNAL`` category kind.
    """

    VALIDATION = "validation"
    MISSING_PARAMETER = "missing_parameter"
    INVALID_PARAMETER = "invalid_parameter"
    INVALID_REQUEST_BODY = "invalid_request_body"
    CONFLICTING_PARAMETERS = "conflicting_parameters"
    INVALID_FORMAT = "invalid_format"
    PARSE_ERROR = "parse_error"

    NOT_FOUND = "not_found"
    INDEX_NOT_FOUND = "index_not_found"
    DOCUMENT_NOT_FOUND = "document_not_found"

    CLUSTER = "cluster"
    NOT_LEADER = "not_leader"
    CLUSTER_UNAVAILABLE = "cluster_unavailable"

    AUTHORIZATION = "authorization"
    INSUFFICIENT_PERMISSIONS = "insufficient_permissions"
    LEADER_ONLY_OPERATION = "leader_only_operation"

    CONFLICT = "conflict"
    RESOURCE_ALREADY_EXISTS = "resource_already_exists"

    INTERNAL = "internal"
    UUID_GENERATION_FAILED = "uuid_generation_failed"
    SERIALIZATION_FAILED = "serialization_failed"
    RAFT_APPLY_FAILED = "raft_apply_failed"
    INDEX_OPERATION_FAILED = "index_operation_failed"
    DOCUMENT_OPERATION_FAILED = "document_operation_failed"
    BATCH_OPERATION_FAILED = "batch_operation_failed"
    SEARCH_FAILED = "search_failed"

    GENERIC = "generic"

    @property
    def category(self) -> ErrorCategory:
        return _KIND_CATEGORIES[self]


_C = ErrorCategory
_K = ErrorKind

_KIND_CATEGORIES: dict[ErrorKind, ErrorCategory] = {
    _K.VALIDATION: _C.VALIDATION,
    _K.MISSING_PARAMETER: _C.VALIDATION,
    _K.INVALID_PARAMETER: _C.VALIDATION,
    _K.INVALID_REQUEST_BODY: _C.VALIDATION,
    _K.CONFLICTING_PARAMETERS: _C.VALIDATION,
    _K.INVALID_FORMAT: _C.VALIDATION,
    _K.PARSE_ERROR: _C.VALIDATION,
    _K.NOT_FOUND: _C.NOT_FOUND,
    _K.INDEX_NOT_FOUND: _C.NOT_FOUND,
    _K.DOCUMENT_NOT_FOUND: _C.NOT_FOUND,
    _K.CLUSTER: _C.CLUSTER,
    _K.NOT_LEADER: _C.CLUSTER,
    _K.CLUSTER_UNAVAILABLE: _C.CLUSTER,
    _K.AUTHORIZATION: _C.AUTHORIZATION,
    _K.INSUFFICIENT_PERMISSIONS: _C.AUTHORIZATION,
    _K.LEADER_ONLY_OPERATION: _C.AUTHORIZATION,
    _K.CONFLICT: _C.CONFLICT,
    _K.RESOURCE_ALREADY_EXISTS: _C.CONFLICT,
    _K.INTERNAL: _C.INTERNAL,
    _K.UUID_GENERATION_FAILED: _C.INTERNAL,
    _K.SERIALIZATION_FAILED: _C.INTERNAL,
    _K.RAFT_APPLY_FAILED: _C.INTERNAL,
    _K.INDEX_OPERATION_FAILED: _C.INTERNAL,
    _K.DOCUMENT_OPERATION_FAILED: _C.INTERNAL,
    _K.BATCH_OPERATION_FAILED: _C.INTERNAL,
    _K.SEARCH_FAILED: _C.INTERNAL,
    _K.GENERIC: _C.UNKNOWN,
}

_CODE_KINDS: dict[ErrorCode, ErrorKind] = {
    ErrorCode.MISSING_PARAMETER: _K.MISSING_PARAMETER,
    ErrorCode.INVALID_PARAMETER: _K.INVALID_PARAMETER,
    ErrorCode.INVALID_REQUEST_BODY: _K.INVALID_REQUEST_BODY,
    ErrorCode.CONFLICTING_PARAMETERS: _K.CONFLICTING_PARAMETERS,
    ErrorCode.INVALID_FORMAT: _K.INVALID_FORMAT,
    ErrorCode.PARSE_ERROR: _K.PARSE_ERROR,
    ErrorCode.INDEX_NOT_FOUND: _K.INDEX_NOT_FOUND,
    ErrorCode.DOCUMENT_NOT_FOUND: _K.DOCUMENT_NOT_FOUND,
    ErrorCode.NOT_LEADER: _K.NOT_LEADER,
    ErrorCode.CLUSTER_UNAVAILABLE: _K.CLUSTER_UNAVAILABLE,
    ErrorCode.INSUFFICIENT_PERMISSIONS: _K.INSUFFICIENT_PERMISSIONS,
    ErrorCode.LEADER_ONLY_OPERATION: _K.LEADER_ONLY_OPERATION,
    ErrorCode.RESOURCE_ALREADY_EXISTS: _K.RESOURCE_ALREADY_EXISTS,
    ErrorCode.UUID_GENERATION_FAILED: _K.UUID_GENERATION_FAILED,
    ErrorCode.SERIALIZATION_FAILED: _K.SERIALIZATION_FAILED,
    ErrorCode.RAFT_APPLY_FAILED: _K.RAFT_APPLY_FAILED,
    ErrorCode.INDEX_OPERATION_FAILED: _K.INDEX_OPERATION_FAILED,
    ErrorCode.DOCUMENT_OPERATION_FAILED: _K.DOCUMENT_OPERATION_FAILED,
    ErrorCode.BATCH_OPERATION_FAILED: _K.BATCH_OPERATION_FAILED,
    ErrorCode.SEARCH_FAILED: _K.SEARCH_FAILED,
    ErrorCode.INTERNAL_ERROR: _K.INTERNAL,
}

_CATEGORY_STATUS: dict[ErrorCategory, int] = {
    _C.VALIDATION: 400,
    _C.NOT_FOUND: 404,
    _C.AUTHORIZATION: 403,
    _C.CONFLICT: 409,
    _C.INTERNAL: 500,
}

_DEFAULT_STATUS: dict[ErrorCode, int] = {
    code: _CATEGORY_STATUS.get(kind.category, 500) for code, kind in _CODE_KINDS.items()
}
_DEFAULT_STATUS[ErrorCode.NOT_LEADER] = 307
_DEFAULT_STATUS[ErrorCode.CLUSTER_UNAVAILABLE] = 503

# Status-code fallback when no usable code is present
_STATUS_KINDS: dict[int, ErrorKind] = {
    400: _K.VALIDATION,
    404: _K.NOT_FOUND,
    403: _K.AUTHORIZATION,
    409: _K.CONFLICT,
    307: _K.CLUSTER,
    503: _K.CLUSTER,
    500: _K.INTERNAL,
}


class BrightError(Exception):
    """Error reported by (or on the way to) a Bright server.

    Attributes:
        kind: Concrete error variant.
        message: Human-readable message from the ``error`` field.
        status_code: HTTP status of the response (0 if none was received).
        code: The wire code; an ``ErrorCode`` when recognised, the raw string
            when the server sent a code this client does not know.
        details: Extra structured data from the server, forwarded verbatim.
        leader_url: Current leader address, set for ``NOT_LEADER`` only.
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        *,
        kind: ErrorKind = ErrorKind.GENERIC,
        code: ErrorCode | str | None = None,
        details: dict[str, Any] | None = None,
        leader_url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details
        self.leader_url = leader_url

    @property
    def category(self) -> ErrorCategory:
        return self.kind.category

    @property
    def is_validation(self) -> bool:
        return self.category is ErrorCategory.VALIDATION

    @property
    def is_not_found(self) -> bool:
        return self.category is ErrorCategory.NOT_FOUND

    @property
    def is_cluster(self) -> bool:
        return self.category is ErrorCategory.CLUSTER

    @property
    def is_authorization(self) -> bool:
        return self.category is ErrorCategory.AUTHORIZATION

    @property
    def is_conflict(self) -> bool:
        return self.category is ErrorCategory.CONFLICT

    @property
    def is_internal(self) -> bool:
        return self.category is ErrorCategory.INTERNAL

    def to_dict(self) -> dict[str, Any]:
        """Render the error back into its wire envelope plus ``statusCode``."""
        code = self.code.value if isinstance(self.code, ErrorCode) else self.code
        return {
            "error": self.message,
            "code": code,
            "details": self.details,
            "statusCode": self.status_code,
        }

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self.kind.value!r}, status_code={self.status_code}, "
            f"code={self.code!r}, message={self.message!r})"
        )


class BrightConnectionError(BrightError):
    """Raised when a request fails before any HTTP response is received."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 0)


def create_bright_error(status_code: int, body: Mapping[str, Any]) -> BrightError:
    """Classify a decoded error envelope into a ``BrightError``.

    Args:
        status_code: HTTP status of the failed response.
        body: Decoded envelope with ``error`` and optional ``code``/``details``.

    Returns:
        The classified error. Never raises for unknown codes or statuses.
    """
    message = str(body.get("error") or "")
    raw_code = body.get("code")
    raw_details = body.get("details")
    details = dict(raw_details) if isinstance(raw_details, Mapping) else None

    code = ErrorCode.parse(raw_code) if raw_code is not None else None
    if code is not None:
        leader_url = None
        if code is ErrorCode.NOT_LEADER and details is not None:
            candidate = details.get("leaderUrl")
            leader_url = candidate if isinstance(candidate, str) else None
        return BrightError(
            message,
            status_code,
            kind=code.kind,
            code=code,
            details=details,
            leader_url=leader_url,
        )

    kind = _STATUS_KINDS.get(status_code, ErrorKind.GENERIC)
    return BrightError(message, status_code, kind=kind, code=raw_code, details=details)
