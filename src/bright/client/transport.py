"""Request executor — Sends one API call and decodes its outcome.

Every request carries ``Content-Type: application/json`` and, when an API key
is configured, ``Authorization: Bearer <key>``; caller headers override both.

Non-2xx responses are decoded as the server's error envelope (falling back to
the HTTP reason phrase when the body is not a JSON object) and raised as a
classified ``BrightError``. A 204 response yields ``None``. Anything else is
returned as decoded JSON without schema validation. There are no retries.
"""

from __future__ import annotations

import json as jsonlib
import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from bright.errors import BrightConnectionError, create_bright_error

logger = logging.getLogger(__name__)

QueryParams = Sequence[tuple[str, str]]


class RequestExecutor:
    """Executes requests against a Bright server through an ``httpx.AsyncClient``.

    Args:
        client: HTTP client with ``base_url`` already set.
        api_key: Bearer token attached to every request, if any.
    """

    def __init__(self, client: httpx.AsyncClient, api_key: str | None = None) -> None:
        self._client = client
        self._api_key = api_key

    def build_headers(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        if extra:
            headers.update(extra)
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: QueryParams | None = None,
        content: str | bytes | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """Execute one request.

        Args:
            method: HTTP method.
            path: Path relative to the base URL, e.g. ``/indexes/books``.
            params: Query parameters as ``(name, value)`` pairs; repeated names
                are allowed.
            content: Pre-serialized request body.
            json: Object serialized to a JSON body (ignored if ``content`` is set).
            headers: Extra headers, overriding the defaults.

        Returns:
            The decoded JSON body, or ``None`` for a 204 response.

        Raises:
            BrightError: The server answered with a non-2xx status.
            BrightConnectionError: No response was received.
        """
        if content is None and json is not None:
            content = jsonlib.dumps(json)

        logger.debug("%s %s params=%s", method, path, list(params or ()))
        try:
            resp = await self._client.request(
                method,
                path,
                params=list(params) if params else None,
                content=content,
                headers=self.build_headers(headers),
            )
        except httpx.TransportError as e:
            raise BrightConnectionError(f"Request {method} {path} failed: {e}") from e

        if not resp.is_success:
            error = create_bright_error(resp.status_code, self._decode_error_body(resp))
            logger.warning(
                "%s %s failed with HTTP %d (%s): %s",
                method,
                path,
                resp.status_code,
                error.kind.value,
                error.message,
            )
            raise error

        if resp.status_code == 204:
            return None

        return resp.json()

    @staticmethod
    def _decode_error_body(resp: httpx.Response) -> dict[str, Any]:
        """Decode the error envelope, or synthesize one from the status text."""
        try:
            body = resp.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            return {"error": resp.reason_phrase}
        if not body.get("error"):
            body = {**body, "error": resp.reason_phrase}
        return body
