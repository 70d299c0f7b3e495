"""Bright Python SDK — Async and sync clients for the Bright REST API.

Usage::

    # Async
    async with AsyncBrightClient("http://localhost:3000", api_key="secret") as client:
        await client.create_index("books", primary_key="isbn")
        books = client.index("books")
        await books.add_documents([{"isbn": "1", "title": "Dune", "year": 1965}])
        resp = await books.search(q="dune", range={"year": {"gte": 1960}})

    # Sync (wraps the async client internally)
    client = BrightClient("http://localhost:3000")
    client.index_exists("books")
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Coroutine, Iterable, Mapping
from typing import TYPE_CHECKING, Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from bright.client.transport import RequestExecutor
from bright.core.query import build_filter_query, compile_query, normalize_sort
from bright.errors import BrightError
from bright.models.index import AddDocumentsResult, IndexConfig
from bright.models.ingress import (
    CreateIngressParams,
    CreatePostgresIngressParams,
    GenericIngress,
    IngressState,
    PostgresIngress,
    parse_ingress,
)
from bright.models.search import SearchParams, SearchResponse

if TYPE_CHECKING:
    from bright.client.handle import IndexHandle, SyncIndexHandle
    from bright.config.settings import ClientSettings

_T = TypeVar("_T")
_M = TypeVar("_M", bound=BaseModel)

logger = logging.getLogger(__name__)

Document = Mapping[str, Any] | BaseModel
IngressParams = CreateIngressParams | CreatePostgresIngressParams | Mapping[str, Any]
IngressResult = PostgresIngress | GenericIngress


def _segment(value: str) -> str:
    """Percent-encode one path segment."""
    return quote(str(value), safe="")


def _dump(value: BaseModel | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True)
    return dict(value)


def _document_line(document: Document) -> str:
    if isinstance(document, BaseModel):
        return document.model_dump_json(by_alias=True)
    return json.dumps(dict(document))


def _parse_reply(model: type[_M], data: Any) -> _M | None:
    """Wrap a decoded reply in ``model`` without rejecting it.

    ``None`` (a 204) stays ``None``. A reply the model does not accept is
    wrapped unvalidated with ``model_construct``; non-object replies are
    returned as decoded.
    """
    if data is None or not isinstance(data, Mapping):
        return data
    try:
        return model.model_validate(data)
    except ValidationError:
        logger.debug("Reply does not match %s, keeping it unvalidated", model.__name__)
        return model.model_construct(**data)


def _search_query_params(params: SearchParams) -> list[tuple[str, str]]:
    query: list[tuple[str, str]] = []

    q = compile_query(params.q, params.filter, params.range)
    if q is not None:
        query.append(("q", q))

    for name in ("offset", "limit", "page"):
        value = getattr(params, name)
        if value is not None:
            query.append((name, str(value)))

    query.extend(("sort[]", s) for s in normalize_sort(params.sort))
    query.extend(("attributesToRetrieve[]", str(a)) for a in params.attributes_to_retrieve or ())
    query.extend(("attributesToExclude[]", str(a)) for a in params.attributes_to_exclude or ())
    return query


# ═══════════════════════════════════════════════════════════════════════════════
# Async client
# ═══════════════════════════════════════════════════════════════════════════════


class AsyncBrightClient:
    """Async Python client for the Bright API.

    Each method issues exactly one request. Failed requests raise a
    ``BrightError`` once; nothing is retried.

    Args:
        base_url: Bright server URL, e.g. ``"http://localhost:3000"``.
        api_key: Optional API key sent as a bearer token.
        timeout: Request timeout in seconds.
        **httpx_kwargs: Additional keyword arguments passed to ``httpx.AsyncClient``
            (``transport=`` for instance).
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        *,
        api_key: str | None = None,
        timeout: float = 30.0,
        **httpx_kwargs: Any,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            **httpx_kwargs,
        )
        self._executor = RequestExecutor(self._client, api_key=api_key)

    @classmethod
    def from_settings(cls, settings: ClientSettings, **httpx_kwargs: Any) -> AsyncBrightClient:
        """Build a client from ``ClientSettings``."""
        return cls(
            settings.base_url,
            api_key=settings.api_key or None,
            timeout=settings.timeout,
            **httpx_kwargs,
        )

    async def __aenter__(self) -> AsyncBrightClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        return await self._executor.request(method, path, **kwargs)

    # ── Indexes ──

    async def create_index(self, id: str, primary_key: str | None = None) -> IndexConfig | None:
        """Create an index.

        Raises:
            BrightError: ``RESOURCE_ALREADY_EXISTS`` if the id is taken.
        """
        params = [("id", id)]
        if primary_key:
            params.append(("primaryKey", primary_key))
        data = await self._request("POST", "/indexes", params=params)
        return _parse_reply(IndexConfig, data)

    async def update_index(self, id: str, config: IndexConfig | Mapping[str, Any]) -> IndexConfig | None:
        """Update an index with a partial configuration."""
        if isinstance(config, IndexConfig):
            body = config.model_dump(by_alias=True, exclude_unset=True)
        else:
            body = dict(config)
        data = await self._request("PATCH", f"/indexes/{_segment(id)}", json=body)
        return _parse_reply(IndexConfig, data)

    async def delete_index(self, id: str) -> None:
        await self._request("DELETE", f"/indexes/{_segment(id)}")

    async def get_index(self, id: str) -> IndexConfig | None:
        data = await self._request("GET", f"/indexes/{_segment(id)}")
        return _parse_reply(IndexConfig, data)

    async def index_exists(self, id: str) -> bool:
        """Return whether an index exists.

        Only not-found errors map to ``False``; any other error is raised.
        """
        try:
            await self._request("GET", f"/indexes/{_segment(id)}")
        except BrightError as e:
            if e.is_not_found:
                return False
            raise
        return True

    # ── Documents ──

    async def add_documents(
        self,
        index_id: str,
        documents: Iterable[Document],
        *,
        format: str = "jsoneachrow",
        primary_key: str | None = None,
    ) -> AddDocumentsResult:
        """Upload documents as newline-delimited JSON.

        Args:
            index_id: Target index.
            documents: Mappings or pydantic models, one per document.
            format: Body format; the server currently accepts ``jsoneachrow``.
            primary_key: Primary key field, if the index has none yet.

        Returns:
            Server acknowledgement with the number of indexed documents.
        """
        lines = [_document_line(doc) for doc in documents]
        logger.debug("Uploading %d documents to index %s", len(lines), index_id)
        body = "\n".join(lines)
        params = [("format", format or "jsoneachrow")]
        if primary_key:
            params.append(("primaryKey", primary_key))
        data = await self._request(
            "POST",
            f"/indexes/{_segment(index_id)}/documents",
            params=params,
            content=body,
        )
        return _parse_reply(AddDocumentsResult, data or {})

    async def update_document(
        self,
        index_id: str,
        document_id: str,
        updates: Document,
    ) -> dict[str, Any]:
        """Partially update one document and return the stored document."""
        return await self._request(
            "PATCH",
            f"/indexes/{_segment(index_id)}/documents/{_segment(document_id)}",
            json=_dump(updates),
        )

    async def delete_document(self, index_id: str, document_id: str) -> None:
        await self._request(
            "DELETE",
            f"/indexes/{_segment(index_id)}/documents/{_segment(document_id)}",
        )

    async def delete_documents(
        self,
        index_id: str,
        *,
        ids: Iterable[str] | None = None,
        filter: str | Mapping[str, Any] | None = None,
    ) -> None:
        """Delete documents by id list and/or filter.

        Args:
            index_id: Target index.
            ids: Document ids to delete.
            filter: A query string, or a field filter mapping compiled the
                same way as search filters.
        """
        params: list[tuple[str, str]] = [("ids[]", str(doc_id)) for doc_id in ids or ()]
        if isinstance(filter, Mapping):
            filter = build_filter_query(filter)
        if filter:
            params.append(("filter", filter))
        await self._request("DELETE", f"/indexes/{_segment(index_id)}/documents", params=params)

    # ── Search ──

    async def search(
        self,
        index_id: str,
        params: SearchParams | None = None,
        **kwargs: Any,
    ) -> SearchResponse:
        """Search an index.

        Parameters can be given as a ``SearchParams`` or as keyword arguments
        (``q``, ``filter``, ``range``, ``offset``, ``limit``, ``page``, ``sort``,
        ``attributes_to_retrieve``, ``attributes_to_exclude``). Keyword
        arguments override fields of ``params``.

        Example::

            await client.search(
                "books",
                q="space opera",
                filter={"genre": "scifi", "rating": FieldValue(value=5, boost=2)},
                range={"year": RangeFilter(gte=1960, lt=1990)},
                sort=[SortSpec(field="year", order="desc"), "title"],
            )
        """
        if params is None:
            params = SearchParams(**kwargs)
        elif kwargs:
            current = {name: getattr(params, name) for name in params.model_fields_set}
            params = SearchParams.model_validate({**current, **kwargs})

        data = await self._request(
            "POST",
            f"/indexes/{_segment(index_id)}/searches",
            params=_search_query_params(params),
        )
        return _parse_reply(SearchResponse, data or {})

    # ── Ingresses ──

    async def list_ingresses(self, index_id: str) -> list[IngressResult]:
        data = await self._request("GET", f"/indexes/{_segment(index_id)}/ingresses")
        return [parse_ingress(item) for item in (data or {}).get("ingresses", [])]

    async def create_ingress(self, index_id: str, params: IngressParams) -> IngressResult | None:
        """Create a data ingress on an index.

        Example::

            await client.create_ingress(
                "books",
                CreatePostgresIngressParams(
                    id="pg-books",
                    config=PostgresIngressConfig(dsn="postgres://...", table="books"),
                ),
            )
        """
        data = await self._request(
            "POST",
            f"/indexes/{_segment(index_id)}/ingresses",
            json=_dump(params),
        )
        return parse_ingress(data)

    async def get_ingress(self, index_id: str, ingress_id: str) -> IngressResult | None:
        data = await self._request(
            "GET",
            f"/indexes/{_segment(index_id)}/ingresses/{_segment(ingress_id)}",
        )
        return parse_ingress(data)

    async def ingress_exists(self, index_id: str, ingress_id: str) -> bool:
        """Return whether an ingress exists.

        Only not-found errors map to ``False``; any other error is raised.
        """
        try:
            await self._request(
                "GET",
                f"/indexes/{_segment(index_id)}/ingresses/{_segment(ingress_id)}",
            )
        except BrightError as e:
            if e.is_not_found:
                return False
            raise
        return True

    async def update_ingress(
        self,
        index_id: str,
        ingress_id: str,
        state: IngressState,
    ) -> IngressResult | None:
        """Request a state transition (``running``, ``paused`` or ``resyncing``).

        The observed ``status`` of the returned ingress may lag behind.
        """
        data = await self._request(
            "PATCH",
            f"/indexes/{_segment(index_id)}/ingresses/{_segment(ingress_id)}",
            json={"state": state},
        )
        return parse_ingress(data)

    async def pause_ingress(self, index_id: str, ingress_id: str) -> IngressResult | None:
        return await self.update_ingress(index_id, ingress_id, "paused")

    async def resume_ingress(self, index_id: str, ingress_id: str) -> IngressResult | None:
        return await self.update_ingress(index_id, ingress_id, "running")

    async def resync_ingress(self, index_id: str, ingress_id: str) -> IngressResult | None:
        return await self.update_ingress(index_id, ingress_id, "resyncing")

    async def delete_ingress(self, index_id: str, ingress_id: str) -> None:
        await self._request(
            "DELETE",
            f"/indexes/{_segment(index_id)}/ingresses/{_segment(ingress_id)}",
        )

    # ── Handles ──

    def index(self, index_id: str) -> IndexHandle:
        """Return a handle bound to one index."""
        from bright.client.handle import IndexHandle

        return IndexHandle(self, index_id)


# ═══════════════════════════════════════════════════════════════════════════════
# Sync client (wraps AsyncBrightClient)
# ═══════════════════════════════════════════════════════════════════════════════


class BrightClient:
    """Synchronous Python client for the Bright API.

    Wraps :class:`AsyncBrightClient` using ``asyncio.run``; every call opens
    and closes its own async client.

    Args:
        base_url: Bright server URL.
        api_key: Optional API key sent as a bearer token.
        timeout: Request timeout in seconds.
        **httpx_kwargs: Additional keyword arguments passed to ``httpx.AsyncClient``.

    Example::

        client = BrightClient("http://localhost:3000")
        if not client.index_exists("books"):
            client.create_index("books", primary_key="isbn")
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        *,
        api_key: str | None = None,
        timeout: float = 30.0,
        **httpx_kwargs: Any,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._httpx_kwargs = httpx_kwargs

    @classmethod
    def from_settings(cls, settings: ClientSettings, **httpx_kwargs: Any) -> BrightClient:
        """Build a client from ``ClientSettings``."""
        return cls(
            settings.base_url,
            api_key=settings.api_key or None,
            timeout=settings.timeout,
            **httpx_kwargs,
        )

    def _run(self, coro: Coroutine[Any, Any, _T]) -> _T:
        """Run an async coroutine synchronously."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop and loop.is_running():
            # Already inside an event loop (e.g. Jupyter), run in a worker thread
            import concurrent.futures

            with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
                return pool.submit(asyncio.run, coro).result()
        return asyncio.run(coro)

    def _make_client(self) -> AsyncBrightClient:
        return AsyncBrightClient(
            self.base_url,
            api_key=self._api_key,
            timeout=self._timeout,
            **self._httpx_kwargs,
        )

    def _invoke(self, method: str, *args: Any, **kwargs: Any) -> Any:
        async def _call() -> Any:
            async with self._make_client() as c:
                return await getattr(c, method)(*args, **kwargs)

        return self._run(_call())

    # ── Indexes ──

    def create_index(self, id: str, primary_key: str | None = None) -> IndexConfig | None:
        return self._invoke("create_index", id, primary_key)

    def update_index(self, id: str, config: IndexConfig | Mapping[str, Any]) -> IndexConfig | None:
        return self._invoke("update_index", id, config)

    def delete_index(self, id: str) -> None:
        self._invoke("delete_index", id)

    def get_index(self, id: str) -> IndexConfig | None:
        return self._invoke("get_index", id)

    def index_exists(self, id: str) -> bool:
        return self._invoke("index_exists", id)

    # ── Documents ──

    def add_documents(
        self,
        index_id: str,
        documents: Iterable[Document],
        *,
        format: str = "jsoneachrow",
        primary_key: str | None = None,
    ) -> AddDocumentsResult:
        return self._invoke(
            "add_documents",
            index_id,
            list(documents),
            format=format,
            primary_key=primary_key,
        )

    def update_document(self, index_id: str, document_id: str, updates: Document) -> dict[str, Any]:
        return self._invoke("update_document", index_id, document_id, updates)

    def delete_document(self, index_id: str, document_id: str) -> None:
        self._invoke("delete_document", index_id, document_id)

    def delete_documents(
        self,
        index_id: str,
        *,
        ids: Iterable[str] | None = None,
        filter: str | Mapping[str, Any] | None = None,
    ) -> None:
        self._invoke(
            "delete_documents",
            index_id,
            ids=list(ids) if ids is not None else None,
            filter=filter,
        )

    # ── Search ──

    def search(self, index_id: str, params: SearchParams | None = None, **kwargs: Any) -> SearchResponse:
        return self._invoke("search", index_id, params, **kwargs)

    # ── Ingresses ──

    def list_ingresses(self, index_id: str) -> list[IngressResult]:
        return self._invoke("list_ingresses", index_id)

    def create_ingress(self, index_id: str, params: IngressParams) -> IngressResult | None:
        return self._invoke("create_ingress", index_id, params)

    def get_ingress(self, index_id: str, ingress_id: str) -> IngressResult | None:
        return self._invoke("get_ingress", index_id, ingress_id)

    def ingress_exists(self, index_id: str, ingress_id: str) -> bool:
        return self._invoke("ingress_exists", index_id, ingress_id)

    def update_ingress(self, index_id: str, ingress_id: str, state: IngressState) -> IngressResult | None:
        return self._invoke("update_ingress", index_id, ingress_id, state)

    def pause_ingress(self, index_id: str, ingress_id: str) -> IngressResult | None:
        return self._invoke("pause_ingress", index_id, ingress_id)

    def resume_ingress(self, index_id: str, ingress_id: str) -> IngressResult | None:
        return self._invoke("resume_ingress", index_id, ingress_id)

    def resync_ingress(self, index_id: str, ingress_id: str) -> IngressResult | None:
        return self._invoke("resync_ingress", index_id, ingress_id)

    def delete_ingress(self, index_id: str, ingress_id: str) -> None:
        self._invoke("delete_ingress", index_id, ingress_id)

    # ── Handles ──

    def index(self, index_id: str) -> SyncIndexHandle:
        """Return a handle bound to one index."""
        from bright.client.handle import SyncIndexHandle

        return SyncIndexHandle(self, index_id)
