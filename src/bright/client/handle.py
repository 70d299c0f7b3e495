"""Index handles — Per-index views over a client.

A handle stores only the client and the index id; every method forwards to
the client with the id bound as the first argument.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from bright.models.index import AddDocumentsResult, IndexConfig
from bright.models.ingress import IngressState
from bright.models.search import SearchParams, SearchResponse

if TYPE_CHECKING:
    from bright.client.client import (
        AsyncBrightClient,
        BrightClient,
        Document,
        IngressParams,
        IngressResult,
    )


class IndexHandle:
    """Async operations bound to one index.

    Example::

        books = client.index("books")
        await books.add_documents(docs)
        resp = await books.search(q="dune", attributes_to_exclude=["body"])
    """

    def __init__(self, client: AsyncBrightClient, index_id: str) -> None:
        self._client = client
        self.id = index_id

    def __repr__(self) -> str:
        return f"IndexHandle(id={self.id!r})"

    # ── Index ──

    async def get(self) -> IndexConfig | None:
        return await self._client.get_index(self.id)

    async def exists(self) -> bool:
        return await self._client.index_exists(self.id)

    async def update(self, config: IndexConfig | Mapping[str, Any]) -> IndexConfig | None:
        return await self._client.update_index(self.id, config)

    async def delete(self) -> None:
        await self._client.delete_index(self.id)

    # ── Documents ──

    async def add_documents(
        self,
        documents: Iterable[Document],
        *,
        format: str = "jsoneachrow",
        primary_key: str | None = None,
    ) -> AddDocumentsResult:
        return await self._client.add_documents(
            self.id,
            documents,
            format=format,
            primary_key=primary_key,
        )

    async def update_document(self, document_id: str, updates: Document) -> dict[str, Any]:
        return await self._client.update_document(self.id, document_id, updates)

    async def delete_document(self, document_id: str) -> None:
        await self._client.delete_document(self.id, document_id)

    async def delete_documents(
        self,
        *,
        ids: Iterable[str] | None = None,
        filter: str | Mapping[str, Any] | None = None,
    ) -> None:
        await self._client.delete_documents(self.id, ids=ids, filter=filter)

    # ── Search ──

    async def search(self, params: SearchParams | None = None, **kwargs: Any) -> SearchResponse:
        return await self._client.search(self.id, params, **kwargs)

    # ── Ingresses ──

    async def list_ingresses(self) -> list[IngressResult]:
        return await self._client.list_ingresses(self.id)

    async def create_ingress(self, params: IngressParams) -> IngressResult | None:
        return await self._client.create_ingress(self.id, params)

    async def get_ingress(self, ingress_id: str) -> IngressResult | None:
        return await self._client.get_ingress(self.id, ingress_id)

    async def ingress_exists(self, ingress_id: str) -> bool:
        return await self._client.ingress_exists(self.id, ingress_id)

    async def update_ingress(self, ingress_id: str, state: IngressState) -> IngressResult | None:
        return await self._client.update_ingress(self.id, ingress_id, state)

    async def delete_ingress(self, ingress_id: str) -> None:
        await self._client.delete_ingress(self.id, ingress_id)


class SyncIndexHandle:
    """Blocking operations bound to one index (see :class:`IndexHandle`)."""

    def __init__(self, client: BrightClient, index_id: str) -> None:
        self._client = client
        self.id = index_id

    def __repr__(self) -> str:
        return f"SyncIndexHandle(id={self.id!r})"

    def get(self) -> IndexConfig | None:
        return self._client.get_index(self.id)

    def exists(self) -> bool:
        return self._client.index_exists(self.id)

    def update(self, config: IndexConfig | Mapping[str, Any]) -> IndexConfig | None:
        return self._client.update_index(self.id, config)

    def delete(self) -> None:
        self._client.delete_index(self.id)

    def add_documents(
        self,
        documents: Iterable[Document],
        *,
        format: str = "jsoneachrow",
        primary_key: str | None = None,
    ) -> AddDocumentsResult:
        return self._client.add_documents(self.id, documents, format=format, primary_key=primary_key)

    def update_document(self, document_id: str, updates: Document) -> dict[str, Any]:
        return self._client.update_document(self.id, document_id, updates)

    def delete_document(self, document_id: str) -> None:
        self._client.delete_document(self.id, document_id)

    def delete_documents(
        self,
        *,
        ids: Iterable[str] | None = None,
        filter: str | Mapping[str, Any] | None = None,
    ) -> None:
        self._client.delete_documents(self.id, ids=ids, filter=filter)

    def search(self, params: SearchParams | None = None, **kwargs: Any) -> SearchResponse:
        return self._client.search(self.id, params, **kwargs)

    def list_ingresses(self) -> list[IngressResult]:
        return self._client.list_ingresses(self.id)

    def create_ingress(self, params: IngressParams) -> IngressResult | None:
        return self._client.create_ingress(self.id, params)

    def get_ingress(self, ingress_id: str) -> IngressResult | None:
        return self._client.get_ingress(self.id, ingress_id)

    def ingress_exists(self, ingress_id: str) -> bool:
        return self._client.ingress_exists(self.id, ingress_id)

    def update_ingress(self, ingress_id: str, state: IngressState) -> IngressResult | None:
        return self._client.update_ingress(self.id, ingress_id, state)

    def delete_ingress(self, ingress_id: str) -> None:
        self._client.delete_ingress(self.id, ingress_id)
