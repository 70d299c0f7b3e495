"""Tests for the async Bright client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
from pydantic import BaseModel, ValidationError

from bright.client.client import AsyncBrightClient
from bright.errors import BrightError, ErrorKind
from bright.models.index import IndexConfig
from bright.models.ingress import (
    CreatePostgresIngressParams,
    GenericIngress,
    PostgresIngress,
    PostgresIngressConfig,
)
from bright.models.search import FieldValue, RangeFilter, SearchParams, SortSpec

if TYPE_CHECKING:
    from tests.conftest import MockServer


class Book(BaseModel):
    isbn: str
    title: str
    year: int


# ══════════════════════════════════════════════════════════════════════════════
# Construction
# ══════════════════════════════════════════════════════════════════════════════


class TestConstruction:
    async def test_trailing_slash_stripped(self, client: AsyncBrightClient) -> None:
        assert client.base_url == "http://bright.test"

    async def test_from_settings(self, settings, server: MockServer) -> None:
        server.route("GET", "/indexes/books", json_body={"id": "books"})
        async with AsyncBrightClient.from_settings(settings, transport=server.transport()) as c:
            await c.get_index("books")

        assert c.base_url == "http://bright.test"
        assert server.last.headers["Authorization"] == "Bearer test-key"

    async def test_from_settings_without_key(self, settings, server: MockServer) -> None:
        settings.api_key = ""
        server.route("GET", "/indexes/books", json_body={"id": "books"})
        async with AsyncBrightClient.from_settings(settings, transport=server.transport()) as c:
            await c.get_index("books")

        assert "Authorization" not in server.last.headers


# ══════════════════════════════════════════════════════════════════════════════
# Indexes
# ══════════════════════════════════════════════════════════════════════════════


class TestIndexes:
    async def test_create_index(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route("POST", "/indexes", json_body={"id": "books", "primaryKey": "isbn"})
        index = await client.create_index("books", primary_key="isbn")

        assert index == IndexConfig(id="books", primary_key="isbn")
        assert server.last.method == "POST"
        assert dict(server.last.url.params) == {"id": "books", "primaryKey": "isbn"}

    async def test_create_index_without_primary_key(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route("POST", "/indexes", json_body={"id": "books"})
        index = await client.create_index("books")

        assert index.primary_key is None
        assert "primaryKey" not in server.last.url.params

    async def test_create_existing_index_raises_conflict(
        self, client: AsyncBrightClient, server: MockServer
    ) -> None:
        server.route(
            "POST",
            "/indexes",
            status=409,
            json_body={"error": "Index already exists", "code": "RESOURCE_ALREADY_EXISTS"},
        )
        with pytest.raises(BrightError) as exc_info:
            await client.create_index("books")
        assert exc_info.value.kind is ErrorKind.RESOURCE_ALREADY_EXISTS
        assert exc_info.value.is_conflict

    async def test_update_index(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route("PATCH", "/indexes/books", json_body={"id": "books", "primaryKey": "sku"})
        index = await client.update_index("books", {"primaryKey": "sku"})

        assert index.primary_key == "sku"
        assert server.last_json() == {"primaryKey": "sku"}

    async def test_update_index_with_model_sends_set_fields(
        self, client: AsyncBrightClient, server: MockServer
    ) -> None:
        server.route("PATCH", "/indexes/books", json_body={"id": "books", "primaryKey": "sku"})
        await client.update_index("books", IndexConfig(id="books", primary_key="sku"))
        assert server.last_json() == {"id": "books", "primaryKey": "sku"}

    async def test_delete_index(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route("DELETE", "/indexes/books", status=204)
        assert await client.delete_index("books") is None
        assert server.last.method == "DELETE"

    async def test_path_segments_encoded(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route("GET", "/indexes/a%2Fb", json_body={"id": "a/b"})
        index = await client.get_index("a/b")
        assert index.id == "a/b"

    async def test_empty_reply_is_none(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route("PATCH", "/indexes/books", status=204)
        assert await client.update_index("books", {"primaryKey": "sku"}) is None

    async def test_reply_is_not_validated(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route("GET", "/indexes/books", json_body={"primaryKey": "isbn", "documents": 3})
        index = await client.get_index("books")

        assert isinstance(index, IndexConfig)
        assert index.primary_key == "isbn"


class TestIndexExists:
    async def test_exists(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route("GET", "/indexes/books", json_body={"id": "books"})
        assert await client.index_exists("books") is True

    async def test_missing_index(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route("GET", "/indexes/books", status=404, json_body={"error": "nope", "code": "INDEX_NOT_FOUND"})
        assert await client.index_exists("books") is False

    async def test_bare_404_is_false(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route("GET", "/indexes/books", status=404)
        assert await client.index_exists("books") is False

    async def test_authorization_error_propagates(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route(
            "GET",
            "/indexes/books",
            status=403,
            json_body={"error": "denied", "code": "INSUFFICIENT_PERMISSIONS"},
        )
        with pytest.raises(BrightError) as exc_info:
            await client.index_exists("books")
        assert exc_info.value.kind is ErrorKind.INSUFFICIENT_PERMISSIONS

    async def test_cluster_error_propagates(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route("GET", "/indexes/books", status=503, json_body={"error": "down"})
        with pytest.raises(BrightError) as exc_info:
            await client.index_exists("books")
        assert exc_info.value.is_cluster


# ══════════════════════════════════════════════════════════════════════════════
# Documents
# ══════════════════════════════════════════════════════════════════════════════


class TestDocuments:
    async def test_add_documents_ndjson(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route("POST", "/indexes/books/documents", json_body={"indexed": 2})
        docs: list[dict[str, Any]] = [{"isbn": "1", "title": "Dune"}, {"isbn": "2", "title": "Emma"}]
        result = await client.add_documents("books", docs, primary_key="isbn")

        assert result.indexed == 2
        assert server.last.content == b'{"isbn": "1", "title": "Dune"}\n{"isbn": "2", "title": "Emma"}'
        assert dict(server.last.url.params) == {"format": "jsoneachrow", "primaryKey": "isbn"}

    async def test_add_documents_from_models(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route("POST", "/indexes/books/documents", json_body={"indexed": 1})
        await client.add_documents("books", [Book(isbn="1", title="Dune", year=1965)])

        assert server.last.content == b'{"isbn":"1","title":"Dune","year":1965}'
        assert dict(server.last.url.params) == {"format": "jsoneachrow"}

    async def test_update_document(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route(
            "PATCH",
            "/indexes/books/documents/1",
            json_body={"isbn": "1", "title": "Dune Messiah"},
        )
        doc = await client.update_document("books", "1", {"title": "Dune Messiah"})

        assert doc == {"isbn": "1", "title": "Dune Messiah"}
        assert server.last_json() == {"title": "Dune Messiah"}

    async def test_missing_document(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route(
            "PATCH",
            "/indexes/books/documents/9",
            status=404,
            json_body={"error": "Document not found", "code": "DOCUMENT_NOT_FOUND"},
        )
        with pytest.raises(BrightError) as exc_info:
            await client.update_document("books", "9", {"title": "x"})
        assert exc_info.value.kind is ErrorKind.DOCUMENT_NOT_FOUND

    async def test_delete_document(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route("DELETE", "/indexes/books/documents/1", status=204)
        assert await client.delete_document("books", "1") is None

    async def test_delete_documents_by_ids_and_filter(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route("DELETE", "/indexes/books/documents", status=204)
        await client.delete_documents("books", ids=["1", "2"], filter="year:<1900")

        params = server.last.url.params
        assert params.get_list("ids[]") == ["1", "2"]
        assert params["filter"] == "year:<1900"

    async def test_delete_documents_with_filter_mapping(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route("DELETE", "/indexes/books/documents", status=204)
        await client.delete_documents("books", filter={"genre": "poetry", "draft": True})

        assert server.last.url.params["filter"] == "genre:poetry draft:true"
        assert "ids[]" not in server.last.url.params


# ══════════════════════════════════════════════════════════════════════════════
# Search
# ══════════════════════════════════════════════════════════════════════════════


class TestSearch:
    @pytest.fixture(autouse=True)
    def _route(self, server: MockServer) -> None:
        server.route(
            "POST",
            "/indexes/books/searches",
            json_body={"hits": [{"isbn": "1", "title": "Dune"}], "totalHits": 1, "totalPages": 1},
        )

    async def test_response_parsed(self, client: AsyncBrightClient) -> None:
        resp = await client.search("books", q="dune")
        assert resp.hits == [{"isbn": "1", "title": "Dune"}]
        assert resp.total_hits == 1
        assert resp.total_pages == 1

    async def test_query_compiled(self, client: AsyncBrightClient, server: MockServer) -> None:
        await client.search(
            "books",
            q="space opera",
            filter={"genre": "scifi", "rating": FieldValue(value=5, boost=2)},
            range={"year": RangeFilter(gte=1960, lt=1990)},
        )
        assert server.last.url.params["q"] == "space opera genre:scifi rating:5^2 year:>=1960 year:<1990"

    async def test_all_params(self, client: AsyncBrightClient, server: MockServer) -> None:
        await client.search(
            "books",
            SearchParams(
                offset=20,
                limit=10,
                page=3,
                sort=[SortSpec(field="year", order="desc"), "title"],
                attributes_to_retrieve=["title", "year"],
                attributes_to_exclude=["body"],
            ),
        )
        params = server.last.url.params
        assert "q" not in params
        assert params["offset"] == "20"
        assert params["limit"] == "10"
        assert params["page"] == "3"
        assert params.get_list("sort[]") == ["-year", "title"]
        assert params.get_list("attributesToRetrieve[]") == ["title", "year"]
        assert params.get_list("attributesToExclude[]") == ["body"]

    async def test_zero_offset_sent(self, client: AsyncBrightClient, server: MockServer) -> None:
        await client.search("books", offset=0)
        assert server.last.url.params["offset"] == "0"

    async def test_no_params(self, client: AsyncBrightClient, server: MockServer) -> None:
        await client.search("books")
        assert server.last.method == "POST"
        assert len(server.last.url.params) == 0

    async def test_kwargs_override_params(self, client: AsyncBrightClient, server: MockServer) -> None:
        await client.search("books", SearchParams(q="dune", limit=5), limit=50)
        assert server.last.url.params["q"] == "dune"
        assert server.last.url.params["limit"] == "50"

    async def test_unknown_keyword_rejected(self, client: AsyncBrightClient) -> None:
        with pytest.raises(ValueError):
            await client.search("books", query="dune")

    async def test_override_validated(self, client: AsyncBrightClient, server: MockServer) -> None:
        with pytest.raises(ValidationError):
            await client.search("books", SearchParams(q="dune"), sort="price")
        with pytest.raises(ValidationError):
            await client.search("books", SearchParams(q="dune"), offset=-3)
        assert server.requests == []

    async def test_override_keeps_typed_filters(self, client: AsyncBrightClient, server: MockServer) -> None:
        params = SearchParams(filter={"rating": FieldValue(value=5, boost=2)}, sort=[SortSpec(field="year", order="desc")])
        await client.search("books", params, limit=3)

        assert server.last.url.params["q"] == "rating:5^2"
        assert server.last.url.params.get_list("sort[]") == ["-year"]
        assert server.last.url.params["limit"] == "3"

    async def test_search_failure(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route(
            "POST",
            "/indexes/books/searches",
            status=400,
            json_body={"error": "bad query", "code": "PARSE_ERROR", "details": {"position": 4}},
        )
        with pytest.raises(BrightError) as exc_info:
            await client.search("books", q="a:")
        assert exc_info.value.kind is ErrorKind.PARSE_ERROR
        assert exc_info.value.details == {"position": 4}


# ══════════════════════════════════════════════════════════════════════════════
# Ingresses
# ══════════════════════════════════════════════════════════════════════════════


class TestIngresses:
    async def test_list_ingresses(
        self, client: AsyncBrightClient, server: MockServer, postgres_ingress_payload: dict
    ) -> None:
        other = {"id": "kafka-1", "index_id": "books", "type": "kafka", "status": "paused", "config": {"topic": "t"}}
        server.route("GET", "/indexes/books/ingresses", json_body={"ingresses": [postgres_ingress_payload, other]})

        ingresses = await client.list_ingresses("books")

        assert isinstance(ingresses[0], PostgresIngress)
        assert ingresses[0].config.table == "books"
        assert isinstance(ingresses[1], GenericIngress)
        assert ingresses[1].config == {"topic": "t"}

    async def test_create_postgres_ingress(
        self, client: AsyncBrightClient, server: MockServer, postgres_ingress_payload: dict
    ) -> None:
        server.route("POST", "/indexes/books/ingresses", json_body=postgres_ingress_payload)
        params = CreatePostgresIngressParams(
            id="pg-books",
            config=PostgresIngressConfig(dsn="postgres://db/library", table="books", schema="public"),
        )

        ingress = await client.create_ingress("books", params)

        assert ingress.id == "pg-books"
        assert server.last_json() == {
            "id": "pg-books",
            "type": "postgres",
            "config": {"dsn": "postgres://db/library", "table": "books", "schema": "public"},
        }

    async def test_create_generic_ingress_from_mapping(self, client: AsyncBrightClient, server: MockServer) -> None:
        payload = {"id": "s3", "index_id": "books", "type": "s3", "status": "starting", "config": {"bucket": "b"}}
        server.route("POST", "/indexes/books/ingresses", json_body=payload)

        ingress = await client.create_ingress("books", {"id": "s3", "type": "s3", "config": {"bucket": "b"}})

        assert isinstance(ingress, GenericIngress)
        assert ingress.status == "starting"
        assert server.last_json() == {"id": "s3", "type": "s3", "config": {"bucket": "b"}}

    async def test_get_ingress(
        self, client: AsyncBrightClient, server: MockServer, postgres_ingress_payload: dict
    ) -> None:
        server.route("GET", "/indexes/books/ingresses/pg-books", json_body=postgres_ingress_payload)
        ingress = await client.get_ingress("books", "pg-books")
        assert ingress.statistics.documents_synced == 120

    async def test_ingress_exists(
        self, client: AsyncBrightClient, server: MockServer, postgres_ingress_payload: dict
    ) -> None:
        server.route("GET", "/indexes/books/ingresses/pg-books", json_body=postgres_ingress_payload)
        assert await client.ingress_exists("books", "pg-books") is True
        assert await client.ingress_exists("books", "missing") is False

    async def test_ingress_exists_reraises_other_errors(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route(
            "GET",
            "/indexes/books/ingresses/pg-books",
            status=500,
            json_body={"error": "boom", "code": "INTERNAL_ERROR"},
        )
        with pytest.raises(BrightError) as exc_info:
            await client.ingress_exists("books", "pg-books")
        assert exc_info.value.is_internal

    @pytest.mark.parametrize(
        ("method", "state"),
        [("pause_ingress", "paused"), ("resume_ingress", "running"), ("resync_ingress", "resyncing")],
    )
    async def test_state_shorthands(
        self,
        client: AsyncBrightClient,
        server: MockServer,
        postgres_ingress_payload: dict,
        method: str,
        state: str,
    ) -> None:
        server.route("PATCH", "/indexes/books/ingresses/pg-books", json_body=postgres_ingress_payload)
        await getattr(client, method)("books", "pg-books")
        assert server.last_json() == {"state": state}

    async def test_update_ingress(
        self, client: AsyncBrightClient, server: MockServer, postgres_ingress_payload: dict
    ) -> None:
        server.route("PATCH", "/indexes/books/ingresses/pg-books", json_body=postgres_ingress_payload)
        ingress = await client.update_ingress("books", "pg-books", "paused")

        assert server.last_json() == {"state": "paused"}
        # Observed status is whatever the server reports
        assert ingress.status == "running"

    async def test_delete_ingress(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route("DELETE", "/indexes/books/ingresses/pg-books", status=204)
        assert await client.delete_ingress("books", "pg-books") is None

    async def test_update_ingress_empty_reply(self, client: AsyncBrightClient, server: MockServer) -> None:
        server.route("PATCH", "/indexes/books/ingresses/pg-books", status=204)
        assert await client.update_ingress("books", "pg-books", "paused") is None

    async def test_get_ingress_without_dsn(
        self, client: AsyncBrightClient, server: MockServer, postgres_ingress_payload: dict
    ) -> None:
        payload = {**postgres_ingress_payload, "config": {"table": "books"}}
        server.route("GET", "/indexes/books/ingresses/pg-books", json_body=payload)
        ingress = await client.get_ingress("books", "pg-books")

        assert isinstance(ingress, PostgresIngress)
        assert ingress.config.dsn is None
