"""Tests for ingress models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from bright.models.ingress import (
    CreateIngressParams,
    CreatePostgresIngressParams,
    GenericIngress,
    PostgresIngress,
    PostgresIngressConfig,
    parse_ingress,
)


class TestParseIngress:
    def test_postgres_variant(self, postgres_ingress_payload: dict) -> None:
        ingress = parse_ingress(postgres_ingress_payload)

        assert isinstance(ingress, PostgresIngress)
        assert ingress.config.dsn.startswith("postgres://")
        assert ingress.config.schema_ == "public"
        assert ingress.config.sync_mode == "listen"
        assert ingress.statistics.full_sync_complete is True
        assert ingress.statistics.documents_deleted == 3

    def test_unknown_type_is_generic(self) -> None:
        ingress = parse_ingress(
            {"id": "m1", "index_id": "books", "type": "mysql", "status": "syncing", "config": {"host": "db"}}
        )

        assert isinstance(ingress, GenericIngress)
        assert ingress.type == "mysql"
        assert ingress.config == {"host": "db"}

    def test_unknown_status_kept(self, postgres_ingress_payload: dict) -> None:
        ingress = parse_ingress({**postgres_ingress_payload, "status": "draining"})
        assert ingress.status == "draining"

    def test_statistics_defaults(self) -> None:
        ingress = parse_ingress({"id": "x", "index_id": "books", "type": "webhook"})
        assert ingress.statistics.error_count == 0
        assert ingress.statistics.last_error is None

    def test_extra_fields_preserved(self, postgres_ingress_payload: dict) -> None:
        ingress = parse_ingress({**postgres_ingress_payload, "created_at": "2025-01-01"})
        assert ingress.model_extra == {"created_at": "2025-01-01"}

    def test_postgres_without_dsn(self, postgres_ingress_payload: dict) -> None:
        ingress = parse_ingress({**postgres_ingress_payload, "config": {"table": "books"}})

        assert isinstance(ingress, PostgresIngress)
        assert ingress.config.dsn is None
        assert ingress.config.table == "books"

    def test_mismatched_payload_kept_unvalidated(self, postgres_ingress_payload: dict) -> None:
        payload = {**postgres_ingress_payload, "config": {"table": "books", "sync_mode": "push"}}
        ingress = parse_ingress(payload)

        assert isinstance(ingress, GenericIngress)
        assert ingress.id == "pg-books"
        assert ingress.config == {"table": "books", "sync_mode": "push"}

    def test_missing_id_kept_unvalidated(self) -> None:
        ingress = parse_ingress({"index_id": "books", "type": "webhook"})
        assert isinstance(ingress, GenericIngress)
        assert ingress.type == "webhook"

    def test_empty_reply(self) -> None:
        assert parse_ingress(None) is None


class TestCreateParams:
    def test_postgres_params_dump(self) -> None:
        params = CreatePostgresIngressParams(
            id="pg",
            config=PostgresIngressConfig(
                dsn="postgres://db",
                table="books",
                column_mapping={"book_title": "title"},
                poll_interval="10s",
            ),
        )
        assert params.model_dump(by_alias=True, exclude_none=True) == {
            "id": "pg",
            "type": "postgres",
            "config": {
                "dsn": "postgres://db",
                "table": "books",
                "column_mapping": {"book_title": "title"},
                "poll_interval": "10s",
            },
        }

    def test_invalid_sync_mode(self) -> None:
        with pytest.raises(ValidationError):
            PostgresIngressConfig(dsn="postgres://db", table="books", sync_mode="push")

    def test_generic_params(self) -> None:
        params = CreateIngressParams(id="s3", type="s3", config={"bucket": "b"})
        assert params.model_dump() == {"id": "s3", "type": "s3", "config": {"bucket": "b"}}

    def test_postgres_params_require_connection(self) -> None:
        with pytest.raises(ValidationError, match="dsn"):
            CreatePostgresIngressParams(id="pg", config=PostgresIngressConfig(table="books"))
        with pytest.raises(ValidationError, match="table"):
            CreatePostgresIngressParams(id="pg", config={"dsn": "postgres://db"})
