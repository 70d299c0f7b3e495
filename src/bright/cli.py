"""CLI entry point for administering a Bright server."""

from __future__ import annotations

import argparse
import json
import logging
import re
import sys
from collections.abc import Sequence
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from bright.client.client import BrightClient
from bright.config.settings import ClientSettings
from bright.errors import BrightError
from bright.models.search import FieldValue, RangeFilter, SearchParams, SortSpec
from bright.observability.logging import setup_logging

logger = logging.getLogger(__name__)

# FIELD, operator, VALUE; a value may not start with another operator character
_RANGE_PATTERN = re.compile(r"([^<>=]+)(>=|<=|>|<)([^<>=].*)")
_RANGE_BOUNDS = {">=": "gte", "<=": "lte", ">": "gt", "<": "lt"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bright",
        description="Command line client for the Bright search server",
    )
    parser.add_argument("--config", "-c", type=str, default=None, help="Path to YAML configuration file")
    parser.add_argument("--url", type=str, default=None, help="Server URL (overrides config)")
    parser.add_argument("--api-key", type=str, default=None, help="API key (overrides config)")
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        choices=["json", "console"],
        default=None,
        help="Log format (overrides config)",
    )
    parser.add_argument("--version", action="version", version=f"bright {_get_version()}")

    commands = parser.add_subparsers(dest="command", required=True)

    # ── index ──
    index = commands.add_parser("index", help="Manage indexes").add_subparsers(dest="action", required=True)
    create = index.add_parser("create", help="Create an index")
    create.add_argument("index_id")
    create.add_argument("--primary-key", default=None)
    for action in ("get", "delete", "exists"):
        index.add_parser(action, help=f"{action.capitalize()} an index").add_argument("index_id")

    # ── documents ──
    documents = commands.add_parser("documents", help="Manage documents").add_subparsers(
        dest="action", required=True
    )
    add = documents.add_parser("add", help="Upload documents from a JSON array or NDJSON file ('-' for stdin)")
    add.add_argument("index_id")
    add.add_argument("file")
    add.add_argument("--primary-key", default=None)
    delete = documents.add_parser("delete", help="Delete documents by id and/or filter")
    delete.add_argument("index_id")
    delete.add_argument("--id", dest="ids", action="append", default=None, help="Document id (repeatable)")
    delete.add_argument("--filter", default=None, help="Filter query selecting documents to delete")

    # ── search ──
    search = commands.add_parser("search", help="Search an index")
    search.add_argument("index_id")
    search.add_argument("query", nargs="?", default=None, help="Free-text query")
    search.add_argument(
        "--filter",
        "-f",
        dest="filters",
        action="append",
        default=[],
        help="Equality filter FIELD=VALUE or FIELD=VALUE^BOOST (repeatable)",
    )
    search.add_argument(
        "--range",
        "-r",
        dest="ranges",
        action="append",
        default=[],
        help="Range bound such as 'year>=1990' or 'price<10' (repeatable)",
    )
    search.add_argument("--sort", "-s", action="append", default=None, help="Sort field, '-field' for descending")
    search.add_argument("--offset", type=int, default=None)
    search.add_argument("--limit", "-l", type=int, default=None)
    search.add_argument("--page", type=int, default=None)
    search.add_argument("--retrieve", action="append", default=None, help="Field to return (repeatable)")
    search.add_argument("--exclude", action="append", default=None, help="Field to omit (repeatable)")

    # ── ingress ──
    ingress = commands.add_parser("ingress", help="Manage data ingresses").add_subparsers(
        dest="action", required=True
    )
    ingress.add_parser("list", help="List ingresses of an index").add_argument("index_id")
    create_ingress = ingress.add_parser("create", help="Create an ingress from a JSON file")
    create_ingress.add_argument("index_id")
    create_ingress.add_argument("file")
    for action in ("get", "exists", "pause", "resume", "resync", "delete"):
        sub = ingress.add_parser(action, help=f"{action.capitalize()} an ingress")
        sub.add_argument("index_id")
        sub.add_argument("ingress_id")

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    # Load settings
    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file not found: {config_path}", file=sys.stderr)
            sys.exit(1)
        settings = ClientSettings.from_yaml(config_path)
    else:
        settings = ClientSettings()

    # Apply CLI overrides
    if args.url:
        settings.base_url = args.url.rstrip("/")
    if args.api_key:
        settings.api_key = args.api_key
    if args.log_level:
        settings.observability.log_level = args.log_level
    if args.log_format:
        settings.observability.log_format = args.log_format

    setup_logging(settings.observability)

    client = BrightClient.from_settings(settings)
    try:
        result = run_command(client, args)
    except BrightError as e:
        logger.debug("Command failed: %r", e)
        print(f"Error: {e.message} (HTTP {e.status_code}, {e.kind.value})", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    if result is not None:
        print(json.dumps(_to_jsonable(result), indent=2, ensure_ascii=False))
    if args.command in ("index", "ingress") and args.action == "exists" and result is False:
        sys.exit(1)


def run_command(client: BrightClient, args: argparse.Namespace) -> Any:
    """Dispatch parsed arguments to the client. Returns the value to print."""
    if args.command == "index":
        if args.action == "create":
            return client.create_index(args.index_id, args.primary_key)
        if args.action == "get":
            return client.get_index(args.index_id)
        if args.action == "delete":
            client.delete_index(args.index_id)
            return None
        return client.index_exists(args.index_id)

    if args.command == "documents":
        if args.action == "add":
            docs = load_documents(args.file)
            return client.add_documents(args.index_id, docs, primary_key=args.primary_key)
        if not args.ids and not args.filter:
            raise ValueError("documents delete needs --id or --filter")
        client.delete_documents(args.index_id, ids=args.ids, filter=args.filter)
        return None

    if args.command == "search":
        return client.search(args.index_id, search_params_from_args(args))

    handle = client.index(args.index_id)
    if args.action == "list":
        return handle.list_ingresses()
    if args.action == "create":
        return handle.create_ingress(json.loads(_read_text(args.file)))
    if args.action == "get":
        return handle.get_ingress(args.ingress_id)
    if args.action == "exists":
        return handle.ingress_exists(args.ingress_id)
    if args.action == "pause":
        return client.pause_ingress(args.index_id, args.ingress_id)
    if args.action == "resume":
        return client.resume_ingress(args.index_id, args.ingress_id)
    if args.action == "resync":
        return client.resync_ingress(args.index_id, args.ingress_id)
    handle.delete_ingress(args.ingress_id)
    return None


def search_params_from_args(args: argparse.Namespace) -> SearchParams:
    filters = dict(parse_filter_arg(raw) for raw in args.filters)

    ranges: dict[str, RangeFilter] = {}
    for raw in args.ranges:
        field, bound, value = parse_range_arg(raw)
        current = ranges.get(field, RangeFilter())
        ranges[field] = current.model_copy(update={bound: value})

    sort = [SortSpec(field=s[1:], order="desc") if s.startswith("-") else s for s in args.sort or ()]

    return SearchParams(
        q=args.query,
        filter=filters or None,
        range=ranges or None,
        offset=args.offset,
        limit=args.limit,
        page=args.page,
        sort=sort or None,
        attributes_to_retrieve=args.retrieve,
        attributes_to_exclude=args.exclude,
    )


def parse_filter_arg(raw: str) -> tuple[str, Any]:
    """Parse ``FIELD=VALUE`` or ``FIELD=VALUE^BOOST``."""
    field, sep, value = raw.partition("=")
    if not sep or not field:
        raise ValueError(f"Invalid filter {raw!r}, expected FIELD=VALUE")
    value, caret, boost = value.rpartition("^") if "^" in value else (value, "", "")
    if caret:
        try:
            return field, FieldValue(value=value, boost=_number(boost))
        except ValueError as e:
            raise ValueError(f"Invalid boost in filter {raw!r}") from e
    return field, value


def _number(text: str) -> int | float:
    try:
        return int(text)
    except ValueError:
        return float(text)


def parse_range_arg(raw: str) -> tuple[str, str, str]:
    """Parse ``FIELD>=VALUE`` style bounds into ``(field, bound, value)``."""
    match = _RANGE_PATTERN.fullmatch(raw)
    if match is None:
        raise ValueError(f"Invalid range {raw!r}, expected e.g. 'year>=1990'")
    field, operator, value = match.groups()
    return field, _RANGE_BOUNDS[operator], value


def load_documents(path: str) -> list[dict[str, Any]]:
    """Read documents from a JSON array or newline-delimited JSON."""
    text = _read_text(path).strip()
    if not text:
        return []
    if text.startswith("["):
        return list(json.loads(text))
    return [json.loads(line) for line in text.splitlines() if line.strip()]


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True)
    if isinstance(value, list):
        return [_to_jsonable(v) for v in value]
    return value


def _get_version() -> str:
    """Get the package version."""
    try:
        return version("bright-client")
    except PackageNotFoundError:
        return "unknown"


if __name__ == "__main__":
    main()
