"""Bright Python SDK — Client library for the Bright search API.

Provides both async and sync clients for managing indexes, documents,
searches and data ingresses on a Bright server.

Quick start::

    from bright.client import AsyncBrightClient

    async with AsyncBrightClient("http://localhost:3000", api_key="secret") as client:
        books = client.index("books")
        resp = await books.search(q="dune", filter={"genre": "scifi"})
        for hit in resp.hits:
            print(hit["title"])
"""

from bright.client.client import AsyncBrightClient, BrightClient
from bright.client.handle import IndexHandle, SyncIndexHandle
from bright.client.transport import RequestExecutor

__all__ = ["AsyncBrightClient", "BrightClient", "IndexHandle", "RequestExecutor", "SyncIndexHandle"]
