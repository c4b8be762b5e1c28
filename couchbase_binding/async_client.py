from __future__ import annotations

import asyncio
from typing import Any, Iterable, Mapping

from .client import CouchbaseClient
from .results import OperationResult


class AsyncCouchbaseClient:
    """
    Async wrapper around CouchbaseClient for asyncio-based harnesses.
    Uses asyncio.to_thread so the store round trip never blocks the event loop.
    """

    def __init__(self, client: CouchbaseClient) -> None:
        self._client = client

    @property
    def client(self) -> CouchbaseClient:
        return self._client

    async def init(self) -> None:
        await asyncio.to_thread(self._client.init)

    async def cleanup(self) -> None:
        await asyncio.to_thread(self._client.cleanup)

    async def read(self, table: str, key: str, fields: Iterable[str] | None = None) -> OperationResult:
        return await asyncio.to_thread(self._client.read, table, key, fields)

    async def update(self, table: str, key: str, values: Mapping[str, Any]) -> OperationResult:
        return await asyncio.to_thread(self._client.update, table, key, values)

    async def update_field(self, table: str, key: str, field: str, value: Any) -> OperationResult:
        return await asyncio.to_thread(self._client.update_field, table, key, field, value)

    async def insert(self, table: str, key: str, values: Mapping[str, Any]) -> OperationResult:
        return await asyncio.to_thread(self._client.insert, table, key, values)

    async def delete(self, table: str, key: str) -> OperationResult:
        return await asyncio.to_thread(self._client.delete, table, key)

    async def scan(
        self,
        table: str,
        start_key: str,
        record_count: int,
        fields: Iterable[str] | None = None,
    ) -> OperationResult:
        return self._client.scan(table, start_key, record_count, fields)

    async def scan_field(self, table: str, start_key: str, record_count: int, field: str) -> OperationResult:
        return self._client.scan_field(table, start_key, record_count, field)
