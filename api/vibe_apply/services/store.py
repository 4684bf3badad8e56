from __future__ import annotations

import copy
from functools import lru_cache
from typing import Any, Protocol
from uuid import uuid4

from vibe_apply.core.config import get_settings
from vibe_apply.services.errors import NotFoundError

APPLICATIONS = "applications"
RECOMMENDATIONS = "leaderRecommendations"
MEMOS = "memos"
COMMENTS = "recommendationComments"
USERS = "users"

COLLECTIONS = (APPLICATIONS, RECOMMENDATIONS, MEMOS, COMMENTS, USERS)


class RecordStore(Protocol):
    """Document persistence keyed by generated ids; no multi-record transactions."""

    async def create(self, collection: str, data: dict[str, Any], *, record_id: str | None = None) -> dict[str, Any]:
        ...

    async def get(self, collection: str, record_id: str) -> dict[str, Any] | None:
        ...

    async def find(
        self,
        collection: str,
        *,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = True,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        ...

    async def update(self, collection: str, record_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        ...

    async def delete(self, collection: str, record_id: str) -> None:
        ...

    async def close(self) -> None:
        ...


class InMemoryRecordStore:
    """Process-local store used for development and tests."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {name: {} for name in COLLECTIONS}

    async def create(self, collection: str, data: dict[str, Any], *, record_id: str | None = None) -> dict[str, Any]:
        documents = self.collections.setdefault(collection, {})
        new_id = record_id or str(uuid4())
        record = {**copy.deepcopy(data), "id": new_id}
        documents[new_id] = record
        return copy.deepcopy(record)

    async def get(self, collection: str, record_id: str) -> dict[str, Any] | None:
        record = self.collections.get(collection, {}).get(record_id)
        return copy.deepcopy(record) if record is not None else None

    async def find(
        self,
        collection: str,
        *,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = True,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        rows = [
            record
            for record in self.collections.get(collection, {}).values()
            if all(record.get(key) == value for key, value in (filters or {}).items())
        ]
        if order_by:
            rows.sort(key=lambda record: (record.get(order_by) is not None, record.get(order_by) or ""), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return [copy.deepcopy(record) for record in rows]

    async def update(self, collection: str, record_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        record = self.collections.get(collection, {}).get(record_id)
        if record is None:
            raise NotFoundError(f"{collection} record not found")
        record.update(copy.deepcopy({key: value for key, value in changes.items() if key != "id"}))
        return copy.deepcopy(record)

    async def delete(self, collection: str, record_id: str) -> None:
        documents = self.collections.get(collection, {})
        if record_id not in documents:
            raise NotFoundError(f"{collection} record not found")
        del documents[record_id]

    async def close(self) -> None:
        return None


@lru_cache
def get_record_store() -> RecordStore:
    settings = get_settings()
    if settings.record_store == "postgres":
        from vibe_apply.services.postgres_store import PostgresRecordStore

        return PostgresRecordStore(
            database_url=settings.database_url,
            min_pool_size=settings.database_pool_min_size,
            max_pool_size=settings.database_pool_max_size,
        )
    return InMemoryRecordStore()
