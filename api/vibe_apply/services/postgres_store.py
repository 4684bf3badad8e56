from __future__ import annotations

import json
import re
from typing import Any
from uuid import uuid4

import asyncpg  # type: ignore[import-untyped]

from vibe_apply.services.errors import NotFoundError, StoreUnavailableError, ValidationError

FIELD_NAME_RE = re.compile(r"^[a-z][a-z0-9_]*$")

SCHEMA_SQL = """
create table if not exists documents (
  collection text not null,
  id text not null,
  data jsonb not null,
  primary key (collection, id)
);
create index if not exists documents_data_gin on documents using gin (data jsonb_path_ops);
"""


class PostgresRecordStore:
    """Document store over a single jsonb table, one row per (collection, id)."""

    def __init__(self, database_url: str | None, min_pool_size: int, max_pool_size: int) -> None:
        self.database_url = database_url
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self._pool: asyncpg.Pool | None = None

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def create(self, collection: str, data: dict[str, Any], *, record_id: str | None = None) -> dict[str, Any]:
        new_id = record_id or str(uuid4())
        record = {**data, "id": new_id}
        pool = await self._get_pool()
        row = await pool.fetchrow(
            """
            insert into documents (collection, id, data)
            values ($1, $2, $3::jsonb)
            returning data
            """,
            collection,
            new_id,
            json.dumps(record),
        )
        return self._row_to_dict(row)

    async def get(self, collection: str, record_id: str) -> dict[str, Any] | None:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            """
            select data
            from documents
            where collection = $1
              and id = $2
            """,
            collection,
            record_id,
        )
        return self._row_to_dict(row) if row else None

    async def find(
        self,
        collection: str,
        *,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = True,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        order_clause = ""
        if order_by:
            if not FIELD_NAME_RE.match(order_by):
                raise ValidationError(f"invalid order field: {order_by}")
            direction = "desc" if descending else "asc"
            order_clause = f"order by data->>'{order_by}' {direction} nulls last"

        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            select data
            from documents
            where collection = $1
              and data @> $2::jsonb
            {order_clause}
            limit $3
            """,
            collection,
            json.dumps(filters or {}),
            limit,
        )
        return [self._row_to_dict(row) for row in rows]

    async def update(self, collection: str, record_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        patch = {key: value for key, value in changes.items() if key != "id"}
        pool = await self._get_pool()
        row = await pool.fetchrow(
            """
            update documents
            set data = data || $3::jsonb
            where collection = $1
              and id = $2
            returning data
            """,
            collection,
            record_id,
            json.dumps(patch),
        )
        if not row:
            raise NotFoundError(f"{collection} record not found")
        return self._row_to_dict(row)

    async def delete(self, collection: str, record_id: str) -> None:
        pool = await self._get_pool()
        deleted = await pool.fetchval(
            """
            delete from documents
            where collection = $1
              and id = $2
            returning id
            """,
            collection,
            record_id,
        )
        if deleted is None:
            raise NotFoundError(f"{collection} record not found")

    async def _get_pool(self) -> asyncpg.Pool:
        if not self.database_url:
            raise StoreUnavailableError("VA_DATABASE_URL is required")

        if self._pool is not None:
            return self._pool

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self.database_url,
                min_size=self.min_pool_size,
                max_size=self.max_pool_size,
                command_timeout=15,
            )
            await self._pool.execute(SCHEMA_SQL)
            return self._pool
        except Exception as exc:  # pragma: no cover - depends on environment
            raise StoreUnavailableError("database unavailable") from exc

    @staticmethod
    def _row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        data = row["data"]
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except json.JSONDecodeError as exc:
                raise StoreUnavailableError("stored document is not valid JSON") from exc
        if not isinstance(data, dict):
            raise StoreUnavailableError("stored document is not a JSON object")
        return data
