from __future__ import annotations

import asyncio
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from transom.core.models.base import utc_now

if TYPE_CHECKING:
    from collections.abc import Callable

    from supabase import Client


class SupabaseTableRepository:
    """Shared PostgREST plumbing for the per-table repositories.

    The Supabase client is synchronous, so every call is pushed to a worker
    thread. Rows are plain dicts; subclasses convert them to models.
    """

    TABLE_NAME: str = ""
    # Never sent in partial updates
    IMMUTABLE_FIELDS = frozenset({"id", "user_id", "created_at", "updated_at"})

    def __init__(self, client: Client) -> None:
        self._client: Client = client

    def _table(self):
        return self._client.table(self.TABLE_NAME)

    async def _insert_row(self, row: dict[str, Any]) -> dict[str, Any]:
        resp = await self._run(lambda: self._table().insert(row).execute())
        return self._first(resp.data)

    async def _upsert_row(self, row: dict[str, Any]) -> dict[str, Any]:
        resp = await self._run(lambda: self._table().upsert(row).execute())
        return self._first(resp.data)

    async def _get_row(self, row_id: UUID) -> dict[str, Any] | None:
        resp = await self._run(
            lambda: self._table()
            .select("*")
            .eq("id", str(row_id))
            .limit(1)
            .execute()
        )
        items = resp.data or []
        return items[0] if items else None

    async def _list_rows(self, *, column: str, value: Any, order: str, desc: bool) -> list[dict[str, Any]]:
        resp = await self._run(
            lambda: self._table()
            .select("*")
            .eq(column, str(value))
            .order(order, desc=desc)
            .execute()
        )
        return resp.data or []

    async def _update_row(self, row_id: UUID, changes: dict | None) -> dict[str, Any] | None:
        sanitized = {k: v for k, v in (changes or {}).items() if k not in self.IMMUTABLE_FIELDS}
        if not sanitized:
            # No-op; return current row if exists
            return await self._get_row(row_id)
        sanitized["updated_at"] = utc_now()
        payload = self._serialize(sanitized)

        resp = await self._run(
            lambda: self._table()
            .update(payload)
            .eq("id", str(row_id))
            .execute()
        )
        items = resp.data or []
        return items[0] if items else None

    async def _delete_row(self, row_id: UUID) -> bool:
        resp = await self._run(
            lambda: self._table()
            .delete()
            .eq("id", str(row_id))
            .execute()
        )
        return len(resp.data or []) > 0

    @staticmethod
    async def _run(func: Callable[[], Any]) -> Any:
        return await asyncio.to_thread(func)

    @staticmethod
    def _first(data: Any) -> dict[str, Any]:
        if isinstance(data, list) and data:
            return data[0]
        if isinstance(data, dict):
            return data
        return {}

    @staticmethod
    def _serialize(data: dict[str, Any]) -> dict[str, Any]:
        """Make a model dump JSON-serializable for PostgREST."""
        out: dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(value, UUID):
                value = str(value)
            elif isinstance(value, datetime):
                value = value.isoformat()
            out[key] = value
        return out
