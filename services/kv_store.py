"""
services/kv_store.py
────────────────────────────────────────────────────────────────────────
String key-value store on top of the `kv_store` table.

Used for idempotent flags (dismissed suggestions, last analysis run) and
the append-only adaptation feedback log. Values are strings; callers
JSON-encode structured data themselves.
"""
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from services.db import KeyValue


async def get_item(db: AsyncSession, key: str) -> str | None:
    row = await db.get(KeyValue, key)
    return row.value if row else None


async def set_item(db: AsyncSession, key: str, value: str) -> None:
    # update → if row doesn’t exist we insert
    row = await db.get(KeyValue, key)
    if row is None:
        db.add(KeyValue(key=key, value=value))
    else:
        row.value = value
    await db.commit()
