# file: app/services/kv_store.py

import json
from typing import Any, Optional
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.database.models import KeyValueEntry


class KeyValueStore:
    """Single-key get/set/remove over the local `key_value_entries` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get(self, key: str) -> Optional[Any]:
        async with self._session_factory() as session:
            result = await session.execute(select(KeyValueEntry).where(KeyValueEntry.key == key))
            entry = result.scalars().first()
            return json.loads(entry.value) if entry else None

    async def set(self, key: str, value: Any) -> None:
        async with self._session_factory() as session:
            try:
                entry = await session.get(KeyValueEntry, key)
                if entry:
                    entry.value = json.dumps(value)
                else:
                    session.add(KeyValueEntry(key=key, value=json.dumps(value)))
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def remove(self, key: str) -> None:
        async with self._session_factory() as session:
            await session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
            await session.commit()
