"""Record store: keyed JSON records grouped by collection.

Products, transactions, users and settings all live here. Two backends:
an in-process dict (tests, demo) and a SQLAlchemy table.
"""

import copy
import logging
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from visionpos.models.record import Record

logger = logging.getLogger(__name__)

PRODUCTS = "products"
TRANSACTIONS = "transactions"
USERS = "users"
SETTINGS = "settings"


class RecordStore(Protocol):
    async def put(self, collection: str, key: str, value: dict) -> None: ...

    async def get(self, collection: str, key: str) -> dict | None: ...

    async def delete(self, collection: str, key: str) -> bool: ...

    async def list(self, collection: str) -> list[dict]: ...


class InMemoryRecordStore:
    """Dict-backed store. Values are deep-copied in and out."""

    def __init__(self):
        self._data: dict[str, dict[str, dict]] = {}

    async def put(self, collection: str, key: str, value: dict) -> None:
        self._data.setdefault(collection, {})[key] = copy.deepcopy(value)

    async def get(self, collection: str, key: str) -> dict | None:
        value = self._data.get(collection, {}).get(key)
        return copy.deepcopy(value) if value is not None else None

    async def delete(self, collection: str, key: str) -> bool:
        return self._data.get(collection, {}).pop(key, None) is not None

    async def list(self, collection: str) -> list[dict]:
        return [copy.deepcopy(v) for v in self._data.get(collection, {}).values()]


class SqlRecordStore:
    """Store backed by the ``records`` table."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self._sessionmaker = sessionmaker

    async def put(self, collection: str, key: str, value: dict) -> None:
        async with self._sessionmaker() as db:
            existing = await db.get(Record, (collection, key))
            if existing is None:
                db.add(Record(collection=collection, key=key, data=value))
            else:
                existing.data = value
            await db.commit()

    async def get(self, collection: str, key: str) -> dict | None:
        async with self._sessionmaker() as db:
            record = await db.get(Record, (collection, key))
            return dict(record.data) if record is not None else None

    async def delete(self, collection: str, key: str) -> bool:
        async with self._sessionmaker() as db:
            result = await db.execute(
                delete(Record).where(Record.collection == collection, Record.key == key)
            )
            await db.commit()
            return result.rowcount > 0

    async def list(self, collection: str) -> list[dict]:
        async with self._sessionmaker() as db:
            result = await db.execute(
                select(Record).where(Record.collection == collection).order_by(Record.key)
            )
            return [dict(r.data) for r in result.scalars().all()]
