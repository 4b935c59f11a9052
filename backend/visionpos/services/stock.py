"""Stock ledger: available quantity per product.

``decrement`` is a compare-and-decrement: it either takes the full quantity
or changes nothing. The ``*_many`` forms apply a whole batch atomically, so a
transaction's stock effect never lands half-way.
"""

import asyncio
import logging
from collections.abc import Iterable
from typing import Protocol

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from visionpos.core.errors import InsufficientStock, StockUnavailable
from visionpos.models.inventory import Inventory

logger = logging.getLogger(__name__)


class StockLedger(Protocol):
    async def available(self, product_id: str) -> int: ...

    async def set_level(self, product_id: str, quantity: int) -> None: ...

    async def discard(self, product_id: str) -> None: ...

    async def decrement(self, product_id: str, quantity: int) -> None:
        """Raises InsufficientStock, leaving the level untouched."""
        ...

    async def increment(self, product_id: str, quantity: int) -> None: ...

    async def decrement_many(self, items: Iterable[tuple[str, int]]) -> None:
        """All-or-nothing. Raises StockUnavailable listing every shortfall."""
        ...

    async def increment_many(self, items: Iterable[tuple[str, int]]) -> None: ...


def _merge(items: Iterable[tuple[str, int]]) -> dict[str, int]:
    """Sum quantities per product so a batch checks each product once."""
    merged: dict[str, int] = {}
    for product_id, qty in items:
        if qty <= 0:
            raise ValueError(f"stock movement must be positive, got {qty} for {product_id}")
        merged[product_id] = merged.get(product_id, 0) + qty
    return merged


class InMemoryStockLedger:
    def __init__(self, levels: dict[str, int] | None = None):
        self._levels: dict[str, int] = dict(levels or {})
        self._lock = asyncio.Lock()

    async def available(self, product_id: str) -> int:
        return self._levels.get(product_id, 0)

    async def set_level(self, product_id: str, quantity: int) -> None:
        if quantity < 0:
            raise ValueError("stock level cannot be negative")
        async with self._lock:
            self._levels[product_id] = quantity

    async def discard(self, product_id: str) -> None:
        async with self._lock:
            self._levels.pop(product_id, None)

    async def decrement(self, product_id: str, quantity: int) -> None:
        try:
            await self.decrement_many([(product_id, quantity)])
        except StockUnavailable as exc:
            raise exc.shortfalls[0] from None

    async def increment(self, product_id: str, quantity: int) -> None:
        await self.increment_many([(product_id, quantity)])

    async def decrement_many(self, items: Iterable[tuple[str, int]]) -> None:
        wanted = _merge(items)
        async with self._lock:
            shortfalls = [
                InsufficientStock(pid, qty, self._levels.get(pid, 0))
                for pid, qty in wanted.items()
                if self._levels.get(pid, 0) < qty
            ]
            if shortfalls:
                raise StockUnavailable(shortfalls)
            for pid, qty in wanted.items():
                self._levels[pid] -= qty
        logger.debug(f"Stock decremented: {wanted}")

    async def increment_many(self, items: Iterable[tuple[str, int]]) -> None:
        wanted = _merge(items)
        async with self._lock:
            for pid, qty in wanted.items():
                self._levels[pid] = self._levels.get(pid, 0) + qty
        logger.debug(f"Stock incremented: {wanted}")


class SqlStockLedger:
    """Ledger backed by the ``inventory`` table.

    Each decrement is a conditional ``UPDATE ... WHERE quantity >= :qty``;
    a batch runs in one database transaction and rolls back on any miss.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self._sessionmaker = sessionmaker

    async def available(self, product_id: str) -> int:
        async with self._sessionmaker() as db:
            result = await db.execute(
                select(Inventory.quantity).where(Inventory.product_id == product_id)
            )
            return result.scalar_one_or_none() or 0

    async def set_level(self, product_id: str, quantity: int) -> None:
        if quantity < 0:
            raise ValueError("stock level cannot be negative")
        async with self._sessionmaker() as db:
            row = await db.get(Inventory, product_id)
            if row is None:
                db.add(Inventory(product_id=product_id, quantity=quantity))
            else:
                row.quantity = quantity
            await db.commit()

    async def discard(self, product_id: str) -> None:
        async with self._sessionmaker() as db:
            await db.execute(delete(Inventory).where(Inventory.product_id == product_id))
            await db.commit()

    async def decrement(self, product_id: str, quantity: int) -> None:
        try:
            await self.decrement_many([(product_id, quantity)])
        except StockUnavailable as exc:
            raise exc.shortfalls[0] from None

    async def increment(self, product_id: str, quantity: int) -> None:
        await self.increment_many([(product_id, quantity)])

    async def decrement_many(self, items: Iterable[tuple[str, int]]) -> None:
        wanted = _merge(items)
        async with self._sessionmaker() as db:
            missed: list[str] = []
            for pid, qty in wanted.items():
                result = await db.execute(
                    update(Inventory)
                    .where(Inventory.product_id == pid, Inventory.quantity >= qty)
                    .values(quantity=Inventory.quantity - qty)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    missed.append(pid)
            if missed:
                await db.rollback()
                result = await db.execute(
                    select(Inventory.product_id, Inventory.quantity).where(
                        Inventory.product_id.in_(missed)
                    )
                )
                levels = dict(result.all())
                raise StockUnavailable([
                    InsufficientStock(pid, wanted[pid], levels.get(pid, 0)) for pid in missed
                ])
            await db.commit()
        logger.debug(f"Stock decremented: {wanted}")

    async def increment_many(self, items: Iterable[tuple[str, int]]) -> None:
        wanted = _merge(items)
        async with self._sessionmaker() as db:
            for pid, qty in wanted.items():
                result = await db.execute(
                    update(Inventory)
                    .where(Inventory.product_id == pid)
                    .values(quantity=Inventory.quantity + qty)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    db.add(Inventory(product_id=pid, quantity=qty))
            await db.commit()
        logger.debug(f"Stock incremented: {wanted}")
