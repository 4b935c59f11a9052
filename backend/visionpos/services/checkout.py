"""Transaction lifecycle over the record store and the stock ledger.

Every lifecycle step is load -> transition -> save under a per-transaction
lock. When the save fails after stock already moved, the stock movement is
reversed before the error propagates.
"""

import asyncio
import logging
import weakref
from dataclasses import dataclass
from decimal import Decimal

from visionpos.core.errors import NotFoundError, StateConflictError, ValidationError
from visionpos.schemas.transaction import PaymentCreate, TransactionStatus
from visionpos.services.cart import CartAccumulator
from visionpos.services.ledger import TransactionLedgerEntry
from visionpos.services.stock import StockLedger
from visionpos.services.store import TRANSACTIONS, RecordStore

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    transaction: TransactionLedgerEntry
    change: Decimal


class TransactionService:
    def __init__(self, store: RecordStore, stock: StockLedger):
        self.store = store
        self.stock = stock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, transaction_id: str) -> asyncio.Lock:
        lock = self._locks.get(transaction_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[transaction_id] = lock
        return lock

    # ── persistence ────────────────────────────────
    async def load(self, transaction_id: str) -> TransactionLedgerEntry:
        data = await self.store.get(TRANSACTIONS, transaction_id)
        if data is None:
            raise NotFoundError("Transaction not found")
        return TransactionLedgerEntry.from_record(data)

    async def list_transactions(self, status: TransactionStatus | None = None) -> list[TransactionLedgerEntry]:
        entries = [TransactionLedgerEntry.from_record(d) for d in await self.store.list(TRANSACTIONS)]
        if status is not None:
            entries = [e for e in entries if e.status == status]
        return sorted(entries, key=lambda e: e.created_at, reverse=True)

    async def save(self, entry: TransactionLedgerEntry) -> TransactionLedgerEntry:
        await self.store.put(TRANSACTIONS, entry.id, entry.to_dict())
        return entry

    async def persist_draft(self, entry: TransactionLedgerEntry) -> TransactionLedgerEntry:
        if entry.status != TransactionStatus.PENDING:
            raise StateConflictError("Only pending transactions can be stored as drafts")
        return await self.save(entry)

    # ── lifecycle ──────────────────────────────────
    async def open_from_cart(
        self, cart: CartAccumulator, employee_id: str, store_id: str
    ) -> TransactionLedgerEntry:
        """Persist a pending draft of the cart and reset the cart."""
        entry = cart.checkout_draft(employee_id, store_id)
        await self.persist_draft(entry)
        cart.clear()
        return entry

    async def complete(
        self, transaction_id: str, payments: list[PaymentCreate]
    ) -> TransactionLedgerEntry:
        async with self._lock_for(transaction_id):
            entry = await self.load(transaction_id)
            entry.ensure_completable()
            if not payments:
                raise ValidationError("Payment methods are required")
            for payment in payments:
                entry.add_payment(payment.type, payment.amount, payment.reference)
            await self._complete_and_save(entry)
        return entry

    async def void(self, transaction_id: str, reason: str = "") -> TransactionLedgerEntry:
        async with self._lock_for(transaction_id):
            entry = await self.load(transaction_id)
            was_completed = entry.status == TransactionStatus.COMPLETED
            await entry.void(self.stock, reason)
            try:
                await self.save(entry)
            except Exception:
                if was_completed:
                    logger.error(f"Saving voided {entry.id} failed; taking restored stock back")
                    await self.stock.decrement_many(_movements(entry))
                raise
        return entry

    async def update(
        self, transaction_id: str, notes: str | None = None, customer_id: str | None = None
    ) -> TransactionLedgerEntry:
        async with self._lock_for(transaction_id):
            entry = await self.load(transaction_id)
            entry.update(notes=notes, customer_id=customer_id)
            await self.save(entry)
        return entry

    async def checkout(
        self,
        cart: CartAccumulator,
        employee_id: str,
        store_id: str,
        payments: list[PaymentCreate],
    ) -> CheckoutResult:
        """
        One-shot sale: draft the cart, take payment, commit stock, persist.

        On any failure the cart is left untouched and nothing is stored.
        """
        entry = cart.checkout_draft(employee_id, store_id)
        if not payments:
            raise ValidationError("Payment methods are required")
        for payment in payments:
            entry.add_payment(payment.type, payment.amount, payment.reference)

        async with self._lock_for(entry.id):
            await self._complete_and_save(entry)

        cart.clear()
        return CheckoutResult(transaction=entry, change=entry.change_due)

    async def _complete_and_save(self, entry: TransactionLedgerEntry) -> None:
        await entry.complete(self.stock)
        try:
            await self.save(entry)
        except Exception:
            logger.error(f"Saving completed {entry.id} failed; returning its stock")
            await self.stock.increment_many(_movements(entry))
            raise


def _movements(entry: TransactionLedgerEntry) -> list[tuple[str, int]]:
    return [(item.product_id, item.quantity) for item in entry.items]
