"""Transaction ledger entry and its pending -> completed / voided state machine.

An entry is built once from a cart snapshot. From then on it changes only
through ``add_payment``, ``complete``, ``void`` and ``update``; the underlying
record is never handed out for direct mutation.

    pending --complete--> completed --void--> voided
    pending ------------------void---------> voided
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from pydantic import ValidationError as PydanticValidationError

from visionpos.core.errors import (
    AlreadyVoided,
    InsufficientPayment,
    InsufficientStock,
    InvalidPayment,
    StateConflictError,
    StockUnavailable,
    ValidationError,
)
from visionpos.core.money import ZERO, round_money
from visionpos.schemas.transaction import (
    LineSnapshot,
    PaymentEntry,
    TransactionRecord,
    TransactionStatus,
)
from visionpos.services.stock import StockLedger

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TransactionLedgerEntry:
    def __init__(self, record: TransactionRecord):
        errors = self._validate(record)
        if errors:
            raise ValidationError(errors)
        self._record = record.model_copy(deep=True)

    @classmethod
    def from_record(cls, data: dict | TransactionRecord) -> "TransactionLedgerEntry":
        try:
            record = TransactionRecord.model_validate(data)
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc)
        return cls(record)

    def to_record(self) -> TransactionRecord:
        return self._record.model_copy(deep=True)

    def to_dict(self) -> dict:
        return self._record.model_dump(mode="json")

    # ── read-only view ─────────────────────────────
    @property
    def id(self) -> str:
        return self._record.id

    @property
    def items(self) -> tuple[LineSnapshot, ...]:
        return tuple(self._record.items)

    @property
    def subtotal(self) -> Decimal:
        return self._record.subtotal

    @property
    def tax_amount(self) -> Decimal:
        return self._record.tax_amount

    @property
    def discount_amount(self) -> Decimal:
        return self._record.discount_amount

    @property
    def total(self) -> Decimal:
        return self._record.total

    @property
    def status(self) -> TransactionStatus:
        return self._record.status

    @property
    def payment_entries(self) -> tuple[PaymentEntry, ...]:
        return tuple(self._record.payment_entries)

    @property
    def employee_id(self) -> str:
        return self._record.employee_id

    @property
    def store_id(self) -> str:
        return self._record.store_id

    @property
    def customer_id(self) -> str | None:
        return self._record.customer_id

    @property
    def notes(self) -> str:
        return self._record.notes

    @property
    def created_at(self) -> datetime:
        return self._record.created_at

    @property
    def completed_at(self) -> datetime | None:
        return self._record.completed_at

    @property
    def voided_at(self) -> datetime | None:
        return self._record.voided_at

    @property
    def amount_paid(self) -> Decimal:
        return sum((p.amount for p in self._record.payment_entries), ZERO)

    @property
    def change_due(self) -> Decimal:
        return max(self.amount_paid - self.total, ZERO)

    # ── transitions ────────────────────────────────
    def ensure_completable(self) -> None:
        if self.status == TransactionStatus.COMPLETED:
            raise StateConflictError("Transaction is already completed")
        if self.status == TransactionStatus.VOIDED:
            raise StateConflictError("Cannot complete voided transaction")

    def add_payment(
        self,
        type: str,
        amount,
        reference: str | None = None,
        timestamp: datetime | None = None,
    ) -> PaymentEntry:
        if self.status != TransactionStatus.PENDING:
            raise StateConflictError(
                f"Payments can only be added to pending transactions, current status: {self.status.value}"
            )

        errors = []
        if not type or not str(type).strip():
            errors.append("Payment type is required")
        try:
            amount = round_money(amount)
        except TypeError:
            errors.append("Payment amount must be a number")
        else:
            if amount <= 0:
                errors.append("Payment amount must be greater than zero")
        if errors:
            raise InvalidPayment(errors)

        entry = PaymentEntry(
            type=str(type).strip(),
            amount=amount,
            reference=reference or None,
            timestamp=timestamp or _utcnow(),
        )
        self._replace(payment_entries=[*self._record.payment_entries, entry])
        return entry

    async def complete(self, stock: StockLedger) -> None:
        """
        Settle a pending entry and commit its stock.

        Stock for every line is taken in one all-or-nothing batch; on a
        shortfall nothing is decremented and the entry stays pending.
        """
        self.ensure_completable()

        paid = self.amount_paid
        if paid < self.total:
            raise InsufficientPayment(paid, self.total)

        try:
            await stock.decrement_many(self._movements())
        except StockUnavailable as exc:
            logger.warning(f"Transaction {self.id} not completed: {exc.message}")
            raise
        except InsufficientStock as exc:
            logger.warning(f"Transaction {self.id} not completed: {exc.message}")
            raise StockUnavailable([exc]) from exc

        self._replace(status=TransactionStatus.COMPLETED, completed_at=_utcnow())
        logger.info(f"Transaction {self.id} completed: total={self.total} paid={paid}")

    async def void(self, stock: StockLedger, reason: str = "") -> None:
        """Void the entry; a completed entry gets its stock back exactly once."""
        if self.status == TransactionStatus.VOIDED:
            raise AlreadyVoided()

        if self.status == TransactionStatus.COMPLETED:
            await stock.increment_many(self._movements())

        note = f"Voided: {reason}" if reason else "Voided"
        notes = f"{self.notes}\n{note}" if self.notes else note
        self._replace(status=TransactionStatus.VOIDED, voided_at=_utcnow(), notes=notes)
        logger.info(f"Transaction {self.id} voided" + (f": {reason}" if reason else ""))

    def update(self, notes: str | None = None, customer_id: str | None = None) -> None:
        """Edit free-form fields of a pending entry."""
        if self.status != TransactionStatus.PENDING:
            raise StateConflictError("Cannot update completed or voided transaction")
        changes = {}
        if notes is not None:
            changes["notes"] = notes
        if customer_id is not None:
            changes["customer_id"] = customer_id or None
        if changes:
            self._replace(**changes)

    def validate(self) -> list[str]:
        return self._validate(self._record)

    # ── internals ──────────────────────────────────
    def _movements(self) -> list[tuple[str, int]]:
        return [(item.product_id, item.quantity) for item in self._record.items]

    def _replace(self, **changes) -> None:
        self._record = self._record.model_copy(update=changes)

    @staticmethod
    def _validate(record: TransactionRecord) -> list[str]:
        errors = []
        if not record.items:
            errors.append("Transaction must have at least one item")
        if record.subtotal < 0:
            errors.append("Subtotal cannot be negative")
        if record.tax_amount < 0:
            errors.append("Tax amount cannot be negative")
        if record.discount_amount < 0:
            errors.append("Discount amount cannot be negative")
        if record.discount_amount > record.subtotal:
            errors.append("Discount cannot exceed subtotal")
        if not record.employee_id:
            errors.append("Employee ID is required")
        if not record.store_id:
            errors.append("Store ID is required")
        return errors
