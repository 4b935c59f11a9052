"""Transaction schemas: ledger records and command payloads."""

import enum
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def new_transaction_id() -> str:
    return f"txn_{uuid4().hex[:16]}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    VOIDED = "voided"


class RecognitionMethod(str, enum.Enum):
    MANUAL = "manual"
    VISION = "vision"
    BARCODE = "barcode"


class LineSnapshot(BaseModel):
    """A cart line frozen at checkout; later catalog edits never reach it."""
    model_config = ConfigDict(frozen=True)

    product_id: str
    name: str
    price_at_sale: Decimal = Field(..., ge=0)
    tax_rate_at_sale: Decimal = Field(..., ge=0)
    quantity: int = Field(..., gt=0)
    recognition_method: RecognitionMethod = RecognitionMethod.MANUAL
    recognition_confidence: float = Field(default=1.0, ge=0, le=1)


class PaymentEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str = Field(..., min_length=1, max_length=50)
    amount: Decimal = Field(..., gt=0)
    reference: str | None = None
    timestamp: datetime = Field(default_factory=_utcnow)


class TransactionRecord(BaseModel):
    """Persisted shape of a ledger entry."""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=new_transaction_id)
    items: list[LineSnapshot]
    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal = Decimal("0.00")
    total: Decimal
    status: TransactionStatus = TransactionStatus.PENDING
    payment_entries: list[PaymentEntry] = Field(default_factory=list)
    employee_id: str
    store_id: str
    customer_id: str | None = None
    notes: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
    completed_at: datetime | None = None
    voided_at: datetime | None = None


# ── Command payloads ───────────────────────────────
class TransactionItemCreate(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = 1
    recognition_method: RecognitionMethod = RecognitionMethod.MANUAL
    recognition_confidence: float = Field(default=1.0, ge=0, le=1)


class TransactionCreate(BaseModel):
    items: list[TransactionItemCreate] = Field(..., min_length=1)
    discount_amount: Decimal = Field(default=Decimal("0.00"), ge=0)
    customer_id: str | None = None
    store_id: str | None = None
    notes: str = ""


class TransactionUpdate(BaseModel):
    customer_id: str | None = None
    notes: str | None = None


class PaymentCreate(BaseModel):
    type: str = Field(..., min_length=1, max_length=50)
    amount: Decimal
    reference: str | None = None


class CompleteRequest(BaseModel):
    payment_methods: list[PaymentCreate] = Field(default_factory=list)


class VoidRequest(BaseModel):
    reason: str = ""
