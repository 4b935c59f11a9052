"""Product schemas for records and command payloads."""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def new_product_id() -> str:
    return f"prod_{uuid4().hex[:12]}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    sku: str = Field(default="", max_length=50)
    barcode: str | None = Field(None, max_length=100)
    category: str = Field(default="", max_length=100)
    description: str = ""
    price: Decimal = Field(..., ge=0, decimal_places=2)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)


class ProductCreate(ProductBase):
    stock: int = Field(default=0, ge=0)


class ProductUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    sku: str | None = Field(None, max_length=50)
    barcode: str | None = Field(None, max_length=100)
    category: str | None = Field(None, max_length=100)
    description: str | None = None
    price: Decimal | None = Field(None, ge=0, decimal_places=2)
    tax_rate: Decimal | None = Field(None, ge=0, le=100)
    stock: int | None = Field(None, ge=0)


class Product(ProductBase):
    """Stored product record. Stock is held by the stock ledger, not here."""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=new_product_id)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class ProductResponse(Product):
    stock: int = 0
