"""Cart line and summary schemas."""

from decimal import Decimal

from pydantic import BaseModel, Field

from visionpos.schemas.transaction import RecognitionMethod


class CartLine(BaseModel):
    product_id: str
    name: str
    unit_price: Decimal = Field(..., ge=0)
    tax_rate_percent: Decimal = Field(default=Decimal("0"), ge=0)
    quantity: int = Field(..., gt=0)
    recognition_method: RecognitionMethod = RecognitionMethod.MANUAL
    recognition_confidence: float = Field(default=1.0, ge=0, le=1)

    @property
    def line_subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def line_tax(self) -> Decimal:
        return self.unit_price * self.quantity * self.tax_rate_percent / 100


class CartSummary(BaseModel):
    items: list[CartLine]
    item_count: int
    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total: Decimal
    customer_id: str | None = None
    notes: str = ""
