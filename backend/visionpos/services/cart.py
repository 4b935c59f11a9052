"""Shopping cart: line items and running monetary totals.

Totals are recomputed from the full-precision line sums after every change
and each of subtotal / tax / total is rounded to cents on its own, so repeated
edits never compound rounding error.
"""

import logging
from decimal import Decimal

from visionpos.core.errors import (
    EmptyCart,
    InsufficientStock,
    InvalidDiscount,
    InvalidQuantity,
    LineNotFound,
    MissingEmployee,
    MissingStore,
    ProductNotFound,
    ValidationError,
)
from visionpos.core.money import ZERO, round_money, to_decimal
from visionpos.schemas.cart import CartLine, CartSummary
from visionpos.schemas.transaction import LineSnapshot, RecognitionMethod, TransactionRecord
from visionpos.services.catalog import Catalog
from visionpos.services.ledger import TransactionLedgerEntry

logger = logging.getLogger(__name__)


def _check_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantity("Quantity must be a whole number")
    if quantity <= 0:
        raise InvalidQuantity("Quantity must be greater than zero")
    return quantity


def _check_recognition(method, confidence) -> tuple[RecognitionMethod, float]:
    errors = []
    try:
        method = RecognitionMethod(method)
    except ValueError:
        allowed = ", ".join(m.value for m in RecognitionMethod)
        errors.append(f"Recognition method must be one of: {allowed}")
    try:
        confidence = float(confidence)
    except (TypeError, ValueError):
        errors.append("Recognition confidence must be a number")
    else:
        if not 0 <= confidence <= 1:
            errors.append("Recognition confidence must be between 0 and 1")
    if errors:
        raise ValidationError(errors)
    return method, confidence


class CartAccumulator:
    """In-memory cart owned by one checkout session."""

    def __init__(self, catalog: Catalog):
        self.catalog = catalog
        self._lines: dict[str, CartLine] = {}
        self.subtotal = ZERO
        self.tax_amount = ZERO
        self.discount_amount = ZERO
        self.total = ZERO
        self.customer_id: str | None = None
        self.notes = ""

    @property
    def lines(self) -> list[CartLine]:
        return [line.model_copy() for line in self._lines.values()]

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def is_empty(self) -> bool:
        return not self._lines

    def get_line(self, product_id: str) -> CartLine | None:
        line = self._lines.get(product_id)
        return line.model_copy() if line is not None else None

    async def add_line(
        self,
        product_id: str,
        quantity: int = 1,
        method: RecognitionMethod | str = RecognitionMethod.MANUAL,
        confidence: float = 1.0,
    ) -> CartLine:
        """Add a product, merging into its existing line if present."""
        quantity = _check_quantity(quantity)
        method, confidence = _check_recognition(method, confidence)

        product = await self.catalog.get_product(product_id)
        if product is None:
            raise ProductNotFound(product_id)

        existing = self._lines.get(product_id)
        new_quantity = quantity + (existing.quantity if existing else 0)
        await self._ensure_stock(product_id, new_quantity)

        if existing is not None:
            existing.quantity = new_quantity
        else:
            self._lines[product_id] = CartLine(
                product_id=product.id,
                name=product.name,
                unit_price=product.price,
                tax_rate_percent=product.tax_rate,
                quantity=quantity,
                recognition_method=method,
                recognition_confidence=confidence,
            )

        self._recalculate()
        return self._lines[product_id].model_copy()

    def remove_line(self, product_id: str) -> None:
        if self._lines.pop(product_id, None) is None:
            raise LineNotFound(product_id)
        self._recalculate()

    async def set_quantity(self, product_id: str, quantity: int) -> CartLine | None:
        """Set a line's quantity; zero or less removes the line."""
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidQuantity("Quantity must be a whole number")
        if quantity <= 0:
            self.remove_line(product_id)
            return None

        line = self._lines.get(product_id)
        if line is None:
            raise LineNotFound(product_id)
        if await self.catalog.get_product(product_id) is None:
            raise ProductNotFound(product_id)
        await self._ensure_stock(product_id, quantity)

        line.quantity = quantity
        self._recalculate()
        return line.model_copy()

    def apply_discount(self, amount) -> Decimal:
        try:
            amount = to_decimal(amount)
        except TypeError:
            raise InvalidDiscount("Invalid discount amount")
        if not amount.is_finite() or amount < 0:
            raise InvalidDiscount("Invalid discount amount")
        if amount > self.subtotal:
            raise InvalidDiscount("Discount cannot exceed subtotal")

        self.discount_amount = round_money(amount)
        self._recalculate()
        return self.discount_amount

    def set_customer(self, customer_id: str | None) -> None:
        self.customer_id = customer_id or None

    def set_notes(self, notes: str) -> None:
        self.notes = notes or ""

    def clear(self) -> None:
        self._lines = {}
        self.subtotal = ZERO
        self.tax_amount = ZERO
        self.discount_amount = ZERO
        self.total = ZERO
        self.customer_id = None
        self.notes = ""

    def summary(self) -> CartSummary:
        return CartSummary(
            items=self.lines,
            item_count=self.item_count,
            subtotal=self.subtotal,
            tax_amount=self.tax_amount,
            discount_amount=self.discount_amount,
            total=self.total,
            customer_id=self.customer_id,
            notes=self.notes,
        )

    def checkout_draft(self, employee_id: str | None, store_id: str | None) -> TransactionLedgerEntry:
        """
        Freeze the cart into a pending ledger entry.

        Stock is not touched here; it is committed when the entry completes.
        The cart itself is left as-is so a failed payment can be retried.
        """
        if not self._lines:
            raise EmptyCart()
        if not employee_id:
            raise MissingEmployee("Employee ID is required")
        if not store_id:
            raise MissingStore("Store ID is required")

        snapshots = [
            LineSnapshot(
                product_id=line.product_id,
                name=line.name,
                price_at_sale=line.unit_price,
                tax_rate_at_sale=line.tax_rate_percent,
                quantity=line.quantity,
                recognition_method=line.recognition_method,
                recognition_confidence=line.recognition_confidence,
            )
            for line in self._lines.values()
        ]
        entry = TransactionLedgerEntry(
            TransactionRecord(
                items=snapshots,
                subtotal=self.subtotal,
                tax_amount=self.tax_amount,
                discount_amount=self.discount_amount,
                total=self.total,
                employee_id=employee_id,
                store_id=store_id,
                customer_id=self.customer_id,
                notes=self.notes,
            )
        )
        logger.info(f"Draft {entry.id} created: {len(snapshots)} lines, total={entry.total}")
        return entry

    # ── internals ──────────────────────────────────
    async def _ensure_stock(self, product_id: str, requested: int) -> None:
        available = await self.catalog.available(product_id)
        if available < requested:
            raise InsufficientStock(product_id, requested, available)

    def _recalculate(self) -> None:
        subtotal = sum((line.line_subtotal for line in self._lines.values()), Decimal(0))
        tax = sum((line.line_tax for line in self._lines.values()), Decimal(0))

        self.subtotal = round_money(subtotal)
        if self.discount_amount > self.subtotal:
            # lines removed under an applied discount
            logger.debug(f"Discount {self.discount_amount} clamped to subtotal {self.subtotal}")
            self.discount_amount = self.subtotal
        self.tax_amount = round_money(tax)
        self.total = round_money(subtotal + tax - self.discount_amount)
