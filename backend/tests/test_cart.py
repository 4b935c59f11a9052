"""Unit tests for the shopping cart and its totals."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

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
from visionpos.schemas.transaction import RecognitionMethod, TransactionStatus
from visionpos.services.cart import CartAccumulator


# ── Totals ─────────────────────────────────────────

@pytest.mark.asyncio
async def test_totals_round_half_up_per_component(catalog, make_product):
    """9.99 at 7.5% x3: subtotal 29.97, tax 2.24775 -> 2.25, total 32.22."""
    product = await make_product("Soda", "9.99", tax_rate="7.5", stock=10)
    cart = CartAccumulator(catalog)

    await cart.add_line(product.id, 3)

    assert cart.subtotal == Decimal("29.97")
    assert cart.tax_amount == Decimal("2.25")
    assert cart.discount_amount == Decimal("0.00")
    assert cart.total == Decimal("32.22")
    assert cart.item_count == 3


@pytest.mark.asyncio
async def test_subtotal_tracks_surviving_lines(catalog, make_product):
    a = await make_product("A", "1.10", stock=50)
    b = await make_product("B", "2.35", stock=50)
    c = await make_product("C", "0.99", stock=50)
    cart = CartAccumulator(catalog)

    await cart.add_line(a.id, 3)
    await cart.add_line(b.id, 2)
    await cart.add_line(c.id, 5)
    cart.remove_line(b.id)
    await cart.set_quantity(a.id, 7)
    await cart.add_line(c.id)

    expected = sum(line.unit_price * line.quantity for line in cart.lines)
    assert cart.subtotal == expected == Decimal("13.64")


@pytest.mark.asyncio
async def test_tax_is_rounded_from_full_precision_sum(catalog, make_product):
    """Per-line tax of 0.0075 twice must round once to 0.02, not 0.01 + 0.01."""
    a = await make_product("A", "0.10", tax_rate="7.5", stock=5)
    b = await make_product("B", "0.10", tax_rate="7.5", stock=5)
    cart = CartAccumulator(catalog)

    await cart.add_line(a.id)
    await cart.add_line(b.id)

    assert cart.tax_amount == Decimal("0.02")
    assert cart.total == Decimal("0.22")


# ── add_line ───────────────────────────────────────

@pytest.mark.asyncio
async def test_add_line_merges_same_product(catalog, make_product):
    product = await make_product(stock=10)
    cart = CartAccumulator(catalog)

    await cart.add_line(product.id, 2)
    line = await cart.add_line(product.id, 3)

    assert line.quantity == 5
    assert len(cart.lines) == 1


@pytest.mark.asyncio
async def test_add_line_keeps_recognition_details(catalog, make_product):
    product = await make_product(stock=10)
    cart = CartAccumulator(catalog)

    line = await cart.add_line(product.id, 1, RecognitionMethod.VISION, 0.91)

    assert line.recognition_method == RecognitionMethod.VISION
    assert line.recognition_confidence == pytest.approx(0.91)


@pytest.mark.asyncio
@pytest.mark.parametrize("quantity", [0, -1, 1.5, True, "2"])
async def test_add_line_rejects_bad_quantity(catalog, make_product, quantity):
    product = await make_product(stock=10)
    cart = CartAccumulator(catalog)

    with pytest.raises(InvalidQuantity):
        await cart.add_line(product.id, quantity)
    assert cart.is_empty()


@pytest.mark.asyncio
async def test_add_line_rejects_bad_recognition(catalog, make_product):
    product = await make_product(stock=10)
    cart = CartAccumulator(catalog)

    with pytest.raises(ValidationError) as exc:
        await cart.add_line(product.id, 1, "telepathy", 1.7)

    assert len(exc.value.errors) == 2


@pytest.mark.asyncio
async def test_add_line_unknown_product(catalog):
    cart = CartAccumulator(catalog)

    with pytest.raises(ProductNotFound):
        await cart.add_line("prod_missing")


@pytest.mark.asyncio
async def test_add_line_checks_stock_against_new_total(catalog, make_product):
    product = await make_product(stock=4)
    cart = CartAccumulator(catalog)
    await cart.add_line(product.id, 3)

    with pytest.raises(InsufficientStock) as exc:
        await cart.add_line(product.id, 2)

    assert exc.value.requested == 5
    assert exc.value.available == 4
    assert cart.get_line(product.id).quantity == 3


@pytest.mark.asyncio
async def test_add_line_never_reserves_stock(catalog, make_product, stock):
    product = await make_product(stock=4)
    cart = CartAccumulator(catalog)

    await cart.add_line(product.id, 4)

    assert await stock.available(product.id) == 4


# ── remove_line / set_quantity ─────────────────────

@pytest.mark.asyncio
async def test_remove_missing_line(catalog):
    cart = CartAccumulator(catalog)

    with pytest.raises(LineNotFound):
        cart.remove_line("prod_missing")


@pytest.mark.asyncio
async def test_set_quantity_zero_removes_line(catalog, make_product):
    product = await make_product(stock=10)
    cart = CartAccumulator(catalog)
    await cart.add_line(product.id, 2)

    assert await cart.set_quantity(product.id, 0) is None
    assert cart.is_empty()
    assert cart.total == Decimal("0.00")


@pytest.mark.asyncio
async def test_set_quantity_missing_line(catalog, make_product):
    product = await make_product(stock=10)
    cart = CartAccumulator(catalog)

    with pytest.raises(LineNotFound):
        await cart.set_quantity(product.id, 2)


@pytest.mark.asyncio
async def test_set_quantity_rechecks_stock(catalog, make_product, stock):
    product = await make_product(stock=10)
    cart = CartAccumulator(catalog)
    await cart.add_line(product.id, 2)
    await stock.set_level(product.id, 3)

    with pytest.raises(InsufficientStock):
        await cart.set_quantity(product.id, 4)
    assert cart.get_line(product.id).quantity == 2


# ── Discounts ──────────────────────────────────────

@pytest.mark.asyncio
async def test_discount_above_subtotal_leaves_cart_unchanged(catalog, make_product):
    product = await make_product("Soda", "9.99", tax_rate="7.5", stock=10)
    cart = CartAccumulator(catalog)
    await cart.add_line(product.id, 3)
    before = cart.summary()

    with pytest.raises(InvalidDiscount):
        cart.apply_discount(50)

    assert cart.summary() == before


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [-1, "abc", None, "NaN"])
async def test_invalid_discount_values(catalog, make_product, amount):
    product = await make_product(stock=10)
    cart = CartAccumulator(catalog)
    await cart.add_line(product.id)

    with pytest.raises(InvalidDiscount):
        cart.apply_discount(amount)
    assert cart.discount_amount == Decimal("0.00")


@pytest.mark.asyncio
async def test_discount_reduces_total(catalog, make_product):
    product = await make_product("Soda", "9.99", tax_rate="7.5", stock=10)
    cart = CartAccumulator(catalog)
    await cart.add_line(product.id, 3)

    cart.apply_discount("2.22")

    assert cart.total == Decimal("30.00")


@pytest.mark.asyncio
async def test_discount_clamped_when_lines_removed(catalog, make_product):
    big = await make_product("Big", "20.00", stock=10)
    small = await make_product("Small", "1.00", stock=10)
    cart = CartAccumulator(catalog)
    await cart.add_line(big.id)
    await cart.add_line(small.id)
    cart.apply_discount(15)

    cart.remove_line(big.id)

    assert cart.discount_amount == cart.subtotal == Decimal("1.00")
    assert cart.total == Decimal("0.00")


# ── clear / checkout_draft ─────────────────────────

@pytest.mark.asyncio
async def test_clear_is_idempotent(catalog, make_product):
    product = await make_product(stock=10)
    cart = CartAccumulator(catalog)
    await cart.add_line(product.id, 2)
    cart.set_notes("gift")

    cart.clear()
    once = cart.summary()
    cart.clear()

    assert cart.summary() == once
    assert once.items == [] and once.total == Decimal("0.00") and once.notes == ""


def test_checkout_draft_empty_cart():
    cart = CartAccumulator(AsyncMock())

    with pytest.raises(EmptyCart):
        cart.checkout_draft("user_1", "store_1")


@pytest.mark.asyncio
async def test_checkout_draft_requires_employee_and_store(catalog, make_product):
    product = await make_product(stock=10)
    cart = CartAccumulator(catalog)
    await cart.add_line(product.id)

    with pytest.raises(MissingEmployee):
        cart.checkout_draft("", "store_1")
    with pytest.raises(MissingStore):
        cart.checkout_draft("user_1", None)


@pytest.mark.asyncio
async def test_checkout_draft_snapshots_lines(catalog, make_product, stock):
    product = await make_product("Soda", "9.99", tax_rate="7.5", stock=10)
    cart = CartAccumulator(catalog)
    await cart.add_line(product.id, 3)
    cart.set_customer("cust_1")

    entry = cart.checkout_draft("user_1", "store_1")
    product.price = Decimal("1.00")
    await catalog.save_product(product)

    assert entry.status == TransactionStatus.PENDING
    assert entry.items[0].price_at_sale == Decimal("9.99")
    assert entry.total == Decimal("32.22")
    assert entry.customer_id == "cust_1"
    assert await stock.available(product.id) == 10
    assert not cart.is_empty()
