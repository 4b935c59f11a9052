"""Transaction commands: open from items, complete, void, update."""

from typing import TYPE_CHECKING

from visionpos.api.dispatcher import CommandContext, CommandDispatcher
from visionpos.core.errors import ValidationError
from visionpos.models.role import PermissionAction as P
from visionpos.schemas.envelope import Envelope
from visionpos.schemas.transaction import (
    CompleteRequest,
    TransactionCreate,
    TransactionStatus,
    TransactionUpdate,
    VoidRequest,
)
from visionpos.services.cart import CartAccumulator
from visionpos.services.ledger import TransactionLedgerEntry

if TYPE_CHECKING:
    from visionpos.context import AppContext


def present(entry: TransactionLedgerEntry) -> dict:
    data = entry.to_dict()
    data["amount_paid"] = str(entry.amount_paid)
    data["change_due"] = str(entry.change_due)
    return data


def register(dispatcher: CommandDispatcher, app: "AppContext") -> None:
    transactions = app.transactions

    async def list_transactions(ctx: CommandContext) -> Envelope:
        status = ctx.data.get("status") if isinstance(ctx.data, dict) else None
        if status is not None:
            try:
                status = TransactionStatus(status)
            except ValueError:
                raise ValidationError(f"Unknown transaction status: {status}")
        entries = await transactions.list_transactions(status)
        return Envelope.ok([present(e) for e in entries])

    async def get_transaction(ctx: CommandContext) -> Envelope:
        return Envelope.ok(present(await transactions.load(ctx.params["id"])))

    async def create_transaction(ctx: CommandContext) -> Envelope:
        data = ctx.parse(TransactionCreate)

        cart = CartAccumulator(app.catalog)
        for item in data.items:
            await cart.add_line(
                item.product_id,
                item.quantity,
                item.recognition_method,
                item.recognition_confidence,
            )
        if data.discount_amount:
            cart.apply_discount(data.discount_amount)
        cart.set_customer(data.customer_id)
        cart.set_notes(data.notes)

        store_id = (
            data.store_id
            or await app.store_settings.get("store_id")
            or ctx.session.store_id
        )
        entry = await transactions.open_from_cart(cart, ctx.session.user_id, store_id)
        return Envelope.ok(present(entry), status=201, message="Transaction created successfully")

    async def update_transaction(ctx: CommandContext) -> Envelope:
        data = ctx.parse(TransactionUpdate)
        entry = await transactions.update(ctx.params["id"], notes=data.notes, customer_id=data.customer_id)
        return Envelope.ok(present(entry), message="Transaction updated successfully")

    async def complete_transaction(ctx: CommandContext) -> Envelope:
        data = ctx.parse(CompleteRequest)
        entry = await transactions.complete(ctx.params["id"], data.payment_methods)
        return Envelope.ok(present(entry), message="Transaction completed successfully")

    async def void_transaction(ctx: CommandContext) -> Envelope:
        data = ctx.parse(VoidRequest)
        entry = await transactions.void(ctx.params["id"], data.reason)
        return Envelope.ok(present(entry), message="Transaction voided successfully")

    dispatcher.register("GET", "/transactions", list_transactions, [P.TRANSACTIONS_READ])
    dispatcher.register("GET", "/transactions/:id", get_transaction, [P.TRANSACTIONS_READ])
    dispatcher.register("POST", "/transactions", create_transaction, [P.TRANSACTIONS_CREATE])
    dispatcher.register("PUT", "/transactions/:id", update_transaction, [P.TRANSACTIONS_UPDATE])
    dispatcher.register(
        "POST", "/transactions/:id/complete", complete_transaction, [P.TRANSACTIONS_UPDATE]
    )
    dispatcher.register("POST", "/transactions/:id/void", void_transaction, [P.TRANSACTIONS_VOID])
