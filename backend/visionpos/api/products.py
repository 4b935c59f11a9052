"""Product commands."""

from typing import TYPE_CHECKING

from pydantic import ValidationError as PydanticValidationError

from visionpos.api.dispatcher import CommandContext, CommandDispatcher
from visionpos.core.errors import ProductNotFound, ValidationError
from visionpos.models.role import PermissionAction as P
from visionpos.schemas.envelope import Envelope
from visionpos.schemas.product import Product, ProductCreate, ProductUpdate

if TYPE_CHECKING:
    from visionpos.context import AppContext


def register(dispatcher: CommandDispatcher, app: "AppContext") -> None:
    catalog = app.catalog

    async def present(products: list[Product]) -> list[dict]:
        return [(await catalog.to_response(p)).model_dump(mode="json") for p in products]

    async def load(product_id: str) -> Product:
        product = await catalog.get_product(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return product

    async def check_unique(sku: str | None, barcode: str | None, exclude_id: str | None = None):
        errors = []
        for other in await catalog.list_products():
            if other.id == exclude_id:
                continue
            if sku and other.sku == sku:
                errors.append(f"SKU '{sku}' already exists")
            if barcode and other.barcode == barcode:
                errors.append(f"Barcode '{barcode}' already exists")
        if errors:
            raise ValidationError(errors)

    async def list_products(ctx: CommandContext) -> Envelope:
        return Envelope.ok(await present(await catalog.list_products()))

    async def get_product(ctx: CommandContext) -> Envelope:
        product = await load(ctx.params["id"])
        return Envelope.ok((await catalog.to_response(product)).model_dump(mode="json"))

    async def by_category(ctx: CommandContext) -> Envelope:
        return Envelope.ok(await present(await catalog.by_category(ctx.params["category"])))

    async def search(ctx: CommandContext) -> Envelope:
        return Envelope.ok(await present(await catalog.search(ctx.params["query"])))

    async def create_product(ctx: CommandContext) -> Envelope:
        data = ctx.parse(ProductCreate)
        await check_unique(data.sku, data.barcode)
        product = Product(**data.model_dump(exclude={"stock"}))
        await catalog.save_product(product, stock=data.stock)
        return Envelope.ok(
            (await catalog.to_response(product)).model_dump(mode="json"),
            status=201,
            message="Product created successfully",
        )

    async def update_product(ctx: CommandContext) -> Envelope:
        product = await load(ctx.params["id"])
        data = ctx.parse(ProductUpdate)
        await check_unique(data.sku, data.barcode, exclude_id=product.id)

        changes = data.model_dump(exclude_unset=True, exclude={"stock"})
        try:
            updated = Product.model_validate({**product.model_dump(), **changes})
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc)
        await catalog.save_product(updated, stock=data.stock)
        return Envelope.ok(
            (await catalog.to_response(updated)).model_dump(mode="json"),
            message="Product updated successfully",
        )

    async def delete_product(ctx: CommandContext) -> Envelope:
        if not await catalog.delete_product(ctx.params["id"]):
            raise ProductNotFound(ctx.params["id"])
        return Envelope.ok(message="Product deleted successfully")

    dispatcher.register("GET", "/products", list_products, [P.PRODUCTS_READ])
    dispatcher.register("GET", "/products/:id", get_product, [P.PRODUCTS_READ])
    dispatcher.register("GET", "/products/category/:category", by_category, [P.PRODUCTS_READ])
    dispatcher.register("GET", "/products/search/:query", search, [P.PRODUCTS_READ])
    dispatcher.register("POST", "/products", create_product, [P.PRODUCTS_CREATE])
    dispatcher.register("PUT", "/products/:id", update_product, [P.PRODUCTS_UPDATE])
    dispatcher.register("DELETE", "/products/:id", delete_product, [P.PRODUCTS_DELETE])
