"""Product catalog over the record store and the stock ledger."""

import logging
from datetime import datetime, timezone
from typing import Protocol

from visionpos.schemas.product import Product, ProductResponse
from visionpos.services.stock import StockLedger
from visionpos.services.store import PRODUCTS, RecordStore

logger = logging.getLogger(__name__)


class Catalog(Protocol):
    """What a cart needs to know about products."""

    async def get_product(self, product_id: str) -> Product | None: ...

    async def available(self, product_id: str) -> int: ...


class CatalogService:
    def __init__(self, store: RecordStore, stock: StockLedger):
        self.store = store
        self.stock = stock

    async def get_product(self, product_id: str) -> Product | None:
        data = await self.store.get(PRODUCTS, product_id)
        return Product.model_validate(data) if data is not None else None

    async def available(self, product_id: str) -> int:
        return await self.stock.available(product_id)

    async def list_products(self) -> list[Product]:
        products = [Product.model_validate(d) for d in await self.store.list(PRODUCTS)]
        return sorted(products, key=lambda p: (p.name.lower(), p.id))

    async def by_category(self, category: str) -> list[Product]:
        wanted = category.lower()
        return [p for p in await self.list_products() if p.category.lower() == wanted]

    async def search(self, query: str) -> list[Product]:
        """Case-insensitive match on name, SKU, barcode or description."""
        q = query.strip().lower()
        if not q:
            return []
        return [
            p for p in await self.list_products()
            if q in p.name.lower()
            or q in p.sku.lower()
            or q in (p.barcode or "").lower()
            or q in p.description.lower()
        ]

    async def save_product(self, product: Product, stock: int | None = None) -> Product:
        product.updated_at = datetime.now(timezone.utc)
        await self.store.put(PRODUCTS, product.id, product.model_dump(mode="json"))
        if stock is not None:
            await self.stock.set_level(product.id, stock)
        return product

    async def delete_product(self, product_id: str) -> bool:
        deleted = await self.store.delete(PRODUCTS, product_id)
        if deleted:
            await self.stock.discard(product_id)
            logger.info(f"Product deleted: {product_id}")
        return deleted

    async def to_response(self, product: Product) -> ProductResponse:
        return ProductResponse(**product.model_dump(), stock=await self.available(product.id))
