"""Shared fixtures: in-memory backends and a product factory."""

from decimal import Decimal

import pytest

from visionpos.core.config import Settings
from visionpos.schemas.product import Product
from visionpos.services.catalog import CatalogService
from visionpos.services.stock import InMemoryStockLedger
from visionpos.services.store import InMemoryRecordStore


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        SECRET_KEY="test-secret-key",
        STORAGE_BACKEND="memory",
        RECOGNIZER_SEED=7,
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def stock():
    return InMemoryStockLedger()


@pytest.fixture
def catalog(store, stock):
    return CatalogService(store, stock)


@pytest.fixture
def make_product(catalog):
    """Async factory: ``await make_product("Soda", "9.99", tax_rate="7.5", stock=10)``."""

    async def _make(name="Widget", price="9.99", tax_rate="0", stock=10, **fields):
        product = Product(
            name=name,
            price=Decimal(price),
            tax_rate=Decimal(tax_rate),
            **fields,
        )
        return await catalog.save_product(product, stock=stock)

    return _make
