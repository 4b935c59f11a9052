"""Application context: every service wired once per process or test."""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from visionpos.ai.recognition import Recognizer, SimulatedRecognizer
from visionpos.api import auth as auth_commands
from visionpos.api import products, settings as settings_commands, transactions, users, vision
from visionpos.api.dispatcher import Command, CommandDispatcher
from visionpos.core.config import Settings
from visionpos.core.gate import PermissionGate
from visionpos.db.base import create_engine, create_sessionmaker, init_models
from visionpos.db.seed import seed_defaults
from visionpos.models import Inventory, Record  # noqa: F401  registers tables
from visionpos.schemas.envelope import Envelope
from visionpos.services.auth import AuthService
from visionpos.services.catalog import CatalogService
from visionpos.services.checkout import TransactionService
from visionpos.services.stock import InMemoryStockLedger, SqlStockLedger, StockLedger
from visionpos.services.store import InMemoryRecordStore, RecordStore, SqlRecordStore
from visionpos.services.store_settings import StoreSettings
from visionpos.services.users import UserService

logger = logging.getLogger(__name__)

COMMAND_MODULES = (products, transactions, users, auth_commands, settings_commands, vision)


@dataclass
class AppContext:
    settings: Settings
    store: RecordStore
    stock: StockLedger
    catalog: CatalogService
    transactions: TransactionService
    users: UserService
    store_settings: StoreSettings
    auth: AuthService
    recognizer: Recognizer
    dispatcher: CommandDispatcher
    engine: AsyncEngine | None = None

    async def dispatch(self, command: Command) -> Envelope:
        return await self.dispatcher.dispatch(command)

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()


async def build_context(
    settings: Settings,
    store: RecordStore | None = None,
    stock: StockLedger | None = None,
    recognizer: Recognizer | None = None,
) -> AppContext:
    """
    Wire services for ``settings``, seed an empty store, register commands.

    ``store`` / ``stock`` override the configured backend (tests pass fakes).
    """
    engine = None
    if store is None or stock is None:
        if settings.STORAGE_BACKEND == "sql":
            engine = create_engine(settings.DATABASE_URL)
            await init_models(engine)
            sessionmaker = create_sessionmaker(engine)
            store = store or SqlRecordStore(sessionmaker)
            stock = stock or SqlStockLedger(sessionmaker)
        else:
            store = store or InMemoryRecordStore()
            stock = stock or InMemoryStockLedger()
    logger.info(f"Storage backend: {settings.STORAGE_BACKEND}")

    user_service = UserService(store)
    store_settings = StoreSettings(store)
    auth = AuthService(user_service, store_settings, settings)
    dispatcher = CommandDispatcher(PermissionGate(), auth.resolve_session)

    ctx = AppContext(
        settings=settings,
        store=store,
        stock=stock,
        catalog=CatalogService(store, stock),
        transactions=TransactionService(store, stock),
        users=user_service,
        store_settings=store_settings,
        auth=auth,
        recognizer=recognizer or SimulatedRecognizer(settings.RECOGNIZER_SEED),
        dispatcher=dispatcher,
        engine=engine,
    )

    await seed_defaults(store, user_service, settings)
    for module in COMMAND_MODULES:
        module.register(dispatcher, ctx)
    logger.info(f"Registered {len(dispatcher.routes)} command routes")
    return ctx
