"""Default roles, permissions, settings and the bootstrap admin account.

RBAC Matrix:
┌─────────────────────┬───────┬─────────┬─────────┐
│ Permission          │ Admin │ Manager │ Cashier │
├─────────────────────┼───────┼─────────┼─────────┤
│ users:read          │  ✓    │   ✓     │         │
│ users:create        │  ✓    │         │         │
│ users:update        │  ✓    │         │         │
│ users:delete        │  ✓    │         │         │
│ products:read       │  ✓    │   ✓     │   ✓     │
│ products:create     │  ✓    │   ✓     │         │
│ products:update     │  ✓    │   ✓     │         │
│ products:delete     │  ✓    │         │         │
│ transactions:read   │  ✓    │   ✓     │   ✓     │
│ transactions:create │  ✓    │   ✓     │   ✓     │
│ transactions:update │  ✓    │   ✓     │         │
│ transactions:void   │  ✓    │   ✓     │         │
│ reports:read        │  ✓    │   ✓     │         │
│ settings:read       │  ✓    │   ✓     │         │
│ settings:update     │  ✓    │         │         │
└─────────────────────┴───────┴─────────┴─────────┘
"""

import logging
import uuid

from visionpos.core.config import Settings
from visionpos.models.role import PermissionAction, RoleType
from visionpos.schemas.user import UserCreate
from visionpos.services.store import SETTINGS, RecordStore

logger = logging.getLogger(__name__)

ROLE_PERMISSIONS: dict[RoleType, list[PermissionAction]] = {
    RoleType.ADMIN: list(PermissionAction),  # All permissions
    RoleType.MANAGER: [
        PermissionAction.USERS_READ,
        PermissionAction.PRODUCTS_READ,
        PermissionAction.PRODUCTS_CREATE,
        PermissionAction.PRODUCTS_UPDATE,
        PermissionAction.TRANSACTIONS_READ,
        PermissionAction.TRANSACTIONS_CREATE,
        PermissionAction.TRANSACTIONS_UPDATE,
        PermissionAction.TRANSACTIONS_VOID,
        PermissionAction.REPORTS_READ,
        PermissionAction.SETTINGS_READ,
    ],
    RoleType.CASHIER: [
        PermissionAction.PRODUCTS_READ,
        PermissionAction.TRANSACTIONS_READ,
        PermissionAction.TRANSACTIONS_CREATE,
    ],
}


def default_permissions(role: RoleType | str) -> list[str]:
    return [p.value for p in ROLE_PERMISSIONS[RoleType(role)]]


def default_settings() -> dict:
    return {
        "store_name": "VisionPOS Store",
        "store_id": f"store_{uuid.uuid4().hex[:8]}",
        "tax_rate": 7.5,
        "currency": "USD",
        "vision_confidence_threshold": 0.7,
        "receipt_header": "VisionPOS Store\n123 Main Street\nAnytown, USA",
        "receipt_footer": "Thank you for shopping with us!",
    }


async def seed_defaults(store: RecordStore, users, settings: Settings) -> None:
    """Create the admin account and default settings on an empty store."""
    if not await users.list_users():
        await users.create_user(
            UserCreate(
                username=settings.DEFAULT_ADMIN_USERNAME,
                password=settings.DEFAULT_ADMIN_PASSWORD,
                first_name="Admin",
                last_name="User",
                email=settings.DEFAULT_ADMIN_EMAIL,
                role=RoleType.ADMIN,
            )
        )
        logger.info(f"Seeded default admin user '{settings.DEFAULT_ADMIN_USERNAME}'")

    if not await store.list(SETTINGS):
        for key, value in default_settings().items():
            await store.put(SETTINGS, key, {"key": key, "value": value})
        logger.info("Seeded default settings")
