"""Roles & permission strings - RBAC vocabulary."""

import enum


class PermissionAction(str, enum.Enum):
    """All permission strings, formatted ``<resource>:<action>``."""
    # Users
    USERS_READ = "users:read"
    USERS_CREATE = "users:create"
    USERS_UPDATE = "users:update"
    USERS_DELETE = "users:delete"
    # Products
    PRODUCTS_READ = "products:read"
    PRODUCTS_CREATE = "products:create"
    PRODUCTS_UPDATE = "products:update"
    PRODUCTS_DELETE = "products:delete"
    # Transactions
    TRANSACTIONS_READ = "transactions:read"
    TRANSACTIONS_CREATE = "transactions:create"
    TRANSACTIONS_UPDATE = "transactions:update"
    TRANSACTIONS_VOID = "transactions:void"
    # Reports
    REPORTS_READ = "reports:read"
    # Settings
    SETTINGS_READ = "settings:read"
    SETTINGS_UPDATE = "settings:update"


class RoleType(str, enum.Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    CASHIER = "cashier"
