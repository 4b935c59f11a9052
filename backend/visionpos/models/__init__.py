"""SQLAlchemy models for VisionPOS."""

from visionpos.models.inventory import Inventory
from visionpos.models.record import Record
from visionpos.models.role import PermissionAction, RoleType

__all__ = [
    "Inventory",
    "Record",
    "PermissionAction",
    "RoleType",
]
