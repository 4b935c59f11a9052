"""Store-wide settings kept as ``{key, value}`` records."""

import logging
from typing import Any

from visionpos.core.errors import NotFoundError, ValidationError
from visionpos.services.store import SETTINGS, RecordStore

logger = logging.getLogger(__name__)

THRESHOLD_KEY = "vision_confidence_threshold"


def _check_value(key: str, value: Any) -> str | None:
    if value is None:
        return f"Value is required for {key}"
    if key == THRESHOLD_KEY:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value <= 1:
            return f"{key} must be a number between 0 and 1"
    return None


class StoreSettings:
    def __init__(self, store: RecordStore):
        self.store = store

    async def all(self) -> dict[str, Any]:
        return {r["key"]: r["value"] for r in await self.store.list(SETTINGS)}

    async def get(self, key: str, default: Any = None) -> Any:
        record = await self.store.get(SETTINGS, key)
        return record["value"] if record is not None else default

    async def require(self, key: str) -> Any:
        record = await self.store.get(SETTINGS, key)
        if record is None:
            raise NotFoundError("Setting not found")
        return record["value"]

    async def set(self, key: str, value: Any) -> Any:
        if not key:
            raise ValidationError("Setting key is required")
        if value is None:
            raise ValidationError("Value is required")
        error = _check_value(key, value)
        if error:
            raise ValidationError(error)
        await self.store.put(SETTINGS, key, {"key": key, "value": value})
        logger.info(f"Setting updated: {key}")
        return value

    async def update(self, values: dict[str, Any]) -> dict[str, Any]:
        """Write several keys; every key is checked before any is written."""
        errors = [_check_value(k, v) for k, v in values.items()]
        errors = [e for e in errors if e]
        if errors:
            raise ValidationError(errors)
        for key, value in values.items():
            await self.set(key, value)
        return await self.all()
