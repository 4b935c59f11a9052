"""Store settings commands."""

from typing import TYPE_CHECKING

from visionpos.api.dispatcher import CommandContext, CommandDispatcher
from visionpos.core.errors import ValidationError
from visionpos.models.role import PermissionAction as P
from visionpos.schemas.envelope import Envelope

if TYPE_CHECKING:
    from visionpos.context import AppContext


def register(dispatcher: CommandDispatcher, app: "AppContext") -> None:
    store_settings = app.store_settings

    async def get_all(ctx: CommandContext) -> Envelope:
        return Envelope.ok(await store_settings.all())

    async def get_one(ctx: CommandContext) -> Envelope:
        key = ctx.params["key"]
        return Envelope.ok({"key": key, "value": await store_settings.require(key)})

    async def update_all(ctx: CommandContext) -> Envelope:
        if not isinstance(ctx.data, dict) or not ctx.data:
            raise ValidationError("Settings object is required")
        values = await store_settings.update(ctx.data)
        return Envelope.ok(values, message="Settings updated successfully")

    async def update_one(ctx: CommandContext) -> Envelope:
        key = ctx.params["key"]
        value = ctx.data.get("value") if isinstance(ctx.data, dict) else None
        await store_settings.set(key, value)
        return Envelope.ok({"key": key, "value": value}, message="Setting updated successfully")

    dispatcher.register("GET", "/settings", get_all, [P.SETTINGS_READ])
    dispatcher.register("GET", "/settings/:key", get_one, [P.SETTINGS_READ])
    dispatcher.register("PUT", "/settings", update_all, [P.SETTINGS_UPDATE])
    dispatcher.register("PUT", "/settings/:key", update_one, [P.SETTINGS_UPDATE])
