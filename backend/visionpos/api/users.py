"""User management commands."""

from typing import TYPE_CHECKING

from visionpos.api.dispatcher import CommandContext, CommandDispatcher
from visionpos.core.errors import ValidationError
from visionpos.models.role import PermissionAction as P
from visionpos.schemas.auth import ResetPasswordRequest
from visionpos.schemas.envelope import Envelope
from visionpos.schemas.user import User, UserCreate, UserResponse, UserUpdate

if TYPE_CHECKING:
    from visionpos.context import AppContext


def present(user: User) -> dict:
    return UserResponse.model_validate(user.model_dump()).model_dump(mode="json")


def register(dispatcher: CommandDispatcher, app: "AppContext") -> None:
    users = app.users

    async def list_users(ctx: CommandContext) -> Envelope:
        return Envelope.ok([present(u) for u in await users.list_users()])

    async def get_user(ctx: CommandContext) -> Envelope:
        return Envelope.ok(present(await users.get_user(ctx.params["id"])))

    async def create_user(ctx: CommandContext) -> Envelope:
        user = await users.create_user(ctx.parse(UserCreate))
        return Envelope.ok(present(user), status=201, message="User created successfully")

    async def update_user(ctx: CommandContext) -> Envelope:
        user = await users.update_user(ctx.params["id"], ctx.parse(UserUpdate))
        return Envelope.ok(present(user), message="User updated successfully")

    async def delete_user(ctx: CommandContext) -> Envelope:
        if ctx.params["id"] == ctx.session.user_id:
            raise ValidationError("Cannot delete your own account")
        await users.delete_user(ctx.params["id"])
        return Envelope.ok(message="User deleted successfully")

    async def reset_password(ctx: CommandContext) -> Envelope:
        data = ctx.parse(ResetPasswordRequest)
        await app.auth.reset_password(ctx.params["id"], data.new_password)
        return Envelope.ok(message="Password reset successfully")

    dispatcher.register("GET", "/users", list_users, [P.USERS_READ])
    dispatcher.register("GET", "/users/:id", get_user, [P.USERS_READ])
    dispatcher.register("POST", "/users", create_user, [P.USERS_CREATE])
    dispatcher.register("PUT", "/users/:id", update_user, [P.USERS_UPDATE])
    dispatcher.register("DELETE", "/users/:id", delete_user, [P.USERS_DELETE])
    dispatcher.register("POST", "/users/:id/reset-password", reset_password, [P.USERS_UPDATE])
