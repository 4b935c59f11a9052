"""Authentication commands: login, logout, current user, password change.

These routes are public at the gate; the ones acting on "me" check for a
live session themselves.
"""

from typing import TYPE_CHECKING

from visionpos.api.dispatcher import CommandContext, CommandDispatcher
from visionpos.api.users import present
from visionpos.core.errors import Unauthenticated
from visionpos.schemas.auth import ChangePasswordRequest, LoginRequest, Session
from visionpos.schemas.envelope import Envelope

if TYPE_CHECKING:
    from visionpos.context import AppContext


def _live_session(ctx: CommandContext) -> Session:
    if ctx.session is None or ctx.session.is_expired():
        raise Unauthenticated()
    return ctx.session


def register(dispatcher: CommandDispatcher, app: "AppContext") -> None:
    auth = app.auth

    async def login(ctx: CommandContext) -> Envelope:
        data = ctx.parse(LoginRequest)
        token = await auth.login(data.username, data.password)
        return Envelope.ok(token.model_dump(mode="json"), message="Login successful")

    async def logout(ctx: CommandContext) -> Envelope:
        auth.logout(ctx.token)
        return Envelope.ok(message="Logout successful")

    async def current_user(ctx: CommandContext) -> Envelope:
        user = await auth.current_user(_live_session(ctx))
        return Envelope.ok(present(user))

    async def change_password(ctx: CommandContext) -> Envelope:
        session = _live_session(ctx)
        data = ctx.parse(ChangePasswordRequest)
        await auth.change_password(session.user_id, data.current_password, data.new_password)
        return Envelope.ok(message="Password changed successfully")

    dispatcher.register("POST", "/auth/login", login)
    dispatcher.register("POST", "/auth/logout", logout)
    dispatcher.register("GET", "/auth/current-user", current_user)
    dispatcher.register("POST", "/auth/change-password", change_password)
