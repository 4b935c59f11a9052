"""Login, logout and bearer-token session resolution."""

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError

from visionpos.core.config import Settings
from visionpos.core.errors import Unauthenticated, ValidationError
from visionpos.core.security import create_access_token, decode_access_token, verify_password
from visionpos.schemas.auth import Session, TokenResponse
from visionpos.schemas.user import User, UserCreate, UserResponse
from visionpos.services.store_settings import StoreSettings
from visionpos.services.users import UserService

logger = logging.getLogger(__name__)


class AuthService:
    """
    Issues signed tokens and turns them back into sessions.

    Expiry is not enforced here: ``resolve_session`` hands back expired
    sessions too and the permission gate rejects them.
    """

    def __init__(self, users: UserService, store_settings: StoreSettings, settings: Settings):
        self.users = users
        self.store_settings = store_settings
        self.settings = settings
        # jti -> exp, pruned once exp has passed
        self._revoked: dict[str, int] = {}

    async def login(self, username: str, password: str) -> TokenResponse:
        user = await self.users.get_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            logger.info(f"Failed login for '{username}'")
            raise Unauthenticated("Invalid username or password")

        user.last_login = datetime.now(timezone.utc)
        await self.users.save_user(user)

        store_id = await self.store_settings.get("store_id", "")
        token, claims = create_access_token(
            user_id=user.id,
            store_id=store_id,
            role=user.role.value,
            permissions=user.permissions,
            expires_delta=timedelta(minutes=self.settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            secret_key=self.settings.SECRET_KEY,
            algorithm=self.settings.ALGORITHM,
        )
        logger.info(f"User logged in: {user.username}")
        return TokenResponse(
            access_token=token,
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
            user=UserResponse.model_validate(user.model_dump()),
        )

    def logout(self, token: str | None) -> bool:
        """Revoke the token's id. Returns False for tokens that never decoded."""
        claims = self._decode(token)
        if claims is None:
            return False
        self._prune()
        self._revoked[claims["jti"]] = int(claims.get("exp", 0))
        return True

    def resolve_session(self, token: str | None) -> Session | None:
        self._prune()
        claims = self._decode(token)
        if claims is None or claims["jti"] in self._revoked:
            return None
        try:
            return Session(
                user_id=claims["sub"],
                role=claims["role"],
                store_id=claims.get("store_id", ""),
                permissions=frozenset(claims.get("permissions", [])),
                token_id=claims["jti"],
                issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
            )
        except (KeyError, TypeError, ValueError):
            return None

    async def current_user(self, session: Session) -> User:
        return await self.users.get_user(session.user_id)

    async def register_user(self, data: UserCreate) -> User:
        return await self.users.create_user(data)

    async def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        user = await self.users.get_user(user_id)
        if not verify_password(current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")
        await self.users.set_password(user_id, new_password)
        logger.info(f"Password changed for {user.username}")

    async def reset_password(self, user_id: str, new_password: str) -> None:
        """Administrative reset; the current password is not required."""
        user = await self.users.set_password(user_id, new_password)
        logger.info(f"Password reset for {user.username}")

    def _decode(self, token: str | None) -> dict | None:
        if not token:
            return None
        try:
            claims = decode_access_token(
                token,
                verify_exp=False,
                secret_key=self.settings.SECRET_KEY,
                algorithm=self.settings.ALGORITHM,
            )
        except JWTError:
            return None
        if "jti" not in claims or "sub" not in claims:
            return None
        return claims

    def _prune(self) -> None:
        now = int(datetime.now(timezone.utc).timestamp())
        self._revoked = {jti: exp for jti, exp in self._revoked.items() if exp > now}
