"""JWT token management and password hashing."""

import uuid
from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext

from visionpos.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def create_access_token(
    user_id: str,
    store_id: str,
    role: str,
    permissions: list[str],
    expires_delta: timedelta | None = None,
    secret_key: str | None = None,
    algorithm: str | None = None,
) -> tuple[str, dict]:
    """Issue a signed token. Returns the encoded token and its claims."""
    issued = datetime.now(timezone.utc)
    expire = issued + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {
        "sub": str(user_id),
        "jti": uuid.uuid4().hex,
        "store_id": str(store_id),
        "role": role,
        "permissions": sorted(permissions),
        "iat": int(issued.timestamp()),
        "exp": int(expire.timestamp()),
    }
    token = jwt.encode(
        payload, secret_key or settings.SECRET_KEY, algorithm=algorithm or settings.ALGORITHM
    )
    return token, payload


def decode_access_token(
    token: str,
    verify_exp: bool = True,
    secret_key: str | None = None,
    algorithm: str | None = None,
) -> dict:
    """Decode and validate JWT. Raises JWTError on failure."""
    return jwt.decode(
        token,
        secret_key or settings.SECRET_KEY,
        algorithms=[algorithm or settings.ALGORITHM],
        options={"verify_exp": verify_exp},
    )
