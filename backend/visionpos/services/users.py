"""User accounts over the record store."""

import logging

from pydantic import ValidationError as PydanticValidationError

from visionpos.core.errors import NotFoundError, ValidationError
from visionpos.core.security import hash_password
from visionpos.db.seed import default_permissions
from visionpos.models.role import PermissionAction
from visionpos.schemas.user import User, UserCreate, UserUpdate
from visionpos.services.store import USERS, RecordStore

logger = logging.getLogger(__name__)

KNOWN_PERMISSIONS = frozenset(p.value for p in PermissionAction)


def _check_permissions(permissions: list[str]) -> list[str]:
    unknown = sorted(set(permissions) - KNOWN_PERMISSIONS)
    if unknown:
        raise ValidationError([f"Unknown permission: {p}" for p in unknown])
    return sorted(set(permissions))


class UserService:
    def __init__(self, store: RecordStore):
        self.store = store

    async def list_users(self) -> list[User]:
        users = [User.model_validate(d) for d in await self.store.list(USERS)]
        return sorted(users, key=lambda u: u.username)

    async def get_user(self, user_id: str) -> User:
        data = await self.store.get(USERS, user_id)
        if data is None:
            raise NotFoundError("User not found")
        return User.model_validate(data)

    async def get_by_username(self, username: str) -> User | None:
        for user in await self.list_users():
            if user.username == username:
                return user
        return None

    async def save_user(self, user: User) -> User:
        await self.store.put(USERS, user.id, user.model_dump(mode="json"))
        return user

    async def create_user(self, data: UserCreate) -> User:
        if await self.get_by_username(data.username):
            raise ValidationError("Username already exists")
        permissions = (
            _check_permissions(data.permissions)
            if data.permissions is not None
            else default_permissions(data.role)
        )
        user = User(
            username=data.username,
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            role=data.role,
            password_hash=hash_password(data.password),
            permissions=permissions,
        )
        await self.save_user(user)
        logger.info(f"User created: {user.username} ({user.role.value})")
        return user

    async def update_user(self, user_id: str, data: UserUpdate) -> User:
        user = await self.get_user(user_id)

        if data.username is not None and data.username != user.username:
            if await self.get_by_username(data.username):
                raise ValidationError("Username already exists")

        changes = data.model_dump(
            exclude_unset=True,
            exclude={"role", "reset_permissions", "permissions"},
            exclude_none=True,
        )
        merged = user.model_dump()
        merged.update(changes)

        if data.role is not None and data.role != user.role:
            merged["role"] = data.role
            if data.reset_permissions:
                merged["permissions"] = default_permissions(data.role)
        if data.permissions is not None:
            merged["permissions"] = _check_permissions(data.permissions)

        try:
            updated = User.model_validate(merged)
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc)
        return await self.save_user(updated)

    async def delete_user(self, user_id: str) -> None:
        if not await self.store.delete(USERS, user_id):
            raise NotFoundError("User not found")
        logger.info(f"User deleted: {user_id}")

    async def set_password(self, user_id: str, new_password: str) -> User:
        user = await self.get_user(user_id)
        user.password_hash = hash_password(new_password)
        return await self.save_user(user)
