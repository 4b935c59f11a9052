"""Unit tests for user management."""

import pytest

from visionpos.core.errors import NotFoundError, ValidationError
from visionpos.models.role import RoleType
from visionpos.schemas.user import UserCreate, UserUpdate
from visionpos.services.users import UserService


def _create(username="mia", role=RoleType.CASHIER, **fields):
    return UserCreate(
        username=username,
        password="password-123",
        email=f"{username}@visionpos.app",
        role=role,
        **fields,
    )


@pytest.mark.asyncio
async def test_create_user_hashes_password_and_sets_role_defaults(store):
    users = UserService(store)

    user = await users.create_user(_create())

    assert user.password_hash and user.password_hash != "password-123"
    assert "transactions:void" not in user.permissions
    assert (await users.get_user(user.id)).username == "mia"


@pytest.mark.asyncio
async def test_duplicate_username(store):
    users = UserService(store)
    await users.create_user(_create())

    with pytest.raises(ValidationError, match="Username already exists"):
        await users.create_user(_create())


@pytest.mark.asyncio
async def test_unknown_permission_rejected(store):
    users = UserService(store)

    with pytest.raises(ValidationError, match="Unknown permission"):
        await users.create_user(_create(permissions=["vault:open"]))


@pytest.mark.asyncio
async def test_role_change_resets_permissions(store):
    users = UserService(store)
    user = await users.create_user(_create())

    updated = await users.update_user(user.id, UserUpdate(role=RoleType.MANAGER))

    assert updated.role == RoleType.MANAGER
    assert "transactions:void" in updated.permissions


@pytest.mark.asyncio
async def test_role_change_without_reset_keeps_permissions(store):
    users = UserService(store)
    user = await users.create_user(_create())

    updated = await users.update_user(
        user.id, UserUpdate(role=RoleType.MANAGER, reset_permissions=False)
    )

    assert updated.role == RoleType.MANAGER
    assert updated.permissions == user.permissions


@pytest.mark.asyncio
async def test_permission_list_replaces_existing(store):
    users = UserService(store)
    manager = await users.create_user(_create(role=RoleType.MANAGER))
    assert "transactions:void" in manager.permissions

    narrowed = await users.update_user(manager.id, UserUpdate(permissions=["products:read"]))

    assert narrowed.permissions == ["products:read"]
    assert (await users.get_user(manager.id)).permissions == ["products:read"]


@pytest.mark.asyncio
async def test_empty_permission_list_revokes_all(store):
    users = UserService(store)
    user = await users.create_user(_create())

    updated = await users.update_user(user.id, UserUpdate(permissions=[]))

    assert updated.permissions == []


@pytest.mark.asyncio
async def test_permission_list_applies_after_role_reset(store):
    users = UserService(store)
    user = await users.create_user(_create())

    updated = await users.update_user(
        user.id, UserUpdate(role=RoleType.MANAGER, permissions=["reports:read"])
    )

    assert updated.role == RoleType.MANAGER
    assert updated.permissions == ["reports:read"]


@pytest.mark.asyncio
async def test_rename_to_taken_username(store):
    users = UserService(store)
    await users.create_user(_create("mia"))
    other = await users.create_user(_create("noah"))

    with pytest.raises(ValidationError):
        await users.update_user(other.id, UserUpdate(username="mia"))


@pytest.mark.asyncio
async def test_delete_user(store):
    users = UserService(store)
    user = await users.create_user(_create())

    await users.delete_user(user.id)

    with pytest.raises(NotFoundError, match="User not found"):
        await users.get_user(user.id)
    with pytest.raises(NotFoundError):
        await users.delete_user(user.id)
