import pytest
from sqlalchemy.dialects import postgresql

from carcheck.auth.rbac import Role
from carcheck.services.exceptions import DuplicateGrant, Forbidden, LastOwnerError, NotFound
from carcheck.services.permission_service import PermissionService, owner_rows_for_update


async def test_creator_is_owner(async_db_session, car, owner):
    assert await PermissionService(async_db_session).get_role(car.id, owner.id) == Role.OWNER


async def test_grant_then_get_role(async_db_session, car, other_user):
    service = PermissionService(async_db_session)
    await service.grant(car.id, other_user.id, Role.CONTRIBUTOR)
    assert await service.get_role(car.id, other_user.id) == Role.CONTRIBUTOR


async def test_second_grant_for_same_pair_fails(async_db_session, car, other_user):
    service = PermissionService(async_db_session)
    await service.grant(car.id, other_user.id, Role.VIEWER)

    with pytest.raises(DuplicateGrant):
        await service.grant(car.id, other_user.id, Role.CONTRIBUTOR)

    assert await service.get_role(car.id, other_user.id) == Role.VIEWER


async def test_grant_by_email_requires_owner(async_db_session, car, owner, other_user, make_user):
    service = PermissionService(async_db_session)
    await service.grant(car.id, other_user.id, Role.CONTRIBUTOR)
    third = await make_user("third@example.com")

    with pytest.raises(Forbidden):
        await service.grant_by_email(other_user, car.id, third.email, Role.VIEWER)

    permission = await service.grant_by_email(owner, car.id, "THIRD@example.com", Role.VIEWER)
    assert permission.user_id == third.id


async def test_grant_by_email_unknown_user(async_db_session, car, owner):
    with pytest.raises(NotFound):
        await PermissionService(async_db_session).grant_by_email(owner, car.id, "ghost@example.com", Role.VIEWER)


async def test_update_role_only_by_owner(async_db_session, car, owner, other_user):
    service = PermissionService(async_db_session)
    permission = await service.grant(car.id, other_user.id, Role.VIEWER)

    with pytest.raises(Forbidden):
        await service.update_role(other_user, permission.id, Role.OWNER)

    updated = await service.update_role(owner, permission.id, Role.CONTRIBUTOR)
    assert updated.role == Role.CONTRIBUTOR


async def test_sole_owner_cannot_demote_or_revoke_themselves(async_db_session, car, owner):
    service = PermissionService(async_db_session)
    (own_permission, _), = await service.list_for_car(car.id)

    with pytest.raises(LastOwnerError):
        await service.update_role(owner, own_permission.id, Role.VIEWER)
    with pytest.raises(LastOwnerError):
        await service.revoke(owner, own_permission.id)

    assert await service.get_role(car.id, owner.id) == Role.OWNER


async def test_owner_can_step_down_once_another_owner_exists(async_db_session, car, owner, other_user):
    service = PermissionService(async_db_session)
    await service.grant(car.id, other_user.id, Role.OWNER)
    own_permission = next(p for p, u in await service.list_for_car(car.id) if u.id == owner.id)

    await service.revoke(owner, own_permission.id)

    assert await service.get_role(car.id, owner.id) is None
    assert await service.get_role(car.id, other_user.id) == Role.OWNER


async def test_revoke_missing_permission(async_db_session, owner):
    with pytest.raises(NotFound):
        await PermissionService(async_db_session).revoke(owner, 9999)


async def test_two_owners_cannot_both_step_down(async_db_session, car, owner, other_user):
    service = PermissionService(async_db_session)
    other_permission = await service.grant(car.id, other_user.id, Role.OWNER)
    own_permission = next(p for p, u in await service.list_for_car(car.id) if u.id == owner.id)

    await service.update_role(other_user, own_permission.id, Role.CONTRIBUTOR)

    with pytest.raises(LastOwnerError):
        await service.update_role(other_user, other_permission.id, Role.CONTRIBUTOR)
    assert await service.get_role(car.id, other_user.id) == Role.OWNER


def test_owner_check_locks_every_owner_row():
    sql = str(owner_rows_for_update(1).compile(dialect=postgresql.dialect()))

    assert "FOR UPDATE" in sql
    assert "ORDER BY car_permissions.id" in sql
