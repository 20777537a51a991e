import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.auth.rbac import Role, can_manage
from carcheck.models.permission import CarPermission
from carcheck.models.user import User
from carcheck.services.exceptions import DuplicateGrant, Forbidden, LastOwnerError, NotFound

logger = logging.getLogger(__name__)


def owner_rows_for_update(car_id: int):
    """
    Owner grant ids of a car, row-locked in id order.

    Every owner row is locked, the one being changed included, so two owners
    demoting each other serialize and the second sees the first's change.
    """
    return (
        select(CarPermission.id)
        .where(CarPermission.car_id == car_id, CarPermission.role == Role.OWNER)
        .order_by(CarPermission.id)
        .with_for_update()
    )


class PermissionService:
    """
    Per-car (user, role) grants.

    Invariants enforced here:
    - exactly one role per (car, user): a second grant raises DuplicateGrant
    - only an owner of the same car may change or revoke grants
    - a car always keeps at least one owner (LastOwnerError otherwise)
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_role(self, car_id: int, user_id: int) -> Optional[Role]:
        stmt = select(CarPermission.role).where(
            CarPermission.car_id == car_id,
            CarPermission.user_id == user_id,
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def list_for_car(self, car_id: int) -> List[tuple[CarPermission, User]]:
        stmt = (
            select(CarPermission, User)
            .join(User, User.id == CarPermission.user_id)
            .where(CarPermission.car_id == car_id)
            .order_by(CarPermission.created_at, CarPermission.id)
        )
        result = await self.db.execute(stmt)
        return [(permission, user) for permission, user in result.all()]

    async def add_grant(self, car_id: int, user_id: int, role: Role) -> CarPermission:
        """
        Stage a grant inside the caller's transaction (flush, no commit).

        Used directly by invitation acceptance so the grant and the
        invitation stamp commit together.
        """
        if await self.get_role(car_id, user_id) is not None:
            raise DuplicateGrant("User already has access to this car; change their role instead.")

        permission = CarPermission(car_id=car_id, user_id=user_id, role=Role(role))
        self.db.add(permission)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateGrant("User already has access to this car; change their role instead.")
        return permission

    async def grant(self, car_id: int, user_id: int, role: Role) -> CarPermission:
        permission = await self.add_grant(car_id, user_id, role)
        await self.db.commit()
        await self.db.refresh(permission)  # load server-side created_at
        logger.info(
            "Permission granted",
            extra={"car_id": car_id, "user_id": user_id, "role": Role(role).value},
        )
        return permission

    async def grant_by_email(self, acting_user: User, car_id: int, email: str, role: Role) -> CarPermission:
        """Owner adds an existing user by email."""
        await self._require_owner(car_id, acting_user)
        user = (
            await self.db.execute(select(User).where(func.lower(User.email) == email.strip().lower()))
        ).scalar_one_or_none()
        if user is None:
            raise NotFound("No user with that email; send an invitation instead.")
        return await self.grant(car_id, user.id, role)

    async def update_role(self, acting_user: User, permission_id: int, new_role: Role) -> CarPermission:
        permission = await self._get(permission_id)
        await self._require_owner(permission.car_id, acting_user)

        new_role = Role(new_role)
        if permission.role == Role.OWNER and new_role != Role.OWNER:
            await self._ensure_other_owner(permission)

        permission.role = new_role
        await self.db.commit()
        logger.info(
            "Permission role changed",
            extra={"permission_id": permission_id, "role": new_role.value, "by": acting_user.id},
        )
        return permission

    async def revoke(self, acting_user: User, permission_id: int) -> None:
        permission = await self._get(permission_id)
        await self._require_owner(permission.car_id, acting_user)

        if permission.role == Role.OWNER:
            await self._ensure_other_owner(permission)

        await self.db.delete(permission)
        await self.db.commit()
        logger.info("Permission revoked", extra={"permission_id": permission_id, "by": acting_user.id})

    async def _get(self, permission_id: int) -> CarPermission:
        permission = await self.db.get(CarPermission, permission_id)
        if permission is None:
            raise NotFound("Permission not found.")
        return permission

    async def _require_owner(self, car_id: int, user: User) -> None:
        if not can_manage(await self.get_role(car_id, user.id)):
            raise Forbidden("Only an owner can manage permissions.")

    async def _ensure_other_owner(self, permission: CarPermission) -> None:
        owner_ids = (await self.db.execute(owner_rows_for_update(permission.car_id))).scalars().all()
        if not [owner_id for owner_id in owner_ids if owner_id != permission.id]:
            raise LastOwnerError("A car must keep at least one owner.")
