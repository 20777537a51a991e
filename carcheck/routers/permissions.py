from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.auth.dependencies import get_current_user
from carcheck.auth.rbac import Capability
from carcheck.core.db import get_db
from carcheck.models.permission import CarPermission
from carcheck.models.user import User
from carcheck.schemas.permission import PermissionCreate, PermissionOut, PermissionUpdate
from carcheck.services.car_service import CarService
from carcheck.services.permission_service import PermissionService

router = APIRouter(tags=["permissions"])


def _permission_out(permission: CarPermission, user: User) -> PermissionOut:
    return PermissionOut(
        id=permission.id,
        car_id=permission.car_id,
        user_id=user.id,
        email=user.email,
        fullname=user.fullname,
        role=permission.role,
        created_at=permission.created_at,
    )


@router.get("/cars/{car_id}/permissions", response_model=List[PermissionOut])
async def list_permissions(
    car_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Members of a car; any member may see who else has access."""
    await CarService(db).require_role(car_id, current_user, Capability.VIEW_CHECKLIST)
    rows = await PermissionService(db).list_for_car(car_id)
    return [_permission_out(permission, user) for permission, user in rows]


@router.post("/cars/{car_id}/permissions", response_model=PermissionOut, status_code=201)
async def grant_permission(
    car_id: int,
    req: PermissionCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await CarService(db).require_role(car_id, current_user, Capability.MANAGE_PERMISSIONS)
    permission = await PermissionService(db).grant_by_email(current_user, car_id, req.email, req.role)
    user = await db.get(User, permission.user_id)
    return _permission_out(permission, user)


@router.patch("/permissions/{permission_id}", response_model=PermissionOut)
async def update_permission(
    permission_id: int,
    req: PermissionUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    permission = await PermissionService(db).update_role(current_user, permission_id, req.role)
    user = await db.get(User, permission.user_id)
    return _permission_out(permission, user)


@router.delete("/permissions/{permission_id}", status_code=204)
async def revoke_permission(
    permission_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await PermissionService(db).revoke(current_user, permission_id)
    return Response(status_code=204)
