from typing import List, Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.auth.dependencies import get_current_user, get_optional_user
from carcheck.auth.rbac import Capability, has_capability
from carcheck.core.clock import Clock, get_clock
from carcheck.core.db import get_db
from carcheck.middleware.rate_limit import SHARE_RESOLVE_LIMIT, limiter
from carcheck.models.car import Car
from carcheck.models.enums import SharePermission
from carcheck.models.share_link import ShareLink
from carcheck.models.user import User
from carcheck.schemas.checklist import ChecklistItemOut, ChecklistItemUpdate, SharedChecklistOut
from carcheck.schemas.share_link import ShareLinkCreate, ShareLinkOut
from carcheck.services.car_service import CarService
from carcheck.services.checklist_service import ChecklistService
from carcheck.services.exceptions import Forbidden
from carcheck.services.share_link_service import ShareLinkService, direct_share_url, qr_code_url, share_url

router = APIRouter(tags=["sharing"])


def _link_out(link: ShareLink) -> ShareLinkOut:
    return ShareLinkOut(
        id=link.id,
        car_id=link.car_id,
        token=link.token,
        url=share_url(link.token),
        qr_url=qr_code_url(share_url(link.token)),
        permission_type=link.permission_type,
        expires_at=link.expires_at,
        accessed_count=link.accessed_count,
    )


async def _shared_checklist(
    db: AsyncSession,
    car: Car,
    permission_type: SharePermission,
    can_edit: bool,
    url: str,
) -> SharedChecklistOut:
    grouped = await ChecklistService(db).all_items(car.id)
    items = [ChecklistItemOut.model_validate(record) for records in grouped.values() for record in records]
    return SharedChecklistOut(
        car_id=car.id,
        registration_number=car.registration_number,
        make=car.make,
        model=car.model,
        year=car.year,
        permission_type=permission_type.value,
        can_edit=can_edit,
        url=url,
        items=items,
    )


@router.post("/cars/{car_id}/share-links", response_model=ShareLinkOut, status_code=201)
async def create_share_link(
    car_id: int,
    req: ShareLinkCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    now: Clock = Depends(get_clock),
):
    await CarService(db).require_role(car_id, current_user, Capability.MANAGE_SHARE_LINKS)
    link = await ShareLinkService(db, now=now).create(
        car_id, req.permission_type, current_user, expires_in_days=req.expires_in_days
    )
    return _link_out(link)


@router.get("/cars/{car_id}/share-links", response_model=List[ShareLinkOut])
async def list_share_links(
    car_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await CarService(db).require_role(car_id, current_user, Capability.MANAGE_SHARE_LINKS)
    return [_link_out(link) for link in await ShareLinkService(db).list_for_car(car_id)]


@router.delete("/share-links/{share_id}", status_code=204)
async def delete_share_link(
    share_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = ShareLinkService(db)
    link = await service.get(share_id)
    if link is not None:
        await CarService(db).require_role(link.car_id, current_user, Capability.MANAGE_SHARE_LINKS)
        await service.delete(share_id)
    return Response(status_code=204)


@router.get("/shared/{token}", response_model=SharedChecklistOut)
@limiter.limit(SHARE_RESOLVE_LIMIT)
async def view_shared_checklist(
    request: Request,
    token: str,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
    now: Clock = Depends(get_clock),
):
    """Public checklist view; edit links only become editable for signed-in callers."""
    access = await ShareLinkService(db, now=now).access_for(token, current_user)
    car = await CarService(db).get_car(access.car_id)
    return await _shared_checklist(db, car, access.link.permission_type, access.can_edit, share_url(token))


@router.put("/shared/{token}/checklist/{section}/{item_key}", response_model=ChecklistItemOut)
@limiter.limit(SHARE_RESOLVE_LIMIT)
async def edit_shared_item(
    request: Request,
    token: str,
    section: str,
    item_key: str,
    req: ChecklistItemUpdate,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
    now: Clock = Depends(get_clock),
):
    # Writes do not count as views
    access = await ShareLinkService(db, now=now).access_for(token, current_user, count=False)
    if access.read_only:
        raise Forbidden("This share link is read-only for you.")
    return await ChecklistService(db, now=now).upsert(
        access.car_id, section, item_key, req.status, req.comment, editor=current_user
    )


@router.get("/cars/{car_id}/share", response_model=SharedChecklistOut)
async def view_direct_share(
    car_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The direct share variant: same checklist read, gated by membership instead of a token."""
    service = CarService(db)
    role = await service.require_role(car_id, current_user, Capability.VIEW_CHECKLIST)
    car = await service.get_car(car_id)
    can_edit = has_capability(role, Capability.EDIT_CHECKLIST)
    permission_type = SharePermission.EDIT if can_edit else SharePermission.VIEW
    return await _shared_checklist(db, car, permission_type, can_edit, direct_share_url(car.id))
