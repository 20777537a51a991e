from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.auth.dependencies import get_current_user
from carcheck.auth.rbac import Capability
from carcheck.core.clock import Clock, get_clock
from carcheck.core.db import get_db
from carcheck.models.user import User
from carcheck.schemas.media import MediaCreate, MediaOut
from carcheck.services.car_service import CarService
from carcheck.services.media_service import MediaService

router = APIRouter(tags=["media"])


@router.get("/cars/{car_id}/media", response_model=List[MediaOut])
async def list_media(
    car_id: int,
    checklist_item_id: Optional[int] = None,
    maintenance_record_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await CarService(db).require_role(car_id, current_user, Capability.VIEW_CHECKLIST)
    return await MediaService(db).list_for_car(
        car_id,
        checklist_item_id=checklist_item_id,
        maintenance_record_id=maintenance_record_id,
    )


@router.post("/cars/{car_id}/media", response_model=MediaOut, status_code=201)
async def attach_media(
    car_id: int,
    req: MediaCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    now: Clock = Depends(get_clock),
):
    """Register an attachment; the response's file_path is where the file is uploaded."""
    await CarService(db).require_role(car_id, current_user, Capability.EDIT_CHECKLIST)
    return await MediaService(db, now=now).attach(
        car_id,
        current_user,
        file_name=req.file_name,
        file_type=req.file_type,
        file_size=req.file_size,
        checklist_item_id=req.checklist_item_id,
        maintenance_record_id=req.maintenance_record_id,
    )


@router.delete("/media/{media_id}", status_code=204)
async def delete_media(
    media_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = MediaService(db)
    media = await service.get(media_id)
    await CarService(db).require_role(media.car_id, current_user, Capability.EDIT_CHECKLIST)
    await service.delete(media_id)
    return Response(status_code=204)
