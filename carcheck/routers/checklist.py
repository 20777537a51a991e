from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.auth.dependencies import get_current_user
from carcheck.auth.rbac import Capability
from carcheck.core.clock import Clock, get_clock
from carcheck.core.db import get_db
from carcheck.data.checklist_catalog import CHECKLIST_SECTIONS
from carcheck.models.user import User
from carcheck.schemas.checklist import (
    ChecklistItemOut,
    ChecklistItemUpdate,
    ChecklistSectionOut,
    SectionSummaryOut,
)
from carcheck.services.car_service import CarService
from carcheck.services.checklist_service import ChecklistService

router = APIRouter(tags=["checklist"])


@router.get("/checklist/catalog", response_model=List[ChecklistSectionOut])
async def get_catalog():
    """The fixed checklist definition, in display order."""
    return [
        ChecklistSectionOut(
            key=section.key,
            title=section.title,
            icon=section.icon,
            items=[{"key": i.key, "title": i.title, "description": i.description} for i in section.items],
        )
        for section in CHECKLIST_SECTIONS
    ]


@router.get("/cars/{car_id}/checklist/{section}", response_model=List[ChecklistItemOut])
async def get_section_items(
    car_id: int,
    section: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await CarService(db).require_role(car_id, current_user, Capability.VIEW_CHECKLIST)
    return await ChecklistService(db).get_section_items(car_id, section)


@router.get("/cars/{car_id}/checklist/{section}/summary", response_model=SectionSummaryOut)
async def get_section_summary(
    car_id: int,
    section: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await CarService(db).require_role(car_id, current_user, Capability.VIEW_CHECKLIST)
    return await ChecklistService(db).section_summary(car_id, section)


@router.put("/cars/{car_id}/checklist/{section}/{item_key}", response_model=ChecklistItemOut)
async def upsert_item(
    car_id: int,
    section: str,
    item_key: str,
    req: ChecklistItemUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    now: Clock = Depends(get_clock),
):
    await CarService(db).require_role(car_id, current_user, Capability.EDIT_CHECKLIST)
    return await ChecklistService(db, now=now).upsert(
        car_id, section, item_key, req.status, req.comment, editor=current_user
    )


@router.delete("/cars/{car_id}/checklist/{section}/{item_key}/status", status_code=204)
async def clear_item_status(
    car_id: int,
    section: str,
    item_key: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    now: Clock = Depends(get_clock),
):
    await CarService(db).require_role(car_id, current_user, Capability.EDIT_CHECKLIST)
    await ChecklistService(db, now=now).clear(car_id, section, item_key, editor=current_user)
    return Response(status_code=204)
