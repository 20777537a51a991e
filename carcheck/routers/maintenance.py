from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.auth.dependencies import get_current_user
from carcheck.auth.rbac import Capability
from carcheck.core.db import get_db
from carcheck.models.user import User
from carcheck.schemas.maintenance import MaintenanceCreate, MaintenanceOut
from carcheck.services.car_service import CarService
from carcheck.services.maintenance_service import MaintenanceService

router = APIRouter(prefix="/cars/{car_id}/maintenance", tags=["maintenance"])


@router.get("", response_model=List[MaintenanceOut])
async def list_maintenance(
    car_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await CarService(db).require_role(car_id, current_user, Capability.VIEW_CHECKLIST)
    return await MaintenanceService(db).list_for_car(car_id)


@router.post("", response_model=MaintenanceOut, status_code=201)
async def add_maintenance(
    car_id: int,
    req: MaintenanceCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await CarService(db).require_role(car_id, current_user, Capability.EDIT_MAINTENANCE)
    return await MaintenanceService(db).add(
        car_id,
        current_user,
        type=req.type,
        date=req.date,
        mileage=req.mileage,
        notes=req.notes,
        cost=req.cost,
    )
