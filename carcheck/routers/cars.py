from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.auth.dependencies import get_current_user
from carcheck.core.db import get_db
from carcheck.models.user import User
from carcheck.schemas.car import CarCreate, CarOut, CarWithRole
from carcheck.services.car_service import CarService

router = APIRouter(prefix="/cars", tags=["cars"])


@router.post("", response_model=CarWithRole, status_code=201)
async def create_car(
    req: CarCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    car = await CarService(db).create_car(
        current_user,
        registration_number=req.registration_number,
        make=req.make,
        model=req.model,
        year=req.year,
    )
    return CarWithRole(**CarOut.model_validate(car).model_dump(), role="owner")


@router.get("", response_model=List[CarWithRole])
async def list_cars(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cars the caller holds any role on."""
    cars = await CarService(db).list_cars_for_user(current_user)
    return [CarWithRole(**CarOut.model_validate(car).model_dump(), role=role) for car, role in cars]


@router.get("/{car_id}", response_model=CarWithRole)
async def get_car(
    car_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = CarService(db)
    role = await service.require_role(car_id, current_user)
    car = await service.get_car(car_id)
    return CarWithRole(**CarOut.model_validate(car).model_dump(), role=role)
