from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.auth.dependencies import get_current_user
from carcheck.core.db import get_db
from carcheck.models.user import User
from carcheck.schemas.car_model import CarModelOut
from carcheck.services.car_knowledge_service import CarKnowledgeService
from carcheck.services.exceptions import NotFound

router = APIRouter(prefix="/car-models", tags=["car-models"])


@router.get("/lookup", response_model=CarModelOut)
async def lookup_car_model(
    make: str = Query(..., min_length=1),
    model: str = Query(..., min_length=1),
    year: int = Query(..., ge=1886),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Known issues, recalls and schedules on record for a make, model and year."""
    car_model = await CarKnowledgeService(db).lookup(make, model, year)
    if car_model is None:
        raise NotFound("No knowledge on record for this car model.")
    return car_model
