from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MaintenanceCreate(BaseModel):
    type: str = Field(..., min_length=1, max_length=100)
    date: date
    mileage: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None
    cost: Optional[float] = Field(None, ge=0)


class MaintenanceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    car_id: int
    type: str
    date: date
    mileage: Optional[int] = None
    notes: Optional[str] = None
    cost: Optional[float] = None
