from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from carcheck.auth.rbac import Role


class CarCreate(BaseModel):
    registration_number: str = Field(..., max_length=20)
    make: Optional[str] = Field(None, max_length=80)
    model: Optional[str] = Field(None, max_length=80)
    year: Optional[int] = Field(None, ge=1886)

    @field_validator('registration_number')
    def registration_required(cls, v):
        if not v or not v.strip():
            raise ValueError("Registration number is required")
        return v

    @field_validator('year')
    def not_in_future(cls, v):
        if v is not None and v > date.today().year + 1:
            raise ValueError("year cannot be in the future")
        return v


class CarOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    registration_number: str
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None


class CarWithRole(CarOut):
    role: Role
