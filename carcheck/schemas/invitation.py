from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr

from carcheck.auth.rbac import Role


class InvitationCreate(BaseModel):
    email: EmailStr
    # contributor or viewer; anything else is rejected by the service
    role: Role = Role.VIEWER


class InvitationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    car_id: int
    email: str
    role: Role
    expires_at: datetime
    invited_by: Optional[int] = None
    accepted_at: Optional[datetime] = None
    is_expired: bool = False


class InvitationCreated(InvitationOut):
    token: str
    url: str


class InvitationPreview(BaseModel):
    car_id: int
    registration_number: str
    email: str
    role: Role
    expires_at: datetime


class InvitationAccepted(BaseModel):
    car_id: int
    role: Role
