from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr

from carcheck.auth.rbac import Role


class PermissionCreate(BaseModel):
    email: EmailStr
    role: Role = Role.VIEWER


class PermissionUpdate(BaseModel):
    role: Role


class PermissionOut(BaseModel):
    id: int
    car_id: int
    user_id: int
    email: str
    fullname: str
    role: Role
    created_at: Optional[datetime] = None
