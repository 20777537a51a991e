from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from carcheck.models.enums import SharePermission


class ShareLinkCreate(BaseModel):
    permission_type: SharePermission = SharePermission.VIEW
    # None: the link never expires; 0: already expired
    expires_in_days: Optional[int] = Field(None, ge=0, le=365)


class ShareLinkOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    car_id: int
    token: str
    url: str
    qr_url: str
    permission_type: SharePermission
    expires_at: Optional[datetime] = None
    accessed_count: int = 0
