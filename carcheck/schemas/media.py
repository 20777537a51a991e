from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MediaCreate(BaseModel):
    file_name: str = Field(..., min_length=1, max_length=255)
    file_type: Optional[str] = Field(None, max_length=100)
    file_size: Optional[int] = Field(None, ge=0)
    checklist_item_id: Optional[int] = None
    maintenance_record_id: Optional[int] = None


class MediaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    car_id: int
    checklist_item_id: Optional[int] = None
    maintenance_record_id: Optional[int] = None
    # Object storage key the client uploads the file to
    file_path: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
