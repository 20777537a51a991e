from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from carcheck.models.enums import ChecklistStatus


class ChecklistItemDefOut(BaseModel):
    key: str
    title: str
    description: Optional[str] = None


class ChecklistSectionOut(BaseModel):
    key: str
    title: str
    icon: str
    items: List[ChecklistItemDefOut]


class ChecklistItemUpdate(BaseModel):
    status: ChecklistStatus = ChecklistStatus.UNSET
    comment: Optional[str] = Field(None, max_length=4000)


class ChecklistItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    section: str
    item_key: str
    status: ChecklistStatus
    comment: Optional[str] = None
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None


class SectionSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    section: str
    total: int
    completed: int
    ok_count: int
    warning_count: int
    issue_count: int


class SharedChecklistOut(BaseModel):
    car_id: int
    registration_number: str
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    permission_type: str
    can_edit: bool
    url: str
    items: List[ChecklistItemOut]
