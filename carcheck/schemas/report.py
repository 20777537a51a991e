from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from carcheck.models.enums import ChecklistStatus


class _FromAttributes(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class CarIdentityOut(_FromAttributes):
    car_id: int
    registration_number: str
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None


class ReportItemOut(_FromAttributes):
    item_key: str
    title: str
    description: Optional[str] = None
    status: ChecklistStatus
    status_label: str
    comment: Optional[str] = None
    updated_at: Optional[datetime] = None


class ReportSectionOut(_FromAttributes):
    key: str
    title: str
    icon: str
    items: List[ReportItemOut]


class ReportStatsOut(_FromAttributes):
    total_items: int
    total_checked: int
    ok_count: int
    warning_count: int
    issue_count: int
    completed_pct: int
    ok_pct: int
    warning_pct: int
    issue_pct: int
    interpretation: str


class ApprovalBlockOut(_FromAttributes):
    party: str
    signature: Optional[str] = None
    signed_at: Optional[datetime] = None


class ReportOut(_FromAttributes):
    car: CarIdentityOut
    generated_at: datetime
    stats: ReportStatsOut
    sections: List[ReportSectionOut]
    approvals: List[ApprovalBlockOut]
