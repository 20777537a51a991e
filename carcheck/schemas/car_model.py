from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict


class CarModelOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    make: str
    model: str
    year_from: int
    year_to: Optional[int] = None
    common_issues: List[dict[str, Any]] = []
    recalls: List[dict[str, Any]] = []
    inspection_statistics: List[dict[str, Any]] = []
    maintenance_schedules: List[dict[str, Any]] = []
