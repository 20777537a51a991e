from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from carcheck.core.db import Base


class CarModel(Base):
    """Reference knowledge for a make/model over a range of model years."""
    __tablename__ = "car_models"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    make: Mapped[str] = mapped_column(String(100), index=True)
    model: Mapped[str] = mapped_column(String(100), index=True)

    year_from: Mapped[int] = mapped_column(Integer)
    # NULL: still in production
    year_to: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Lists of plain JSON objects, e.g. {"component": ..., "description": ..., "frequency": ...}
    common_issues: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    recalls: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    inspection_statistics: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    maintenance_schedules: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
