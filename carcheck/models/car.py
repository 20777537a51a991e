from __future__ import annotations

from datetime import datetime
from typing import List, TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from carcheck.core.db import Base

if TYPE_CHECKING:
    from carcheck.models.permission import CarPermission


class Car(Base):
    __tablename__ = "cars"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    registration_number: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        index=True
    )

    make: Mapped[str | None] = mapped_column(String(80), nullable=True)
    model: Mapped[str | None] = mapped_column(String(80), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_by: Mapped[int] = mapped_column(ForeignKey("users.id"))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )

    permissions: Mapped[List[CarPermission]] = relationship(
        back_populates="car",
        cascade="all, delete-orphan"
    )
