from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from carcheck.core.db import Base
from carcheck.models.enums import ChecklistStatus, enum_values


class ChecklistItem(Base):
    """Recorded status/comment for one catalog item of one car. Created lazily on first write."""
    __tablename__ = "checklist_items"
    __table_args__ = (
        UniqueConstraint("car_id", "section", "item_key", name="uq_checklist_items_natural_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    car_id: Mapped[int] = mapped_column(
        ForeignKey("cars.id", ondelete="CASCADE"),
        index=True
    )

    section: Mapped[str] = mapped_column(String(50))
    item_key: Mapped[str] = mapped_column(String(80))

    status: Mapped[ChecklistStatus] = mapped_column(
        SAEnum(ChecklistStatus, native_enum=False, values_callable=enum_values, length=10),
        default=ChecklistStatus.UNSET
    )

    comment: Mapped[str | None] = mapped_column(Text, nullable=True)

    updated_by: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )

    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
