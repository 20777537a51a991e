from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from carcheck.core.db import Base
from carcheck.models.enums import SharePermission, enum_values


class ShareLink(Base):
    """Bearer token granting view or edit access to one car's checklist."""
    __tablename__ = "shared_checklists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    car_id: Mapped[int] = mapped_column(
        ForeignKey("cars.id", ondelete="CASCADE"),
        index=True
    )

    token: Mapped[str] = mapped_column(String(64), unique=True, index=True)

    permission_type: Mapped[SharePermission] = mapped_column(
        SAEnum(SharePermission, native_enum=False, values_callable=enum_values, length=10)
    )

    # NULL means the link never expires
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_by: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    accessed_count: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
