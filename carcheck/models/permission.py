from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Integer, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from carcheck.auth.rbac import Role
from carcheck.core.db import Base
from carcheck.models.enums import enum_values

if TYPE_CHECKING:
    from carcheck.models.car import Car
    from carcheck.models.user import User


class CarPermission(Base):
    """
    One role per (car, user) pair.
    """
    __tablename__ = "car_permissions"
    __table_args__ = (
        UniqueConstraint("car_id", "user_id", name="uq_car_permissions_car_user"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    car_id: Mapped[int] = mapped_column(
        ForeignKey("cars.id", ondelete="CASCADE"),
        index=True
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True
    )

    role: Mapped[Role] = mapped_column(
        SAEnum(Role, native_enum=False, values_callable=enum_values, length=20)
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )

    # Relationships
    car: Mapped[Car] = relationship(back_populates="permissions")
    user: Mapped[User] = relationship()
