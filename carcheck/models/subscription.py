from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from carcheck.core.db import Base
from carcheck.models.enums import SubscriptionTier, enum_values


class UserSubscription(Base):
    """AI usage quota per user."""
    __tablename__ = "user_subscriptions"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True
    )

    tier: Mapped[SubscriptionTier] = mapped_column(
        SAEnum(SubscriptionTier, native_enum=False, values_callable=enum_values, length=10),
        default=SubscriptionTier.FREE
    )

    queries_used: Mapped[int] = mapped_column(Integer, default=0)
    queries_limit: Mapped[int] = mapped_column(Integer)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )

    @property
    def can_use_ai(self) -> bool:
        return self.queries_used < self.queries_limit
