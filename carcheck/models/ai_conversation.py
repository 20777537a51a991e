from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from carcheck.core.db import Base


class AIConversation(Base):
    __tablename__ = "ai_conversations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True
    )

    car_id: Mapped[int | None] = mapped_column(
        ForeignKey("cars.id", ondelete="CASCADE"),
        nullable=True,
        index=True
    )

    conversation_type: Mapped[str] = mapped_column(String(20))  # analysis | chat

    input_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    ai_response: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    tokens_used: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True
    )
