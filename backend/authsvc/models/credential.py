"""
API-key / subscription record (XHashPass), one per user.
"""
import uuid
from datetime import datetime

from sqlalchemy import String, Integer, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from authsvc.db import Base


class Credential(Base):
    __tablename__ = "xhashpass"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True
    )

    subscription_type: Mapped[str] = mapped_column(String(20), default="Free")  # Free, Pro, Premium, Enterprise
    api_key: Mapped[str] = mapped_column(String(128), unique=True, index=True)

    # Requests allowed per window, and when the current window rolls over
    rate_limit: Mapped[int] = mapped_column(Integer)
    rate_limit_reset_at: Mapped[datetime] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    expires_at: Mapped[datetime] = mapped_column(DateTime)

    user: Mapped["User"] = relationship(back_populates="credential")
