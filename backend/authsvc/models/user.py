"""User model"""
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import String, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from authsvc.db import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name: Mapped[str] = mapped_column(String(100))
    # Always stored lowercased; the unique index closes the check-then-insert race
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password: Mapped[str] = mapped_column(String(255))  # argon2 hash
    user_type: Mapped[str] = mapped_column(String(20), default="Client")  # Client, Enterprise, Bot, SuperUser, Admin
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    credential: Mapped[Optional["Credential"]] = relationship(
        back_populates="user", uselist=False, cascade="all, delete-orphan", lazy="selectin"
    )
