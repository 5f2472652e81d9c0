"""Identity records."""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from orderdesk.models.base import Base


class UserModel(Base):
    """One row per identity. Email is stored lower-cased."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[str] = mapped_column(
        String,
        CheckConstraint("role IN ('user', 'admin')", name="ck_users_role"),
        nullable=False,
        server_default="user",
    )
    registered_at: Mapped[str] = mapped_column(String, nullable=False)
