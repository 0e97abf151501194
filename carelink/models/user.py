"""User profile and session models.

Profiles are owned by the account service; the booking core only reads
them (patient existence, contact email, partner public fields, KYC flag).
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from carelink.models.base import Base, HexIDMixin


class User(Base, HexIDMixin):
    __tablename__ = "users"

    account_type: Mapped[str] = mapped_column(String(20), default="patient")  # patient | partner
    role: Mapped[str] = mapped_column(String(20), default="user")  # user | admin
    full_name: Mapped[str] = mapped_column(String(200), default="")
    business_name: Mapped[str] = mapped_column(String(200), default="")
    phone: Mapped[str] = mapped_column(String(50), default="")
    email: Mapped[str] = mapped_column(String(255), default="")
    patient_email: Mapped[str] = mapped_column(String(255), default="")
    profile_picture_url: Mapped[str] = mapped_column(String(500), default="")
    profession: Mapped[str] = mapped_column(String(100), default="")
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class UserSession(Base, HexIDMixin):
    __tablename__ = "user_sessions"

    user_id: Mapped[str] = mapped_column(String(32), ForeignKey("users.id"))
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
