"""SQLAlchemy declarative base with ULID-hex primary key mixin."""

from __future__ import annotations

from datetime import datetime, timezone
from sqlalchemy import String, DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from ulid import ULID


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    """32 lowercase hex chars; sorts by creation time."""
    return ULID().hex


class Base(DeclarativeBase):
    pass


class HexIDMixin:
    """Mixin that provides a hex ULID primary key and created_at timestamp."""

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )
