"""Service order model: a patient's request and its full lifecycle record."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Float, Integer, Text, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column

from carelink.models.base import Base, HexIDMixin, utcnow

# status -> timestamp column stamped on first entry
TRANSITION_TIMESTAMPS = {
    "accepted": "accepted_at",
    "declined": "declined_at",
    "cancelled": "cancelled_at",
    "completed": "completed_at",
}


class ServiceOrder(Base, HexIDMixin):
    __tablename__ = "service_orders"
    __table_args__ = (
        Index("ix_service_orders_engineer_status", "assigned_engineer_id", "status"),
    )

    patient_user_id: Mapped[str] = mapped_column(String(32), index=True)
    assigned_engineer_id: Mapped[str | None] = mapped_column(String(32), nullable=True, default=None, index=True)

    patient_name: Mapped[str] = mapped_column(String(200))
    patient_contact: Mapped[str] = mapped_column(String(50))
    patient_email: Mapped[str | None] = mapped_column(String(255), nullable=True, default=None)
    patient_location: Mapped[str | None] = mapped_column(String(500), nullable=True, default=None)

    service_type: Mapped[str] = mapped_column(String(100), default="Service")
    service_category: Mapped[str | None] = mapped_column(String(100), nullable=True, default=None)
    equipment_name: Mapped[str | None] = mapped_column(String(200), nullable=True, default=None)
    equipment_model: Mapped[str | None] = mapped_column(String(200), nullable=True, default=None)
    issue_description: Mapped[str] = mapped_column(Text)
    urgency_level: Mapped[str] = mapped_column(String(20), default="normal")  # normal | urgent | emergency
    preferred_date: Mapped[str | None] = mapped_column(String(30), nullable=True, default=None)
    preferred_time: Mapped[str | None] = mapped_column(String(30), nullable=True, default=None)
    billing_frequency: Mapped[str] = mapped_column(String(20), default="per_visit")  # per_visit | monthly
    monthly_visits_count: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    patient_condition: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    patient_address: Mapped[str | None] = mapped_column(String(300), nullable=True, default=None)
    patient_city: Mapped[str | None] = mapped_column(String(100), nullable=True, default=None)
    patient_state: Mapped[str | None] = mapped_column(String(100), nullable=True, default=None)
    patient_pincode: Mapped[str | None] = mapped_column(String(20), nullable=True, default=None)
    patient_latitude: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    patient_longitude: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    pickup_latitude: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    pickup_longitude: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    pickup_address: Mapped[str | None] = mapped_column(String(300), nullable=True, default=None)
    dropoff_latitude: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    dropoff_longitude: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    dropoff_address: Mapped[str | None] = mapped_column(String(300), nullable=True, default=None)

    quoted_price: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    quoted_currency: Mapped[str] = mapped_column(String(3), default="INR")
    engineer_notes: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # admin may also write quote_sent

    # patient -> partner
    partner_rating: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    partner_review: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    # partner -> patient
    user_rating: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    user_review: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    declined_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
