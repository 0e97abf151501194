from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, computed_field

from carelink.services.order_identity import display_code


class BookingSubmit(BaseModel):
    """Patient booking form. Required fields are checked by the lifecycle
    controller so they surface as MissingFields, not schema errors."""

    patient_name: str | None = None
    patient_contact: str | None = None
    patient_email: str | None = None
    issue_description: str | None = None
    service_type: str | None = None
    service_category: str | None = None
    equipment_name: str | None = None
    equipment_model: str | None = None
    urgency: Literal["normal", "urgent", "emergency"] | None = None
    preferred_date: str | None = None
    preferred_time: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    pickup_latitude: float | None = None
    pickup_longitude: float | None = None
    pickup_address: str | None = None
    dropoff_latitude: float | None = None
    dropoff_longitude: float | None = None
    dropoff_address: str | None = None
    quoted_price: float | None = None
    quoted_currency: str | None = None
    engineer_notes: str | None = None
    billing_frequency: Literal["per_visit", "monthly"] | None = None
    monthly_visits_count: int | None = None
    patient_condition: str | None = None


class RatingSubmit(BaseModel):
    rating: int | None = None
    review: str | None = None


class PartnerAccept(BaseModel):
    service_type: str | None = None


class AdminOrderUpdate(BaseModel):
    status: Literal["pending", "accepted", "declined", "cancelled", "completed", "quote_sent"] | None = None
    service_type: str | None = None
    service_category: str | None = None
    equipment_name: str | None = None
    equipment_model: str | None = None
    issue_description: str | None = None
    urgency_level: Literal["normal", "urgent", "emergency"] | None = None
    quoted_price: float | None = None
    engineer_notes: str | None = None
    assigned_engineer_id: str | None = None


class ServiceOrderRead(BaseModel):
    id: str
    patient_user_id: str
    assigned_engineer_id: str | None = None
    patient_name: str
    patient_contact: str
    patient_email: str | None = None
    patient_location: str | None = None
    service_type: str
    service_category: str | None = None
    equipment_name: str | None = None
    equipment_model: str | None = None
    issue_description: str
    urgency_level: str
    preferred_date: str | None = None
    preferred_time: str | None = None
    billing_frequency: str
    monthly_visits_count: int | None = None
    patient_condition: str | None = None
    patient_address: str | None = None
    patient_city: str | None = None
    patient_state: str | None = None
    patient_pincode: str | None = None
    patient_latitude: float | None = None
    patient_longitude: float | None = None
    pickup_latitude: float | None = None
    pickup_longitude: float | None = None
    pickup_address: str | None = None
    dropoff_latitude: float | None = None
    dropoff_longitude: float | None = None
    dropoff_address: str | None = None
    quoted_price: float | None = None
    quoted_currency: str
    engineer_notes: str | None = None
    status: str
    partner_rating: int | None = None
    partner_review: str | None = None
    user_rating: int | None = None
    user_review: str | None = None
    created_at: datetime
    updated_at: datetime | None = None
    accepted_at: datetime | None = None
    declined_at: datetime | None = None
    cancelled_at: datetime | None = None
    completed_at: datetime | None = None

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def order_number(self) -> int:
        return display_code(self.id)


def serialize_order(order) -> dict:
    return ServiceOrderRead.model_validate(order).model_dump(mode="json")
