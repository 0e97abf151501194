"""Booking lifecycle: submission and guarded status transitions.

    pending  -> accepted | declined | cancelled
    accepted -> completed | cancelled

declined, cancelled and completed are terminal. Every transition is one
conditional UPDATE keyed on the order id, the acting participant and the
legal source states, so racing calls cannot both succeed. Transition
timestamps are written with COALESCE and keep their first value.

Two paths exist. The patient path (accept/decline/cancel/rate) is scoped
to the caller's own orders. The partner path (partner_accept,
partner_decline, partner_complete, rate_patient) is scoped to the assigned
partner once one is set.
Admin overrides live in admin_override and never pass through here.
"""

from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession

from carelink.config import get_settings
from carelink.db import crud
from carelink.models import ServiceOrder, User
from carelink.models.base import utcnow
from carelink.schemas.booking import BookingSubmit, serialize_order
from carelink.services import order_identity, rating_aggregator
from carelink.services.errors import (
    InvalidRating,
    InvalidTransition,
    KYCRequired,
    MissingEmail,
    MissingFields,
    OrderNotFound,
    PatientNotFound,
)

logger = logging.getLogger(__name__)

_settings = get_settings()


def _clean(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def join_location(*parts: str | None) -> str | None:
    """Join the non-empty address parts with ', '."""
    filled = [p.strip() for p in parts if p and p.strip()]
    return ", ".join(filled) or None


def _stamp(column: str, now) -> dict:
    """Set a transition timestamp unless it already holds a value."""
    col = getattr(ServiceOrder, column)
    return {column: func.coalesce(col, now)}


def validate_rating(rating) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise InvalidRating()
    return rating


# ── Submission ────────────────────────────────────────────

async def submit(db: AsyncSession, patient_id: str, draft: BookingSubmit) -> ServiceOrder:
    patient_name = _clean(draft.patient_name)
    patient_contact = _clean(draft.patient_contact)
    issue_description = _clean(draft.issue_description)
    if not patient_name or not patient_contact or not issue_description:
        raise MissingFields()

    patient = await crud.get_user(db, patient_id)
    if not patient:
        raise PatientNotFound()

    email = _clean(draft.patient_email) or _clean(patient.patient_email) or _clean(patient.email)
    if not email:
        raise MissingEmail()

    order = await crud.create_service_order(
        db,
        patient_user_id=patient_id,
        patient_name=patient_name,
        patient_contact=patient_contact,
        patient_email=email,
        patient_location=join_location(draft.address, draft.city, draft.state, draft.pincode),
        service_type=_clean(draft.service_type) or "Service",
        service_category=_clean(draft.service_category),
        equipment_name=_clean(draft.equipment_name),
        equipment_model=_clean(draft.equipment_model),
        issue_description=issue_description,
        urgency_level=draft.urgency or "normal",
        preferred_date=_clean(draft.preferred_date),
        preferred_time=_clean(draft.preferred_time),
        patient_address=_clean(draft.address),
        patient_city=_clean(draft.city),
        patient_state=_clean(draft.state),
        patient_pincode=_clean(draft.pincode),
        patient_latitude=draft.latitude,
        patient_longitude=draft.longitude,
        pickup_latitude=draft.pickup_latitude,
        pickup_longitude=draft.pickup_longitude,
        pickup_address=_clean(draft.pickup_address),
        dropoff_latitude=draft.dropoff_latitude,
        dropoff_longitude=draft.dropoff_longitude,
        dropoff_address=_clean(draft.dropoff_address),
        quoted_price=draft.quoted_price,
        quoted_currency=_clean(draft.quoted_currency) or _settings.bookings.default_currency,
        engineer_notes=_clean(draft.engineer_notes),
        billing_frequency=draft.billing_frequency or "per_visit",
        monthly_visits_count=draft.monthly_visits_count,
        patient_condition=_clean(draft.patient_condition),
        status="pending",
        assigned_engineer_id=None,
    )
    logger.info(f"Booking {order.id} submitted by patient {patient_id}")
    return order


# ── Patient listing ───────────────────────────────────────

async def _partner_details(db: AsyncSession, partner_id: str) -> dict:
    partner = await crud.get_user(db, partner_id)
    if not partner:
        return {}
    summary = await rating_aggregator.aggregate_for_partner(db, partner_id)
    return {
        "partner_name": partner.full_name or partner.business_name,
        "partner_phone": partner.phone,
        "partner_avg_rating": summary["average"] if summary["count"] else None,
        "partner_total_ratings": summary["count"],
        "partner_completed_orders": await crud.count_completed_for_partner(db, partner_id),
    }


async def list_for_patient(db: AsyncSession, patient_id: str) -> list[dict]:
    """The patient's orders, newest first; accepted ones carry partner details."""
    orders = await crud.list_orders_for_patient(db, patient_id)
    cache = {}
    bookings = []
    for order in orders:
        booking = serialize_order(order)
        partner_id = order.assigned_engineer_id
        if order.status == "accepted" and partner_id:
            if partner_id not in cache:
                cache[partner_id] = await _partner_details(db, partner_id)
            booking.update(cache[partner_id])
        bookings.append(booking)
    return bookings


# ── Patient-scoped transitions ────────────────────────────

async def _patient_transition(
    db: AsyncSession, patient_id: str, order_ref: str,
    from_statuses: tuple[str, ...], values: dict, *extra_conditions,
) -> ServiceOrder:
    resolution = await order_identity.resolve(db, order_ref, patient_user_id=patient_id)
    order_id = resolution.order.id

    updated = await crud.conditional_update(
        db, order_id, values,
        ServiceOrder.patient_user_id == patient_id,
        ServiceOrder.status.in_(from_statuses),
        *extra_conditions,
    )
    if updated is None:
        logger.info(
            f"Patient {patient_id} transition on {order_id} rejected "
            f"(status={resolution.order.status}, allowed={from_statuses})"
        )
        raise OrderNotFound()
    return updated


async def accept(db: AsyncSession, order_ref: str, patient_id: str) -> ServiceOrder:
    now = utcnow()
    order = await _patient_transition(
        db, patient_id, order_ref, ("pending",),
        {"status": "accepted", **_stamp("accepted_at", now)},
    )
    logger.info(f"Booking {order.id} accepted by patient {patient_id}")
    return order


async def decline(db: AsyncSession, order_ref: str, patient_id: str) -> ServiceOrder:
    now = utcnow()
    order = await _patient_transition(
        db, patient_id, order_ref, ("pending",),
        {"status": "declined", **_stamp("declined_at", now)},
    )
    logger.info(f"Booking {order.id} declined by patient {patient_id}")
    return order


async def cancel(db: AsyncSession, order_ref: str, patient_id: str) -> ServiceOrder:
    now = utcnow()
    order = await _patient_transition(
        db, patient_id, order_ref, ("pending", "accepted"),
        {"status": "cancelled", **_stamp("cancelled_at", now)},
    )
    logger.info(f"Booking {order.id} cancelled by patient {patient_id}")
    return order


async def rate(
    db: AsyncSession, order_ref: str, patient_id: str, rating, review: str | None = None
) -> ServiceOrder:
    """Patient rates the partner on a completed order, once."""
    rating = validate_rating(rating)
    order = await _patient_transition(
        db, patient_id, order_ref, ("completed",),
        {"partner_rating": rating, "partner_review": _clean(review)},
        ServiceOrder.partner_rating.is_(None),
    )
    logger.info(f"Booking {order.id} rated {rating} by patient {patient_id}")
    return order


# ── Partner-side path ─────────────────────────────────────

async def open_orders_for_partner(db: AsyncSession, partner: User) -> list[ServiceOrder]:
    orders = await crud.list_open_orders_for_profession(db, partner.profession or "", partner.id)
    logger.info(f"Partner {partner.id} ({partner.profession or 'unspecified'}) sees {len(orders)} orders")
    return orders


async def partner_accept(
    db: AsyncSession, partner: User, order_ref: str, service_type: str | None = None
) -> ServiceOrder:
    if not partner.is_verified:
        raise KYCRequired(
            "Please complete your KYC verification before accepting service orders."
        )

    resolution = await order_identity.resolve(db, order_ref)
    values = {
        "status": "accepted",
        "assigned_engineer_id": partner.id,
        **_stamp("accepted_at", utcnow()),
    }
    if _clean(service_type):
        values["service_type"] = _clean(service_type)

    order = await crud.conditional_update(
        db, resolution.order.id, values,
        ServiceOrder.status == "pending",
        ServiceOrder.assigned_engineer_id.is_(None),
    )
    if order is None:
        raise InvalidTransition("Order is not available for acceptance")
    logger.info(f"Booking {order.id} accepted by partner {partner.id}")
    return order


async def partner_decline(db: AsyncSession, partner: User, order_ref: str) -> ServiceOrder:
    """Partner turns down an open order. Accepted orders are never released."""
    if not partner.is_verified:
        raise KYCRequired(
            "Please complete your KYC verification before declining service orders."
        )

    resolution = await order_identity.resolve(db, order_ref)
    order = await crud.conditional_update(
        db, resolution.order.id,
        {"status": "declined", **_stamp("declined_at", utcnow())},
        ServiceOrder.status == "pending",
        ServiceOrder.assigned_engineer_id.is_(None),
    )
    if order is None:
        raise InvalidTransition("Only pending orders can be declined")
    logger.info(f"Booking {order.id} declined by partner {partner.id}")
    return order


async def _partner_transition(
    db: AsyncSession, partner_id: str, order_ref: str,
    required_status: str, values: dict, state_error: str, *extra_conditions,
) -> ServiceOrder:
    resolution = await order_identity.resolve(db, order_ref)
    if resolution.order.assigned_engineer_id != partner_id:
        raise OrderNotFound("Order not found or not assigned to you")

    order = await crud.conditional_update(
        db, resolution.order.id, values,
        ServiceOrder.assigned_engineer_id == partner_id,
        ServiceOrder.status == required_status,
        *extra_conditions,
    )
    if order is None:
        raise InvalidTransition(state_error)
    return order


async def partner_complete(db: AsyncSession, partner_id: str, order_ref: str) -> ServiceOrder:
    order = await _partner_transition(
        db, partner_id, order_ref, "accepted",
        {"status": "completed", **_stamp("completed_at", utcnow())},
        "Order must be accepted before completion",
    )
    logger.info(f"Booking {order.id} completed by partner {partner_id}")
    return order


async def rate_patient(
    db: AsyncSession, partner_id: str, order_ref: str, rating, review: str | None = None
) -> ServiceOrder:
    """Partner rates the patient on a completed order, once."""
    rating = validate_rating(rating)
    order = await _partner_transition(
        db, partner_id, order_ref, "completed",
        {"user_rating": rating, "user_review": _clean(review)},
        "Only completed orders without a patient rating can be rated",
        ServiceOrder.user_rating.is_(None),
    )
    logger.info(f"Booking {order.id}: partner {partner_id} rated patient {rating}")
    return order
