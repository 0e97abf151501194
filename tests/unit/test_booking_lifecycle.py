"""Tests for submission and guarded status transitions."""

import pytest

from carelink.db import crud
from carelink.schemas import BookingSubmit
from carelink.services import booking_lifecycle
from carelink.services.booking_lifecycle import join_location
from carelink.services.order_identity import display_code
from carelink.services.errors import (
    InvalidRating,
    InvalidTransition,
    KYCRequired,
    MissingEmail,
    MissingFields,
    OrderNotFound,
    PatientNotFound,
)
from tests.factories import make_order


def _draft(**overrides):
    values = {
        "patient_name": "Jane",
        "patient_contact": "555-0100",
        "issue_description": "oxygen concentrator not powering on",
    }
    values.update(overrides)
    return BookingSubmit(**values)


# ── join_location ─────────────────────────────────────────

def test_join_location_skips_empty_parts():
    assert join_location("12 MG Road", "", "Karnataka", None) == "12 MG Road, Karnataka"
    assert join_location("12 MG Road", "Bengaluru", "Karnataka", "560001") == (
        "12 MG Road, Bengaluru, Karnataka, 560001"
    )
    assert join_location(None, "  ", None, None) is None


# ── submit ────────────────────────────────────────────────

async def test_submit_creates_pending_order_with_defaults(db, patient):
    order = await booking_lifecycle.submit(db, patient.id, _draft(city="Pune", pincode="411001"))
    assert order.status == "pending"
    assert order.assigned_engineer_id is None
    assert order.created_at is not None
    assert order.quoted_price is None
    assert order.urgency_level == "normal"
    assert order.quoted_currency == "INR"
    assert order.billing_frequency == "per_visit"
    assert order.service_type == "Service"
    assert order.patient_location == "Pune, 411001"
    assert order.patient_email == "jane@example.com"
    assert order.accepted_at is None and order.completed_at is None


@pytest.mark.parametrize("missing", ["patient_name", "patient_contact", "issue_description"])
async def test_submit_requires_core_fields(db, patient, missing):
    with pytest.raises(MissingFields):
        await booking_lifecycle.submit(db, patient.id, _draft(**{missing: "  "}))


async def test_submit_unknown_patient(db):
    with pytest.raises(PatientNotFound):
        await booking_lifecycle.submit(db, "nobody", _draft())


async def test_submit_without_any_email_flags_prompt(db):
    user = await crud.create_user(db, full_name="No Mail", phone="555-0111")
    with pytest.raises(MissingEmail) as exc:
        await booking_lifecycle.submit(db, user.id, _draft())
    assert exc.value.extra["requires_email"] is True
    assert exc.value.status_code == 400


async def test_submit_uses_explicit_email_then_profile(db):
    user = await crud.create_user(db, full_name="Mail", email="profile@example.com", patient_email="care@example.com")
    order = await booking_lifecycle.submit(db, user.id, _draft())
    assert order.patient_email == "care@example.com"

    order = await booking_lifecycle.submit(db, user.id, _draft(patient_email="typed@example.com"))
    assert order.patient_email == "typed@example.com"


# ── patient-scoped transitions ────────────────────────────

async def test_accept_sets_status_and_timestamp(db, patient):
    order = await make_order(db, patient.id)
    accepted = await booking_lifecycle.accept(db, order.id, patient.id)
    assert accepted.status == "accepted"
    assert accepted.accepted_at is not None


async def test_accept_by_other_patient_is_not_found(db, patient):
    order = await make_order(db, patient.id)
    await booking_lifecycle.accept(db, order.id, patient.id)
    with pytest.raises(OrderNotFound):
        await booking_lifecycle.accept(db, order.id, "intruder")


async def test_decline_twice_keeps_original_timestamp(db, patient):
    order = await make_order(db, patient.id)
    declined = await booking_lifecycle.decline(db, order.id, patient.id)
    first_declined_at = declined.declined_at

    with pytest.raises(OrderNotFound):
        await booking_lifecycle.decline(db, order.id, patient.id)

    reloaded = await crud.get_service_order(db, order.id)
    assert reloaded.status == "declined"
    assert reloaded.declined_at == first_declined_at


async def test_cancel_from_pending_and_accepted(db, patient):
    pending = await make_order(db, patient.id)
    cancelled = await booking_lifecycle.cancel(db, pending.id, patient.id)
    assert cancelled.status == "cancelled"
    assert cancelled.cancelled_at is not None

    other = await make_order(db, patient.id)
    await booking_lifecycle.accept(db, other.id, patient.id)
    cancelled = await booking_lifecycle.cancel(db, other.id, patient.id)
    assert cancelled.status == "cancelled"


async def test_cannot_cancel_completed_order(db, patient):
    order = await make_order(db, patient.id, status="completed")
    with pytest.raises(OrderNotFound):
        await booking_lifecycle.cancel(db, order.id, patient.id)


async def test_transition_by_display_code(db, patient):
    order = await make_order(db, patient.id, id="a" * 24 + "0001e240")
    accepted = await booking_lifecycle.accept(db, "123456", patient.id)
    assert accepted.id == order.id


# ── rating ────────────────────────────────────────────────

@pytest.mark.parametrize("rating", [0, 6, -1, None, True])
async def test_rate_rejects_out_of_range(db, patient, rating):
    order = await make_order(db, patient.id, status="completed")
    with pytest.raises(InvalidRating) as exc:
        await booking_lifecycle.rate(db, order.id, patient.id, rating)
    assert exc.value.message == "Rating must be between 1 and 5"

    reloaded = await crud.get_service_order(db, order.id)
    assert reloaded.partner_rating is None


async def test_rate_completed_order_once(db, patient):
    order = await make_order(db, patient.id, status="completed")
    rated = await booking_lifecycle.rate(db, order.id, patient.id, 4, "Quick and careful")
    assert rated.partner_rating == 4
    assert rated.partner_review == "Quick and careful"
    assert rated.user_rating is None

    with pytest.raises(OrderNotFound):
        await booking_lifecycle.rate(db, order.id, patient.id, 1)


async def test_rate_requires_completed_status(db, patient):
    order = await make_order(db, patient.id)
    with pytest.raises(OrderNotFound):
        await booking_lifecycle.rate(db, order.id, patient.id, 5)


# ── partner path ──────────────────────────────────────────

async def test_partner_accept_assigns_engineer(db, patient, partner):
    order = await make_order(db, patient.id)
    accepted = await booking_lifecycle.partner_accept(db, partner, order.id, service_type="Repair")
    assert accepted.status == "accepted"
    assert accepted.assigned_engineer_id == partner.id
    assert accepted.accepted_at is not None
    assert accepted.service_type == "Repair"


async def test_partner_accept_requires_kyc(db, patient):
    unverified = await crud.create_user(db, account_type="partner", full_name="New", is_verified=False)
    order = await make_order(db, patient.id)
    with pytest.raises(KYCRequired) as exc:
        await booking_lifecycle.partner_accept(db, unverified, order.id)
    assert exc.value.extra["requires_kyc"] is True


async def test_second_partner_cannot_take_accepted_order(db, patient, partner):
    rival = await crud.create_user(db, account_type="partner", full_name="Rival", is_verified=True)
    order = await make_order(db, patient.id)
    await booking_lifecycle.partner_accept(db, partner, order.id)
    with pytest.raises(InvalidTransition):
        await booking_lifecycle.partner_accept(db, rival, order.id)

    reloaded = await crud.get_service_order(db, order.id)
    assert reloaded.assigned_engineer_id == partner.id


async def test_pending_order_cannot_be_completed(db, patient, partner):
    order = await make_order(db, patient.id, assigned_engineer_id=partner.id)
    with pytest.raises(InvalidTransition):
        await booking_lifecycle.partner_complete(db, partner.id, order.id)


async def test_partner_complete_and_rate_patient(db, patient, partner):
    order = await make_order(db, patient.id)
    await booking_lifecycle.partner_accept(db, partner, order.id)
    completed = await booking_lifecycle.partner_complete(db, partner.id, order.id)
    assert completed.status == "completed"
    assert completed.completed_at is not None

    rated = await booking_lifecycle.rate_patient(db, partner.id, order.id, 5, "Clear instructions")
    assert rated.user_rating == 5
    assert rated.partner_rating is None


async def test_unassigned_partner_cannot_complete(db, patient, partner):
    order = await make_order(db, patient.id, status="accepted", assigned_engineer_id="someone-else")
    with pytest.raises(OrderNotFound):
        await booking_lifecycle.partner_complete(db, partner.id, order.id)


async def test_open_orders_filtered_by_profession(db, patient, partner):
    nurse = await crud.create_user(db, account_type="partner", full_name="Asha", profession="Nurse")
    nursing = await make_order(db, patient.id, service_category="Home Nursing")
    repair = await make_order(db, patient.id, service_category="Biomedical Repair")
    uncategorised = await make_order(db, patient.id)
    await make_order(db, patient.id, service_category="Ambulance")
    mine = await make_order(
        db, patient.id, service_category="Home Nursing", status="accepted", assigned_engineer_id=partner.id,
    )

    nurse_ids = {o.id for o in await booking_lifecycle.open_orders_for_partner(db, nurse)}
    assert nurse_ids == {nursing.id}

    engineer_ids = {o.id for o in await booking_lifecycle.open_orders_for_partner(db, partner)}
    assert engineer_ids == {repair.id, uncategorised.id, mine.id}


async def test_partner_decline_pending_order(db, patient, partner):
    order = await make_order(db, patient.id)
    declined = await booking_lifecycle.partner_decline(db, partner, order.id)
    assert declined.status == "declined"
    assert declined.declined_at is not None
    assert declined.assigned_engineer_id is None


async def test_partner_decline_requires_kyc(db, patient):
    unverified = await crud.create_user(db, account_type="partner", full_name="New", is_verified=False)
    order = await make_order(db, patient.id)
    with pytest.raises(KYCRequired):
        await booking_lifecycle.partner_decline(db, unverified, order.id)
    reloaded = await crud.get_service_order(db, order.id)
    assert reloaded.status == "pending"


async def test_partner_cannot_decline_accepted_order(db, patient, partner):
    order = await make_order(db, patient.id)
    await booking_lifecycle.partner_accept(db, partner, order.id)
    with pytest.raises(InvalidTransition):
        await booking_lifecycle.partner_decline(db, partner, order.id)

    reloaded = await crud.get_service_order(db, order.id)
    assert reloaded.status == "accepted"
    assert reloaded.assigned_engineer_id == partner.id
    assert reloaded.declined_at is None


# ── patient listing ───────────────────────────────────────

async def test_list_for_patient_adds_partner_details_to_accepted_orders(db, patient, partner):
    await make_order(db, patient.id, status="completed", assigned_engineer_id=partner.id, partner_rating=4)
    await make_order(db, patient.id, status="completed", assigned_engineer_id=partner.id)
    accepted = await make_order(db, patient.id)
    await booking_lifecycle.partner_accept(db, partner, accepted.id)
    waiting = await make_order(db, patient.id)

    bookings = {b["id"]: b for b in await booking_lifecycle.list_for_patient(db, patient.id)}
    assert len(bookings) == 4

    card = bookings[accepted.id]
    assert card["partner_name"] == "Ravi Kumar"
    assert card["partner_phone"] == "555-0199"
    assert card["partner_avg_rating"] == 4.0
    assert card["partner_total_ratings"] == 1
    assert card["partner_completed_orders"] == 2
    assert card["order_number"] == display_code(accepted.id)

    assert "partner_name" not in bookings[waiting.id]


async def test_list_for_patient_partner_without_ratings(db, patient, partner):
    order = await make_order(db, patient.id, status="accepted", assigned_engineer_id=partner.id)
    [booking] = await booking_lifecycle.list_for_patient(db, patient.id)
    assert booking["id"] == order.id
    assert booking["partner_avg_rating"] is None
    assert booking["partner_total_ratings"] == 0
    assert booking["partner_completed_orders"] == 0
