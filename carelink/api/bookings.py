"""Patient bookings API: submit, list, poll, and patient-scoped transitions."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from carelink.db.engine import get_db
from carelink.dependencies import require_auth
from carelink.schemas import BookingSubmit, RatingSubmit, serialize_order
from carelink.services import booking_lifecycle, order_identity, search_status
from carelink.services.auth import AuthContext

router = APIRouter(prefix="/api/patient/bookings", tags=["bookings"])


@router.post("/submit", status_code=201)
async def submit_booking(
    body: BookingSubmit,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    order = await booking_lifecycle.submit(db, auth.user_id, body)
    return {
        "success": True,
        "order_id": order.id,
        "id": order.id,
        "order_number": order_identity.display_code(order.id),
        "status": order.status,
        "quoted_price": order.quoted_price,
        "message": "Booking request submitted successfully.",
    }


@router.get("")
async def list_bookings(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await booking_lifecycle.list_for_patient(db, auth.user_id)


@router.get("/{order_ref}")
async def get_booking(
    order_ref: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    resolution = await order_identity.resolve(db, order_ref, patient_user_id=auth.user_id)
    return serialize_order(resolution.order)


@router.get("/{order_ref}/search-status")
async def get_search_status(
    order_ref: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await search_status.poll_status(db, order_ref, auth.user_id)


@router.post("/{order_ref}/accept")
async def accept_booking(
    order_ref: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    order = await booking_lifecycle.accept(db, order_ref, auth.user_id)
    return {"success": True, "order": serialize_order(order)}


@router.post("/{order_ref}/decline")
async def decline_booking(
    order_ref: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    order = await booking_lifecycle.decline(db, order_ref, auth.user_id)
    return {"success": True, "order": serialize_order(order)}


@router.post("/{order_ref}/cancel")
async def cancel_booking(
    order_ref: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    order = await booking_lifecycle.cancel(db, order_ref, auth.user_id)
    return {"success": True, "order": serialize_order(order)}


@router.post("/{order_ref}/rate")
async def rate_booking(
    order_ref: str,
    body: RatingSubmit,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    order = await booking_lifecycle.rate(db, order_ref, auth.user_id, body.rating, body.review)
    return {"success": True, "order": serialize_order(order)}
