"""Partner service-order API: open order feed, accept, decline, complete, rate patient."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from carelink.db.engine import get_db
from carelink.dependencies import require_partner
from carelink.models import User
from carelink.schemas import PartnerAccept, RatingSubmit, serialize_order
from carelink.services import booking_lifecycle

router = APIRouter(prefix="/api/service-orders", tags=["service_orders"])


@router.get("")
async def list_service_orders(
    partner: User = Depends(require_partner),
    db: AsyncSession = Depends(get_db),
):
    orders = await booking_lifecycle.open_orders_for_partner(db, partner)
    return [serialize_order(o) for o in orders]


@router.post("/{order_ref}/accept")
async def accept_service_order(
    order_ref: str,
    body: PartnerAccept | None = None,
    partner: User = Depends(require_partner),
    db: AsyncSession = Depends(get_db),
):
    service_type = body.service_type if body else None
    order = await booking_lifecycle.partner_accept(db, partner, order_ref, service_type)
    return {"success": True, "order": serialize_order(order)}


@router.post("/{order_ref}/decline")
async def decline_service_order(
    order_ref: str,
    partner: User = Depends(require_partner),
    db: AsyncSession = Depends(get_db),
):
    order = await booking_lifecycle.partner_decline(db, partner, order_ref)
    return {"success": True, "order": serialize_order(order)}


@router.post("/{order_ref}/complete")
async def complete_service_order(
    order_ref: str,
    partner: User = Depends(require_partner),
    db: AsyncSession = Depends(get_db),
):
    order = await booking_lifecycle.partner_complete(db, partner.id, order_ref)
    return {"success": True, "order": serialize_order(order)}


@router.post("/{order_ref}/rate-user")
async def rate_patient(
    order_ref: str,
    body: RatingSubmit,
    partner: User = Depends(require_partner),
    db: AsyncSession = Depends(get_db),
):
    await booking_lifecycle.rate_patient(db, partner.id, order_ref, body.rating, body.review)
    return {"success": True}
