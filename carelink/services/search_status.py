"""Search-status poller for a patient waiting on a partner.

Clients poll this every few seconds after submitting, so it stays at one
resolve plus one partner lookup (and one aggregate query when the partner
rating is enabled).
"""

from __future__ import annotations

from datetime import timezone

from sqlalchemy.ext.asyncio import AsyncSession

from carelink.config import get_settings
from carelink.db import crud
from carelink.models.base import utcnow
from carelink.schemas.booking import serialize_order
from carelink.services import order_identity, rating_aggregator

SEARCHING_STATUSES = ("pending", "searching")
# quote_sent is an admin sub-state layered onto accepted
FOUND_STATUSES = ("accepted", "in_progress", "confirmed", "quote_sent")


def search_signal(status: str) -> str:
    if status in SEARCHING_STATUSES:
        return "searching"
    if status in FOUND_STATUSES:
        return "found"
    return "not_found"


def _elapsed_seconds(order) -> int:
    created = order.created_at
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return max(0, int((utcnow() - created).total_seconds()))


async def poll_status(db: AsyncSession, order_ref: str, patient_id: str) -> dict:
    resolution = await order_identity.resolve(db, order_ref, patient_user_id=patient_id)
    order = resolution.order
    signal = search_signal(order.status)

    elapsed = _elapsed_seconds(order)
    response = {
        "status": signal,
        "booking": serialize_order(order),
        "partner": None,
        "search_duration_seconds": elapsed,
        "search_duration_minutes": elapsed // 60,
    }

    if signal == "found" and order.assigned_engineer_id:
        partner = await crud.get_user(db, order.assigned_engineer_id)
        if partner:
            if get_settings().search_status.include_partner_rating:
                summary = await rating_aggregator.aggregate_for_partner(db, partner.id)
            else:
                summary = {"average": 0.0, "count": 0}
            response["partner"] = {
                "id": partner.id,
                "name": partner.full_name or partner.business_name,
                "phone": partner.phone,
                "profile_picture_url": partner.profile_picture_url,
                "average_rating": summary["average"],
                "total_ratings": summary["count"],
            }
    return response
