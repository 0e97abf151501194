"""Partner rating aggregation, computed on demand from completed orders.

Only completed orders assigned to the partner with a non-null
partner_rating qualify. A malformed historical record is logged and
skipped so one bad row never takes the whole feed down.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from carelink.db import crud

logger = logging.getLogger(__name__)


def _rating_value(order) -> int:
    if order.status != "completed":
        raise ValueError(f"status is {order.status}")
    value = order.partner_rating
    if isinstance(value, bool) or value is None:
        raise ValueError(f"rating is {value!r}")
    value = int(value)
    if not 1 <= value <= 5:
        raise ValueError(f"rating {value} out of range")
    return value


def summarize(orders) -> dict:
    """Average (one decimal) and count over the qualifying orders."""
    ratings = []
    for order in orders:
        try:
            ratings.append(_rating_value(order))
        except (TypeError, ValueError) as e:
            logger.warning(f"Skipping rating on order {getattr(order, 'id', '?')}: {e}")
    if not ratings:
        return {"average": 0.0, "count": 0}
    return {"average": round(sum(ratings) / len(ratings), 1), "count": len(ratings)}


async def aggregate_for_partner(db: AsyncSession, partner_id: str) -> dict:
    orders = await crud.completed_ratings_for_partner(db, partner_id)
    return summarize(orders)


def _feed_entry(order) -> dict:
    return {
        "patient_name": order.patient_name,
        "service_type": order.service_type,
        "equipment_name": order.equipment_name,
        "rating": _rating_value(order),
        "review": order.partner_review,
        "created_at": order.created_at.isoformat(),
    }


async def ratings_feed(db: AsyncSession, partner_id: str) -> list[dict]:
    orders = await crud.completed_ratings_for_partner(db, partner_id)
    feed = []
    for order in orders:
        try:
            feed.append(_feed_entry(order))
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Skipping ratings feed entry for order {getattr(order, 'id', '?')}: {e}")
    return feed
