"""Privileged order overrides.

Writes bypass the lifecycle guard and ownership scoping by design, so
concurrent admin edits to one order are last-writer-wins. Callers must
already hold an admin context (see dependencies.require_admin). Orders are
addressed by canonical id only.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from carelink.config import get_settings
from carelink.db import crud
from carelink.models import ServiceOrder
from carelink.models.base import utcnow
from carelink.models.service_order import TRANSITION_TIMESTAMPS
from carelink.services import order_identity
from carelink.services.errors import OrderNotFound

logger = logging.getLogger(__name__)

OVERRIDABLE_FIELDS = (
    "status", "service_type", "service_category", "equipment_name", "equipment_model",
    "issue_description", "urgency_level", "quoted_price", "engineer_notes",
    "assigned_engineer_id",
)
# non-nullable columns; an explicit null for these is ignored
_REQUIRED_FIELDS = ("status", "service_type", "issue_description", "urgency_level")


async def _get_by_id(db: AsyncSession, order_ref: str) -> ServiceOrder:
    """Exact id lookup. Display codes and id fragments are not accepted here."""
    order_id = (order_ref or "").strip().lower()
    if not order_identity.is_canonical_id(order_id):
        raise OrderNotFound()
    order = await crud.get_service_order(db, order_id)
    if not order:
        raise OrderNotFound()
    return order


async def override(db: AsyncSession, order_ref: str, fields: dict) -> ServiceOrder:
    """Write the given subset of overridable fields unconditionally."""
    order = await _get_by_id(db, order_ref)

    updates = {
        k: v for k, v in fields.items()
        if k in OVERRIDABLE_FIELDS and not (v is None and k in _REQUIRED_FIELDS)
    }
    status = updates.get("status")
    stamp = TRANSITION_TIMESTAMPS.get(status)
    if stamp and getattr(order, stamp) is None:
        updates[stamp] = utcnow()

    logger.info(f"[Admin] Updating service order {order.id} with {sorted(updates)}")
    if updates:
        order = await crud.update_service_order(db, order, **updates)
    return order


async def hard_delete(db: AsyncSession, order_ref: str) -> str:
    order = await _get_by_id(db, order_ref)
    order_id = order.id
    await crud.delete_service_order(db, order)
    logger.info(f"[Admin] Deleted service order {order_id}")
    return order_id


async def list_all(db: AsyncSession, limit: int | None = None, offset: int = 0) -> list[ServiceOrder]:
    limit = limit or get_settings().bookings.admin_list_limit
    return await crud.list_all_orders(db, limit=limit, offset=offset)


async def partner_orders(db: AsyncSession, partner_id: str) -> list[ServiceOrder]:
    return await crud.list_orders_for_partner(db, partner_id, get_settings().bookings.partner_orders_limit)
