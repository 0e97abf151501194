"""Admin API: service-order overrides, hard delete, unscoped listings."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from carelink.db.engine import get_db
from carelink.dependencies import require_admin
from carelink.schemas import AdminOrderUpdate, serialize_order
from carelink.services import admin_override
from carelink.services.auth import AuthContext

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/all-patient-orders")
async def list_all_patient_orders(
    limit: int | None = Query(default=None, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    auth: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    orders = await admin_override.list_all(db, limit=limit, offset=offset)
    return [serialize_order(o) for o in orders]


@router.get("/partner-orders/{user_id}")
async def list_partner_orders(
    user_id: str,
    auth: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    orders = await admin_override.partner_orders(db, user_id)
    return [serialize_order(o) for o in orders]


@router.put("/service-orders/{order_ref}")
async def update_service_order(
    order_ref: str,
    body: AdminOrderUpdate,
    auth: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    order = await admin_override.override(db, order_ref, body.model_dump(exclude_unset=True))
    return {
        "success": True,
        "message": "Service order updated successfully",
        "order": serialize_order(order),
    }


@router.delete("/service-orders/{order_ref}")
async def delete_service_order(
    order_ref: str,
    auth: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    order_id = await admin_override.hard_delete(db, order_ref)
    return {"success": True, "id": order_id, "message": "Service order deleted successfully"}
