"""CRUD operations for service orders and the user records they reference."""

from __future__ import annotations

import functools
import logging

from sqlalchemy import func, select, update, and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from carelink.models import ServiceOrder, User
from carelink.models.base import utcnow
from carelink.services.errors import PersistenceError

logger = logging.getLogger(__name__)


def _store_call(fn):
    """Roll back and re-raise store failures as PersistenceError."""
    @functools.wraps(fn)
    async def wrapper(db: AsyncSession, *args, **kwargs):
        try:
            return await fn(db, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.exception(f"Store call {fn.__name__} failed")
            await db.rollback()
            raise PersistenceError(details=str(e)) from e
    return wrapper


# ── Users ─────────────────────────────────────────────────

@_store_call
async def get_user(db: AsyncSession, user_id: str) -> User | None:
    return await db.get(User, user_id)


@_store_call
async def create_user(db: AsyncSession, **fields) -> User:
    user = User(**fields)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


# ── ServiceOrder ──────────────────────────────────────────

@_store_call
async def create_service_order(db: AsyncSession, **fields) -> ServiceOrder:
    order = ServiceOrder(**fields)
    db.add(order)
    await db.commit()
    await db.refresh(order)
    return order


@_store_call
async def get_service_order(
    db: AsyncSession, order_id: str, patient_user_id: str | None = None
) -> ServiceOrder | None:
    """Point lookup, optionally narrowed to one patient's orders."""
    stmt = select(ServiceOrder).where(ServiceOrder.id == order_id).execution_options(
        populate_existing=True
    )
    if patient_user_id is not None:
        stmt = stmt.where(ServiceOrder.patient_user_id == patient_user_id)
    result = await db.execute(stmt)
    return result.scalars().first()


@_store_call
async def list_order_ids(db: AsyncSession, patient_user_id: str | None = None) -> list[str]:
    """Order ids in scope, newest first."""
    stmt = select(ServiceOrder.id)
    if patient_user_id is not None:
        stmt = stmt.where(ServiceOrder.patient_user_id == patient_user_id)
    stmt = stmt.order_by(ServiceOrder.created_at.desc(), ServiceOrder.id.desc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


@_store_call
async def list_orders_for_patient(db: AsyncSession, patient_user_id: str) -> list[ServiceOrder]:
    result = await db.execute(
        select(ServiceOrder)
        .where(ServiceOrder.patient_user_id == patient_user_id)
        .order_by(ServiceOrder.created_at.desc())
    )
    return list(result.scalars().all())


@_store_call
async def list_all_orders(db: AsyncSession, limit: int, offset: int = 0) -> list[ServiceOrder]:
    result = await db.execute(
        select(ServiceOrder)
        .order_by(ServiceOrder.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


@_store_call
async def list_orders_for_partner(db: AsyncSession, partner_id: str, limit: int) -> list[ServiceOrder]:
    result = await db.execute(
        select(ServiceOrder)
        .where(ServiceOrder.assigned_engineer_id == partner_id)
        .order_by(ServiceOrder.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


def _category_condition(profession: str):
    category = ServiceOrder.service_category
    profession = profession.lower()
    if "nursing" in profession or "nurse" in profession:
        return category.ilike("%nursing%")
    if "physio" in profession or "therapy" in profession:
        return category.ilike("%physio%")
    if "ambulance" in profession or "emergency" in profession or "ems" in profession:
        return category.ilike("%ambulance%")
    # Everyone else (biomedical engineers) sees equipment and uncategorised work
    return or_(
        category.is_(None),
        and_(
            ~category.ilike("%nursing%"),
            ~category.ilike("%physio%"),
            ~category.ilike("%ambulance%"),
        ),
    )


@_store_call
async def list_open_orders_for_profession(
    db: AsyncSession, profession: str, partner_id: str
) -> list[ServiceOrder]:
    """Pending orders a partner of this profession may take, plus their own."""
    result = await db.execute(
        select(ServiceOrder)
        .where(
            or_(
                and_(ServiceOrder.status == "pending", _category_condition(profession)),
                ServiceOrder.assigned_engineer_id == partner_id,
            )
        )
        .order_by(ServiceOrder.created_at.desc())
    )
    return list(result.scalars().all())


@_store_call
async def completed_ratings_for_partner(db: AsyncSession, partner_id: str) -> list[ServiceOrder]:
    result = await db.execute(
        select(ServiceOrder)
        .where(
            ServiceOrder.assigned_engineer_id == partner_id,
            ServiceOrder.status == "completed",
            ServiceOrder.partner_rating.is_not(None),
        )
        .order_by(ServiceOrder.completed_at.desc())
    )
    return list(result.scalars().all())


@_store_call
async def count_completed_for_partner(db: AsyncSession, partner_id: str) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(ServiceOrder)
        .where(
            ServiceOrder.assigned_engineer_id == partner_id,
            ServiceOrder.status == "completed",
        )
    )
    return result.scalar_one()


@_store_call
async def conditional_update(
    db: AsyncSession, order_id: str, values: dict, *conditions
) -> ServiceOrder | None:
    """Atomic find-and-update: a single UPDATE keyed on id plus guard conditions.

    Returns the refreshed order, or None when no row matched.
    """
    stmt = (
        update(ServiceOrder)
        .where(ServiceOrder.id == order_id, *conditions)
        .values(**values, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    await db.commit()
    if result.rowcount == 0:
        return None
    return await db.get(ServiceOrder, order_id, populate_existing=True)


@_store_call
async def update_service_order(db: AsyncSession, order: ServiceOrder, **kwargs) -> ServiceOrder:
    for k, v in kwargs.items():
        setattr(order, k, v)
    await db.commit()
    await db.refresh(order)
    return order


@_store_call
async def delete_service_order(db: AsyncSession, order: ServiceOrder) -> None:
    await db.delete(order)
    await db.commit()
