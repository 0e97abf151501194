"""Partner ratings API: aggregate score and ratings feed."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from carelink.db.engine import get_db
from carelink.dependencies import require_auth
from carelink.services import rating_aggregator

router = APIRouter(prefix="/api/partners", tags=["partners"])


@router.get("/{partner_id}/rating")
async def get_partner_rating(
    partner_id: str,
    auth=Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await rating_aggregator.aggregate_for_partner(db, partner_id)


@router.get("/{partner_id}/ratings")
async def get_partner_ratings_feed(
    partner_id: str,
    auth=Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await rating_aggregator.ratings_feed(db, partner_id)
