"""Order identity resolution.

Clients show patients a short numeric order number, so a reference in a
URL may be the canonical id, that display code, or a truncated id
fragment depending on client version. Resolution tries the canonical id
first and then falls back, in order:

1. numeric references matched against each order's display code
2. the reference as a substring of the id's 8-char tail
3. the reference as a suffix of the id

Fallback scans run newest-first and return the first match. A short
fragment can match more than one order, so fallback results are best
effort, never a uniqueness guarantee.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from carelink.db import crud
from carelink.models import ServiceOrder
from carelink.services.errors import OrderNotFound

logger = logging.getLogger(__name__)

DISPLAY_CODE_HEX_WIDTH = 8
DISPLAY_CODE_MODULUS = 1_000_000

_CANONICAL_RE = re.compile(r"^[0-9a-f]{32}$")


@dataclass
class Resolution:
    order: ServiceOrder
    via: str  # canonical | display_code | id_tail | id_suffix

    @property
    def is_fallback(self) -> bool:
        return self.via != "canonical"


def display_code(order_id: str) -> int:
    """Six-digit display number derived from the id's trailing hex chars."""
    return int(order_id[-DISPLAY_CODE_HEX_WIDTH:], 16) % DISPLAY_CODE_MODULUS


def is_canonical_id(reference: str) -> bool:
    return bool(_CANONICAL_RE.match(reference))


def _match_fallback(reference: str, order_ids: list[str]) -> tuple[str, str] | None:
    if reference.isdigit():
        code = int(reference)
        for oid in order_ids:
            if display_code(oid) == code:
                return oid, "display_code"

    for oid in order_ids:
        if reference in oid[-DISPLAY_CODE_HEX_WIDTH:]:
            return oid, "id_tail"

    for oid in order_ids:
        if oid.endswith(reference):
            return oid, "id_suffix"

    return None


async def resolve(
    db: AsyncSession, reference: str, patient_user_id: str | None = None
) -> Resolution:
    """Locate an order by any accepted reference form, or raise OrderNotFound.

    When ``patient_user_id`` is given, only that patient's orders are considered.
    """
    ref = (reference or "").strip().lower()
    if not ref:
        raise OrderNotFound()

    if is_canonical_id(ref):
        order = await crud.get_service_order(db, ref, patient_user_id)
        if order:
            return Resolution(order, "canonical")
        if not ref.isdigit():
            raise OrderNotFound()

    if not re.fullmatch(r"[0-9a-f]+", ref):
        raise OrderNotFound()

    order_ids = await crud.list_order_ids(db, patient_user_id)
    match = _match_fallback(ref, order_ids)
    if match is None:
        raise OrderNotFound()

    order_id, via = match
    order = await crud.get_service_order(db, order_id, patient_user_id)
    if order is None:
        # Deleted between scan and fetch
        raise OrderNotFound()

    logger.info(f"Resolved order reference {reference!r} to {order_id} via {via}")
    return Resolution(order, via)
