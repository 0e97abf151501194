"""Pydantic request/response schemas."""

from carelink.schemas.booking import (
    BookingSubmit,
    RatingSubmit,
    PartnerAccept,
    AdminOrderUpdate,
    ServiceOrderRead,
    serialize_order,
)

__all__ = [
    "BookingSubmit", "RatingSubmit", "PartnerAccept", "AdminOrderUpdate",
    "ServiceOrderRead", "serialize_order",
]
