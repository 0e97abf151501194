"""Central router that includes all sub-routers."""

from fastapi import APIRouter

from carelink.api.bookings import router as bookings_router
from carelink.api.service_orders import router as service_orders_router
from carelink.api.partners import router as partners_router
from carelink.api.admin import router as admin_router

api_router = APIRouter()
api_router.include_router(bookings_router)
api_router.include_router(service_orders_router)
api_router.include_router(partners_router)
api_router.include_router(admin_router)
