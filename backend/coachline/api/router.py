"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter

from coachline.api.routes import admin, bookings, catalogue, payments, promo, tickets

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(catalogue.router)
api_router.include_router(bookings.router)
api_router.include_router(payments.router)
api_router.include_router(promo.router)
api_router.include_router(tickets.router)
api_router.include_router(admin.router)
