"""API v1 router aggregator."""

from fastapi import APIRouter

from clinic_notify.api.v1.endpoints import notification, statistics

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(notification.router)
api_router.include_router(statistics.router)

__all__ = ["api_router"]
