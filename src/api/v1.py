"""Centralized v1 API router: all module routers are included here."""

from fastapi import APIRouter

from src.modules.bidding.router import quotes_router, requirements_router
from src.modules.messaging.router import router as messaging_router
from src.modules.notification.router import router as notification_router
from src.modules.presence.router import router as presence_router
from src.modules.profiles.router import companies_router, professionals_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(requirements_router)
v1_router.include_router(quotes_router)
v1_router.include_router(companies_router)
v1_router.include_router(professionals_router)
v1_router.include_router(messaging_router)
v1_router.include_router(notification_router)
v1_router.include_router(presence_router)
