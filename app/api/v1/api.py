"""API router for version 1."""
from fastapi import APIRouter

from app.api.v1.endpoints import fcm, notifications, notify, webpush


api_router = APIRouter()
api_router.include_router(notify.router)
api_router.include_router(webpush.router)
api_router.include_router(fcm.router)
api_router.include_router(notifications.router)
