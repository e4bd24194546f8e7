"""API endpoint modules for v1."""

from app.api.v1.endpoints import fcm, health, notifications, notify, webpush

__all__ = [
    "fcm",
    "health",
    "notifications",
    "notify",
    "webpush",
]
