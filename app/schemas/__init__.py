"""Pydantic schemas package."""

from app.schemas.notification import MarkAllReadResponse, NotificationFeed, NotificationRead
from app.schemas.notify import (
    ApplicationAcceptedEvent,
    DiagnosticEvent,
    DiagnosticNotifyResponse,
    EventPayload,
    NewApplicationEvent,
    NewJobEvent,
    NotifyResponse,
    decode_event,
)
from app.schemas.push import (
    FCMRegisterRequest,
    OkResponse,
    PublicKeyResponse,
    WebPushSubscribeRequest,
    WebPushSubscription,
)

__all__ = [
    "ApplicationAcceptedEvent",
    "DiagnosticEvent",
    "DiagnosticNotifyResponse",
    "EventPayload",
    "FCMRegisterRequest",
    "MarkAllReadResponse",
    "NewApplicationEvent",
    "NewJobEvent",
    "NotificationFeed",
    "NotificationRead",
    "NotifyResponse",
    "OkResponse",
    "PublicKeyResponse",
    "WebPushSubscribeRequest",
    "WebPushSubscription",
    "decode_event",
]
