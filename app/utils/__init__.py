"""Utility helpers package."""

from app.utils.exceptions import (
    Forbidden,
    InternalError,
    InvalidArgument,
    InvalidEndpoint,
    NotFound,
    NotifyServiceError,
    TransientDeliveryError,
    Unauthenticated,
)

__all__ = [
    "Forbidden",
    "InternalError",
    "InvalidArgument",
    "InvalidEndpoint",
    "NotFound",
    "NotifyServiceError",
    "TransientDeliveryError",
    "Unauthenticated",
]
