"""Service for handling Web Push notifications."""
from __future__ import annotations

from typing import Any, Dict, Protocol

from pywebpush import WebPushException, webpush

from app.services.delivery import INVALID_ENDPOINT, classify_webpush_status
from app.utils.exceptions import InvalidEndpoint, TransientDeliveryError


class WebPushSender(Protocol):
    def send(self, subscription: Dict[str, Any], payload: str) -> None:
        """Deliver ``payload`` to one subscription.

        Raises ``InvalidEndpoint`` when the push service reports the
        subscription as gone, ``TransientDeliveryError`` otherwise.
        """


class VapidWebPushSender:
    """Sign and send Web Push messages with the server's VAPID key pair."""

    def __init__(
        self,
        private_key: str,
        subject: str,
        ttl_seconds: int = 24 * 3600,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.private_key = private_key
        self.subject = subject
        self.ttl_seconds = ttl_seconds
        self.timeout_seconds = timeout_seconds

    def send(self, subscription: Dict[str, Any], payload: str) -> None:
        try:
            webpush(
                subscription_info={
                    "endpoint": subscription.get("endpoint"),
                    "keys": subscription.get("keys") or {},
                },
                data=payload,
                vapid_private_key=self.private_key,
                # pywebpush adds aud/exp to the claims dict, keep it per call
                vapid_claims={"sub": self.subject},
                ttl=self.ttl_seconds,
                timeout=self.timeout_seconds,
            )
        except WebPushException as ex:
            status_code = ex.response.status_code if ex.response is not None else None
            details = {"status_code": status_code}
            if classify_webpush_status(status_code) == INVALID_ENDPOINT:
                raise InvalidEndpoint(f"Subscription expired ({status_code})", details) from ex
            raise TransientDeliveryError(f"Web Push failed: {ex}", details) from ex
