"""Push message and delivery outcome types shared by the senders and the janitor."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

from app.core.messages import NotificationContent

Channel = Literal["fcm", "webpush"]
FCM: Channel = "fcm"
WEBPUSH: Channel = "webpush"

INVALID_ENDPOINT = "invalid_endpoint"
TRANSIENT_ERROR = "transient_error"

# FCM error codes meaning the token will never work again.
INVALID_TOKEN_CODES = frozenset(
    {
        "messaging/invalid-registration-token",
        "messaging/registration-token-not-registered",
    }
)

# Push service responses meaning the subscription is gone.
EXPIRED_SUBSCRIPTION_STATUSES = frozenset({404, 410})


@dataclass(frozen=True)
class PushMessage:
    """Channel-independent push payload."""

    title: str
    body: str
    link: str
    nid: str
    kind: str
    subject_id: str = ""

    @classmethod
    def from_content(cls, content: NotificationContent) -> "PushMessage":
        return cls(
            title=content.push_title,
            body=content.push_body,
            link=content.link,
            nid=content.nid,
            kind=content.kind,
            subject_id=content.subject_id,
        )

    def data(self) -> Dict[str, str]:
        """FCM data map; values must be strings."""

        return {
            "title": self.title,
            "body": self.body,
            "link": self.link,
            "nid": self.nid,
            "jobId": self.subject_id,
            "type": self.kind,
        }

    def webpush_payload(self) -> str:
        return json.dumps(self.data(), ensure_ascii=False)


@dataclass(frozen=True)
class NativeSendResult:
    """Per-token result of a multicast send."""

    token: str
    success: bool
    error_code: Optional[str] = None
    error_message: Optional[str] = None


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of one push attempt to one recipient."""

    recipient_id: str
    channel: Channel
    success: bool
    reason: Optional[str] = None
    # FCM token or Web Push endpoint the attempt went to.
    address: Optional[str] = None
    detail: Any = None

    @property
    def invalid_endpoint(self) -> bool:
        return not self.success and self.reason == INVALID_ENDPOINT


def classify_native_error(code: Optional[str]) -> str:
    return INVALID_ENDPOINT if code in INVALID_TOKEN_CODES else TRANSIENT_ERROR


def classify_webpush_status(status_code: Optional[int]) -> str:
    return INVALID_ENDPOINT if status_code in EXPIRED_SUBSCRIPTION_STATUSES else TRANSIENT_ERROR
