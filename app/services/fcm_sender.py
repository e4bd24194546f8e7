"""Native push delivery through Firebase Cloud Messaging."""
from __future__ import annotations

from typing import List, Optional, Protocol, Sequence
from urllib.parse import urljoin

from firebase_admin import App, exceptions, messaging
from loguru import logger

from app.services.delivery import NativeSendResult, PushMessage

# FCM accepts at most this many tokens per multicast request.
MAX_MULTICAST_TOKENS = 500

# A whole request failing says nothing about the individual tokens.
CHUNK_FAILED_CODE = "messaging/unknown-error"


class NativePushSender(Protocol):
    def send_multicast(self, tokens: Sequence[str], message: PushMessage) -> List[NativeSendResult]:
        """Send ``message`` to every token, returning one result per token, in order."""


def error_code_for(exc: Exception) -> str:
    """Map an Admin SDK exception onto the ``messaging/*`` error codes."""

    if isinstance(exc, messaging.UnregisteredError):
        return "messaging/registration-token-not-registered"
    if isinstance(exc, messaging.SenderIdMismatchError):
        return "messaging/mismatched-credential"
    if isinstance(exc, exceptions.InvalidArgumentError):
        if "registration token" in str(exc).lower():
            return "messaging/invalid-registration-token"
        return "messaging/invalid-argument"
    if isinstance(exc, exceptions.FirebaseError):
        return "messaging/" + str(exc.code).lower().replace("_", "-")
    return "messaging/unknown-error"


class FCMPushSender:
    """Multicast sender bound to an initialised Firebase app."""

    def __init__(self, app: App, app_url: Optional[str] = None) -> None:
        self.app = app
        self.app_url = app_url

    def _webpush_config(self, link: str) -> Optional[messaging.WebpushConfig]:
        # The Admin SDK only accepts absolute https click-through links.
        if self.app_url:
            link = urljoin(self.app_url, link)
        if not link.startswith("https://"):
            return None
        return messaging.WebpushConfig(fcm_options=messaging.WebpushFCMOptions(link=link))

    def _build(self, tokens: List[str], message: PushMessage) -> messaging.MulticastMessage:
        return messaging.MulticastMessage(
            tokens=tokens,
            notification=messaging.Notification(title=message.title, body=message.body),
            data=message.data(),
            webpush=self._webpush_config(message.link),
        )

    def send_multicast(self, tokens: Sequence[str], message: PushMessage) -> List[NativeSendResult]:
        results: List[NativeSendResult] = []
        tokens = list(tokens)
        for start in range(0, len(tokens), MAX_MULTICAST_TOKENS):
            chunk = tokens[start : start + MAX_MULTICAST_TOKENS]
            try:
                response = messaging.send_each_for_multicast(self._build(chunk, message), app=self.app)
            except Exception as exc:
                # Only this chunk failed; earlier chunks were already delivered.
                logger.opt(exception=exc).warning(f"FCM multicast chunk failed for {message.nid}")
                results.extend(
                    NativeSendResult(token=token, success=False, error_code=CHUNK_FAILED_CODE, error_message=str(exc))
                    for token in chunk
                )
                continue
            for token, item in zip(chunk, response.responses):
                if item.success:
                    results.append(NativeSendResult(token=token, success=True))
                else:
                    results.append(
                        NativeSendResult(
                            token=token,
                            success=False,
                            error_code=error_code_for(item.exception),
                            error_message=str(item.exception),
                        )
                    )
            logger.debug(
                "FCM multicast sent",
                nid=message.nid,
                success=response.success_count,
                failure=response.failure_count,
            )
        return results
