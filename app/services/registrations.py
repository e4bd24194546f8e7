"""Service for managing a user's push registrations."""
from __future__ import annotations

from typing import Any, Dict

from loguru import logger

from app.db.document_store import SERVER_TIMESTAMP, DocumentStore
from app.services.registry import FCM_TOKENS, WEBPUSH_SUBS


class RegistrationService:
    """Create, refresh and remove the per-user Web Push and FCM registrations.

    Both registrations are keyed by user id, so re-subscribing overwrites the
    previous one (last writer wins).
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    def subscribe_webpush(self, user_id: str, subscription: Dict[str, Any]) -> None:
        """Store the browser subscription verbatim."""

        if not subscription.get("endpoint"):
            raise ValueError("Endpoint required")
        self.store.set(WEBPUSH_SUBS, user_id, {"subscription": subscription, "updatedAt": SERVER_TIMESTAMP})
        logger.info("Registered Web Push subscription", user_id=user_id)

    def unsubscribe_webpush(self, user_id: str) -> None:
        self.store.delete(WEBPUSH_SUBS, user_id)
        logger.info("Removed Web Push subscription", user_id=user_id)

    def register_fcm_token(self, user_id: str, token: str) -> None:
        self.store.set(FCM_TOKENS, user_id, {"token": token, "updatedAt": SERVER_TIMESTAMP}, merge=True)
        logger.info("Registered FCM token", user_id=user_id)

    def unregister_fcm_token(self, user_id: str) -> None:
        self.store.delete(FCM_TOKENS, user_id)
        logger.info("Removed FCM token", user_id=user_id)
