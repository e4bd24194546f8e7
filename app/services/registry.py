"""Recipient resolution and per-recipient channel selection."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from app.db.document_store import DocumentStore
from app.services.delivery import FCM, WEBPUSH, Channel

USERS = "users"
FCM_TOKENS = "fcmTokens"
WEBPUSH_SUBS = "webPushSubs"


@dataclass(frozen=True)
class AllUsers:
    pass


@dataclass(frozen=True)
class AdminsOnly:
    pass


@dataclass(frozen=True)
class SingleUser:
    user_id: str


Scope = Union[AllUsers, AdminsOnly, SingleUser]


@dataclass(frozen=True)
class Recipient:
    """A user to notify and, at most, one registration to push to."""

    user_id: str
    channel: Optional[Channel] = None
    token: Optional[str] = None
    subscription: Optional[Dict[str, Any]] = None
    has_token: bool = False
    has_subscription: bool = False

    @property
    def endpoint(self) -> Optional[str]:
        return (self.subscription or {}).get("endpoint")


def choose_channel(
    user_id: str,
    token_doc: Optional[Dict[str, Any]],
    subscription_doc: Optional[Dict[str, Any]],
    webpush_enabled: bool = True,
    fcm_enabled: bool = True,
) -> Recipient:
    """Apply channel precedence: Web Push, then FCM, then none.

    A user who subscribed through both surfaces gets exactly one push per
    event. A channel that is not configured on this server counts as absent.
    """

    token = (token_doc or {}).get("token") or None
    subscription = (subscription_doc or {}).get("subscription") or None
    if subscription is not None and not subscription.get("endpoint"):
        subscription = None

    if subscription is not None and webpush_enabled:
        channel: Optional[Channel] = WEBPUSH
    elif token is not None and fcm_enabled:
        channel = FCM
    else:
        channel = None
    return Recipient(
        user_id=user_id,
        channel=channel,
        token=token if channel == FCM else None,
        subscription=subscription if channel == WEBPUSH else None,
        has_token=token is not None,
        has_subscription=subscription is not None,
    )


class RecipientRegistry:
    """Reads stored push registrations to resolve fan-out scopes."""

    def __init__(self, store: DocumentStore, webpush_enabled: bool = True, fcm_enabled: bool = True) -> None:
        self.store = store
        self.webpush_enabled = webpush_enabled
        self.fcm_enabled = fcm_enabled

    async def resolve(self, scope: Scope) -> List[Recipient]:
        if isinstance(scope, AllUsers):
            return await self._all_users()
        if isinstance(scope, AdminsOnly):
            return await self._admins()
        if isinstance(scope, SingleUser):
            return [await self._lookup(scope.user_id)]
        raise TypeError(f"Unknown scope: {scope!r}")

    async def is_admin(self, user_id: str) -> bool:
        user = await asyncio.to_thread(self.store.get, USERS, user_id)
        return bool(user) and user.get("isAdmin") is True

    async def _lookup(self, user_id: str) -> Recipient:
        token_doc, subscription_doc = await asyncio.gather(
            asyncio.to_thread(self.store.get, FCM_TOKENS, user_id),
            asyncio.to_thread(self.store.get, WEBPUSH_SUBS, user_id),
        )
        return choose_channel(
            user_id,
            token_doc,
            subscription_doc,
            webpush_enabled=self.webpush_enabled,
            fcm_enabled=self.fcm_enabled,
        )

    async def _all_users(self) -> List[Recipient]:
        users, tokens, subscriptions = await asyncio.gather(
            asyncio.to_thread(self.store.list, USERS),
            asyncio.to_thread(self.store.list, FCM_TOKENS),
            asyncio.to_thread(self.store.list, WEBPUSH_SUBS),
        )
        token_docs = {doc.id: doc.data for doc in tokens}
        subscription_docs = {doc.id: doc.data for doc in subscriptions}
        user_ids = sorted({doc.id for doc in users} | set(token_docs) | set(subscription_docs))
        return [
            choose_channel(
                user_id,
                token_docs.get(user_id),
                subscription_docs.get(user_id),
                webpush_enabled=self.webpush_enabled,
                fcm_enabled=self.fcm_enabled,
            )
            for user_id in user_ids
        ]

    async def _admins(self) -> List[Recipient]:
        # Small population: one lookup per admin rather than a join.
        admins = await asyncio.to_thread(self.store.query, USERS, "isAdmin", True)
        return list(await asyncio.gather(*(self._lookup(doc.id) for doc in admins)))
