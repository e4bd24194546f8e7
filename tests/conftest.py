"""Pytest fixtures shared by the service and API tests."""
from __future__ import annotations

from collections.abc import Generator
from typing import Any, Dict, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.core.security import JWTIdentityVerifier, create_access_token
from app.db.document_store import SERVER_TIMESTAMP, SQLDocumentStore
from app.db.session import build_engine, build_session_factory
from app.main import create_app
from app.services.container import ServiceContainer
from app.services.delivery import NativeSendResult, PushMessage
from app.services.registry import FCM_TOKENS, USERS, WEBPUSH_SUBS
from app.utils.exceptions import InvalidEndpoint, TransientDeliveryError

TEST_SECRET = "test-secret-key"


class StubNativeSender:
    """Records multicast calls; ``failures`` maps a token to an FCM error code."""

    def __init__(self) -> None:
        self.calls: List[tuple[List[str], PushMessage]] = []
        self.failures: Dict[str, str] = {}
        self.error: Optional[Exception] = None

    def send_multicast(self, tokens: Sequence[str], message: PushMessage) -> List[NativeSendResult]:
        self.calls.append((list(tokens), message))
        if self.error is not None:
            raise self.error
        return [
            NativeSendResult(
                token=token, success=False, error_code=self.failures[token], error_message=f"FCM rejected {token}"
            )
            if token in self.failures
            else NativeSendResult(token=token, success=True)
            for token in tokens
        ]

    @property
    def tokens(self) -> List[str]:
        return [token for tokens, _ in self.calls for token in tokens]


class StubWebPushSender:
    """Records sends; ``gone`` endpoints answer 410, ``flaky`` ones 500."""

    def __init__(self) -> None:
        self.sent: List[tuple[Dict[str, Any], str]] = []
        self.gone: set[str] = set()
        self.flaky: set[str] = set()

    def send(self, subscription: Dict[str, Any], payload: str) -> None:
        self.sent.append((subscription, payload))
        endpoint = subscription.get("endpoint")
        if endpoint in self.gone:
            raise InvalidEndpoint("Subscription expired (410)", {"status_code": 410})
        if endpoint in self.flaky:
            raise TransientDeliveryError("Web Push failed", {"status_code": 500})

    @property
    def endpoints(self) -> List[str]:
        return [subscription.get("endpoint") for subscription, _ in self.sent]


def make_subscription(endpoint: str) -> Dict[str, Any]:
    return {
        "endpoint": endpoint,
        "keys": {"p256dh": "BNcRdreALRFXTkOOUHK1EtK2wtaz5Ry4YfYCA_0QTpQ", "auth": "tBHItJI5svbpez7KI4CCXg"},
    }


def seed_user(store: SQLDocumentStore, uid: str, is_admin: bool = False) -> None:
    store.set(USERS, uid, {"isAdmin": is_admin, "displayName": uid.title()})


def seed_token(store: SQLDocumentStore, uid: str, token: str) -> None:
    store.set(FCM_TOKENS, uid, {"token": token, "updatedAt": SERVER_TIMESTAMP})


def seed_subscription(store: SQLDocumentStore, uid: str, endpoint: str) -> None:
    store.set(WEBPUSH_SUBS, uid, {"subscription": make_subscription(endpoint), "updatedAt": SERVER_TIMESTAMP})


def auth_headers(uid: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(uid, TEST_SECRET)}"}


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        AUTH_BACKEND="jwt",
        SECRET_KEY=TEST_SECRET,
        STORE_BACKEND="sql",
        DATABASE_URL="sqlite://",
        FCM_ENABLED=True,
        WEBPUSH_PUBLIC_KEY="test-public-key",
        WEBPUSH_PRIVATE_KEY="test-private-key",
    )


@pytest.fixture()
def store() -> SQLDocumentStore:
    document_store = SQLDocumentStore(build_session_factory(build_engine("sqlite://")))
    document_store.create_schema()
    return document_store


@pytest.fixture()
def native_sender() -> StubNativeSender:
    return StubNativeSender()


@pytest.fixture()
def webpush_sender() -> StubWebPushSender:
    return StubWebPushSender()


@pytest.fixture()
def container(
    settings: Settings,
    store: SQLDocumentStore,
    native_sender: StubNativeSender,
    webpush_sender: StubWebPushSender,
) -> ServiceContainer:
    return ServiceContainer(
        settings=settings,
        store=store,
        identity_verifier=JWTIdentityVerifier(TEST_SECRET),
        native_sender=native_sender,
        webpush_sender=webpush_sender,
    )


@pytest.fixture()
def client(container: ServiceContainer) -> Generator[TestClient, None, None]:
    app = create_app(container)
    with TestClient(app) as test_client:
        yield test_client
