"""Explicit wiring of the service graph, built once at process start."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from loguru import logger

from app.config import Settings
from app.core.firebase import init_firebase_app
from app.core.security import FirebaseIdentityVerifier, IdentityVerifier, JWTIdentityVerifier
from app.db.document_store import DocumentStore, SQLDocumentStore
from app.db.firestore_store import FirestoreDocumentStore
from app.db.session import build_engine, build_session_factory
from app.services.dispatcher import NotificationDispatcher
from app.services.fcm_sender import FCMPushSender, NativePushSender
from app.services.janitor import RegistryJanitor
from app.services.notifications import NotificationFeedService
from app.services.registrations import RegistrationService
from app.services.registry import RecipientRegistry
from app.services.webpush_sender import VapidWebPushSender, WebPushSender


@dataclass
class ServiceContainer:
    """Stateless collaborators shared by every request."""

    settings: Settings
    store: DocumentStore
    identity_verifier: IdentityVerifier
    native_sender: Optional[NativePushSender] = None
    webpush_sender: Optional[WebPushSender] = None

    registry: RecipientRegistry = field(init=False)
    feed: NotificationFeedService = field(init=False)
    janitor: RegistryJanitor = field(init=False)
    registrations: RegistrationService = field(init=False)
    dispatcher: NotificationDispatcher = field(init=False)

    def __post_init__(self) -> None:
        self.registry = RecipientRegistry(
            self.store,
            webpush_enabled=self.webpush_sender is not None,
            fcm_enabled=self.native_sender is not None,
        )
        self.feed = NotificationFeedService(self.store)
        self.janitor = RegistryJanitor(self.store)
        self.registrations = RegistrationService(self.store)
        self.dispatcher = NotificationDispatcher(
            self.registry,
            self.feed,
            self.janitor,
            native_sender=self.native_sender,
            webpush_sender=self.webpush_sender,
        )


def build_container(settings: Settings) -> ServiceContainer:
    """Pick the configured backends and wire them together."""

    firebase_app = None

    def firebase():
        nonlocal firebase_app
        if firebase_app is None:
            firebase_app = init_firebase_app(settings)
        return firebase_app

    if settings.STORE_BACKEND == "firestore":
        store: DocumentStore = FirestoreDocumentStore(firebase())
    else:
        sql_store = SQLDocumentStore(build_session_factory(build_engine(settings.DATABASE_URL)))
        sql_store.create_schema()
        store = sql_store

    if settings.AUTH_BACKEND == "firebase":
        verifier: IdentityVerifier = FirebaseIdentityVerifier(firebase())
    else:
        verifier = JWTIdentityVerifier(settings.SECRET_KEY or "")

    native_sender: Optional[NativePushSender] = None
    if settings.FCM_ENABLED:
        native_sender = FCMPushSender(firebase(), app_url=settings.PUBLIC_APP_URL)

    webpush_sender: Optional[WebPushSender] = None
    if settings.webpush_configured:
        webpush_sender = VapidWebPushSender(
            settings.WEBPUSH_PRIVATE_KEY,
            settings.WEBPUSH_SUBJECT,
            ttl_seconds=settings.WEBPUSH_TTL_SECONDS,
            timeout_seconds=settings.WEBPUSH_TIMEOUT_SECONDS,
        )
    else:
        logger.warning("VAPID keys not configured, Web Push disabled")

    logger.info(
        "Service container ready",
        store=settings.STORE_BACKEND,
        auth=settings.AUTH_BACKEND,
        fcm=native_sender is not None,
        webpush=webpush_sender is not None,
    )
    return ServiceContainer(
        settings=settings,
        store=store,
        identity_verifier=verifier,
        native_sender=native_sender,
        webpush_sender=webpush_sender,
    )
