"""Service layer package."""

from app.services.container import ServiceContainer, build_container
from app.services.dispatcher import FanOutSummary, NotificationDispatcher
from app.services.janitor import RegistryJanitor
from app.services.notifications import NotificationFeedService
from app.services.registrations import RegistrationService
from app.services.registry import RecipientRegistry

__all__ = [
    "FanOutSummary",
    "NotificationDispatcher",
    "NotificationFeedService",
    "RecipientRegistry",
    "RegistrationService",
    "RegistryJanitor",
    "ServiceContainer",
    "build_container",
]
