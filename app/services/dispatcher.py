"""Notification fan-out: durable records first, then one push per recipient."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from loguru import logger

from app.core.messages import (
    NotificationContent,
    application_accepted_content,
    diagnostic_content,
    new_application_content,
    new_job_content,
)
from app.schemas.notify import (
    ApplicationAcceptedEvent,
    DiagnosticEvent,
    EventPayload,
    NewApplicationEvent,
    NewJobEvent,
)
from app.services.delivery import (
    FCM,
    INVALID_ENDPOINT,
    TRANSIENT_ERROR,
    WEBPUSH,
    DeliveryOutcome,
    PushMessage,
    classify_native_error,
)
from app.services.fcm_sender import NativePushSender
from app.services.janitor import RegistryJanitor
from app.services.notifications import NotificationFeedService
from app.services.registry import AdminsOnly, AllUsers, Recipient, RecipientRegistry, Scope, SingleUser
from app.services.webpush_sender import WebPushSender
from app.utils.exceptions import (
    Forbidden,
    InternalError,
    InvalidEndpoint,
    NotifyServiceError,
    TransientDeliveryError,
)


@dataclass
class FanOutSummary:
    """What a fan-out achieved, per channel."""

    nid: str
    recipients: List[Recipient] = field(default_factory=list)
    records: int = 0
    outcomes: List[DeliveryOutcome] = field(default_factory=list)
    pruned: int = 0

    @property
    def sent_fcm(self) -> int:
        return sum(1 for item in self.outcomes if item.success and item.channel == FCM)

    @property
    def sent_webpush(self) -> int:
        return sum(1 for item in self.outcomes if item.success and item.channel == WEBPUSH)

    @property
    def sent(self) -> int:
        """Recipients reached through any channel."""

        return len({item.recipient_id for item in self.outcomes if item.success})

    @property
    def failed(self) -> int:
        return sum(1 for item in self.outcomes if not item.success)


class NotificationDispatcher:
    """Runs the fan-out for each event kind."""

    def __init__(
        self,
        registry: RecipientRegistry,
        feed: NotificationFeedService,
        janitor: RegistryJanitor,
        native_sender: Optional[NativePushSender] = None,
        webpush_sender: Optional[WebPushSender] = None,
    ) -> None:
        self.registry = registry
        self.feed = feed
        self.janitor = janitor
        self.native_sender = native_sender
        self.webpush_sender = webpush_sender

    async def dispatch(self, event: EventPayload, caller_id: str) -> FanOutSummary:
        if isinstance(event, NewJobEvent):
            return await self.new_job(event, caller_id)
        if isinstance(event, NewApplicationEvent):
            return await self.new_application(event, caller_id)
        if isinstance(event, ApplicationAcceptedEvent):
            return await self.application_accepted(event, caller_id)
        if isinstance(event, DiagnosticEvent):
            return await self.send_test(event, caller_id)
        raise TypeError(f"Unsupported event: {event!r}")

    async def new_job(self, event: NewJobEvent, caller_id: str) -> FanOutSummary:
        """Tell every user about a new job. Caller must be an admin."""

        content = new_job_content(event.job_id, event.title, event.description)
        return await self._fan_out(content, AllUsers(), caller_id)

    async def new_application(self, event: NewApplicationEvent, caller_id: str) -> FanOutSummary:
        """Tell the admins someone applied. Users may only announce their own application."""

        if caller_id != event.applicant_id:
            raise Forbidden("Forbidden")
        content = new_application_content(event.job_id, event.job_title, event.applicant_name)
        return await self._fan_out(content, AdminsOnly(), caller_id)

    async def application_accepted(self, event: ApplicationAcceptedEvent, caller_id: str) -> FanOutSummary:
        content = application_accepted_content(event.job_id, event.job_title, event.applicant_name)
        return await self._fan_out(content, SingleUser(event.applicant_id), caller_id)

    async def send_test(self, event: DiagnosticEvent, caller_id: str) -> FanOutSummary:
        content = diagnostic_content(event.title, event.body)
        return await self._fan_out(content, SingleUser(caller_id), caller_id)

    async def _fan_out(self, content: NotificationContent, scope: Scope, caller_id: str) -> FanOutSummary:
        try:
            recipients = await self.registry.resolve(scope)
            records = await asyncio.to_thread(
                self.feed.create_records, content, [recipient.user_id for recipient in recipients]
            )
        except NotifyServiceError:
            raise
        except Exception as exc:
            logger.opt(exception=exc).error(f"Fan-out aborted before sending: {content.nid}")
            raise InternalError("Internal error") from exc

        message = PushMessage.from_content(content)
        native = [recipient for recipient in recipients if recipient.channel == FCM]
        web = [recipient for recipient in recipients if recipient.channel == WEBPUSH]

        sends = [self._send_webpush(recipient, message) for recipient in web]
        if native:
            sends.append(self._send_native(native, message))
        outcomes: List[DeliveryOutcome] = []
        for result in await asyncio.gather(*sends):
            outcomes.extend(result)

        summary = FanOutSummary(nid=content.nid, recipients=recipients, records=records, outcomes=outcomes)
        summary.pruned = await self.janitor.prune(outcomes)
        logger.info(
            "Fan-out done",
            nid=content.nid,
            caller=caller_id,
            recipients=len(recipients),
            sent_fcm=summary.sent_fcm,
            sent_webpush=summary.sent_webpush,
            failed=summary.failed,
            pruned=summary.pruned,
        )
        return summary

    async def _send_native(self, recipients: Sequence[Recipient], message: PushMessage) -> List[DeliveryOutcome]:
        tokens = [recipient.token for recipient in recipients]
        try:
            results = await asyncio.to_thread(self.native_sender.send_multicast, tokens, message)
        except Exception as exc:
            logger.opt(exception=exc).warning(f"FCM multicast failed for {message.nid}")
            return [
                DeliveryOutcome(recipient.user_id, FCM, False, TRANSIENT_ERROR, recipient.token, str(exc))
                for recipient in recipients
            ]

        outcomes: List[DeliveryOutcome] = []
        for index, recipient in enumerate(recipients):
            result = results[index] if index < len(results) else None
            if result is None:
                outcomes.append(
                    DeliveryOutcome(recipient.user_id, FCM, False, TRANSIENT_ERROR, recipient.token, "no result")
                )
            elif result.success:
                outcomes.append(DeliveryOutcome(recipient.user_id, FCM, True, address=recipient.token))
            else:
                outcomes.append(
                    DeliveryOutcome(
                        recipient.user_id,
                        FCM,
                        False,
                        classify_native_error(result.error_code),
                        recipient.token,
                        result.error_message or result.error_code,
                    )
                )
        return outcomes

    async def _send_webpush(self, recipient: Recipient, message: PushMessage) -> List[DeliveryOutcome]:
        address = recipient.endpoint
        try:
            await asyncio.to_thread(self.webpush_sender.send, recipient.subscription, message.webpush_payload())
        except InvalidEndpoint as exc:
            return [DeliveryOutcome(recipient.user_id, WEBPUSH, False, INVALID_ENDPOINT, address, exc.details)]
        except TransientDeliveryError as exc:
            return [DeliveryOutcome(recipient.user_id, WEBPUSH, False, TRANSIENT_ERROR, address, exc.details)]
        except Exception as exc:
            logger.opt(exception=exc).warning(f"Web Push send raised for {message.nid}")
            return [DeliveryOutcome(recipient.user_id, WEBPUSH, False, TRANSIENT_ERROR, address, str(exc))]
        return [DeliveryOutcome(recipient.user_id, WEBPUSH, True, address=address)]
