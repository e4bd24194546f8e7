"""Notification fan-out endpoints."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from app.api import deps
from app.core.messages import APPLICATION_ACCEPTED, NEW_APPLICATION, NEW_JOB, TEST
from app.schemas import DiagnosticNotifyResponse, NotifyResponse, decode_event
from app.services.dispatcher import NotificationDispatcher

router = APIRouter(prefix="/notify", tags=["notify"])


@router.post("/new-job", response_model=NotifyResponse)
async def notify_new_job(
    body: Any = Body(default=None),
    caller: deps.CurrentCaller = Depends(deps.require_admin),
    dispatcher: NotificationDispatcher = Depends(deps.get_dispatcher),
) -> NotifyResponse:
    """Announce a freshly published job to every user."""

    event = decode_event(NEW_JOB, body)
    summary = await dispatcher.dispatch(event, caller.uid)
    return NotifyResponse(sent=summary.sent)


@router.post("/new-application", response_model=NotifyResponse)
async def notify_new_application(
    body: Any = Body(default=None),
    caller: deps.CurrentCaller = Depends(deps.require_auth),
    dispatcher: NotificationDispatcher = Depends(deps.get_dispatcher),
) -> NotifyResponse:
    """Tell the admins that the caller applied to a job."""

    event = decode_event(NEW_APPLICATION, body)
    summary = await dispatcher.dispatch(event, caller.uid)
    return NotifyResponse(sent=summary.sent)


@router.post("/application-accepted", response_model=NotifyResponse)
async def notify_application_accepted(
    body: Any = Body(default=None),
    caller: deps.CurrentCaller = Depends(deps.require_admin),
    dispatcher: NotificationDispatcher = Depends(deps.get_dispatcher),
) -> NotifyResponse:
    event = decode_event(APPLICATION_ACCEPTED, body)
    summary = await dispatcher.dispatch(event, caller.uid)
    return NotifyResponse(sent=summary.sent)


@router.post("/test", response_model=DiagnosticNotifyResponse)
async def notify_test(
    body: Any = Body(default=None),
    caller: deps.CurrentCaller = Depends(deps.require_auth),
    dispatcher: NotificationDispatcher = Depends(deps.get_dispatcher),
) -> DiagnosticNotifyResponse:
    """Push a notification to the caller and report which channels they have."""

    event = decode_event(TEST, body)
    summary = await dispatcher.dispatch(event, caller.uid)
    recipient = summary.recipients[0]
    return DiagnosticNotifyResponse(
        sent=summary.sent,
        sent_fcm=summary.sent_fcm > 0,
        sent_webpush=summary.sent_webpush > 0,
        has_token=recipient.has_token,
        has_sub=recipient.has_subscription,
    )
