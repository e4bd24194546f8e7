"""Notification feed endpoints for the signed-in user."""
from fastapi import APIRouter, Depends, Query

from app.api import deps
from app.schemas import MarkAllReadResponse, NotificationFeed, NotificationRead, OkResponse
from app.services.container import ServiceContainer

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationFeed)
def list_notifications(
    limit: int | None = Query(None, ge=1, le=200),
    caller: deps.CurrentCaller = Depends(deps.require_auth),
    container: ServiceContainer = Depends(deps.get_container),
) -> NotificationFeed:
    """Return the caller's most recent notifications, newest first."""

    docs = container.feed.list_for_user(caller.uid, limit=limit or container.settings.NOTIFICATION_FEED_LIMIT)
    items = [
        NotificationRead.model_validate({**doc.data, "id": doc.id, "read": caller.uid in (doc.get("readBy") or [])})
        for doc in docs
    ]
    return NotificationFeed(items=items, unread=sum(1 for item in items if not item.read))


@router.post("/read-all", response_model=MarkAllReadResponse)
def mark_all_read(
    caller: deps.CurrentCaller = Depends(deps.require_auth),
    container: ServiceContainer = Depends(deps.get_container),
) -> MarkAllReadResponse:
    updated = container.feed.mark_all_read(caller.uid)
    return MarkAllReadResponse(updated=updated)


@router.post("/{notification_id}/read", response_model=OkResponse)
def mark_read(
    notification_id: str,
    caller: deps.CurrentCaller = Depends(deps.require_auth),
    container: ServiceContainer = Depends(deps.get_container),
) -> OkResponse:
    container.feed.mark_read(caller.uid, notification_id)
    return OkResponse()
