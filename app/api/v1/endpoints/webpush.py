"""Web Push subscription endpoints."""
from typing import Any

from fastapi import APIRouter, Body, Depends
from pydantic import ValidationError

from app.api import deps
from app.schemas import OkResponse, PublicKeyResponse, WebPushSubscribeRequest
from app.schemas.push import subscription_document
from app.services.container import ServiceContainer
from app.utils.exceptions import InvalidArgument

router = APIRouter(prefix="/webpush", tags=["webpush"])

MISSING_SUBSCRIPTION = "Missing subscription or VAPID config"


@router.get("/public-key", response_model=PublicKeyResponse)
def get_public_key(container: ServiceContainer = Depends(deps.get_container)) -> PublicKeyResponse:
    return PublicKeyResponse(public_key=container.settings.WEBPUSH_PUBLIC_KEY)


@router.post("/subscribe", response_model=OkResponse)
def subscribe(
    body: Any = Body(default=None),
    caller: deps.CurrentCaller = Depends(deps.require_auth),
    container: ServiceContainer = Depends(deps.get_container),
) -> OkResponse:
    """Store the caller's browser subscription, replacing any previous one."""

    if container.webpush_sender is None:
        raise InvalidArgument(MISSING_SUBSCRIPTION)
    try:
        payload = WebPushSubscribeRequest.model_validate(body)
    except ValidationError as exc:
        raise InvalidArgument(MISSING_SUBSCRIPTION, {"errors": exc.errors(include_url=False)}) from exc
    container.registrations.subscribe_webpush(caller.uid, subscription_document(payload.subscription))
    return OkResponse()


@router.post("/unsubscribe", response_model=OkResponse)
def unsubscribe(
    caller: deps.CurrentCaller = Depends(deps.require_auth),
    container: ServiceContainer = Depends(deps.get_container),
) -> OkResponse:
    container.registrations.unsubscribe_webpush(caller.uid)
    return OkResponse()
