"""FCM registration token endpoints."""
from fastapi import APIRouter, Depends

from app.api import deps
from app.schemas import FCMRegisterRequest, OkResponse
from app.services.container import ServiceContainer

router = APIRouter(prefix="/fcm", tags=["fcm"])


@router.post("/register", response_model=OkResponse)
def register_token(
    payload: FCMRegisterRequest,
    caller: deps.CurrentCaller = Depends(deps.require_auth),
    container: ServiceContainer = Depends(deps.get_container),
) -> OkResponse:
    """Register the caller's device token. Idempotent, the newest token wins."""

    container.registrations.register_fcm_token(caller.uid, payload.token)
    return OkResponse()


@router.post("/unregister", response_model=OkResponse)
def unregister_token(
    caller: deps.CurrentCaller = Depends(deps.require_auth),
    container: ServiceContainer = Depends(deps.get_container),
) -> OkResponse:
    container.registrations.unregister_fcm_token(caller.uid)
    return OkResponse()
