"""Shared API dependencies: service lookup and the access gate."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Request

from app.core.security import InvalidTokenError
from app.services.container import ServiceContainer
from app.services.dispatcher import NotificationDispatcher
from app.utils.exceptions import Forbidden, Unauthenticated


@dataclass(frozen=True)
class CurrentCaller:
    """Verified identity attached to the request."""

    uid: str


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_dispatcher(container: ServiceContainer = Depends(get_container)) -> NotificationDispatcher:
    return container.dispatcher


def bearer_token(authorization: Optional[str]) -> str:
    scheme, _, token = (authorization or "").partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise Unauthenticated("No token")
    return token


def require_auth(
    authorization: Optional[str] = Header(default=None),
    container: ServiceContainer = Depends(get_container),
) -> CurrentCaller:
    """Resolve the caller from the ``Authorization: Bearer`` identity token."""

    token = bearer_token(authorization)
    try:
        uid = container.identity_verifier.verify(token)
    except InvalidTokenError as exc:
        raise Unauthenticated("Invalid token") from exc
    return CurrentCaller(uid=uid)


async def require_admin(
    caller: CurrentCaller = Depends(require_auth),
    container: ServiceContainer = Depends(get_container),
) -> CurrentCaller:
    """Like ``require_auth`` but the caller's user record must carry ``isAdmin``."""

    if not await container.registry.is_admin(caller.uid):
        raise Forbidden("Forbidden")
    return caller
