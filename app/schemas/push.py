"""Pydantic models for push registration endpoints."""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WebPushKeys(BaseModel):
    p256dh: str = Field(min_length=1)
    auth: str = Field(min_length=1)


class WebPushSubscription(BaseModel):
    """Subscription as returned by ``PushSubscription.toJSON()`` in the browser."""

    model_config = ConfigDict(extra="allow")

    endpoint: str = Field(min_length=1)
    keys: WebPushKeys
    expiration_time: Optional[float] = Field(default=None, alias="expirationTime")

    @field_validator("endpoint")
    @classmethod
    def require_https(cls, value: str) -> str:
        if not value.startswith("https://"):
            raise ValueError("endpoint must be an https URL")
        return value


class WebPushSubscribeRequest(BaseModel):
    subscription: WebPushSubscription


class FCMRegisterRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=4096, description="FCM registration token")

    @field_validator("token")
    @classmethod
    def strip_token(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("token must not be blank")
        return value


class OkResponse(BaseModel):
    ok: bool = True


class PublicKeyResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    public_key: Optional[str] = Field(default=None, serialization_alias="publicKey")


def subscription_document(subscription: WebPushSubscription) -> Dict[str, Any]:
    """Return the subscription exactly as the browser sent it."""

    return subscription.model_dump(by_alias=True, exclude_unset=True)
