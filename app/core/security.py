"""Identity token verification for the access gate."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Protocol

from firebase_admin import App, auth
from jose import JWTError, jwt


ALGORITHM = "HS256"


class InvalidTokenError(Exception):
    """Raised when an identity token cannot be verified."""


class IdentityVerifier(Protocol):
    def verify(self, token: str) -> str:
        """Return the caller id carried by ``token`` or raise ``InvalidTokenError``."""


class FirebaseIdentityVerifier:
    """Verify Firebase Auth ID tokens issued to the job-board web client."""

    def __init__(self, app: App, check_revoked: bool = False) -> None:
        self.app = app
        self.check_revoked = check_revoked

    def verify(self, token: str) -> str:
        try:
            decoded = auth.verify_id_token(token, app=self.app, check_revoked=self.check_revoked)
        except (ValueError, auth.InvalidIdTokenError, auth.ExpiredIdTokenError, auth.RevokedIdTokenError) as exc:
            raise InvalidTokenError(str(exc)) from exc
        except auth.CertificateFetchError as exc:
            raise InvalidTokenError("Unable to fetch token certificates") from exc
        uid = decoded.get("uid")
        if not uid:
            raise InvalidTokenError("Token has no uid")
        return uid


class JWTIdentityVerifier:
    """Verify HS256 access tokens signed with a shared secret (local setups)."""

    def __init__(self, secret_key: str) -> None:
        if not secret_key:
            raise ValueError("SECRET_KEY is required for the jwt auth backend")
        self.secret_key = secret_key

    def verify(self, token: str) -> str:
        payload = decode_token(token, self.secret_key)
        if payload.get("type") != "access":
            raise InvalidTokenError("Token must be an access token")
        subject = payload.get("sub")
        if not subject:
            raise InvalidTokenError("Token has no subject")
        return str(subject)


def create_access_token(subject: str | Any, secret_key: str, expires_minutes: int = 60) -> str:
    """Create a signed JWT access token for the supplied subject."""

    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    payload: Dict[str, Any] = {"exp": expire, "sub": str(subject), "type": "access"}
    return jwt.encode(payload, secret_key, algorithm=ALGORITHM)


def decode_token(token: str, secret_key: str) -> Dict[str, Any]:
    """Decode a JWT and return its payload, raising ``InvalidTokenError`` if invalid."""

    try:
        return jwt.decode(token, secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc
