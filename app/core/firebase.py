"""Firebase Admin SDK application bootstrap."""
from __future__ import annotations

import json

import firebase_admin
from firebase_admin import credentials
from loguru import logger

from app.config import Settings

APP_NAME = "notify-api"


def init_firebase_app(settings: Settings) -> firebase_admin.App:
    """Initialise (or reuse) the named Firebase app for this process.

    Uses ``FIREBASE_SERVICE_ACCOUNT_JSON`` when set, application default
    credentials otherwise.
    """

    try:
        return firebase_admin.get_app(APP_NAME)
    except ValueError:
        pass

    options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None
    if settings.FIREBASE_SERVICE_ACCOUNT_JSON:
        try:
            info = json.loads(settings.FIREBASE_SERVICE_ACCOUNT_JSON)
        except json.JSONDecodeError as exc:
            raise ValueError("FIREBASE_SERVICE_ACCOUNT_JSON is not valid JSON") from exc
        credential = credentials.Certificate(info)
        logger.info("Initialising Firebase app from service account", project=info.get("project_id"))
    else:
        credential = credentials.ApplicationDefault()
        logger.info("Initialising Firebase app with application default credentials")
    return firebase_admin.initialize_app(credential, options, name=APP_NAME)
