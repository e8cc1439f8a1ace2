"""
Firebase Config Module

Creates the shared Firestore client used by every store module.

The client is created once per process. If Firebase cannot be initialized
(missing credentials, no network metadata server, ...) get_db() returns
None and callers raise RuntimeError("Firestore is not available").
"""

import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore

from config.settings import get_settings


logger = logging.getLogger(__name__)

_db = None


def _build_credentials(path: Optional[str]):
    if path:
        return credentials.Certificate(path)
    return credentials.ApplicationDefault()


def get_db():
    """
    Get the Firestore client, initializing Firebase on first call.

    Returns:
        google.cloud.firestore.Client or None if Firebase is unavailable.
    """
    global _db
    if _db is not None:
        return _db

    settings = get_settings()
    try:
        try:
            app = firebase_admin.get_app()
        except ValueError:
            options = {}
            if settings.firebase_project_id:
                options["projectId"] = settings.firebase_project_id
            app = firebase_admin.initialize_app(
                _build_credentials(settings.firebase_credentials),
                options or None
            )
        _db = firestore.client(app)
    except Exception:
        logger.exception("Failed to initialize Firestore client")
        return None

    logger.info("Firestore client initialized for project %s", _db.project)
    return _db
