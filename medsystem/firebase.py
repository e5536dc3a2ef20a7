"""Firebase Admin SDK bootstrap (user management and FCM)"""

import logging
import threading

import firebase_admin
from firebase_admin import credentials

from .config import FIREBASE_CREDENTIALS_PATH, FIREBASE_PROJECT_ID

logger = logging.getLogger(__name__)

# Sends run in worker threads; only one of them may create the default app
_init_lock = threading.Lock()


def _existing_app():
    try:
        return firebase_admin.get_app()
    except ValueError:
        return None


def get_firebase_app() -> firebase_admin.App:
    """Initialize the default app once and return it."""
    app = _existing_app()
    if app is not None:
        return app

    with _init_lock:
        app = _existing_app()
        if app is not None:
            return app

        options = {"projectId": FIREBASE_PROJECT_ID}
        try:
            if FIREBASE_CREDENTIALS_PATH:
                cred = credentials.Certificate(FIREBASE_CREDENTIALS_PATH)
            else:
                cred = credentials.ApplicationDefault()
            app = firebase_admin.initialize_app(cred, options)
            logger.info("✅ Firebase Admin initialized with credentials")
        except Exception as e:
            # Without credentials only token-free calls work; FCM sends will fail loudly
            logger.warning(f"⚠️ Firebase Admin credentials unavailable ({e}), using project ID only")
            app = firebase_admin.initialize_app(options=options)
        return app
