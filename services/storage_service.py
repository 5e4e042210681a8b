"""
Storage Service - photo uploads to the Firebase Storage bucket
"""
import asyncio
import logging
import threading
import time
from typing import Dict, Optional

import firebase_admin
from firebase_admin import credentials as fb_credentials
from firebase_admin import storage as fb_storage

from backend.utils.errors import ApiError
from config.settings import settings
from utils.security_utils import sanitize_directory, sanitize_filename

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "vams-storage"
PUBLIC_URL_BASE = "https://storage.googleapis.com"

# Uploads run in worker threads; only one of them may create the app
_app_lock = threading.Lock()


def _clean_private_key(raw: Optional[str]) -> Optional[str]:
    """The key usually comes quoted and with literal \\n sequences from .env files"""
    if not raw or raw.strip() in ("", "--"):
        return None
    key = raw.strip()
    if len(key) >= 2 and key[0] == key[-1] and key[0] in ("'", '"'):
        key = key[1:-1].strip()
    key = key.replace("\\n", "\n").replace("\\r", "\r")
    if "BEGIN PRIVATE KEY" not in key or "END PRIVATE KEY" not in key:
        raise ValueError("FIREBASE_PRIVATE_KEY no tiene el formato PEM correcto")
    return key


class StorageService:
    """Service class for bucket uploads"""

    def __init__(self):
        self._app = None

    def _get_app(self):
        if self._app is not None:
            return self._app

        with _app_lock:
            if self._app is None:
                self._app = self._load_app()
        return self._app

    def _load_app(self):
        """Existing named app, or a new one; callers hold _app_lock"""
        project_id = settings.firebase_project_id
        if not project_id:
            raise ValueError("FIREBASE_PROJECT_ID no está configurado en las variables de entorno")

        try:
            return firebase_admin.get_app(FIREBASE_APP_NAME)
        except ValueError:
            pass

        options = {
            "projectId": project_id,
            "storageBucket": settings.firebase_storage_bucket or f"{project_id}.appspot.com",
        }
        private_key = _clean_private_key(settings.firebase_private_key)
        if private_key:
            cred = fb_credentials.Certificate({
                "type": "service_account",
                "project_id": project_id,
                "client_email": settings.firebase_client_email
                or f"firebase-adminsdk@{project_id}.iam.gserviceaccount.com",
                "private_key": private_key,
                "token_uri": "https://oauth2.googleapis.com/token",
            })
            app = firebase_admin.initialize_app(cred, options, name=FIREBASE_APP_NAME)
        else:
            # Application Default Credentials (GOOGLE_APPLICATION_CREDENTIALS)
            app = firebase_admin.initialize_app(options=options, name=FIREBASE_APP_NAME)
        logger.info(f"Firebase storage initialized for bucket {options['storageBucket']}")
        return app

    def upload_bytes(self, content: bytes, filename: str, content_type: str, directory: str) -> str:
        """
        Store `content` as a public object and return its public URL.
        Object path: {directory}/{epoch_ms}_{sanitized filename}
        """
        try:
            bucket = fb_storage.bucket(app=self._get_app())
            object_path = f"{sanitize_directory(directory)}/{int(time.time() * 1000)}_{sanitize_filename(filename)}"
            blob = bucket.blob(object_path)
            blob.upload_from_string(content, content_type=content_type, predefined_acl="publicRead")
        except Exception as e:
            logger.error(f"Error uploading file to Firebase Storage: {e}", exc_info=True)
            raise ApiError(f"Error al subir archivo: {e}", status_code=500)

        logger.info(f"Uploaded {object_path} ({len(content)} bytes)")
        return f"{PUBLIC_URL_BASE}/{bucket.name}/{object_path}"

    async def upload(self, content: bytes, filename: str, content_type: str, directory: str) -> str:
        # The Firebase SDK is blocking
        return await asyncio.to_thread(self.upload_bytes, content, filename, content_type, directory)


def browser_credentials() -> Dict[str, Optional[str]]:
    """
    Firebase web config handed to authenticated browsers so they can upload
    directly. Only server-side variables are used so nothing ships in a bundle.
    """
    credentials = {
        "apiKey": settings.firebase_api_key,
        "authDomain": settings.firebase_auth_domain,
        "projectId": settings.firebase_project_id,
        "storageBucket": settings.firebase_storage_bucket,
        "messagingSenderId": settings.firebase_messaging_sender_id,
        "appId": settings.firebase_app_id,
    }
    if not credentials["apiKey"] or not credentials["projectId"] or not credentials["storageBucket"]:
        raise ApiError("Las credenciales de Firebase no están configuradas correctamente", status_code=500)
    return credentials


_storage_service = StorageService()


def get_storage_service() -> StorageService:
    """FastAPI dependency; tests override it with an in-memory fake"""
    return _storage_service
