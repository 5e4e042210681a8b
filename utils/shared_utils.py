"""
Shared utility functions for routers and services
"""
import json
import logging
import re
from datetime import datetime
from typing import Any, Optional

from fastapi import Request

from backend.utils.errors import ApiError
from utils.session_manager import SessionManager

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "No autorizado"
DIGITS = re.compile(r"^[0-9]+\Z")


def parse_id(value: Any, message: str) -> int:
    """Strict integer path segment; anything else is a 400 before any backend call."""
    text = str(value).strip() if value is not None else ""
    if not DIGITS.match(text):
        raise ApiError(message, status_code=400)
    return int(text)


def require_token(request: Request) -> str:
    """Dependency for routes that always need the session token"""
    token = SessionManager.get_token(request)
    if not token:
        raise ApiError(UNAUTHORIZED_MESSAGE, status_code=401)
    return token


def optional_token(request: Request) -> Optional[str]:
    """Dependency for routes where the token is attached only if present"""
    return SessionManager.get_token(request)


def parse_optional_int(value: Optional[str], message: str) -> Optional[int]:
    if value is None or not str(value).strip():
        return None
    return parse_id(value, message)


def log_endpoint_event(endpoint: str, result: str = "success", details: Optional[dict] = None):
    """Log endpoint execution to app.log"""
    logger.info(f"{endpoint} | {result} | {datetime.now().isoformat()} | {json.dumps(details or {}, default=str)}")
