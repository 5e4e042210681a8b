"""
Session Manager - reads and writes the three VAMS session cookies
"""

from typing import Optional, Dict, Any
from urllib.parse import quote, unquote
import json
import logging

from fastapi import Request, Response

from config.settings import (
    TOKEN_COOKIE,
    USER_COOKIE,
    AUTHENTICATED_COOKIE,
    SESSION_COOKIES,
    SESSION_MAX_AGE,
    IS_PRODUCTION,
)

logger = logging.getLogger(__name__)


class SessionManager:
    """
    The session is an opaque ORDS token plus the serialized user, kept in
    three cookies that the browser UI also reads (so none are HttpOnly).
    The cookies are written and cleared together; there is no transactional
    guarantee between them.
    """

    @staticmethod
    def get_token(request: Request) -> Optional[str]:
        token = request.cookies.get(TOKEN_COOKIE)
        if not token or not token.strip():
            return None
        return token.strip()

    @staticmethod
    def get_user(request: Request) -> Optional[Dict[str, Any]]:
        """
        Decode the user cookie (URL-encoded JSON).

        Returns:
            User dict, or None if the cookie is missing or not valid JSON
        """
        raw = request.cookies.get(USER_COOKIE)
        if not raw:
            return None
        try:
            user = json.loads(unquote(raw))
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Undecodable {USER_COOKIE} cookie: {e}")
            return None
        return user if isinstance(user, dict) else None

    @staticmethod
    def set_session(response: Response, token: str, user: Optional[Dict[str, Any]]) -> None:
        cookie_options = {
            "httponly": False,
            "secure": IS_PRODUCTION,
            "samesite": "lax",
            "max_age": SESSION_MAX_AGE,
            "path": "/",
        }
        response.set_cookie(key=TOKEN_COOKIE, value=token, **cookie_options)
        response.set_cookie(key=USER_COOKIE, value=quote(json.dumps(user)), **cookie_options)
        response.set_cookie(key=AUTHENTICATED_COOKIE, value="true", **cookie_options)

    @staticmethod
    def clear_session(response: Response) -> None:
        for name in SESSION_COOKIES:
            response.delete_cookie(key=name, path="/", samesite="lax")
