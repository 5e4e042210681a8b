"""
Exceptions raised by the proxy layer and rendered by the app-level handlers
"""
from typing import Optional


class ApiError(Exception):
    """A failure that is answered to the client as {"error": message}."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SessionExpiredError(Exception):
    """The backend reported the session token as invalid or expired."""

    def __init__(self, message: str = "Token inválido o expirado"):
        super().__init__(message)
        self.message = message


class BackendRequestFailed(Exception):
    """A legacy {success, message} envelope came back with success=false."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "")
        self.message = message
