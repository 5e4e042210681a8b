"""
ORDS Client - single HTTP calls against the Oracle REST Data Services module
"""
import json
import logging
from typing import Any, Optional

import httpx

from backend.utils.errors import ApiError
from config.settings import settings

logger = logging.getLogger(__name__)

CONNECTION_ERROR_MESSAGE = "Error al conectar con el servidor"
MISSING_BASE_URL_MESSAGE = "DB_API_URL no está configurada"


class OrdsUnavailableError(ApiError):
    """The backend could not be reached at all (DNS, refused connection, timeout)"""

    def __init__(self, message: str = CONNECTION_ERROR_MESSAGE):
        super().__init__(message, status_code=500)


def is_html_document(text: str) -> bool:
    """ORDS answers with an HTML error page when a handler does not exist."""
    head = (text or "").lstrip()[:64].lower()
    return head.startswith("<!doctype") or head.startswith("<html")


def decode_json(text: str) -> Any:
    """Decode a response body; raises ValueError when it is not JSON."""
    return json.loads(text)


def extract_error_message(response: httpx.Response, default: str) -> str:
    """
    Error text for a non-2xx backend response: the JSON body's message/error,
    else the raw body, else `default`.
    """
    text = response.text or ""
    try:
        data = decode_json(text)
    except ValueError:
        data = None

    if isinstance(data, dict):
        for key in ("message", "error"):
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return default

    if text.strip() and not is_html_document(text):
        return text.strip()
    return default


class OrdsClient:
    """Builds ORDS URLs and performs one request per call (no retries)"""

    def __init__(
        self,
        base_url: Optional[str],
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None
    ):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.transport = transport
        self.timeout = timeout

    def build_url(self, *segments: Any) -> str:
        if not self.base_url:
            logger.error("DB_API_URL is not set in the environment")
            raise ApiError(MISSING_BASE_URL_MESSAGE, status_code=500)
        path = "/".join(str(segment).strip("/") for segment in segments)
        return f"{self.base_url}/{path}"

    async def request(
        self,
        method: str,
        segments: tuple,
        token: Optional[str] = None,
        body: Optional[dict] = None
    ) -> httpx.Response:
        """
        Send one request to ORDS.

        Content-Type is only declared when a body is sent: ORDS fails with
        "Expected one of: <<{,[>> but got: <<EOF>>" on an empty JSON body.

        Raises:
            ApiError: 500 when the base URL is missing or the backend is unreachable
        """
        url = self.build_url(*segments)
        headers = {}
        if token:
            headers["X-API-Token"] = token
        if body is not None:
            headers["Content-Type"] = "application/json"

        client_kwargs = {"transport": self.transport}
        if self.timeout is not None:
            client_kwargs["timeout"] = self.timeout

        try:
            async with httpx.AsyncClient(**client_kwargs) as client:
                response = await client.request(
                    method,
                    url,
                    headers=headers,
                    content=json.dumps(body) if body is not None else None,
                )
        except httpx.RequestError as e:
            logger.error(f"ORDS {method} {url} failed: {e}")
            raise OrdsUnavailableError()

        if not response.is_success:
            logger.warning(f"ORDS {method} {url} returned {response.status_code}: {response.text[:500]}")
        return response


def get_ords_client() -> OrdsClient:
    """FastAPI dependency; tests override it with a mock transport"""
    return OrdsClient(settings.api_base_url, timeout=settings.ords_timeout)
