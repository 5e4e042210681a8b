"""
ORDS Proxy - composes the client, invalid-token detector, normalizer and
field-case transformer for the entity routers
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
from fastapi import Depends

from backend.utils.errors import ApiError, BackendRequestFailed, SessionExpiredError
from config.settings import settings
from services.ords_client import (
    OrdsClient,
    decode_json,
    extract_error_message,
    get_ords_client,
    is_html_document,
)
from utils.field_case import transform_records
from utils.response_normalizer import is_falsy_success, is_token_invalid, normalize_records

logger = logging.getLogger(__name__)

DELETE_UNSUPPORTED_MESSAGE = (
    "El endpoint DELETE no está disponible en el servidor. "
    "Por favor, ejecuta el script SQL actualizado."
)


def _check_token(payload: Any) -> None:
    if is_token_invalid(payload):
        logger.info("Invalid token reported by ORDS, closing session")
        raise SessionExpiredError()


def _check_status(response: httpx.Response) -> None:
    if response.status_code == 401:
        logger.info("ORDS rejected the session token with 401, closing session")
        raise SessionExpiredError()


def _backend_message(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    for key in ("message", "error"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


class OrdsProxy:
    """Service class for proxied CRUD calls"""

    def __init__(self, client: OrdsClient):
        self.client = client

    def _decode_success_body(self, response: httpx.Response, error_message: str) -> Any:
        if not response.text.strip():
            return {}
        try:
            return decode_json(response.text)
        except ValueError as e:
            logger.error(f"Malformed ORDS response ({e}): {response.text[:500]}")
            raise ApiError(error_message, status_code=500)

    async def list_records(
        self,
        segments: tuple,
        token: Optional[str],
        fields: Sequence[str],
        error_message: str,
        zero_defaults: Sequence[str] = ()
    ) -> List[Dict[str, Any]]:
        """GET a collection and return it normalized and projected onto `fields`"""
        response = await self.client.request("GET", segments, token=token)
        _check_status(response)
        if not response.is_success:
            raise ApiError(extract_error_message(response, error_message), status_code=response.status_code)

        payload = self._decode_success_body(response, error_message)
        _check_token(payload)

        try:
            records = normalize_records(payload)
        except BackendRequestFailed as e:
            raise ApiError(e.message or error_message, status_code=400)

        return transform_records(records, fields, zero_defaults)

    async def _write(
        self,
        method: str,
        segments: tuple,
        token: Optional[str],
        body: Dict[str, Any],
        error_message: str
    ) -> Any:
        response = await self.client.request(method, segments, token=token, body=body)
        _check_status(response)
        if not response.is_success:
            raise ApiError(extract_error_message(response, error_message), status_code=response.status_code)

        payload = self._decode_success_body(response, error_message)
        _check_token(payload)

        if isinstance(payload, dict) and "success" in payload and is_falsy_success(payload["success"]):
            raise ApiError(_backend_message(payload) or error_message, status_code=400)
        return payload

    async def create(self, segments: tuple, token: Optional[str], body: Dict[str, Any], error_message: str) -> Any:
        return await self._write("POST", segments, token, body, error_message)

    async def update(self, segments: tuple, token: Optional[str], body: Dict[str, Any], error_message: str) -> Any:
        return await self._write("PUT", segments, token, body, error_message)

    async def delete(
        self,
        segments: tuple,
        token: Optional[str],
        error_message: str,
        soft_delete_body: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        DELETE a record. An HTML page instead of JSON means the deployment has
        no DELETE handler for this resource; when SOFT_DELETE_FALLBACK is on and
        the entity has an active flag, the record is deactivated through PUT.
        """
        response = await self.client.request("DELETE", segments, token=token)
        _check_status(response)
        text = response.text or ""

        if is_html_document(text):
            logger.error(f"ORDS returned HTML instead of JSON for DELETE {'/'.join(map(str, segments))}")
            if soft_delete_body is not None and settings.soft_delete_fallback:
                logger.info(f"Falling back to soft deactivation for {'/'.join(map(str, segments))}")
                return await self.update(segments, token, soft_delete_body, error_message)
            raise ApiError(DELETE_UNSUPPORTED_MESSAGE, status_code=500)

        payload: Any = {}
        if text.strip():
            try:
                payload = decode_json(text)
            except ValueError:
                payload = {"message": text.strip()}

        _check_token(payload)

        failed = isinstance(payload, dict) and "success" in payload and is_falsy_success(payload["success"])
        if failed or not response.is_success:
            message = _backend_message(payload) or text.strip() or error_message
            raise ApiError(message, status_code=400 if response.is_success else response.status_code)

        return payload


def get_ords_proxy(client: OrdsClient = Depends(get_ords_client)) -> OrdsProxy:
    return OrdsProxy(client)
