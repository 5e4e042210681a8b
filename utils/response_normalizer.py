"""
Normalization of ORDS response payloads.

The ORDS module answers list queries in more than one shape depending on how
each handler was written:

- a bare JSON array
- the json/query "paged" shape: {"items": [...], "first": ...}
- the legacy RPC envelope: {"success": ..., "message": ..., "result_json": "[...]"}
  where result_json may be a JSON string or an already parsed array
- an empty object when nothing matched

normalize_records() turns any of them into a plain list of records. Only a
legacy envelope reporting success=false is treated as a failure.
"""
import json
import logging
from typing import Any, List

from backend.utils.errors import BackendRequestFailed

logger = logging.getLogger(__name__)

INVALID_TOKEN_MARKER = "token inválido"


def is_falsy_success(value: Any) -> bool:
    """ORDS serializes booleans as strings, so "false" and "" count as false."""
    if isinstance(value, str):
        return not value.strip() or value.strip().lower() == "false"
    return not value


def _decode_result_json(raw: Any) -> List[Any]:
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"Error parsing result_json: {e}")
            return []
    return raw if isinstance(raw, list) else []


def normalize_records(payload: Any) -> List[Any]:
    """
    Convert a backend payload of unknown shape into an ordered list of records.

    Raises:
        BackendRequestFailed: if the payload is a legacy envelope with success=false
    """
    if isinstance(payload, list):
        return payload

    if not isinstance(payload, dict):
        return []

    if isinstance(payload.get("items"), list):
        return payload["items"]

    if "success" in payload and "message" in payload:
        if is_falsy_success(payload["success"]):
            raise BackendRequestFailed(payload.get("message"))
        if "result_json" in payload:
            return _decode_result_json(payload["result_json"])
        return []

    return []


def is_token_invalid(payload: Any) -> bool:
    """
    Whether a 200 response body actually signals an invalid/expired session.

    Accepts a decoded payload or the raw body. Never raises; anything that
    cannot be inspected counts as "not invalid".
    """
    try:
        if isinstance(payload, (bytes, str)):
            payload = json.loads(payload)
        if not isinstance(payload, dict):
            return False

        success = payload.get("success")
        if success is not False and not (isinstance(success, str) and success.strip().lower() == "false"):
            return False

        message = payload.get("message")
        return isinstance(message, str) and INVALID_TOKEN_MARKER in message.lower()
    except Exception as e:
        logger.debug(f"Invalid-token check skipped: {e}")
        return False
