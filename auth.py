"""
Authentication routes: ORDS login, logout and current-user lookup
"""

import json
import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from backend.utils.errors import ApiError
from models.user import ADMIN_ROLE_ID, LoginRequest
from services.ords_client import (
    OrdsClient,
    OrdsUnavailableError,
    decode_json,
    get_ords_client,
)
from utils.response_normalizer import is_falsy_success
from utils.session_manager import SessionManager

logger = logging.getLogger(__name__)

# Create auth router
auth_router = APIRouter(prefix="/api/auth", tags=["auth"])


def _decode_user_json(raw):
    """user_json arrives either as a JSON string or already parsed"""
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return raw
    return raw


@auth_router.post("/login")
async def login(request: LoginRequest, client: OrdsClient = Depends(get_ords_client)):
    """Authenticate against ORDS and open the cookie session"""
    username = (request.username or "").strip()
    password = (request.password or "").strip()
    if not username or not password:
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Usuario y contraseña son requeridos"}
        )

    try:
        ords_response = await client.request(
            "POST",
            ("auth", "login"),
            body={"username": username, "password": password},
        )
    except OrdsUnavailableError:
        return JSONResponse(
            status_code=503,
            content={"success": False, "message": "No se pudo conectar con el servidor de autenticación"}
        )
    except ApiError as e:
        return JSONResponse(status_code=e.status_code, content={"success": False, "message": "Error de configuración del servidor"})

    try:
        data = decode_json(ords_response.text)
    except ValueError:
        data = {}

    if not ords_response.is_success:
        message = data.get("message") if isinstance(data, dict) else None
        return JSONResponse(
            status_code=ords_response.status_code,
            content={"success": False, "message": message or "Error al autenticar. Verifica tus credenciales."}
        )

    if not isinstance(data, dict) or is_falsy_success(data.get("success")) or not data.get("token"):
        message = data.get("message") if isinstance(data, dict) else None
        logger.info(f"Login rejected for user '{username}'")
        return JSONResponse(
            status_code=401,
            content={"success": False, "message": message or "Credenciales inválidas"}
        )

    user = _decode_user_json(data.get("user_json"))
    token = data["token"]

    response = JSONResponse(
        content={
            "success": True,
            "user": user,
            "token": token,
            "message": data.get("message") or "Autenticación exitosa",
        }
    )
    SessionManager.set_session(response, token, user)
    logger.info(f"User '{username}' logged in")
    return response


@auth_router.post("/logout")
async def logout():
    """Logout and clear the session cookies"""
    response = JSONResponse(
        content={
            "success": True,
            "message": "Sesión cerrada exitosamente"
        }
    )
    SessionManager.clear_session(response)
    return response


@auth_router.get("/user")
async def get_current_user_info(request: Request):
    """Current user as stored in the user cookie"""
    user = SessionManager.get_user(request)
    if not user:
        return JSONResponse(status_code=401, content={"success": False, "user": None})

    return {
        "success": True,
        "user": user,
        "isAdmin": user.get("RL_IDROL_FK") == ADMIN_ROLE_ID,
    }
