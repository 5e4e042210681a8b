"""
VAMS API - Visual Asset Management System backend
Session-cookie proxy in front of the Oracle ORDS module plus Firebase Storage uploads
"""

from pathlib import Path
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

# Import routers
from auth import auth_router
from routers.projects_router import router as projects_router
from routers.categories_router import categories_router
from routers.assets_router import assets_router
from routers.upload_router import upload_router
from routers.stats_router import stats_router
from utils.rate_limit import LoginRateLimiterMiddleware
from utils.session_manager import SessionManager
from backend.utils.errors import ApiError, SessionExpiredError
from backend.utils.responses import error_response
from config.settings import settings, IS_PRODUCTION

# ============================================================================
# LOGGING
# ============================================================================

# Write ALL events to /logs/app.log
LOGS_DIR = Path("./logs")
LOGS_DIR.mkdir(exist_ok=True)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(LOGS_DIR / "app.log"),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

# ============================================================================
# FASTAPI APP SETUP
# ============================================================================

app = FastAPI(title="VAMS API")


# Uncaught exception middleware - logs all unhandled exceptions and returns 500
class UncaughtExceptionMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Uncaught exception on {request.method} {request.url.path}: {e}\n{traceback.format_exc()}")
            return JSONResponse(
                status_code=500,
                content={"error": "Error interno del servidor"}
            )


# Security headers middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """The UI is embedded by the portal at ALLOWED_FRAME_ORIGIN, so framing is allowed there only"""
    async def dispatch(self, request, call_next):
        response = await call_next(request)

        frame_ancestors = "frame-ancestors 'self'"
        if settings.allowed_frame_origin:
            frame_ancestors += f" {settings.allowed_frame_origin}"
        response.headers["Content-Security-Policy"] = f"{frame_ancestors};"

        # HTTPS is only guaranteed in production
        if IS_PRODUCTION:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        response.headers["X-Content-Type-Options"] = "nosniff"

        return response


app.add_middleware(UncaughtExceptionMiddleware)
app.add_middleware(LoginRateLimiterMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

# CORS MUST be near the bottom
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return error_response(exc.message, status=exc.status_code)


@app.exception_handler(SessionExpiredError)
async def session_expired_handler(request: Request, exc: SessionExpiredError):
    """Invalid token reported by the backend: answer 401 and drop the whole session"""
    logger.warning(f"{request.method} {request.url.path} -> session expired")
    response = JSONResponse(
        status_code=401,
        content={
            "success": False,
            "error": exc.message,
            "message": "Tu sesión ha expirado. Por favor, inicia sesión nuevamente.",
        }
    )
    SessionManager.clear_session(response)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    logger.info(f"{request.method} {request.url.path} -> invalid request: {errors}")
    if errors and errors[0].get("type") == "json_invalid":
        return error_response("JSON inválido en el cuerpo de la solicitud", status=400)
    return error_response("Datos de solicitud inválidos", status=400, data={"details": [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg")}
        for error in errors
    ]})

# ============================================================================
# STARTUP CHECKS - ENV KEYS
# ============================================================================

REQUIRED_KEY_MAP = {
    "DB_API_URL": settings.api_base_url,
    "FIREBASE_PROJECT_ID": settings.firebase_project_id,
    "FIREBASE_STORAGE_BUCKET": settings.firebase_storage_bucket,
    "FIREBASE_API_KEY": settings.firebase_api_key,
}


@app.on_event("startup")
async def check_env_keys_on_startup():
    """Check for missing environment variables on startup (non-fatal warning)"""
    missing = [key for key, value in REQUIRED_KEY_MAP.items() if not value]
    if missing:
        logger.warning(f"Startup check: Missing environment variables: {', '.join(missing)}")
    else:
        logger.info("Startup check: All critical environment variables are set")

# ============================================================================
# INCLUDE ROUTERS
# ============================================================================
app.include_router(auth_router)
app.include_router(projects_router)
app.include_router(categories_router)
app.include_router(assets_router)
app.include_router(upload_router)
app.include_router(stats_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
