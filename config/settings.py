"""
Configuration settings for the application
"""
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Session cookies shared with the browser UI
TOKEN_COOKIE = "vams_token"
USER_COOKIE = "vams_user"
AUTHENTICATED_COOKIE = "vams_authenticated"
SESSION_COOKIES = (TOKEN_COOKIE, USER_COOKIE, AUTHENTICATED_COOKIE)
SESSION_MAX_AGE = 24 * 60 * 60  # 24 hours

# Uploads
MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10MB
DEFAULT_UPLOAD_DIRECTORY = "activos-visuales"


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # ORDS backend
    db_api_url: Optional[str] = Field(default=None, alias="DB_API_URL")
    public_db_api_url: Optional[str] = Field(default=None, alias="NEXT_PUBLIC_DB_API_URL")
    ords_timeout: Optional[float] = Field(default=None, alias="ORDS_TIMEOUT")
    soft_delete_fallback: bool = Field(default=False, alias="SOFT_DELETE_FALLBACK")

    # Firebase (storage bucket + browser credentials)
    firebase_api_key: Optional[str] = Field(default=None, alias="FIREBASE_API_KEY")
    firebase_auth_domain: Optional[str] = Field(default=None, alias="FIREBASE_AUTH_DOMAIN")
    firebase_project_id: Optional[str] = Field(default=None, alias="FIREBASE_PROJECT_ID")
    firebase_storage_bucket: Optional[str] = Field(default=None, alias="FIREBASE_STORAGE_BUCKET")
    firebase_messaging_sender_id: Optional[str] = Field(default=None, alias="FIREBASE_MESSAGING_SENDER_ID")
    firebase_app_id: Optional[str] = Field(default=None, alias="FIREBASE_APP_ID")
    firebase_client_email: Optional[str] = Field(default=None, alias="FIREBASE_CLIENT_EMAIL")
    firebase_private_key: Optional[str] = Field(default=None, alias="FIREBASE_PRIVATE_KEY")

    # Frontend configuration
    frontend_url: Optional[str] = Field(default="http://localhost:3000", alias="FRONTEND_URL")
    allowed_frame_origin: Optional[str] = Field(
        default="https://apps.fortoxsecurity.com:8888",
        alias="ALLOWED_FRAME_ORIGIN"
    )

    # Login rate limiting
    redis_url: Optional[str] = Field(default=None, alias="REDIS_URL")
    login_rate_limit_per_minute: int = Field(default=10, alias="LOGIN_RATE_LIMIT_PER_MINUTE")

    # Environment configuration
    env: Optional[str] = Field(default=None, alias="ENV")

    @property
    def api_base_url(self) -> Optional[str]:
        """ORDS module base URL without its trailing slash, or None when unset."""
        url = (self.public_db_api_url or self.db_api_url or "").strip()
        if not url:
            return None
        return url.rstrip("/")


# Instantiate settings object
settings = Settings()

# Determine if we're in production mode
IS_PRODUCTION = bool(settings.env and settings.env.lower() == "production")
