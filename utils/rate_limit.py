import json
from time import time
from typing import Dict, Tuple, Optional
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
import logging

import redis

from config.settings import settings

logger = logging.getLogger(__name__)

RATE_LIMITED_ROUTES = {("POST", "/api/auth/login")}
RATE_LIMIT_MESSAGE = "Demasiados intentos de inicio de sesión. Inténtalo de nuevo en un minuto."

# In-memory buckets (key -> (tokens, last_refill_ts))
_memory_buckets: Dict[str, Tuple[float, float]] = {}
# Full buckets are dropped once this many clients are tracked
MEMORY_SWEEP_THRESHOLD = 1024


def _connect_redis() -> Optional["redis.Redis"]:
    if not settings.redis_url:
        logger.info("REDIS_URL not set. Using in-memory rate limiting.")
        return None
    try:
        client = redis.from_url(settings.redis_url, decode_responses=True)
        client.ping()
        logger.info("Redis connected successfully for login rate limiting")
        return client
    except redis.RedisError as e:
        logger.warning(f"Redis connection failed: {e}. Falling back to in-memory rate limiting.")
        return None


def reset_rate_limits() -> None:
    """Forget every in-memory bucket"""
    _memory_buckets.clear()


class LoginRateLimiterMiddleware(BaseHTTPMiddleware):
    """
    Token-bucket rate limiter for the login endpoint only, keyed by client IP.
    Buckets live in Redis when REDIS_URL is reachable, otherwise in memory.
    """

    def __init__(self, app, requests_per_minute: Optional[int] = None):
        super().__init__(app)
        self.capacity = float(requests_per_minute or settings.login_rate_limit_per_minute)
        self.refill_time_window = 60.0
        self._redis = _connect_redis()

    def _get_client_ip(self, request: Request) -> str:
        xff = request.headers.get("x-forwarded-for")
        if xff:
            return xff.split(",")[0].strip()
        client = request.client
        return client.host if client else "unknown"

    def _get_redis_key(self, ip: str) -> str:
        return f"rate_limit:login:{ip}"

    def _refill(self, tokens: float, last_refill: float, now: float) -> float:
        elapsed = max(0.0, now - last_refill)
        return min(self.capacity, tokens + (elapsed / self.refill_time_window) * self.capacity)

    def _check_rate_limit_redis(self, ip: str) -> Optional[bool]:
        """
        Returns True if allowed, False if limited, None if Redis failed
        and the in-memory bucket should decide.
        """
        try:
            key = self._get_redis_key(ip)
            now = time()
            bucket_data = self._redis.get(key)
            if bucket_data:
                data = json.loads(bucket_data)
                tokens = float(data.get("tokens", 0))
                last_refill = float(data.get("last_refill", now))
            else:
                tokens, last_refill = self.capacity, now

            tokens = self._refill(tokens, last_refill, now)
            if tokens < 1.0:
                return False

            bucket_data = json.dumps({"tokens": tokens - 1.0, "last_refill": now})
            self._redis.setex(key, int(self.refill_time_window) + 10, bucket_data)
            return True
        except (redis.RedisError, ValueError) as e:
            logger.warning(f"Redis rate limit check failed: {e}. Falling back to in-memory.")
            return None

    def _sweep_full_buckets(self, now: float) -> None:
        full = [
            ip for ip, (tokens, last_refill) in _memory_buckets.items()
            if self._refill(tokens, last_refill, now) >= self.capacity
        ]
        for ip in full:
            del _memory_buckets[ip]

    def _check_rate_limit_memory(self, ip: str) -> bool:
        now = time()
        if len(_memory_buckets) >= MEMORY_SWEEP_THRESHOLD:
            self._sweep_full_buckets(now)
        tokens, last_refill = _memory_buckets.get(ip, (self.capacity, now))
        tokens = self._refill(tokens, last_refill, now)
        if tokens < 1.0:
            return False
        _memory_buckets[ip] = (tokens - 1.0, now)
        return True

    async def dispatch(self, request: Request, call_next) -> Response:
        if (request.method, request.url.path.rstrip("/")) not in RATE_LIMITED_ROUTES:
            return await call_next(request)

        ip = self._get_client_ip(request)
        allowed = self._check_rate_limit_redis(ip) if self._redis is not None else None
        if allowed is None:
            allowed = self._check_rate_limit_memory(ip)

        if not allowed:
            logger.warning(f"Login rate limit exceeded for {ip}")
            return JSONResponse(
                status_code=429,
                content={"success": False, "message": RATE_LIMIT_MESSAGE},
            )

        return await call_next(request)
