"""
Request middleware for logging, timing, request ID tracking, origin checks
and per-IP rate limiting.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from coachline.core.logging import get_logger
from coachline.core.metrics import rate_limit_rejections
from coachline.services.cache_service import get_redis
from coachline.services.rate_limit import check_and_increment

logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that:
    1. Assigns a unique request ID to each request
    2. Logs request method, path, status code, and duration
    3. Binds request context to structlog for correlation
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.perf_counter()

        # Bind request context for all downstream log calls
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        try:
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

            logger.info(
                "request_completed",
                status_code=response.status_code,
                duration_ms=duration_ms,
            )

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration_ms}ms"

            return response

        except Exception as e:
            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            logger.error(
                "request_failed",
                error=str(e),
                duration_ms=duration_ms,
            )
            raise


class OriginGuardMiddleware(BaseHTTPMiddleware):
    """
    Rejects browser requests from origins outside the allow-list with 403.
    An empty allow-list admits every origin; requests without an Origin
    header (mobile app, payment provider webhooks) always pass.
    """

    def __init__(self, app, allowed_origins: list[str]):
        super().__init__(app)
        self.allowed_origins = set(allowed_origins)

    async def dispatch(self, request: Request, call_next) -> Response:
        origin = request.headers.get("origin")
        if self.allowed_origins and origin:
            normalized = origin.strip().rstrip("/").lower()
            if normalized not in self.allowed_origins:
                logger.warning("origin_rejected", origin=origin)
                return JSONResponse(
                    status_code=403,
                    content={"error": "origin_not_allowed", "message": "Origin not allowed"},
                )
        return await call_next(request)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Fixed-window request limit per client IP for paths under `path_prefix`.
    Health checks and metrics stay outside the prefix and are never limited.
    """

    def __init__(
        self,
        app,
        max_requests: int,
        window_seconds: int,
        path_prefix: str = "/api/",
        trust_proxy_headers: bool = False,
        redis_provider=get_redis,
    ):
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.path_prefix = path_prefix
        self.trust_proxy_headers = trust_proxy_headers
        self.redis_provider = redis_provider

    def client_ip(self, request: Request) -> str:
        if self.trust_proxy_headers:
            forwarded = request.headers.get("x-forwarded-for")
            if forwarded:
                return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    async def dispatch(self, request: Request, call_next) -> Response:
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        ip = self.client_ip(request)
        allowed, retry_after = await check_and_increment(
            await self.redis_provider(), ip, self.max_requests, self.window_seconds
        )
        if not allowed:
            rate_limit_rejections.inc()
            logger.warning("rate_limit_exceeded", ip=ip, retry_after=retry_after)
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": "Too many requests, please try again later",
                    "retry_after": retry_after,
                },
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
