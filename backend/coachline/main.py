"""
Coachline Booking API - Main Application Entry Point

Coach ticketing backend:
- Route catalogue with weekly schedules and closed dates
- Server-side pricing with promo codes and capped student discounts
- Stripe payment sheet and idempotent webhook-driven confirmation
- QR-coded PDF tickets delivered by e-mail and validated at boarding
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coachline.api.dependencies import get_payment_gateway
from coachline.api.middleware import OriginGuardMiddleware, RateLimitMiddleware, RequestLoggingMiddleware
from coachline.api.router import api_router
from coachline.core.config import get_settings
from coachline.core.exceptions import CoachlineError
from coachline.core.logging import get_logger, setup_logging
from coachline.core.metrics import metrics_endpoint
from coachline.services.cache_service import close_redis, get_cache_stats, get_redis

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    # Fail fast on a missing payment secret
    get_payment_gateway()

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")

    yield

    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Coach ticket booking API with idempotent payment confirmation",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins or ["*"],
    allow_credentials=bool(settings.allowed_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(OriginGuardMiddleware, allowed_origins=settings.allowed_origins)

if settings.RATE_LIMIT_ENABLED:
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.RATE_LIMIT_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
        trust_proxy_headers=settings.TRUST_PROXY_HEADERS,
    )

# Custom middleware
app.add_middleware(RequestLoggingMiddleware)

# Routes
app.include_router(api_router)


@app.exception_handler(CoachlineError)
async def coachline_error_handler(request: Request, exc: CoachlineError):
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": cache_stats,
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
