"""
catchhook - receive, store and inspect arbitrary webhooks.
Main FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from catchhook import __version__
from catchhook.config import Settings, get_settings
from catchhook.api.router import api_router
from catchhook.database import dispose_engine
from catchhook.utils.logging import (
    configure_structured_logging,
    generate_correlation_id,
    set_correlation_id,
)
from catchhook.utils.rate_limiter import FixedWindowRateLimiter

logger = logging.getLogger("catchhook")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Injects a correlation ID into every request context and response header."""

    async def dispatch(self, request: Request, call_next) -> Response:
        cid = request.headers.get("X-Correlation-ID") or generate_correlation_id()
        set_correlation_id(cid)
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = cid
        return response


def build_rate_limiter(settings: Settings) -> FixedWindowRateLimiter:
    """One limiter per application; every ingestion request shares it."""
    return FixedWindowRateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
        max_keys=settings.rate_limit_max_keys,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    settings = get_settings()
    logger.info("catchhook starting up (env=%s)", settings.app_env)

    if not settings.auth_jwt_secret:
        logger.warning(
            "AUTH_JWT_SECRET not set - management API will reject every request. "
            "Webhook ingestion is unaffected."
        )
    if not settings.rate_limit_max_keys:
        logger.info("Rate limiter keeps every webhook id it sees (RATE_LIMIT_MAX_KEYS=0)")

    if settings.sentry_dsn:
        try:
            import sentry_sdk
            sentry_sdk.init(
                dsn=settings.sentry_dsn,
                traces_sample_rate=0.1,
                environment=settings.app_env,
            )
            logger.info("Sentry initialized")
        except Exception as e:
            logger.warning("Sentry initialization failed: %s", str(e))

    yield

    logger.info("catchhook shutting down")
    await dispose_engine()


def create_app() -> FastAPI:
    """Application factory."""
    settings = get_settings()

    configure_structured_logging(settings.log_level)

    application = FastAPI(
        title="catchhook",
        description="Receive, store and inspect arbitrary webhooks",
        version=__version__,
        lifespan=lifespan,
    )
    application.state.rate_limiter = build_rate_limiter(settings)

    # CORS - dashboard origins only; webhook senders are server-to-server
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins + [settings.app_base_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=[
            "Authorization", "Content-Type", "X-Correlation-ID",
            "Accept", "Origin", "X-Requested-With",
        ],
    )

    # Correlation ID middleware (must be added AFTER CORS so it runs on every request)
    application.add_middleware(CorrelationIdMiddleware)

    application.include_router(api_router)

    return application


app = create_app()
