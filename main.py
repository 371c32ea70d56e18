from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import Settings
from constants import SERVICE_VERSION
from controllers import contact_controller
from controllers.health_controller import build_health_router
from email_helper import NotificationChannel, NotificationSink, build_notification_channel
from middleware.rate_limiter import ContactRateLimiter
from middleware.request_logging import AccessLogMiddleware, BodySizeLimitMiddleware
from utils.exceptions import (
    APIException,
    api_exception_handler,
    general_exception_handler,
    http_exception_handler,
)
from utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.settings
    logger.info(
        f"Contact service starting (channel={app.state.notification_sink.channel.name}, "
        f"rate_limit={settings.rate_limit_points}/{settings.rate_limit_duration}s, "
        f"trust_proxy={settings.trust_proxy})"
    )
    yield
    logger.info("Shutting down contact service...")


def create_app(
    settings: Optional[Settings] = None,
    channel: Optional[NotificationChannel] = None,
    rate_limiter: Optional[ContactRateLimiter] = None,
) -> FastAPI:
    """
    Build the contact-intake application.

    Args:
        settings: Configuration; read from the environment when omitted
        channel: Notification channel; selected from settings when omitted
        rate_limiter: Limiter instance; a fresh in-memory one when omitted
    """
    settings = settings or Settings.from_env()
    channel = channel or build_notification_channel(settings)
    rate_limiter = rate_limiter or ContactRateLimiter(
        capacity=settings.rate_limit_points,
        window_seconds=settings.rate_limit_duration,
    )

    app = FastAPI(
        lifespan=lifespan,
        title="Contact Intake API",
        description="Accepts portfolio contact form submissions and forwards them to the owner",
        version=SERVICE_VERSION,
    )
    app.state.settings = settings
    app.state.rate_limiter = rate_limiter
    app.state.notification_sink = NotificationSink(channel, timeout_seconds=settings.sink_timeout_seconds)

    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)
    app.add_middleware(AccessLogMiddleware)
    # No configured origins means any origin may post
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins or ["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        max_age=86400,
    )

    app.include_router(build_health_router(settings.healthcheck_path))
    app.include_router(contact_controller.router)

    return app


_settings = Settings.from_env()
setup_logging(log_level=_settings.log_level)
app = create_app(_settings)


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=_settings.port)
