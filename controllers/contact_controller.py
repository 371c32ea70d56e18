import json
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from config.settings import Settings
from email_helper import DeliveryError, NotificationSink
from middleware.rate_limiter import ContactRateLimiter, get_client_key
from models.contact import ContactAccepted, ErrorResponse, ValidationErrorResponse
from utils.abuse_filter import is_honeypot_triggered
from utils.exceptions import (
    PayloadTooLargeException,
    RateLimitedException,
    SendFailedException,
    ValidationException,
)
from utils.logger import get_logger
from utils.sanitizer import sanitize_input
from utils.validators import validate_submission

router = APIRouter(tags=["Contact"])
logger = get_logger(__name__)

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_rate_limiter(request: Request) -> ContactRateLimiter:
    return request.app.state.rate_limiter


def get_sink(request: Request) -> NotificationSink:
    return request.app.state.notification_sink


async def read_limited(request: Request, max_bytes: int) -> bytes:
    """Read the body chunk by chunk, aborting as soon as it passes max_bytes."""
    chunks = []
    total = 0
    async for chunk in request.stream():
        total += len(chunk)
        if total > max_bytes:
            raise PayloadTooLargeException()
        chunks.append(chunk)
    return b"".join(chunks)


async def parse_form(request: Request, raw: bytes) -> Dict[str, Any]:
    async def receive():
        return {"type": "http.request", "body": raw, "more_body": False}

    try:
        form = await Request(request.scope, receive).form()
    except (StarletteHTTPException, MultiPartException) as e:
        logger.info(f"Contact form body could not be parsed ({e}); treating it as empty")
        return {}
    return {key: value for key, value in form.items() if isinstance(value, str)}


async def read_body(request: Request, max_bytes: int) -> Dict[str, Any]:
    """
    Parse a JSON or form body into a dict.

    Bodies that are empty, malformed or not an object come back as {} and are
    rejected later by validation.
    """
    raw = await read_limited(request, max_bytes)

    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith(FORM_CONTENT_TYPES):
        return await parse_form(request, raw)

    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except (ValueError, UnicodeDecodeError, RecursionError):
        logger.info("Contact body is not valid JSON; treating it as empty")
        return {}
    return data if isinstance(data, dict) else {}


@router.post(
    "/contact",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ContactAccepted,
    responses={
        400: {"model": ValidationErrorResponse},
        413: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def submit_contact(
    request: Request,
    settings: Settings = Depends(get_settings),
    rate_limiter: ContactRateLimiter = Depends(get_rate_limiter),
    sink: NotificationSink = Depends(get_sink),
):
    """
    Accept a contact form submission.

    Steps, first failure wins: rate limit, honeypot, validation, delivery.
    Honeypot hits get the same 202 as a real submission and are never sent.
    """
    client_key = get_client_key(request, trust_proxy=settings.trust_proxy, proxy_hops=settings.proxy_hops)
    if not rate_limiter.check(client_key):
        raise RateLimitedException(retry_after=rate_limiter.retry_after(client_key))

    body = await read_body(request, settings.max_body_bytes)
    clean = sanitize_input(body)

    if is_honeypot_triggered(body, settings.honeypot_field):
        logger.warning(f"Honeypot triggered; dropping submission from {client_key}")
        return ContactAccepted(success=True, id=None)

    submission, issues = validate_submission(clean)
    if issues:
        logger.info(f"Contact validation failed for {client_key}: {[issue.path for issue in issues]}")
        raise ValidationException(issues)

    try:
        result = await sink.send(submission)
    except DeliveryError as e:
        logger.error(f"Failed to send contact email: {e}")
        raise SendFailedException() from e

    logger.info(f"Contact accepted from {submission.email} (id={result.external_id})")
    return ContactAccepted(success=True, id=result.external_id)
