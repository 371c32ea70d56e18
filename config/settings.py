# config/settings.py
import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from constants import (
    DEFAULT_HEALTHCHECK_PATH,
    DEFAULT_HONEYPOT_FIELD,
    DEFAULT_MAX_BODY_BYTES,
    DEFAULT_PORT,
    DEFAULT_RATE_LIMIT_DURATION,
    DEFAULT_RATE_LIMIT_POINTS,
    DEFAULT_SINK_TIMEOUT_SECONDS,
)

load_dotenv()

TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in TRUTHY


def _env_list(name: str) -> List[str]:
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_optional(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


class Settings(BaseModel):
    """Runtime configuration for the contact-intake service."""

    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    trust_proxy: bool = False
    proxy_hops: int = Field(default=1, ge=1)
    healthcheck_path: str = DEFAULT_HEALTHCHECK_PATH
    cors_origins: List[str] = Field(default_factory=list)

    rate_limit_points: int = Field(default=DEFAULT_RATE_LIMIT_POINTS, ge=1)
    rate_limit_duration: int = Field(default=DEFAULT_RATE_LIMIT_DURATION, ge=1)
    honeypot_field: str = DEFAULT_HONEYPOT_FIELD

    # Notification channels, first configured one wins
    resend_api_key: Optional[str] = None
    sendgrid_api_key: Optional[str] = None
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_pass: Optional[str] = None
    smtp_secure: bool = False
    contact_to_email: str = "owner@example.com"
    contact_from_email: str = "no-reply@example.com"
    sink_timeout_seconds: float = Field(default=DEFAULT_SINK_TIMEOUT_SECONDS, gt=0)

    max_body_bytes: int = Field(default=DEFAULT_MAX_BODY_BYTES, ge=1)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables (and a local .env file).

        Raises:
            pydantic.ValidationError: If a numeric variable is malformed or out of range
        """
        healthcheck_path = os.getenv("HEALTHCHECK_PATH", DEFAULT_HEALTHCHECK_PATH).strip() or DEFAULT_HEALTHCHECK_PATH
        if not healthcheck_path.startswith("/"):
            healthcheck_path = "/" + healthcheck_path

        return cls(
            port=os.getenv("PORT", str(DEFAULT_PORT)),
            trust_proxy=_env_flag("TRUST_PROXY"),
            proxy_hops=os.getenv("TRUST_PROXY_HOPS", "1"),
            healthcheck_path=healthcheck_path,
            cors_origins=_env_list("CORS_ORIGINS"),
            rate_limit_points=os.getenv("RATE_LIMIT_POINTS", str(DEFAULT_RATE_LIMIT_POINTS)),
            rate_limit_duration=os.getenv("RATE_LIMIT_DURATION", str(DEFAULT_RATE_LIMIT_DURATION)),
            honeypot_field=os.getenv("HONEYPOT_FIELD", "").strip() or DEFAULT_HONEYPOT_FIELD,
            resend_api_key=_env_optional("RESEND_API_KEY"),
            sendgrid_api_key=_env_optional("SENDGRID_API_KEY"),
            smtp_host=_env_optional("SMTP_HOST"),
            smtp_port=os.getenv("SMTP_PORT", "587"),
            smtp_user=_env_optional("SMTP_USER"),
            smtp_pass=_env_optional("SMTP_PASS"),
            smtp_secure=_env_flag("SMTP_SECURE"),
            contact_to_email=os.getenv("CONTACT_TO_EMAIL", "owner@example.com"),
            contact_from_email=os.getenv("CONTACT_FROM_EMAIL", "no-reply@example.com"),
            sink_timeout_seconds=os.getenv("SINK_TIMEOUT_SECONDS", str(DEFAULT_SINK_TIMEOUT_SECONDS)),
            max_body_bytes=os.getenv("MAX_BODY_BYTES", str(DEFAULT_MAX_BODY_BYTES)),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
