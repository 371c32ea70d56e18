"""
Notification channels for accepted contact submissions.

Exactly one channel is active per process. It is chosen once at startup by
build_notification_channel():

    RESEND_API_KEY -> SENDGRID_API_KEY -> SMTP_HOST -> simulate

Simulate mode logs the submission and reports success without sending, so the
whole pipeline can be exercised locally without credentials.
"""
import asyncio
import smtplib
from abc import ABC, abstractmethod
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid
from typing import Optional

import httpx
from starlette.concurrency import run_in_threadpool

from config.settings import Settings
from models.contact import ContactSubmission, NotificationResult
from utils.logger import get_logger

logger = get_logger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"
USER_AGENT = "contact-intake/1.0"


class DeliveryError(Exception):
    """Raised when the active channel fails to deliver a notification."""
    pass


def build_subject(submission: ContactSubmission) -> str:
    return f"New contact from {submission.name}"


def build_body(submission: ContactSubmission) -> str:
    return (
        "New contact form submission:\n\n"
        f"Name: {submission.name}\n"
        f"Email: {submission.email}\n\n"
        "Message:\n"
        f"{submission.message}\n"
    )


class NotificationChannel(ABC):
    """Outbound delivery capability for accepted submissions."""

    name = "abstract"

    @abstractmethod
    async def send(self, submission: ContactSubmission) -> NotificationResult:
        """
        Deliver a submission to the site owner.

        Raises:
            DeliveryError: If the provider rejects or cannot be reached
        """


class SimulatedChannel(NotificationChannel):
    name = "simulate"

    async def send(self, submission: ContactSubmission) -> NotificationResult:
        logger.info(f"Simulate mode: not sending contact from {submission.email}")
        return NotificationResult(delivered=True, external_id=None)


class _HttpChannel(NotificationChannel):
    """Shared plumbing for JSON-over-HTTPS providers."""

    url = ""

    def __init__(self, api_key: str, to_email: str, from_email: str,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        if not api_key:
            raise ValueError(f"{self.name} API key not set")
        self.api_key = api_key
        self.to_email = to_email
        self.from_email = from_email
        self.transport = transport

    @abstractmethod
    def build_payload(self, submission: ContactSubmission) -> dict:
        """JSON body for the provider API."""

    @abstractmethod
    def extract_id(self, response: httpx.Response) -> Optional[str]:
        """Provider message id from a successful response."""

    async def send(self, submission: ContactSubmission) -> NotificationResult:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.post(self.url, json=self.build_payload(submission), headers=headers)
        except httpx.HTTPError as e:
            raise DeliveryError(f"{self.name} request failed: {e}") from e

        if not response.is_success:
            raise DeliveryError(f"{self.name} API returned {response.status_code}")

        return NotificationResult(delivered=True, external_id=self.extract_id(response))


class ResendChannel(_HttpChannel):
    name = "resend"
    url = RESEND_API_URL

    def build_payload(self, submission: ContactSubmission) -> dict:
        return {
            "from": self.from_email,
            "to": [self.to_email],
            "reply_to": submission.email,
            "subject": build_subject(submission),
            "text": build_body(submission),
        }

    def extract_id(self, response: httpx.Response) -> Optional[str]:
        try:
            data = response.json()
        except ValueError:
            return None
        return data.get("id") if isinstance(data, dict) else None


class SendGridChannel(_HttpChannel):
    name = "sendgrid"
    url = SENDGRID_API_URL

    def build_payload(self, submission: ContactSubmission) -> dict:
        return {
            "personalizations": [{"to": [{"email": self.to_email}]}],
            "from": {"email": self.from_email},
            "reply_to": {"email": submission.email, "name": submission.name},
            "subject": build_subject(submission),
            "content": [{"type": "text/plain", "value": build_body(submission)}],
        }

    def extract_id(self, response: httpx.Response) -> Optional[str]:
        return response.headers.get("X-Message-Id")


class SmtpChannel(NotificationChannel):
    name = "smtp"

    def __init__(self, host: str, port: int = 587, username: Optional[str] = None,
                 password: Optional[str] = None, secure: bool = False,
                 to_email: str = "", from_email: str = "", timeout: float = 10.0):
        if not host:
            raise ValueError("SMTP host not set")
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.secure = secure
        self.to_email = to_email
        self.from_email = from_email or username or ""
        self.timeout = timeout

    def build_message(self, submission: ContactSubmission) -> MIMEText:
        msg = MIMEText(build_body(submission), "plain", "utf-8")
        msg["Subject"] = build_subject(submission)
        msg["From"] = self.from_email
        msg["To"] = self.to_email
        msg["Reply-To"] = formataddr((submission.name, submission.email))
        msg["Message-ID"] = make_msgid(domain=self.host)
        return msg

    def _send_blocking(self, msg: MIMEText) -> None:
        smtp_class = smtplib.SMTP_SSL if self.secure else smtplib.SMTP
        with smtp_class(self.host, self.port, timeout=self.timeout) as server:
            if not self.secure:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(msg)

    async def send(self, submission: ContactSubmission) -> NotificationResult:
        msg = self.build_message(submission)
        try:
            await run_in_threadpool(self._send_blocking, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"SMTP delivery failed: {e}") from e
        return NotificationResult(delivered=True, external_id=msg["Message-ID"])


def build_notification_channel(settings: Settings) -> NotificationChannel:
    """Select the single active channel from configuration."""
    if settings.resend_api_key:
        channel = ResendChannel(settings.resend_api_key, settings.contact_to_email, settings.contact_from_email)
    elif settings.sendgrid_api_key:
        channel = SendGridChannel(settings.sendgrid_api_key, settings.contact_to_email, settings.contact_from_email)
    elif settings.smtp_host:
        channel = SmtpChannel(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user,
            password=settings.smtp_pass,
            secure=settings.smtp_secure,
            to_email=settings.contact_to_email,
            from_email=settings.contact_from_email,
            timeout=settings.sink_timeout_seconds,
        )
    else:
        channel = SimulatedChannel()

    logger.info(f"Notification channel: {channel.name}")
    return channel


class NotificationSink:
    """
    Wraps the active channel with a timeout.

    Each submission is attempted exactly once. Any failure, timeout included,
    surfaces as DeliveryError.
    """

    def __init__(self, channel: NotificationChannel, timeout_seconds: float = 10.0):
        self.channel = channel
        self.timeout_seconds = timeout_seconds

    async def send(self, submission: ContactSubmission) -> NotificationResult:
        try:
            result = await asyncio.wait_for(self.channel.send(submission), timeout=self.timeout_seconds)
        except DeliveryError:
            raise
        except asyncio.TimeoutError as e:
            raise DeliveryError(f"{self.channel.name} timed out after {self.timeout_seconds}s") from e
        except Exception as e:
            raise DeliveryError(f"{self.channel.name} failed: {type(e).__name__}: {e}") from e

        if not result.delivered:
            raise DeliveryError(f"{self.channel.name} reported the message as not delivered")
        return result
