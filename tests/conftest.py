from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from config.settings import Settings
from email_helper import DeliveryError, NotificationChannel
from main import create_app
from middleware.rate_limiter import ContactRateLimiter
from models.contact import ContactSubmission, NotificationResult


class RecordingChannel(NotificationChannel):
    """Channel double that records every submission it is asked to send."""

    name = "recording"

    def __init__(self, external_id: Optional[str] = "msg-123", error: Optional[Exception] = None):
        self.external_id = external_id
        self.error = error
        self.sent: List[ContactSubmission] = []

    async def send(self, submission: ContactSubmission) -> NotificationResult:
        self.sent.append(submission)
        if self.error is not None:
            raise self.error
        return NotificationResult(delivered=True, external_id=self.external_id)


@pytest.fixture
def settings() -> Settings:
    return Settings(rate_limit_points=5, rate_limit_duration=60)


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def failing_channel() -> RecordingChannel:
    return RecordingChannel(error=DeliveryError("provider exploded: secret-token-xyz"))


@pytest.fixture
def client(settings, channel) -> TestClient:
    app = create_app(settings=settings, channel=channel, rate_limiter=ContactRateLimiter(5, 60))
    return TestClient(app)


def valid_payload() -> dict:
    return {"name": "Jane", "email": "jane@example.com", "message": "Hello!"}
