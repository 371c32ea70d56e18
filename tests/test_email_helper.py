"""Tests for notification channels, channel selection and the sink wrapper."""

import asyncio
import json
import smtplib
from unittest.mock import MagicMock, patch

import httpx
import pytest

from config.settings import Settings
from email_helper import (
    DeliveryError,
    NotificationChannel,
    NotificationSink,
    ResendChannel,
    SendGridChannel,
    SimulatedChannel,
    SmtpChannel,
    build_notification_channel,
)
from models.contact import ContactSubmission, NotificationResult


def submission():
    return ContactSubmission(name="Jane", email="jane@example.com", message="Hello!")


class TestChannelSelection:
    def test_resend_wins(self):
        settings = Settings(resend_api_key="re_key", sendgrid_api_key="sg_key", smtp_host="smtp.example.com")
        assert isinstance(build_notification_channel(settings), ResendChannel)

    def test_sendgrid_when_no_resend(self):
        settings = Settings(sendgrid_api_key="sg_key", smtp_host="smtp.example.com")
        assert isinstance(build_notification_channel(settings), SendGridChannel)

    def test_smtp_when_no_provider_key(self):
        settings = Settings(smtp_host="smtp.example.com", smtp_port=465, smtp_secure=True)
        channel = build_notification_channel(settings)
        assert isinstance(channel, SmtpChannel)
        assert channel.port == 465
        assert channel.secure is True

    def test_simulate_when_nothing_configured(self):
        assert isinstance(build_notification_channel(Settings()), SimulatedChannel)


@pytest.mark.asyncio
async def test_simulated_channel_reports_success_without_id():
    result = await SimulatedChannel().send(submission())
    assert result == NotificationResult(delivered=True, external_id=None)


@pytest.mark.asyncio
async def test_resend_channel_posts_and_returns_id():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "re_abc"})

    channel = ResendChannel("re_key", "owner@example.com", "site@example.com",
                            transport=httpx.MockTransport(handler))
    result = await channel.send(submission())

    assert result.external_id == "re_abc"
    assert captured["url"] == "https://api.resend.com/emails"
    assert captured["auth"] == "Bearer re_key"
    assert captured["body"]["to"] == ["owner@example.com"]
    assert captured["body"]["reply_to"] == "jane@example.com"
    assert captured["body"]["subject"] == "New contact from Jane"
    assert "Hello!" in captured["body"]["text"]


@pytest.mark.asyncio
async def test_sendgrid_channel_reads_message_id_header():
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert body["personalizations"][0]["to"][0]["email"] == "owner@example.com"
        return httpx.Response(202, headers={"X-Message-Id": "sg_42"})

    channel = SendGridChannel("sg_key", "owner@example.com", "site@example.com",
                              transport=httpx.MockTransport(handler))
    result = await channel.send(submission())
    assert result.external_id == "sg_42"


@pytest.mark.asyncio
async def test_http_channel_error_status_raises_delivery_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(401, json={"message": "bad key"}))
    channel = ResendChannel("re_key", "owner@example.com", "site@example.com", transport=transport)

    with pytest.raises(DeliveryError, match="resend API returned 401"):
        await channel.send(submission())


@pytest.mark.asyncio
async def test_http_channel_network_error_raises_delivery_error():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    channel = SendGridChannel("sg_key", "owner@example.com", "site@example.com",
                              transport=httpx.MockTransport(handler))
    with pytest.raises(DeliveryError):
        await channel.send(submission())


def test_http_channel_requires_key():
    with pytest.raises(ValueError, match="API key not set"):
        ResendChannel("", "owner@example.com", "site@example.com")


class TestSmtpChannel:
    def test_message_headers(self):
        channel = SmtpChannel("smtp.example.com", to_email="owner@example.com", from_email="site@example.com")
        msg = channel.build_message(submission())
        assert msg["To"] == "owner@example.com"
        assert msg["From"] == "site@example.com"
        assert msg["Reply-To"] == "Jane <jane@example.com>"
        assert msg["Subject"] == "New contact from Jane"
        assert msg["Message-ID"].endswith("@smtp.example.com>")

    @pytest.mark.asyncio
    async def test_send_uses_starttls_and_login(self):
        channel = SmtpChannel("smtp.example.com", 587, "user", "pass",
                              to_email="owner@example.com", from_email="site@example.com")
        with patch("email_helper.smtplib.SMTP") as mock_smtp:
            server = mock_smtp.return_value.__enter__.return_value
            result = await channel.send(submission())

        mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=10.0)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("user", "pass")
        server.send_message.assert_called_once()
        assert result.delivered is True
        assert result.external_id.startswith("<")

    @pytest.mark.asyncio
    async def test_smtp_failure_raises_delivery_error(self):
        channel = SmtpChannel("smtp.example.com", to_email="owner@example.com", from_email="site@example.com")
        with patch("email_helper.smtplib.SMTP") as mock_smtp:
            server = mock_smtp.return_value.__enter__.return_value
            server.send_message.side_effect = smtplib.SMTPRecipientsRefused({})
            with pytest.raises(DeliveryError, match="SMTP delivery failed"):
                await channel.send(submission())


class SlowChannel(NotificationChannel):
    name = "slow"

    async def send(self, submission):
        await asyncio.sleep(5)
        return NotificationResult(delivered=True, external_id="late")


class BrokenChannel(NotificationChannel):
    name = "broken"

    async def send(self, submission):
        raise RuntimeError("boom")


class TestNotificationSink:
    @pytest.mark.asyncio
    async def test_timeout_is_delivery_failure(self):
        sink = NotificationSink(SlowChannel(), timeout_seconds=0.05)
        with pytest.raises(DeliveryError, match="timed out"):
            await sink.send(submission())

    @pytest.mark.asyncio
    async def test_unexpected_channel_error_is_delivery_failure(self):
        sink = NotificationSink(BrokenChannel())
        with pytest.raises(DeliveryError, match="RuntimeError"):
            await sink.send(submission())

    @pytest.mark.asyncio
    async def test_calls_channel_exactly_once(self):
        channel = MagicMock(spec=NotificationChannel)
        channel.name = "mock"

        async def send(sub):
            return NotificationResult(delivered=True, external_id="x")

        channel.send.side_effect = send
        result = await NotificationSink(channel).send(submission())

        assert result.external_id == "x"
        channel.send.assert_called_once()


def test_http_channel_subclass_must_define_payload_and_id():
    from email_helper import _HttpChannel

    class HalfChannel(_HttpChannel):
        name = "half"

        def build_payload(self, submission):
            return {}

    with pytest.raises(TypeError):
        HalfChannel("key", "owner@example.com", "site@example.com")
