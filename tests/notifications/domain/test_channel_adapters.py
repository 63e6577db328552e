"""Tests for email channel adapters."""

import smtplib
from email import message_from_string
from unittest.mock import MagicMock

import pytest
from notifications.channel import get_email_channel, reset_channels, set_email_channel
from notifications.channel.fake_email import FakeEmailAdapter
from notifications.channel.smtp_email import SMTPEmailAdapter
from notifications.settings import NotificationSettings


class TestFakeEmailAdapter:
    def test_send_records_message(self):
        adapter = FakeEmailAdapter()
        result = adapter.send(to="sara@example.com", subject="Hello", body="Body")

        assert result["status"] == "sent"
        assert result["message_id"] == adapter.sent_emails[0]["message_id"]
        assert adapter.sent_emails[0]["to"] == "sara@example.com"
        assert adapter.sent_emails[0]["html_body"] is None

    def test_configured_failure(self):
        adapter = FakeEmailAdapter()
        adapter.configure(should_succeed=False, failure_reason="Mailbox full")

        result = adapter.send(to="sara@example.com", subject="Hello", body="Body")

        assert result == {"message_id": None, "status": "failed", "error": "Mailbox full"}
        assert adapter.sent_emails == []

    def test_sent_to_filters_by_recipient(self):
        adapter = FakeEmailAdapter()
        adapter.send(to="a@example.com", subject="One", body="")
        adapter.send(to="b@example.com", subject="Two", body="")

        assert [email["subject"] for email in adapter.sent_to("b@example.com")] == ["Two"]

    def test_reset(self):
        adapter = FakeEmailAdapter()
        adapter.send(to="a@example.com", subject="One", body="")
        adapter.configure(should_succeed=False)

        adapter.reset()

        assert adapter.sent_emails == []
        assert adapter.should_succeed is True


@pytest.fixture
def smtp():
    server = MagicMock()
    factory = MagicMock()
    factory.return_value.__enter__.return_value = server
    return factory, server


def _settings(**overrides):
    values = {
        "email_from": "orders@example.com",
        "smtp_host": "smtp.example.com",
        "smtp_port": 587,
        "smtp_username": "orders@example.com",
        "smtp_password": "app-password",
    }
    values.update(overrides)
    return NotificationSettings(**values)


class TestSMTPEmailAdapter:
    def test_send(self, smtp):
        factory, server = smtp
        adapter = SMTPEmailAdapter(settings=_settings(), smtp_factory=factory)

        result = adapter.send(to="sara@example.com", subject="Order Confirmation #1", body="Thanks")

        assert result["status"] == "sent"
        factory.assert_called_once_with("smtp.example.com", 587, timeout=10.0)
        server.starttls.assert_called_once_with()
        server.login.assert_called_once_with("orders@example.com", "app-password")

        from_addr, to_addrs, raw = server.sendmail.call_args.args
        assert from_addr == "orders@example.com"
        assert to_addrs == ["sara@example.com"]
        message = message_from_string(raw)
        assert message["Subject"] == "Order Confirmation #1"
        assert message["Message-ID"] == result["message_id"]

    def test_html_alternative(self, smtp):
        factory, server = smtp
        SMTPEmailAdapter(settings=_settings(), smtp_factory=factory).send(
            to="sara@example.com", subject="Hi", body="plain", html_body="<p>html</p>"
        )

        message = message_from_string(server.sendmail.call_args.args[2])
        assert [part.get_content_type() for part in message.get_payload()] == ["text/plain", "text/html"]

    def test_plain_relay(self, smtp):
        factory, server = smtp
        adapter = SMTPEmailAdapter(settings=_settings(smtp_use_tls=False, smtp_username=""), smtp_factory=factory)

        adapter.send(to="sara@example.com", subject="Hi", body="plain")

        server.starttls.assert_not_called()
        server.login.assert_not_called()
        server.sendmail.assert_called_once()

    @pytest.mark.parametrize(
        "error",
        [smtplib.SMTPAuthenticationError(535, b"bad credentials"), ConnectionRefusedError("refused")],
    )
    def test_failure_reported(self, smtp, error):
        factory, server = smtp
        server.login.side_effect = error

        result = SMTPEmailAdapter(settings=_settings(), smtp_factory=factory).send(
            to="sara@example.com", subject="Hi", body="plain"
        )

        assert result["status"] == "failed"
        assert result["message_id"] is None
        assert result["error"]


class TestEmailChannelRegistry:
    def test_defaults_to_fake(self):
        reset_channels()
        assert isinstance(get_email_channel(), FakeEmailAdapter)

    def test_smtp_from_env(self, monkeypatch):
        monkeypatch.setenv("EMAIL_ADAPTER", "smtp")
        reset_channels()
        assert isinstance(get_email_channel(), SMTPEmailAdapter)

    def test_unknown_adapter(self, monkeypatch):
        monkeypatch.setenv("EMAIL_ADAPTER", "carrier-pigeon")
        reset_channels()
        with pytest.raises(ValueError):
            get_email_channel()

    def test_override(self):
        adapter = FakeEmailAdapter()
        set_email_channel(adapter)
        assert get_email_channel() is adapter


class TestNotificationSettings:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("ADMIN_EMAIL", "ops@example.com")
        monkeypatch.setenv("SMTP_HOST", "smtp.gmail.com")
        monkeypatch.setenv("SMTP_PORT", "465")
        monkeypatch.setenv("SMTP_USERNAME", "orders@example.com")
        monkeypatch.setenv("SMTP_USE_TLS", "false")
        monkeypatch.delenv("EMAIL_FROM", raising=False)

        settings = NotificationSettings.from_env()

        assert settings.admin_email == "ops@example.com"
        assert settings.smtp_host == "smtp.gmail.com"
        assert settings.smtp_port == 465
        assert settings.email_from == "orders@example.com"
        assert settings.smtp_use_tls is False
