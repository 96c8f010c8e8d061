"""
Tests for the SMTP mailer.  ``smtplib.SMTP`` is replaced with a mock so
no network connection is made.
"""

import logging
import smtplib
from unittest import mock

import pytest

from healthadmin.errors import EmailDeliveryError
from healthadmin.services.email_service import Mailer


def _mailer(**overrides):
    options = {
        "enabled": True,
        "host": "smtp.test",
        "port": 2525,
        "username": "mailer",
        "password": "smtp-secret",
        "from_email": "no-reply@health.test",
        "client_url": "https://app.health.test/",
    }
    options.update(overrides)
    return Mailer(**options)


class TestDisabledMailer:
    def test_logs_recipient_and_subject_but_not_body(self, caplog):
        mailer = _mailer(enabled=False)
        with mock.patch("smtplib.SMTP") as smtp, caplog.at_level(logging.INFO):
            mailer.send_staff_welcome("staff@x.com", "City Hospital", "Temp!Pass123")

        smtp.assert_not_called()
        assert "staff@x.com" in caplog.text
        assert "Temp!Pass123" not in caplog.text


class TestEnabledMailer:
    def test_sends_with_tls_and_login(self):
        mailer = _mailer()
        with mock.patch("smtplib.SMTP") as smtp:
            mailer.send("to@x.com", "Subject", "Body")

        smtp.assert_called_once_with("smtp.test", 2525, timeout=10)
        connection = smtp.return_value.__enter__.return_value
        connection.starttls.assert_called_once()
        connection.login.assert_called_once_with("mailer", "smtp-secret")
        message = connection.send_message.call_args[0][0]
        assert message["To"] == "to@x.com"
        assert message["From"] == "no-reply@health.test"

    def test_reset_link_uses_client_url(self):
        mailer = _mailer()
        with mock.patch("smtplib.SMTP") as smtp:
            mailer.send_password_reset("to@x.com", "abc123", 60)

        message = smtp.return_value.__enter__.return_value.send_message.call_args[0][0]
        assert "https://app.health.test/reset-password?token=abc123" in message.get_content()

    def test_smtp_failure_raises_delivery_error(self):
        mailer = _mailer()
        with mock.patch("smtplib.SMTP") as smtp:
            smtp.return_value.__enter__.return_value.send_message.side_effect = (
                smtplib.SMTPException("boom")
            )
            with pytest.raises(EmailDeliveryError):
                mailer.send("to@x.com", "Subject", "Body")

    def test_connection_refused_raises_delivery_error(self):
        mailer = _mailer()
        with mock.patch("smtplib.SMTP", side_effect=ConnectionRefusedError()):
            with pytest.raises(EmailDeliveryError):
                mailer.send("to@x.com", "Subject", "Body")

    def test_from_config(self, app):
        mailer = Mailer.from_config(app.config)
        assert mailer.enabled is False
        assert mailer.from_email == app.config["SMTP_FROM_EMAIL"]
