"""Tests for template rendering and the two email senders."""

import logging
import smtplib
from unittest.mock import MagicMock, patch

import pytest

from rasta.core.email import (
    RESET_PASSWORD_TEMPLATE,
    VERIFY_EMAIL_TEMPLATE,
    ConsoleEmailSender,
    SmtpEmailSender,
    base_template_data,
    build_email_sender,
    render,
)
from rasta.core.errors import EmailDispatchError


@pytest.fixture
def data(settings):
    return {
        **base_template_data(settings),
        "otp": "AB12CD34",
        "first_name": "<Jane>",
        "username": "jane",
        "expires_in_minutes": 10,
    }


class TestRender:
    @pytest.mark.parametrize("template", [VERIFY_EMAIL_TEMPLATE, RESET_PASSWORD_TEMPLATE])
    def test_templates_carry_the_code(self, template, data) -> None:
        html = render(template, data)
        assert "AB12CD34" in html
        assert "RastaTest" in html

    def test_autoescape(self, data) -> None:
        assert "&lt;Jane&gt;" in render(VERIFY_EMAIL_TEMPLATE, data)

    def test_unknown_template(self, data) -> None:
        with pytest.raises(EmailDispatchError):
            render("missing.html", data)


class TestSenders:
    def test_dev_mode_uses_console(self, settings) -> None:
        assert isinstance(build_email_sender(settings.model_copy(update={"dev_mode": True})), ConsoleEmailSender)
        assert isinstance(build_email_sender(settings), SmtpEmailSender)

    def test_console_logs_code(self, settings, data, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="rasta"):
            ConsoleEmailSender(settings).send(VERIFY_EMAIL_TEMPLATE, "jane@example.com", "Verify", data)
        assert "AB12CD34" in caplog.text

    def test_smtp_send(self, settings, data) -> None:
        server = MagicMock()
        with patch("rasta.core.email.smtplib.SMTP") as smtp:
            smtp.return_value.__enter__.return_value = server
            SmtpEmailSender(settings).send(VERIFY_EMAIL_TEMPLATE, "jane@example.com", "Verify", data)

        server.starttls.assert_called_once()
        sender, recipients, message = server.sendmail.call_args[0]
        assert recipients == ["jane@example.com"]
        assert "Subject: RastaTest - Verify" in message

    def test_smtp_failure_raises(self, settings, data) -> None:
        with patch("rasta.core.email.smtplib.SMTP", side_effect=smtplib.SMTPConnectError(421, "down")):
            with pytest.raises(EmailDispatchError):
                SmtpEmailSender(settings).send(VERIFY_EMAIL_TEMPLATE, "jane@example.com", "Verify", data)
