"""
Outbound email.

Two senders share one interface, ``send(template, recipient, subject, data)``:

* :class:`SmtpEmailSender` renders a Jinja2 template and delivers it over
  SMTP with STARTTLS.
* :class:`ConsoleEmailSender` renders the same template but only logs it.
  Used when ``DEV_MODE`` is on.

Both raise :class:`EmailDispatchError` on failure; nothing is swallowed.
"""

import smtplib
from datetime import date
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Any, Protocol

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from rasta.core.config import Settings
from rasta.core.errors import EmailDispatchError
from rasta.core.logger import logger

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

VERIFY_EMAIL_TEMPLATE = "welcome_and_verify.html"
RESET_PASSWORD_TEMPLATE = "reset_password.html"

SMTP_TIMEOUT_SECONDS = 15

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)


class EmailSender(Protocol):
    def send(self, template: str, recipient: str, subject: str, data: dict[str, Any]) -> None:
        ...


def render(template: str, data: dict[str, Any]) -> str:
    try:
        return _env.get_template(template).render(**data)
    except TemplateError as exc:
        logger.error("Failed to render email template %s: %s", template, exc)
        raise EmailDispatchError() from exc


def base_template_data(settings: Settings) -> dict[str, Any]:
    """Fields every template footer expects."""
    return {
        "help_center_email": settings.help_center_email,
        "help_center_address": settings.help_center_address,
        "issuer_name": settings.jwt_issuer,
        "date_now": date.today(),
    }


class SmtpEmailSender:
    def __init__(self, settings: Settings):
        self._host = settings.email_host
        self._port = settings.email_port
        self._username = settings.email_username
        self._password = settings.email_password
        self._issuer = settings.jwt_issuer

    def send(self, template: str, recipient: str, subject: str, data: dict[str, Any]) -> None:
        html = render(template, data)

        msg = MIMEMultipart()
        msg["From"] = self._username
        msg["To"] = recipient
        msg["Subject"] = f"{self._issuer} - {subject}"
        msg.attach(MIMEText(html, "html"))

        try:
            with smtplib.SMTP(self._host, self._port, timeout=SMTP_TIMEOUT_SECONDS) as server:
                server.starttls()
                if self._username:
                    server.login(self._username, self._password)
                server.sendmail(self._username, [recipient], msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send '%s' to %s: %s", subject, recipient, exc)
            raise EmailDispatchError() from exc

        logger.info("Sent '%s' to %s", subject, recipient)


class ConsoleEmailSender:
    """Development sender: renders the template, logs the one-time code."""

    def __init__(self, settings: Settings):
        self._issuer = settings.jwt_issuer

    def send(self, template: str, recipient: str, subject: str, data: dict[str, Any]) -> None:
        render(template, data)
        logger.info(
            "[EMAIL] to=%s subject='%s - %s' otp=%s",
            recipient,
            self._issuer,
            subject,
            data.get("otp"),
        )


def build_email_sender(settings: Settings) -> EmailSender:
    if settings.dev_mode:
        return ConsoleEmailSender(settings)
    return SmtpEmailSender(settings)
