"""
Outbound email — password reset links and temporary passwords.

When ``EMAIL_SERVICE_ENABLED`` is false the mailer only logs the
recipient and subject, never the body, since bodies carry reset links
and temporary passwords.
"""

import logging
import smtplib
from email.message import EmailMessage
from typing import Any, Mapping

from healthadmin.errors import EmailDeliveryError

logger = logging.getLogger(__name__)


class Mailer:
    """
    SMTP mailer built from application config.

    Args:
        enabled:    Send mail when True; log only otherwise.
        host/port:  SMTP server.
        username:   SMTP login (blank for unauthenticated relays).
        password:   SMTP password.
        use_tls:    Issue STARTTLS after connecting.
        from_email: Envelope and header sender.
        client_url: Base URL of the web client, used for reset links.
        app_name:   Product name used in subjects.
    """

    def __init__(
        self,
        enabled: bool = False,
        host: str = "localhost",
        port: int = 587,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        from_email: str = "no-reply@localhost",
        client_url: str = "http://localhost:3000",
        app_name: str = "Health Admin",
        timeout: int = 10,
    ):
        self.enabled = enabled
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.from_email = from_email
        self.client_url = client_url.rstrip("/")
        self.app_name = app_name
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "Mailer":
        return cls(
            enabled=bool(config.get("EMAIL_SERVICE_ENABLED")),
            host=config.get("SMTP_HOST", "localhost"),
            port=int(config.get("SMTP_PORT", 587)),
            username=config.get("SMTP_USER", ""),
            password=config.get("SMTP_PASS", ""),
            use_tls=bool(config.get("SMTP_USE_TLS", True)),
            from_email=config.get("SMTP_FROM_EMAIL", "no-reply@localhost"),
            client_url=config.get("CLIENT_URL", "http://localhost:3000"),
            app_name=config.get("APP_NAME", "Health Admin"),
        )

    # -- Transport ---------------------------------------------------------

    def send(self, to: str, subject: str, text: str) -> None:
        """
        Send a plain-text message.

        Raises:
            EmailDeliveryError: The SMTP exchange failed.
        """
        if not self.enabled:
            logger.info("Email disabled; not sending '%s' to %s", subject, to)
            return

        message = EmailMessage()
        message["From"] = self.from_email
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send '%s' to %s: %s", subject, to, exc)
            raise EmailDeliveryError() from exc

        logger.info("Sent '%s' to %s", subject, to)

    # -- Messages ----------------------------------------------------------

    def send_password_reset(self, to: str, token: str, expires_minutes: int) -> None:
        link = f"{self.client_url}/reset-password?token={token}"
        self.send(
            to,
            f"{self.app_name} password reset",
            "A password reset was requested for your account.\n\n"
            f"Open this link within {expires_minutes} minutes to choose a new "
            f"password:\n{link}\n\n"
            "If you did not request this, you can ignore this email.\n",
        )

    def send_organization_approved(
        self, to: str, organization_name: str, temporary_password: str
    ) -> None:
        self.send(
            to,
            f"{organization_name} is approved on {self.app_name}",
            f"Your organization {organization_name} has been approved.\n\n"
            f"An administrator account was created for {to}.\n"
            f"Temporary password: {temporary_password}\n\n"
            f"Sign in at {self.client_url}/login and change it right away.\n",
        )

    def send_staff_welcome(
        self, to: str, organization_name: str, temporary_password: str
    ) -> None:
        self.send(
            to,
            f"Your {self.app_name} account",
            f"An account was created for you by {organization_name}.\n\n"
            f"Temporary password: {temporary_password}\n\n"
            f"Sign in at {self.client_url}/login and change it right away.\n",
        )
