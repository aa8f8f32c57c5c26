"""SMTP delivery for password-reset codes."""

from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate
from typing import Optional

logger = logging.getLogger(__name__)


class MailDeliveryError(RuntimeError):
    """Raised when the SMTP relay refuses or drops a message."""


class Mailer:
    def __init__(
        self,
        *,
        host: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        sender: str = "no-reply@riseupcreators.local",
        otp_ttl_minutes: int = 10,
        timeout: float = 15.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.sender = sender
        self.otp_ttl_minutes = otp_ttl_minutes
        self.timeout = timeout

    @classmethod
    def from_config(cls, config) -> "Mailer":
        return cls(
            host=config.get("SMTP_HOST") or "smtp.gmail.com",
            port=int(config.get("SMTP_PORT") or 587),
            username=config.get("SMTP_USER"),
            password=config.get("SMTP_PASS"),
            use_tls=bool(config.get("SMTP_USE_TLS", True)),
            sender=config.get("MAIL_FROM") or "no-reply@riseupcreators.local",
            otp_ttl_minutes=max(1, int(config.get("OTP_TTL_SECONDS") or 600) // 60),
        )

    @property
    def configured(self) -> bool:
        return bool(self.username and self.password)

    def _build_otp_message(self, to: str, otp: str) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["Subject"] = "Your OTP Code"
        message["From"] = self.sender
        message["To"] = to
        message["Date"] = formatdate(localtime=True)
        expiry = f"It will expire in {self.otp_ttl_minutes} minutes."
        message.attach(MIMEText(f"Your OTP is: {otp}. {expiry}", "plain", "utf-8"))
        message.attach(MIMEText(f"<p>Your OTP is: <b>{otp}</b></p><p>{expiry}</p>", "html", "utf-8"))
        return message

    def send_otp_email(self, to: str, otp: str) -> None:
        if not self.configured:
            # Development mode: no SMTP credentials, surface the code in the log
            logger.warning("[DEV MODE] OTP for %s: %s", to, otp)
            return

        message = self._build_otp_message(to, otp)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                server.login(self.username, self.password)
                server.sendmail(self.sender, [to], message.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send OTP email to %s: %s", to, exc, exc_info=True)
            raise MailDeliveryError("Failed to send OTP email") from exc
        logger.info("OTP email sent to %s", to)


__all__ = ["Mailer", "MailDeliveryError"]
