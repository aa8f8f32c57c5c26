#!/usr/bin/env python
"""
One-time passcodes for password reset.

The challenge lives in the caller's server-side session, so a code is only
honoured from the browser session that requested it. Verifying a code does
not consume it; a successful password reset does.
"""

from __future__ import annotations

import hmac
import logging
import secrets
import time
from typing import Callable, MutableMapping

from riseup.database.db_manager import User, db
from riseup.support.mailer import Mailer


logger = logging.getLogger(__name__)

OTP_EMAIL_KEY = "otp_email"
OTP_CODE_KEY = "otp"
OTP_ISSUED_KEY = "otp_issued_at"


class OtpError(ValueError):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class UnknownAccountError(LookupError):
    pass


def generate_code() -> str:
    """Six digit numeric code in [100000, 999999]."""
    return str(100000 + secrets.randbelow(900000))


class OtpService:
    def __init__(
        self,
        mailer: Mailer,
        *,
        ttl_seconds: int = 600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.mailer = mailer
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def send(self, session: MutableMapping, email: str) -> str:
        code = generate_code()
        session[OTP_EMAIL_KEY] = email
        session[OTP_CODE_KEY] = code
        session[OTP_ISSUED_KEY] = self._clock()
        # MailDeliveryError propagates to the route
        self.mailer.send_otp_email(email, code)
        return code

    def verify(self, session: MutableMapping, email: str, otp: str) -> None:
        if not session.get(OTP_CODE_KEY) or session.get(OTP_EMAIL_KEY) != email:
            raise OtpError("otp_not_requested", "OTP not requested for this email")
        issued_at = float(session.get(OTP_ISSUED_KEY) or 0)
        if self.ttl_seconds > 0 and self._clock() - issued_at > self.ttl_seconds:
            raise OtpError("otp_expired", "OTP has expired")
        if not hmac.compare_digest(str(session.get(OTP_CODE_KEY)), str(otp)):
            raise OtpError("invalid_otp", "Invalid OTP")

    def reset_password(self, session: MutableMapping, email: str, otp: str, new_password: str) -> User:
        self.verify(session, email, otp)

        user = User.query.filter_by(email=email).first()
        if user is None:
            raise UnknownAccountError(email)

        user.set_password(new_password)
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        self.clear(session)
        logger.info("Password reset for user %s", user.id)
        return user

    @staticmethod
    def clear(session: MutableMapping) -> None:
        for key in (OTP_EMAIL_KEY, OTP_CODE_KEY, OTP_ISSUED_KEY):
            session.pop(key, None)


__all__ = ["OtpService", "OtpError", "UnknownAccountError", "generate_code"]
