import email
import smtplib

import pytest

from riseup.support.mailer import MailDeliveryError, Mailer


class _FakeSMTP:
    instances = []
    fail_with = None

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls = []
        _FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, user, password):
        if _FakeSMTP.fail_with is not None:
            raise _FakeSMTP.fail_with
        self.calls.append(("login", user))

    def sendmail(self, sender, recipients, message):
        self.calls.append(("sendmail", sender, tuple(recipients), message))


@pytest.fixture
def fake_smtp(monkeypatch):
    _FakeSMTP.instances = []
    _FakeSMTP.fail_with = None
    monkeypatch.setattr(smtplib, "SMTP", _FakeSMTP)
    return _FakeSMTP


def _mailer(**kwargs):
    defaults = dict(host="smtp.test", port=2525, username="u", password="p", sender="noreply@riseup.test")
    defaults.update(kwargs)
    return Mailer(**defaults)


@pytest.mark.unit
def test_unconfigured_mailer_logs_code_instead_of_sending(fake_smtp, caplog):
    mailer = _mailer(username=None, password=None)
    with caplog.at_level("WARNING"):
        mailer.send_otp_email("a@x.com", "123456")
    assert fake_smtp.instances == []
    assert "123456" in caplog.text


@pytest.mark.unit
def test_send_otp_email_over_smtp(fake_smtp):
    _mailer().send_otp_email("a@x.com", "654321")

    server = fake_smtp.instances[0]
    assert (server.host, server.port) == ("smtp.test", 2525)
    assert server.calls[0] == "starttls"
    assert server.calls[1] == ("login", "u")
    _, sender, recipients, message = server.calls[2]
    assert sender == "noreply@riseup.test"
    assert recipients == ("a@x.com",)
    parsed = email.message_from_string(message)
    bodies = [
        part.get_payload(decode=True).decode("utf-8")
        for part in parsed.walk()
        if part.get_content_maintype() == "text"
    ]
    assert parsed["Subject"] == "Your OTP Code"
    assert all("654321" in body for body in bodies)
    assert all("10 minutes" in body for body in bodies)


@pytest.mark.unit
def test_smtp_failure_raises_delivery_error(fake_smtp):
    fake_smtp.fail_with = smtplib.SMTPAuthenticationError(535, b"bad credentials")
    with pytest.raises(MailDeliveryError):
        _mailer().send_otp_email("a@x.com", "111111")


@pytest.mark.unit
def test_from_config_derives_expiry_minutes():
    mailer = Mailer.from_config({"SMTP_USER": "u", "SMTP_PASS": "p", "OTP_TTL_SECONDS": 900})
    assert mailer.configured is True
    assert mailer.otp_ttl_minutes == 15
    assert mailer.host == "smtp.gmail.com"
