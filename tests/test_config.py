import importlib

import pytest


@pytest.fixture
def reload_config(monkeypatch):
    import config as _config

    def _reload(**env):
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        return importlib.reload(_config).Config

    yield _reload
    monkeypatch.undo()
    importlib.reload(_config)


@pytest.mark.unit
def test_defaults(reload_config, monkeypatch):
    for key in ("SESSION_TTL_SECONDS", "OTP_TTL_SECONDS", "MAX_UPLOAD_MB", "ADMIN_EMAILS", "MEDIA_BUCKET", "DATABASE_URL"):
        monkeypatch.delenv(key, raising=False)
    cfg = reload_config()

    assert cfg.SESSION_TTL_SECONDS == 7 * 24 * 60 * 60
    assert cfg.OTP_TTL_SECONDS == 600
    assert cfg.MAX_CONTENT_LENGTH == 50 * 1024 * 1024
    assert cfg.ADMIN_EMAILS == []
    assert cfg.MEDIA_BUCKET is None
    assert cfg.SESSION_COOKIE_NAME == "riseup.sid"
    assert cfg.SQLALCHEMY_DATABASE_URI.startswith("sqlite:///")
    assert cfg.OTEL_SERVICE_NAME == "riseup-api"


@pytest.mark.unit
def test_env_overrides(reload_config):
    cfg = reload_config(
        ADMIN_EMAILS="Boss@RiseUp.test, ops@riseup.test",
        OTP_TTL_SECONDS="120",
        SESSION_COOKIE_SECURE="yes",
        MAX_UPLOAD_MB="5",
        RATE_LIMIT_REQUESTS="not-a-number",
        SESSION_SECRET="from-session-secret",
    )

    assert cfg.ADMIN_EMAILS == ["boss@riseup.test", "ops@riseup.test"]
    assert cfg.OTP_TTL_SECONDS == 120
    assert cfg.SESSION_COOKIE_SECURE is True
    assert cfg.MAX_CONTENT_LENGTH == 5 * 1024 * 1024
    assert cfg.RATE_LIMIT_REQUESTS == 120


@pytest.mark.unit
@pytest.mark.parametrize(
    "value,expected",
    [("1", True), ("true", True), ("ON", True), ("0", False), ("off", False), ("", False)],
)
def test_get_bool(monkeypatch, value, expected):
    import config as _config

    monkeypatch.setenv("RISEUP_FLAG", value)
    assert _config._get_bool("RISEUP_FLAG") is expected
