#!/usr/bin/env python
# config.py
import os
from typing import List

# This assumes config.py is at the root of your project
basedir = os.path.abspath(os.path.dirname(__file__))


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _get_csv_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name)
    source = raw if raw is not None else default
    return [token.strip() for token in source.split(",") if token and token.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or os.environ.get('SESSION_SECRET') or 'fallback-secret-key'

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'riseup', 'database', 'instance', 'riseup.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Sessions (server-side, cookie carries only the id)
    SESSION_COOKIE_NAME = os.getenv('SESSION_COOKIE_NAME', 'riseup.sid')
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SECURE = _get_bool('SESSION_COOKIE_SECURE', False)
    SESSION_TTL_SECONDS = _get_int('SESSION_TTL_SECONDS', 60 * 60 * 24 * 7)
    SESSION_STORE_MAXSIZE = max(1, _get_int('SESSION_STORE_MAXSIZE', 100_000))

    # Password reset codes
    OTP_TTL_SECONDS = _get_int('OTP_TTL_SECONDS', 600)

    # Admin panel is gated on the session email
    ADMIN_EMAILS = [email.lower() for email in _get_csv_list('ADMIN_EMAILS', '')]

    # Uploads
    MAX_CONTENT_LENGTH = max(1, _get_int('MAX_UPLOAD_MB', 50)) * 1024 * 1024

    # Media hosting (S3-compatible)
    MEDIA_BUCKET = os.getenv('MEDIA_BUCKET')
    MEDIA_ENDPOINT_URL = os.getenv('MEDIA_ENDPOINT_URL')
    MEDIA_REGION = os.getenv('MEDIA_REGION', 'auto')
    MEDIA_ACCESS_KEY_ID = os.getenv('MEDIA_ACCESS_KEY_ID')
    MEDIA_SECRET_ACCESS_KEY = os.getenv('MEDIA_SECRET_ACCESS_KEY')
    MEDIA_PUBLIC_BASE_URL = os.getenv('MEDIA_PUBLIC_BASE_URL')

    # Mail (OTP delivery)
    SMTP_HOST = os.getenv('SMTP_HOST', 'smtp.gmail.com')
    SMTP_PORT = _get_int('SMTP_PORT', 587)
    SMTP_USER = os.getenv('SMTP_USER')
    SMTP_PASS = os.getenv('SMTP_PASS')
    SMTP_USE_TLS = _get_bool('SMTP_USE_TLS', True)
    MAIL_FROM = os.getenv('MAIL_FROM', 'no-reply@riseupcreators.local')

    # HTTP surface
    CORS_ALLOWED_ORIGINS = _get_csv_list(
        'CORS_ALLOWED_ORIGINS',
        'http://localhost:5173,http://127.0.0.1:5173,http://localhost:5000',
    )
    ENABLE_RATE_LIMITING = _get_bool('ENABLE_RATE_LIMITING', False)
    RATE_LIMIT_REQUESTS = _get_int('RATE_LIMIT_REQUESTS', 120)
    RATE_LIMIT_WINDOW_SECONDS = _get_int('RATE_LIMIT_WINDOW_SECONDS', 60)
    CONTENT_SECURITY_POLICY = os.getenv('CONTENT_SECURITY_POLICY')

    # Observability
    OTEL_EXPORTER_OTLP_ENDPOINT = os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT')
    OTEL_EXPORTER_OTLP_HEADERS = os.getenv('OTEL_EXPORTER_OTLP_HEADERS')
    OTEL_EXPORTER_OTLP_INSECURE = _get_bool('OTEL_EXPORTER_OTLP_INSECURE', True)
    OTEL_SERVICE_NAME = os.getenv('OTEL_SERVICE_NAME', 'riseup-api')

    # Runtime behavior
    # Turn Flask debug on/off from env; default off to avoid noisy console
    DEBUG = _get_bool('DEBUG', False)
    # Control console logging; when disabled, logs go only to file
    ENABLE_CONSOLE_LOGS = _get_bool('ENABLE_CONSOLE_LOGS', False)
    PORT = _get_int('PORT', 5000)
    HOST = os.getenv('HOST', '0.0.0.0')
