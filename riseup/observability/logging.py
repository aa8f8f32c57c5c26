import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import g, has_request_context, request

try:
    from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
    from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
    from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
    from opentelemetry.sdk.resources import Resource
except Exception:  # pragma: no cover - Opentelemetry optional
    LoggerProvider = None  # type: ignore
    LoggingHandler = None  # type: ignore


def _current_user_id() -> Optional[str]:
    # Only report a user Flask-Login already loaded for this request
    user = g.get("_login_user")
    if user is not None and getattr(user, "is_authenticated", False):
        return user.get_id()
    return None


class RequestContextFilter(logging.Filter):
    """Attach request-scoped metadata to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            record.request_id = getattr(g, "request_id", None)
            record.path = request.path
            record.method = request.method
            record.remote_addr = request.headers.get("X-Forwarded-For", request.remote_addr)
            record.user_id = _current_user_id()
        else:
            record.request_id = None
            record.path = None
            record.method = None
            record.remote_addr = None
            record.user_id = None
        return True


class JsonFormatter(logging.Formatter):
    """Render log records as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
            "path": getattr(record, "path", None),
            "method": getattr(record, "method", None),
            "remote_addr": getattr(record, "remote_addr", None),
            "user_id": getattr(record, "user_id", None),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _build_otlp_handler(app) -> Optional[logging.Handler]:
    """Configure OpenTelemetry logging handler if exporter is available."""
    if LoggerProvider is None or LoggingHandler is None:
        return None

    endpoint = (
        app.config.get("OTEL_EXPORTER_OTLP_ENDPOINT")
        or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    )
    if not endpoint:
        return None

    resource = Resource.create(
        {
            "service.name": app.config.get("OTEL_SERVICE_NAME", "riseup-api"),
        }
    )
    provider = LoggerProvider(resource=resource)
    exporter = OTLPLogExporter(endpoint=endpoint)
    provider.add_log_record_processor(BatchLogRecordProcessor(exporter))
    return LoggingHandler(level=logging.INFO, logger_provider=provider)


def configure_structured_logging(app) -> None:
    """Attach structured stdout logging (+ optional OTLP export) to the root logger."""
    root = logging.getLogger()
    if root.level == logging.NOTSET or root.level > logging.INFO:
        root.setLevel(logging.INFO)

    context_filter = RequestContextFilter()
    json_formatter = JsonFormatter()

    has_json_stream = any(
        isinstance(handler, logging.StreamHandler)
        and isinstance(getattr(handler, "formatter", None), JsonFormatter)
        for handler in root.handlers
    )
    if not has_json_stream:
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(json_formatter)
        stream_handler.addFilter(context_filter)
        root.addHandler(stream_handler)

    otlp_handler = _build_otlp_handler(app)
    if otlp_handler:
        otlp_handler.setFormatter(json_formatter)
        otlp_handler.addFilter(context_filter)
        root.addHandler(otlp_handler)
