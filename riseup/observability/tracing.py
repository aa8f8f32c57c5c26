import os
from typing import Dict

from flask import Flask, g, request

try:
    from opentelemetry import trace
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.instrumentation.flask import FlaskInstrumentor
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor
except Exception:  # pragma: no cover - optional dependency
    FlaskInstrumentor = None  # type: ignore

# URL parameters copied onto the request span
_SPAN_VIEW_ARGS = {
    "track_id": "riseup.track_id",
    "playlist_id": "riseup.playlist_id",
}


def request_span_attributes() -> Dict[str, str]:
    """Attributes tying the current request span to a user, track or playlist."""
    attributes: Dict[str, str] = {}
    request_id = g.get("request_id")
    if request_id:
        attributes["riseup.request_id"] = request_id
    user = g.get("_login_user")
    if user is not None and getattr(user, "is_authenticated", False):
        attributes["enduser.id"] = user.get_id()
        user_type = getattr(user, "user_type", None)
        if user_type:
            attributes["riseup.user_type"] = user_type
    for arg, key in _SPAN_VIEW_ARGS.items():
        value = (request.view_args or {}).get(arg)
        if value is not None:
            attributes[key] = str(value)
    return attributes


def init_tracing(app: Flask) -> bool:
    """Instrument the app with OTLP span export; False when not configured."""
    if FlaskInstrumentor is None:  # pragma: no cover - optional dependency
        return False

    endpoint = app.config.get("OTEL_EXPORTER_OTLP_ENDPOINT") or os.getenv(
        "OTEL_EXPORTER_OTLP_ENDPOINT"
    )
    if not endpoint:
        return False

    headers = app.config.get("OTEL_EXPORTER_OTLP_HEADERS") or os.getenv(
        "OTEL_EXPORTER_OTLP_HEADERS"
    )

    resource = Resource.create(
        {
            "service.name": app.config.get("OTEL_SERVICE_NAME", "riseup-api"),
            "deployment.environment": "development" if app.config.get("DEBUG") else "production",
        }
    )

    provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(
        endpoint=endpoint,
        headers=headers,
        insecure=app.config.get("OTEL_EXPORTER_OTLP_INSECURE", True),
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    FlaskInstrumentor().instrument_app(app)

    @app.after_request
    def _annotate_span(response):
        # The user is only known once a view has touched current_user
        span = trace.get_current_span()
        if span.is_recording():
            for key, value in request_span_attributes().items():
                span.set_attribute(key, value)
        return response

    app.logger.info("Tracing enabled, exporting spans to %s", endpoint)
    return True
