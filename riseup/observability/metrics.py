from __future__ import annotations

from typing import Optional

from flask import Blueprint, Response
from prometheus_client import Counter, Histogram, generate_latest

metrics_blueprint = Blueprint("metrics_bp", __name__)

CONTENT_TYPE_LATEST = "text/plain; version=0.0.4; charset=utf-8"

LOGIN_ATTEMPTS = Counter(
    "riseup_login_attempts_total",
    "Login attempts by outcome.",
    ["outcome"],
)
SIGNUPS = Counter(
    "riseup_signups_total",
    "Accounts created, by user type.",
    ["user_type"],
)
OTP_SENT = Counter(
    "riseup_otp_sent_total",
    "Password reset codes issued, by delivery outcome.",
    ["outcome"],
)
LIKE_TOGGLES = Counter(
    "riseup_like_toggles_total",
    "Like toggles, by resulting state.",
    ["state"],
)
TRACK_PLAYS = Counter(
    "riseup_track_plays_total",
    "Play events reported by clients.",
)
UPLOADS = Counter(
    "riseup_media_uploads_total",
    "Media relay uploads by resource type and outcome.",
    ["resource_type", "outcome"],
)
UPLOAD_DURATION = Histogram(
    "riseup_media_upload_seconds",
    "Time spent relaying a single file to the media host.",
    buckets=(0.1, 0.25, 0.5, 1, 2, 5, 10, 30, 60, float("inf")),
)


def record_login(success: bool) -> None:
    LOGIN_ATTEMPTS.labels(outcome="success" if success else "failure").inc()


def record_signup(user_type: str) -> None:
    SIGNUPS.labels(user_type=user_type).inc()


def record_otp_sent(delivered: bool) -> None:
    OTP_SENT.labels(outcome="delivered" if delivered else "failed").inc()


def record_like_toggle(liked: bool) -> None:
    LIKE_TOGGLES.labels(state="liked" if liked else "unliked").inc()


def record_play() -> None:
    TRACK_PLAYS.inc()


def record_upload(resource_type: str, success: bool, duration_seconds: Optional[float] = None) -> None:
    UPLOADS.labels(resource_type=resource_type, outcome="success" if success else "failure").inc()
    if duration_seconds is not None:
        UPLOAD_DURATION.observe(duration_seconds)


@metrics_blueprint.route("/metrics")
def metrics_endpoint() -> Response:
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)
