from __future__ import annotations

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from riseup.database.db_manager import db

health_bp = Blueprint("health_bp", __name__)


@health_bp.route("/healthz")
def healthz():
    status = 200
    checks = {}

    try:
        db.session.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except SQLAlchemyError as exc:
        current_app.logger.error("Health check database probe failed", exc_info=True)
        db.session.rollback()
        status = 503
        checks["database"] = f"error: {exc.__class__.__name__}"

    checks["media_relay"] = "ok" if current_app.extensions.get("media_relay") else "unavailable"

    mailer = current_app.extensions.get("mailer")
    checks["mailer"] = "ok" if mailer is not None and mailer.configured else "dev_mode"

    overall = "ok" if status == 200 else "degraded"
    return jsonify({"status": overall, "checks": checks}), status
