#!/usr/bin/env python
"""Authentication utilities and Flask-Login integration."""

from __future__ import annotations

from functools import wraps

from flask import current_app, jsonify, session
from flask_login import LoginManager, current_user, login_user

login_manager = LoginManager()
login_manager.session_protection = "strong"
login_manager.login_message = None

SESSION_USER_TYPE = "user_type"
SESSION_EMAIL = "email"
SESSION_USERNAME = "username"


def init_auth(app):
    """Attach Flask-Login to the Flask app."""
    from riseup.database.db_manager import User, db

    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id: str) -> User | None:
        try:
            return db.session.get(User, int(user_id))
        except (TypeError, ValueError):
            return None

    @login_manager.unauthorized_handler
    def _unauthorized():
        return jsonify({"error": "authentication_required", "message": "Authentication required"}), 401

    return login_manager


def establish_session(user) -> None:
    """Log the user in and record the identity fields guards rely on."""
    login_user(user)
    session[SESSION_USER_TYPE] = user.user_type
    session[SESSION_EMAIL] = user.email or ""
    session[SESSION_USERNAME] = user.username or ""


def creator_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated or session.get(SESSION_USER_TYPE) != "creator":
            return jsonify({"error": "forbidden", "message": "Creator access required"}), 403
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        admins = {email.lower() for email in current_app.config.get("ADMIN_EMAILS") or ()}
        email = (session.get(SESSION_EMAIL) or "").lower()
        if not current_user.is_authenticated or not email or email not in admins:
            return jsonify({"error": "forbidden", "message": "Admin access required"}), 403
        return view(*args, **kwargs)

    return wrapper


__all__ = [
    "login_manager",
    "init_auth",
    "establish_session",
    "creator_required",
    "admin_required",
]
