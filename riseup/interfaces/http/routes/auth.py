#!/usr/bin/env python
"""Account, session and password-reset endpoints."""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, session
from flask_login import current_user, login_required, logout_user
from sqlalchemy.exc import IntegrityError

from riseup.auth import SESSION_USERNAME, establish_session
from riseup.auth.otp import OtpError, UnknownAccountError
from riseup.database.db_manager import User, _iso, db, user_stats
from riseup.interfaces.http.validation import error_response, parse_body
from riseup.models.dto import (
    LoginRequest,
    OtpSendRequest,
    OtpVerifyRequest,
    PasswordResetRequest,
    ProfileUpdateRequest,
    SignupRequest,
)
from riseup.observability.metrics import record_login, record_otp_sent, record_signup
from riseup.support.mailer import MailDeliveryError


logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

INVALID_CREDENTIALS = "Invalid credentials"


def _otp_service():
    return current_app.extensions["otp_service"]


def _session_user(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "user_type": user.user_type,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "profile_picture": user.profile_picture,
    }


@auth_bp.route("/signup", methods=["POST"])
def signup():
    payload, error = parse_body(SignupRequest)
    if error:
        return error

    if User.query.filter_by(email=payload.email).first() is not None:
        return error_response("email_taken", "User with this email already exists", 409)
    if User.query.filter_by(username=payload.username).first() is not None:
        return error_response("username_taken", "Username is already taken", 409)

    user = User(
        email=payload.email,
        username=payload.username,
        first_name=payload.first_name,
        last_name=payload.last_name,
        user_type=payload.user_type,
    )
    user.set_password(payload.password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race against a concurrent signup with the same identity
        db.session.rollback()
        if User.query.filter_by(email=payload.email).first() is not None:
            return error_response("email_taken", "User with this email already exists", 409)
        return error_response("username_taken", "Username is already taken", 409)

    record_signup(user.user_type)
    logger.info("Created %s account %s", user.user_type, user.id)
    return jsonify({"message": "User created successfully", "user": user.summary()}), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    payload, error = parse_body(LoginRequest)
    if error:
        return error

    user = User.query.filter_by(email=payload.email).first()
    if user is None or not user.check_password(payload.password):
        record_login(False)
        logger.info("Failed login attempt")
        return error_response("invalid_credentials", INVALID_CREDENTIALS, 401)

    if not user.is_active:
        record_login(False)
        return error_response("forbidden", "Account is disabled", 403)

    establish_session(user)
    record_login(True)
    logger.info("User %s logged in", user.id)
    return jsonify({"message": "Login successful", "user": _session_user(user)}), 200


@auth_bp.route("/logout", methods=["POST"])
def logout():
    if current_user.is_authenticated:
        logger.info("User %s logged out", current_user.id)
        logout_user()
    session.clear()
    return jsonify({"message": "Logout successful"}), 200


@auth_bp.route("/user", methods=["GET"])
def current_account():
    if not current_user.is_authenticated:
        if session.get("_user_id"):
            return error_response("not_found", "User not found", 404)
        return error_response("authentication_required", "Not authenticated", 401)

    user = current_user._get_current_object()
    data = user.to_dict()
    data.update(user_stats(user.id))
    data["member_since"] = _iso(user.created_at)
    return jsonify(data), 200


@auth_bp.route("/profile", methods=["PUT"])
@login_required
def update_profile():
    payload, error = parse_body(ProfileUpdateRequest)
    if error:
        return error

    updates = payload.model_dump(include=payload.model_fields_set)
    user = current_user._get_current_object()

    username = updates.get("username")
    if username is not None and username != user.username:
        clash = User.query.filter(User.username == username, User.id != user.id).first()
        if clash is not None:
            return error_response("username_taken", "Username is already taken", 409)

    # Fields signup requires cannot be cleared through a profile edit
    for key in ("username", "first_name", "last_name"):
        if key in updates and updates[key] is None:
            updates.pop(key)

    for key, value in updates.items():
        setattr(user, key, value)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return error_response("username_taken", "Username is already taken", 409)

    session[SESSION_USERNAME] = user.username
    return jsonify({"message": "Profile updated successfully", "user": user.to_dict()}), 200


@auth_bp.route("/send-otp", methods=["POST"])
def send_otp():
    payload, error = parse_body(OtpSendRequest)
    if error:
        return error

    try:
        _otp_service().send(session, payload.email)
    except MailDeliveryError:
        record_otp_sent(False)
        logger.error("OTP delivery failed", exc_info=True)
        return error_response("otp_delivery_failed", "Failed to send OTP", 500)

    record_otp_sent(True)
    return jsonify({"message": "OTP sent successfully"}), 200


@auth_bp.route("/verify-otp", methods=["POST"])
def verify_otp():
    payload, error = parse_body(OtpVerifyRequest)
    if error:
        return error

    try:
        _otp_service().verify(session, payload.email, payload.otp)
    except OtpError as exc:
        return error_response(exc.code, exc.message, 400)
    return jsonify({"message": "OTP verified"}), 200


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password():
    payload, error = parse_body(PasswordResetRequest)
    if error:
        return error

    try:
        _otp_service().reset_password(session, payload.email, payload.otp, payload.new_password)
    except OtpError as exc:
        return error_response(exc.code, exc.message, 400)
    except UnknownAccountError:
        return error_response("not_found", "User not found", 404)
    return jsonify({"message": "Password reset successfully"}), 200
