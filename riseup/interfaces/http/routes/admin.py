#!/usr/bin/env python
"""
Admin panel endpoints.

Uploaded files are relayed to the media host as they arrive; only the
returned URLs are stored on the track row.
"""

from __future__ import annotations

import logging
import time
from typing import Iterable

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from riseup.auth import admin_required
from riseup.database.db_manager import db, ensure_default_tracks
from riseup.domain.media import MediaUploadError, UploadedMedia
from riseup.interfaces.http.validation import error_response, parse_body
from riseup.models.dto import AdminTrackForm
from riseup.observability.metrics import record_upload


logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/api")

# (form field, storage folder, resource type); audio must come first
UPLOAD_SLOTS = (
    ("audio", "admin-tracks/audio", "audio"),
    ("cover", "admin-tracks/covers", "image"),
    ("video", "admin-tracks/videos", "video"),
)


def _tracks():
    return current_app.extensions["track_repository"]


def _relay():
    return current_app.extensions.get("media_relay")


def _relay_file(relay, storage, data: bytes, folder: str, resource_type: str) -> UploadedMedia:
    started = time.perf_counter()
    try:
        media = relay.upload(
            data,
            folder=folder,
            resource_type=resource_type,
            filename=storage.filename,
            content_type=storage.mimetype or None,
        )
    except MediaUploadError:
        record_upload(resource_type, False, time.perf_counter() - started)
        raise
    record_upload(resource_type, True, time.perf_counter() - started)
    return media


def _discard(relay, uploaded: Iterable[UploadedMedia]) -> None:
    for media in uploaded:
        try:
            relay.delete(media.key)
        except MediaUploadError:
            logger.warning("Could not remove orphaned object %s", media.key, exc_info=True)


@admin_bp.route("/admin/tracks", methods=["POST"])
@admin_required
def upload_track():
    form, error = parse_body(AdminTrackForm, request.form.to_dict())
    if error:
        return error

    audio = request.files.get("audio")
    if audio is None or not audio.filename:
        return error_response("invalid_data", "Audio file is required", 400, errors={"audio": "Audio file is required"})

    files = []
    empty = {}
    for field, folder, resource_type in UPLOAD_SLOTS:
        storage = request.files.get(field)
        if storage is None or not storage.filename:
            continue
        data = storage.read()
        if not data:
            empty[field] = f"{field.capitalize()} file is empty"
        files.append((field, storage, data, folder, resource_type))
    if empty:
        return error_response("invalid_data", next(iter(empty.values())), 400, errors=empty)

    relay = _relay()
    if relay is None:
        logger.error("Admin upload attempted but no media host is configured")
        return error_response("media_unavailable", "Media hosting is not configured", 500)

    uploaded = {}
    try:
        for field, storage, data, folder, resource_type in files:
            uploaded[field] = _relay_file(relay, storage, data, folder, resource_type)

        track = _tracks().create(
            title=form.title,
            artist_name=form.artist_name,
            album=form.album,
            genre=form.genre,
            duration=form.duration,
            price=form.price,
            audio_url=uploaded["audio"].url,
            cover_url=uploaded["cover"].url if "cover" in uploaded else None,
            video_url=uploaded["video"].url if "video" in uploaded else None,
            is_admin_track=True,
            plays=0,
            likes=0,
        )
    except MediaUploadError:
        logger.error("Admin track upload failed", exc_info=True)
        _discard(relay, uploaded.values())
        return error_response("upload_failed", "Failed to upload track", 500)
    except SQLAlchemyError:
        db.session.rollback()
        logger.error("Saving uploaded track failed", exc_info=True)
        _discard(relay, uploaded.values())
        return error_response("upload_failed", "Failed to upload track", 500)

    logger.info("Admin track %s uploaded with %s", track.id, ", ".join(sorted(uploaded)))
    return jsonify({"message": "Track uploaded successfully", "track": track.to_dict()}), 201


@admin_bp.route("/admin/tracks", methods=["GET"])
@admin_required
def list_admin_tracks():
    return jsonify([track.to_dict() for track in _tracks().admin_tracks()]), 200


@admin_bp.route("/admin/tracks/<int:track_id>", methods=["DELETE"])
@admin_required
def delete_admin_track(track_id: int):
    track = _tracks().get(track_id)
    if track is None:
        return error_response("track_not_found", "Track not found", 404)
    _tracks().delete(track)
    logger.info("Admin deleted track %s", track_id)
    return jsonify({"message": "Track deleted successfully"}), 200


@admin_bp.route("/admin/init-default-tracks", methods=["POST"])
@admin_required
def init_default_tracks():
    created = ensure_default_tracks()
    if not created:
        return jsonify({"message": "Default tracks already exist"}), 200
    return (
        jsonify(
            {
                "message": "Default tracks initialized successfully",
                "tracks": [track.to_dict() for track in created],
            }
        ),
        200,
    )


@admin_bp.route("/init-default", methods=["GET"])
def init_default():
    created = ensure_default_tracks()
    return jsonify({"message": "Default tracks ready", "created": len(created)}), 200
