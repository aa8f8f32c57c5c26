"""Playlist CRUD routes with ownership enforcement."""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from riseup.domain.library import DuplicateEntryError
from riseup.interfaces.http.validation import error_response, parse_body
from riseup.models.dto import (
    PlaylistCreateRequest,
    PlaylistReorderRequest,
    PlaylistTrackRequest,
    PlaylistUpdateRequest,
)


logger = logging.getLogger(__name__)

playlist_bp = Blueprint("playlist_bp", __name__, url_prefix="/api/playlists")

PLAYLIST_NOT_FOUND = "Playlist not found or you don't own it"


def _playlists():
    return current_app.extensions["playlist_repository"]


def _tracks():
    return current_app.extensions["track_repository"]


@playlist_bp.route("", methods=["GET"])
@login_required
def list_playlists():
    page = max(1, request.args.get("page", type=int) or 1)
    per_page = request.args.get("per_page", type=int) or 20
    per_page = max(1, min(per_page, 100))

    pagination = _playlists().list_for_user(current_user.id, page=page, per_page=per_page)
    return (
        jsonify(
            {
                "items": [playlist.to_dict() for playlist in pagination.items],
                "pagination": {
                    "page": pagination.page,
                    "per_page": pagination.per_page,
                    "total": pagination.total,
                    "pages": pagination.pages,
                    "has_next": pagination.has_next,
                    "has_prev": pagination.has_prev,
                },
            }
        ),
        200,
    )


@playlist_bp.route("", methods=["POST"])
@login_required
def create_playlist():
    payload, error = parse_body(PlaylistCreateRequest)
    if error:
        return error

    playlist = _playlists().create(
        current_user.id,
        payload.name,
        description=payload.description,
        is_public=payload.is_public,
    )
    logger.info("User %s created playlist %s", current_user.id, playlist.id)
    return jsonify({"playlist": playlist.to_dict(include_tracks=True)}), 201


@playlist_bp.route("/<int:playlist_id>", methods=["GET"])
def get_playlist(playlist_id: int):
    viewer = current_user.id if current_user.is_authenticated else None
    playlist = _playlists().get_visible(playlist_id, viewer)
    if playlist is None:
        return error_response("not_found", "Playlist not found", 404)
    return jsonify({"playlist": playlist.to_dict(include_tracks=True)}), 200


@playlist_bp.route("/<int:playlist_id>", methods=["PUT"])
@login_required
def update_playlist(playlist_id: int):
    playlist = _playlists().get_owned(playlist_id, current_user.id)
    if playlist is None:
        return error_response("not_found", PLAYLIST_NOT_FOUND, 404)

    payload, error = parse_body(PlaylistUpdateRequest)
    if error:
        return error

    updates = {
        key: value
        for key, value in payload.model_dump(include=payload.model_fields_set).items()
        if not (key in ("name", "is_public") and value is None)
    }
    if "description" in updates:
        updates["description"] = updates["description"] or None
    playlist = _playlists().update(playlist, updates)
    return jsonify({"playlist": playlist.to_dict(include_tracks=True)}), 200


@playlist_bp.route("/<int:playlist_id>", methods=["DELETE"])
@login_required
def delete_playlist(playlist_id: int):
    playlist = _playlists().get_owned(playlist_id, current_user.id)
    if playlist is None:
        return error_response("not_found", PLAYLIST_NOT_FOUND, 404)
    _playlists().delete(playlist)
    return jsonify({"success": True}), 200


@playlist_bp.route("/<int:playlist_id>/tracks", methods=["POST"])
@login_required
def add_track(playlist_id: int):
    payload, error = parse_body(PlaylistTrackRequest)
    if error:
        return error

    playlist = _playlists().get_owned(playlist_id, current_user.id)
    if playlist is None:
        return error_response("not_found", PLAYLIST_NOT_FOUND, 404)

    track = _tracks().get(payload.track_id)
    if track is None:
        return error_response("track_not_found", "Track not found", 404)

    try:
        _playlists().add_track(playlist, track)
    except DuplicateEntryError:
        return error_response("duplicate_track", "Track already in playlist", 409)

    return (
        jsonify(
            {
                "message": "Track added to playlist",
                "playlist": playlist.to_dict(include_tracks=True),
            }
        ),
        200,
    )


@playlist_bp.route("/<int:playlist_id>/tracks/<int:track_id>", methods=["DELETE"])
@login_required
def remove_track(playlist_id: int, track_id: int):
    playlist = _playlists().get_owned(playlist_id, current_user.id)
    if playlist is None:
        return error_response("not_found", PLAYLIST_NOT_FOUND, 404)

    if not _playlists().remove_track(playlist, track_id):
        return error_response("track_not_found", "Track not in playlist", 404)
    return jsonify({"playlist": playlist.to_dict(include_tracks=True)}), 200


@playlist_bp.route("/<int:playlist_id>/reorder", methods=["PUT"])
@login_required
def reorder_tracks(playlist_id: int):
    playlist = _playlists().get_owned(playlist_id, current_user.id)
    if playlist is None:
        return error_response("not_found", PLAYLIST_NOT_FOUND, 404)

    payload, error = parse_body(PlaylistReorderRequest)
    if error:
        return error

    try:
        playlist = _playlists().reorder(playlist, payload.order)
    except LookupError as exc:
        missing = list(exc.args[0]) if exc.args else []
        return error_response("invalid_data", "Order references tracks not in the playlist", 400, missing=missing)
    except DuplicateEntryError as exc:
        return error_response("invalid_data", str(exc), 400)

    return jsonify({"playlist": playlist.to_dict(include_tracks=True)}), 200
