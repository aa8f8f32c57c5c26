"""Public catalogue endpoints plus likes and play counts."""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from riseup.database.db_manager import _iso
from riseup.domain.library import GENRES
from riseup.interfaces.http.validation import error_response
from riseup.observability.metrics import record_like_toggle, record_play


logger = logging.getLogger(__name__)

tracks_bp = Blueprint("tracks", __name__, url_prefix="/api")


def _tracks():
    return current_app.extensions["track_repository"]


def _likes():
    return current_app.extensions["like_repository"]


def _parse_track_id(raw: str):
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


@tracks_bp.route("/tracks", methods=["GET"])
def list_tracks():
    return jsonify([track.to_dict() for track in _tracks().list_recent()]), 200


@tracks_bp.route("/tracks/search", methods=["GET"])
def search_tracks():
    q = request.args.get("q", type=str)
    genre = request.args.get("genre", type=str)
    return jsonify([track.to_dict() for track in _tracks().search(q, genre)]), 200


@tracks_bp.route("/tracks/<track_id>", methods=["GET"])
def get_track(track_id: str):
    parsed = _parse_track_id(track_id)
    if parsed is None:
        return error_response("invalid_track_id", "Invalid track ID format", 400)
    track = _tracks().get(parsed)
    if track is None:
        return error_response("track_not_found", "Track not found", 404)
    return jsonify(track.to_dict()), 200


@tracks_bp.route("/tracks/<track_id>/like", methods=["POST"])
@login_required
def toggle_like(track_id: str):
    parsed = _parse_track_id(track_id)
    if parsed is None:
        return error_response("invalid_track_id", "Invalid track ID format", 400)
    if _tracks().get(parsed) is None:
        return error_response("track_not_found", "Track not found", 404)

    liked, likes = _likes().toggle(current_user.id, parsed)
    record_like_toggle(liked)
    message = "Track liked successfully" if liked else "Track removed from liked songs"
    return jsonify({"success": True, "liked": liked, "likes": likes, "message": message}), 200


@tracks_bp.route("/tracks/<track_id>/play", methods=["POST"])
def record_track_play(track_id: str):
    parsed = _parse_track_id(track_id)
    if parsed is None:
        return error_response("invalid_track_id", "Invalid track ID format", 400)
    plays = _tracks().increment_plays(parsed)
    if plays is None:
        return error_response("track_not_found", "Track not found", 404)
    record_play()
    return jsonify({"success": True, "plays": plays}), 200


@tracks_bp.route("/liked-songs", methods=["GET"])
@login_required
def liked_songs():
    items = []
    for like, track in _likes().liked_tracks(current_user.id):
        data = track.to_dict()
        data["artist_name"] = track.display_artist
        data["liked_at"] = _iso(like.created_at)
        items.append(data)
    return jsonify(items), 200


@tracks_bp.route("/genres", methods=["GET"])
def list_genres():
    return jsonify(list(GENRES)), 200
