"""Creator dashboard endpoints."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify
from flask_login import current_user

from riseup.auth import creator_required

creators_bp = Blueprint("creators", __name__, url_prefix="/api/creators")


@creators_bp.route("/tracks", methods=["GET"])
@creator_required
def my_tracks():
    tracks = current_app.extensions["track_repository"].by_creator(current_user.id)
    return (
        jsonify(
            {
                "tracks": [track.to_dict() for track in tracks],
                "totals": {
                    "tracks": len(tracks),
                    "plays": sum(track.plays or 0 for track in tracks),
                    "likes": sum(track.likes or 0 for track in tracks),
                },
            }
        ),
        200,
    )
