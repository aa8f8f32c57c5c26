"""Route blueprints exposed via Flask."""

from .auth import auth_bp
from .tracks import tracks_bp
from .playlists import playlist_bp
from .admin import admin_bp
from .creators import creators_bp
from .health import health_bp

__all__ = [
    "auth_bp",
    "tracks_bp",
    "playlist_bp",
    "admin_bp",
    "creators_bp",
    "health_bp",
]
