"""Catalogue repositories: tracks, likes and playlists."""

from .repository import (
    GENRES,
    DuplicateEntryError,
    LikeRepository,
    PlaylistRepository,
    TrackRepository,
)

__all__ = [
    "GENRES",
    "DuplicateEntryError",
    "LikeRepository",
    "PlaylistRepository",
    "TrackRepository",
]
