from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import case, or_
from sqlalchemy.exc import IntegrityError

from riseup.database.db_manager import Like, Playlist, PlaylistTrack, Track, db


logger = logging.getLogger(__name__)

GENRES = [
    "Rock", "Pop", "Hip Hop", "Electronic", "Jazz", "Classical",
    "Folk", "Country", "R&B", "Reggae", "Blues", "Instrumental", "Ambient",
]


class DuplicateEntryError(ValueError):
    """A uniqueness invariant (one like per pair, one entry per track) was hit."""


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class TrackRepository:
    def list_recent(self) -> List[Track]:
        return Track.query.order_by(Track.created_at.desc(), Track.id.desc()).all()

    def search(self, q: Optional[str] = None, genre: Optional[str] = None) -> List[Track]:
        query = Track.query
        term = (q or "").strip()
        if term:
            pattern = f"%{_escape_like(term)}%"
            query = query.filter(
                or_(
                    Track.title.ilike(pattern, escape="\\"),
                    Track.artist_name.ilike(pattern, escape="\\"),
                    Track.album.ilike(pattern, escape="\\"),
                    Track.genre.ilike(pattern, escape="\\"),
                )
            )
        genre = (genre or "").strip()
        if genre and genre.lower() != "all":
            query = query.filter(Track.genre.ilike(f"%{_escape_like(genre)}%", escape="\\"))
        return query.order_by(Track.created_at.desc(), Track.id.desc()).all()

    def get(self, track_id: int) -> Optional[Track]:
        return db.session.get(Track, track_id)

    def admin_tracks(self) -> List[Track]:
        return (
            Track.query.filter_by(is_admin_track=True)
            .order_by(Track.created_at.desc(), Track.id.desc())
            .all()
        )

    def by_creator(self, user_id: int) -> List[Track]:
        return (
            Track.query.filter_by(creator_id=user_id)
            .order_by(Track.created_at.desc(), Track.id.desc())
            .all()
        )

    def create(self, **fields) -> Track:
        track = Track(**fields)
        db.session.add(track)
        db.session.commit()
        return track

    def delete(self, track: Track) -> None:
        db.session.delete(track)
        db.session.commit()

    def increment_plays(self, track_id: int) -> Optional[int]:
        updated = (
            Track.query.filter_by(id=track_id)
            .update({Track.plays: Track.plays + 1}, synchronize_session=False)
        )
        if not updated:
            db.session.rollback()
            return None
        db.session.commit()
        return db.session.query(Track.plays).filter_by(id=track_id).scalar()


class LikeRepository:
    def is_liked(self, user_id: int, track_id: int) -> bool:
        return Like.query.filter_by(user_id=user_id, track_id=track_id).first() is not None

    def _like_count(self, track_id: int) -> int:
        return db.session.query(Track.likes).filter_by(id=track_id).scalar() or 0

    def toggle(self, user_id: int, track_id: int) -> Tuple[bool, int]:
        """Flip the like for (user, track); returns (liked, track like count)."""
        if self.is_liked(user_id, track_id):
            removed = (
                Like.query.filter_by(user_id=user_id, track_id=track_id)
                .delete(synchronize_session=False)
            )
            if removed:
                Track.query.filter_by(id=track_id).update(
                    {Track.likes: case((Track.likes > 0, Track.likes - 1), else_=0)},
                    synchronize_session=False,
                )
            db.session.commit()
            return False, self._like_count(track_id)

        db.session.add(Like(user_id=user_id, track_id=track_id))
        try:
            db.session.flush()
        except IntegrityError:
            # A concurrent request inserted the same pair first
            db.session.rollback()
            logger.info("Like race for user=%s track=%s resolved to existing row", user_id, track_id)
            return True, self._like_count(track_id)

        Track.query.filter_by(id=track_id).update(
            {Track.likes: Track.likes + 1},
            synchronize_session=False,
        )
        db.session.commit()
        return True, self._like_count(track_id)

    def liked_tracks(self, user_id: int) -> List[Tuple[Like, Track]]:
        return (
            db.session.query(Like, Track)
            .join(Track, Like.track_id == Track.id)
            .filter(Like.user_id == user_id)
            .order_by(Like.created_at.desc(), Like.id.desc())
            .all()
        )


class PlaylistRepository:
    def list_for_user(self, user_id: int, *, page: int = 1, per_page: int = 20):
        query = Playlist.query.filter_by(user_id=user_id).order_by(Playlist.updated_at.desc(), Playlist.id.desc())
        return query.paginate(page=page, per_page=per_page, error_out=False)

    def get_owned(self, playlist_id: int, user_id: int) -> Optional[Playlist]:
        return Playlist.query.filter_by(id=playlist_id, user_id=user_id).first()

    def get_visible(self, playlist_id: int, user_id: Optional[int]) -> Optional[Playlist]:
        playlist = db.session.get(Playlist, playlist_id)
        if playlist is None:
            return None
        if playlist.is_public or (user_id is not None and playlist.user_id == user_id):
            return playlist
        return None

    def create(self, user_id: int, name: str, description: Optional[str] = None, is_public: bool = False) -> Playlist:
        playlist = Playlist(user_id=user_id, name=name, description=description or None, is_public=bool(is_public))
        db.session.add(playlist)
        db.session.commit()
        return playlist

    def update(self, playlist: Playlist, fields: Dict[str, object]) -> Playlist:
        for key, value in fields.items():
            setattr(playlist, key, value)
        db.session.commit()
        return playlist

    def delete(self, playlist: Playlist) -> None:
        db.session.delete(playlist)
        db.session.commit()

    def add_track(self, playlist: Playlist, track: Track) -> PlaylistTrack:
        if track.id in playlist.track_ids:
            raise DuplicateEntryError("Track already in playlist")
        next_position = max((entry.position for entry in playlist.entries), default=-1) + 1
        entry = PlaylistTrack(playlist=playlist, track=track, position=next_position)
        db.session.add(entry)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise DuplicateEntryError("Track already in playlist") from exc
        return entry

    def remove_track(self, playlist: Playlist, track_id: int) -> bool:
        entry = next((item for item in playlist.entries if item.track_id == track_id), None)
        if entry is None:
            return False
        playlist.entries.remove(entry)
        for index, item in enumerate(playlist.entries):
            item.position = index
        db.session.commit()
        return True

    def reorder(self, playlist: Playlist, order: Iterable[int]) -> Playlist:
        order = list(order)
        entry_map = {entry.track_id: entry for entry in playlist.entries}
        missing = [track_id for track_id in order if track_id not in entry_map]
        if missing:
            raise LookupError(missing)
        if len(set(order)) != len(order):
            raise DuplicateEntryError("Order lists a track more than once")

        for position, track_id in enumerate(order):
            entry_map[track_id].position = position

        # Keep unspecified entries at the end preserving order
        unspecified = [entry for entry in playlist.entries if entry.track_id not in order]
        base = len(order)
        for offset, entry in enumerate(sorted(unspecified, key=lambda e: e.position)):
            entry.position = base + offset

        db.session.commit()
        return playlist


__all__ = [
    "GENRES",
    "DuplicateEntryError",
    "TrackRepository",
    "LikeRepository",
    "PlaylistRepository",
]
