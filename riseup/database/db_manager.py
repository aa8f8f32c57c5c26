# riseup/database/db_manager.py
from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash
import os  # Import os for path handling
import logging
from datetime import datetime
from sqlalchemy import ForeignKey, UniqueConstraint, CheckConstraint, func
from sqlalchemy.engine import make_url
from sqlalchemy.orm import relationship

# Initialize the SQLAlchemy object
db = SQLAlchemy()
logger = logging.getLogger(__name__)

USER_TYPES = ("fan", "creator")

DEFAULT_TRACKS = (
    {
        "title": "Ocean Breeze",
        "artist_name": "JT Wayne",
        "album": "Beat Collection",
        "genre": "Instrumental",
        "audio_url": "/attached_assets/ocean-breeze-beat-by-jtwayne-213318_1755170104000.mp3",
        "cover_url": "",
        "duration": 155,
    },
)


def _iso(value):
    return value.isoformat() if value else None


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    username = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    user_type = db.Column(db.String(16), nullable=False, default="fan")
    first_name = db.Column(db.String(120), nullable=True)
    last_name = db.Column(db.String(120), nullable=True)
    profile_picture = db.Column(db.String(500), nullable=True)
    bio = db.Column(db.Text, nullable=True)
    monthly_listeners = db.Column(db.Integer, default=0, nullable=False)
    total_earnings = db.Column(db.Numeric(12, 2), default=0, nullable=False)
    is_verified = db.Column(db.Boolean, default=False, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    tracks = relationship("Track", back_populates="creator", lazy=True)
    playlists = relationship(
        "Playlist",
        back_populates="owner",
        cascade="all, delete-orphan",
        lazy=True,
    )
    likes = relationship(
        "Like",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy=True,
    )

    __table_args__ = (
        CheckConstraint("user_type IN ('fan', 'creator')", name="ck_users_user_type"),
    )

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def get_id(self) -> str:
        return str(self.id)

    def summary(self) -> dict:
        return {"id": self.id, "username": self.username, "email": self.email}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "user_type": self.user_type,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "profile_picture": self.profile_picture,
            "bio": self.bio,
            "monthly_listeners": self.monthly_listeners,
            "total_earnings": f"{self.total_earnings or 0:.2f}",
            "is_verified": self.is_verified,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<User {self.username}>"


class Track(db.Model):
    __tablename__ = "tracks"

    id = db.Column(db.Integer, primary_key=True)
    creator_id = db.Column(db.Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    title = db.Column(db.String(200), nullable=False)
    artist_name = db.Column(db.String(255), nullable=True)  # admin tracks have no creator account
    album = db.Column(db.String(200), nullable=True)
    genre = db.Column(db.String(100), nullable=True)
    audio_url = db.Column(db.String(500), nullable=False)
    cover_url = db.Column(db.String(500), nullable=True)
    video_url = db.Column(db.String(500), nullable=True)
    duration = db.Column(db.Integer, nullable=True)  # seconds
    plays = db.Column(db.Integer, default=0, nullable=False)
    likes = db.Column(db.Integer, default=0, nullable=False)
    price = db.Column(db.String(32), nullable=True)
    is_admin_track = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    creator = relationship("User", back_populates="tracks")
    like_rows = relationship(
        "Like",
        back_populates="track",
        cascade="all, delete-orphan",
        lazy=True,
    )
    playlist_entries = relationship(
        "PlaylistTrack",
        back_populates="track",
        cascade="all, delete-orphan",
        lazy=True,
    )

    @property
    def display_artist(self) -> str:
        if self.creator is not None:
            return self.creator.username
        return self.artist_name or "Unknown Artist"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "creator_id": self.creator_id,
            "title": self.title,
            "artist_name": self.artist_name,
            "creator": {"username": self.display_artist},
            "album": self.album,
            "genre": self.genre,
            "audio_url": self.audio_url,
            "cover_url": self.cover_url,
            "video_url": self.video_url,
            "duration": self.duration,
            "plays": self.plays,
            "likes": self.likes,
            "price": self.price,
            "is_admin_track": self.is_admin_track,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Track {self.title} by {self.display_artist}>"


class Like(db.Model):
    __tablename__ = "likes"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    track_id = db.Column(db.Integer, ForeignKey("tracks.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="likes")
    track = relationship("Track", back_populates="like_rows")

    __table_args__ = (
        UniqueConstraint("user_id", "track_id", name="uq_likes_user_track"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "track_id": self.track_id,
            "created_at": _iso(self.created_at),
        }


class Playlist(db.Model):
    __tablename__ = "playlists"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=True)
    is_public = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    owner = relationship("User", back_populates="playlists")
    entries = relationship(
        "PlaylistTrack",
        back_populates="playlist",
        order_by="PlaylistTrack.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def track_ids(self) -> list:
        return [entry.track_id for entry in self.entries]

    def to_dict(self, *, include_tracks: bool = False) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description,
            "is_public": self.is_public,
            "track_ids": self.track_ids,
            "track_count": len(self.entries or []),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        if include_tracks:
            data["tracks"] = [entry.to_dict() for entry in self.entries]
        return data


class PlaylistTrack(db.Model):
    __tablename__ = "playlist_tracks"

    id = db.Column(db.Integer, primary_key=True)
    playlist_id = db.Column(
        db.Integer,
        ForeignKey("playlists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    track_id = db.Column(
        db.Integer,
        ForeignKey("tracks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)
    added_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    playlist = relationship("Playlist", back_populates="entries")
    track = relationship("Track", back_populates="playlist_entries")

    __table_args__ = (
        UniqueConstraint("playlist_id", "track_id", name="uq_playlist_track_once"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "playlist_id": self.playlist_id,
            "track_id": self.track_id,
            "position": self.position,
            "added_at": _iso(self.added_at),
            "track": self.track.to_dict() if self.track else None,
        }


def user_stats(user_id: int) -> dict:
    liked = db.session.query(func.count(Like.id)).filter(Like.user_id == user_id).scalar() or 0
    playlists = db.session.query(func.count(Playlist.id)).filter(Playlist.user_id == user_id).scalar() or 0
    return {"liked_songs_count": liked, "playlists_count": playlists}


def ensure_default_tracks() -> list:
    """Seed the built-in catalogue tracks; returns the rows that were created."""
    created = []
    for seed in DEFAULT_TRACKS:
        if Track.query.filter_by(title=seed["title"]).first() is not None:
            continue
        track = Track(is_admin_track=True, plays=0, likes=0, **seed)
        db.session.add(track)
        created.append(track)
    if created:
        db.session.commit()
        logger.info("Seeded %d default track(s)", len(created))
    return created


def initialize_database(app):
    """
    Initializes the SQLAlchemy extension with the Flask app instance
    and creates all database tables if they don't already exist.
    """
    db.init_app(app)

    # Ensure the directory for the configured SQLite file exists
    try:
        uri = app.config.get('SQLALCHEMY_DATABASE_URI')
        if uri:
            url = make_url(uri)
            # Only handle file-based SQLite (not :memory:)
            if url.get_backend_name() == 'sqlite' and url.database and url.database != ':memory:':
                db_dir = os.path.dirname(url.database)
                if db_dir and not os.path.exists(db_dir):
                    os.makedirs(db_dir, exist_ok=True)
                    logger.info("Created SQLite DB directory: %s", db_dir)
    except Exception as e:
        # Don't block app startup on path parsing issues; log and continue
        logger.warning("Could not ensure SQLite directory exists: %s", e)

    # Create database tables within the application context
    with app.app_context():
        db.create_all()
        logger.info("Database tables created or already exist.")
