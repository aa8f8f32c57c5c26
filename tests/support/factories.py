"""Factory Boy factories for database models used in tests."""

import factory
from factory.alchemy import SQLAlchemyModelFactory
from werkzeug.security import generate_password_hash

from riseup.database.db_manager import Like, Playlist, PlaylistTrack, Track, User, db

DEFAULT_PASSWORD = "secret1"
# Hash once; werkzeug's default work factor makes per-row hashing slow
_DEFAULT_PASSWORD_HASH = generate_password_hash(DEFAULT_PASSWORD)


class _BaseFactory(SQLAlchemyModelFactory):
    class Meta:
        abstract = True
        sqlalchemy_session = None
        sqlalchemy_session_persistence = "flush"


class UserFactory(_BaseFactory):
    class Meta:
        model = User

    email = factory.Sequence(lambda n: f"listener{n}@riseup.test")
    username = factory.Sequence(lambda n: f"listener{n}")
    password_hash = _DEFAULT_PASSWORD_HASH
    user_type = "fan"
    first_name = "Test"
    last_name = factory.Sequence(lambda n: f"Listener{n}")


class CreatorFactory(UserFactory):
    email = factory.Sequence(lambda n: f"creator{n}@riseup.test")
    username = factory.Sequence(lambda n: f"creator{n}")
    user_type = "creator"


class TrackFactory(_BaseFactory):
    class Meta:
        model = Track

    title = factory.Sequence(lambda n: f"Track {n}")
    artist_name = "Test Artist"
    album = "Test Album"
    genre = "Pop"
    audio_url = factory.Sequence(lambda n: f"https://media.test/audio/{n}.mp3")
    cover_url = factory.Sequence(lambda n: f"https://media.test/covers/{n}.jpg")
    duration = 180
    plays = 0
    likes = 0
    is_admin_track = False


class LikeFactory(_BaseFactory):
    class Meta:
        model = Like

    user = factory.SubFactory(UserFactory)
    track = factory.SubFactory(TrackFactory)


class PlaylistFactory(_BaseFactory):
    class Meta:
        model = Playlist

    owner = factory.SubFactory(UserFactory)
    name = factory.Sequence(lambda n: f"Playlist {n}")
    description = None
    is_public = False


class PlaylistTrackFactory(_BaseFactory):
    class Meta:
        model = PlaylistTrack

    playlist = factory.SubFactory(PlaylistFactory)
    track = factory.SubFactory(TrackFactory)
    position = 0


_FACTORIES = [
    UserFactory,
    CreatorFactory,
    TrackFactory,
    LikeFactory,
    PlaylistFactory,
    PlaylistTrackFactory,
]


def set_session(session):
    for factory_cls in _FACTORIES:
        factory_cls._meta.sqlalchemy_session = session


def reset_session():
    for factory_cls in _FACTORIES:
        factory_cls._meta.sqlalchemy_session = None


def persist(app, factory_cls, **kwargs):
    """Create and commit one row in its own app context; returns its id."""
    with app.app_context():
        set_session(db.session)
        try:
            obj = factory_cls(**kwargs)
            db.session.commit()
            return obj.id
        finally:
            reset_session()
            db.session.remove()


def email_of(app, user_id):
    with app.app_context():
        try:
            return db.session.get(User, user_id).email
        finally:
            db.session.remove()


__all__ = [
    "DEFAULT_PASSWORD",
    "UserFactory",
    "CreatorFactory",
    "TrackFactory",
    "LikeFactory",
    "PlaylistFactory",
    "PlaylistTrackFactory",
    "set_session",
    "reset_session",
    "persist",
    "email_of",
]
