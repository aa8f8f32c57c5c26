from .controller import (
    DEFAULT_VOLUME,
    PlayableTrack,
    PlaybackController,
    PlaybackState,
    PlayerStatus,
)
from .media import MEDIA_EVENTS, HeadlessMediaElement, MediaElement, PlaybackRejected

__all__ = [
    "DEFAULT_VOLUME",
    "MEDIA_EVENTS",
    "HeadlessMediaElement",
    "MediaElement",
    "PlayableTrack",
    "PlaybackController",
    "PlaybackRejected",
    "PlaybackState",
    "PlayerStatus",
]
