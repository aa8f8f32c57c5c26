#!/usr/bin/env python
"""
Playback state container.

Owns the listening session of one client: the current track, the queue,
play/pause status, position and volume. It drives a single MediaElement
and publishes an immutable PlaybackState snapshot to every subscriber
after each change.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .media import MediaElement, PlaybackRejected


logger = logging.getLogger(__name__)

DEFAULT_VOLUME = 0.7


class PlayerStatus(str, Enum):
    IDLE = "idle"
    PAUSED = "paused"
    PLAYING = "playing"


@dataclass(frozen=True)
class PlayableTrack:
    id: str
    title: str
    audio_url: str
    artist_name: Optional[str] = None
    cover_url: Optional[str] = None
    duration: Optional[float] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "PlayableTrack":
        """Build from a track payload as served by /api/tracks."""
        track_id = payload.get("id", payload.get("_id"))
        if track_id is None:
            raise ValueError("track payload has no id")
        artist = payload.get("artist_name") or payload.get("artistName")
        if not artist:
            creator = payload.get("creator") or {}
            artist = creator.get("username") if isinstance(creator, Mapping) else None
        duration = payload.get("duration")
        return cls(
            id=str(track_id),
            title=payload.get("title") or "",
            audio_url=payload.get("audio_url") or payload.get("audioUrl") or "",
            artist_name=artist,
            cover_url=payload.get("cover_url") or payload.get("coverUrl"),
            duration=float(duration) if duration is not None else None,
        )


@dataclass(frozen=True)
class PlaybackState:
    current_track: Optional[PlayableTrack]
    is_playing: bool
    current_time: float
    duration: float
    volume: float
    queue: Tuple[PlayableTrack, ...]
    current_index: int

    @property
    def status(self) -> PlayerStatus:
        if self.current_track is None:
            return PlayerStatus.IDLE
        return PlayerStatus.PLAYING if self.is_playing else PlayerStatus.PAUSED


Subscriber = Callable[[PlaybackState], None]


class PlaybackController:
    def __init__(self, media: MediaElement, *, volume: float = DEFAULT_VOLUME) -> None:
        self._media = media
        self._lock = threading.RLock()
        self._subscribers: Dict[int, Subscriber] = {}
        self._next_token = 0
        self._operation_depth = 0

        self._current_track: Optional[PlayableTrack] = None
        self._is_playing = False
        self._current_time = 0.0
        self._duration = 0.0
        self._volume = volume
        self._queue: List[PlayableTrack] = []
        self._current_index = 0

        self._media.volume = volume
        self._media.add_event_listener("loadedmetadata", self._on_loaded_metadata)
        self._media.add_event_listener("timeupdate", self._on_time_update)
        self._media.add_event_listener("ended", self._on_ended)

    # -- observation -------------------------------------------------------

    def snapshot(self) -> PlaybackState:
        with self._lock:
            return PlaybackState(
                current_track=self._current_track,
                is_playing=self._is_playing,
                current_time=self._current_time,
                duration=self._duration,
                volume=self._volume,
                queue=tuple(self._queue),
                current_index=self._current_index,
            )

    @property
    def status(self) -> PlayerStatus:
        return self.snapshot().status

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a state observer; returns a callable that removes it."""
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._subscribers[token] = callback

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(token, None)

        return unsubscribe

    def _publish(self) -> None:
        state = self.snapshot()
        with self._lock:
            subscribers = list(self._subscribers.values())
        for callback in subscribers:
            try:
                callback(state)
            except Exception:
                logger.exception("Playback subscriber %r failed", callback)

    # -- operations --------------------------------------------------------

    def play_track(self, track: PlayableTrack) -> None:
        with self._operation():
            index = self._index_of(track.id)
            if index is None:
                self._queue.append(track)
                index = len(self._queue) - 1
            self._current_index = index
            self._load(track)
            self._start()
        self._publish()

    def toggle_play_pause(self) -> None:
        with self._operation():
            if self._is_playing:
                self._media.pause()
                self._is_playing = False
            else:
                self._start()
        self._publish()

    def seek(self, time: float) -> None:
        with self._lock:
            self._media.current_time = time
            self._current_time = time
        self._publish()

    def set_volume(self, volume: float) -> None:
        with self._lock:
            self._media.volume = volume
            self._volume = volume
        self._publish()

    def stop_track(self) -> None:
        with self._lock:
            self._media.pause()
            self._media.src = ""
            self._current_track = None
            self._is_playing = False
            self._current_time = 0.0
        self._publish()

    def skip_next(self) -> None:
        with self._operation():
            if not self._queue or self._current_index >= len(self._queue) - 1:
                return
            self._current_index += 1
            self._load(self._queue[self._current_index])
            self._start()
        self._publish()

    def skip_previous(self) -> None:
        with self._operation():
            if not self._queue or self._current_index <= 0:
                return
            self._current_index -= 1
            self._load(self._queue[self._current_index])
            self._start()
        self._publish()

    def add_to_queue(self, track: PlayableTrack) -> None:
        with self._lock:
            self._queue.append(track)
        self._publish()

    def set_queue(self, tracks: Iterable[PlayableTrack]) -> None:
        # Index is reset even while a track outside the new queue is playing
        with self._lock:
            self._queue = list(tracks)
            self._current_index = 0
        self._publish()

    # -- media plumbing ----------------------------------------------------

    @contextmanager
    def _operation(self):
        # Media events fired from inside an operation fold into its single publish
        with self._lock:
            self._operation_depth += 1
            try:
                yield
            finally:
                self._operation_depth -= 1

    def _publish_event(self) -> None:
        if not self._operation_depth:
            self._publish()

    def _index_of(self, track_id: str) -> Optional[int]:
        for index, queued in enumerate(self._queue):
            if queued.id == track_id:
                return index
        return None

    def _load(self, track: PlayableTrack) -> None:
        self._current_track = track
        self._current_time = 0.0
        self._media.src = track.audio_url
        self._media.load()

    def _start(self) -> None:
        self._is_playing = True
        try:
            self._media.play()
        except PlaybackRejected as exc:
            logger.warning("Playback rejected: %s", exc)
            self._is_playing = False

    def _on_loaded_metadata(self) -> None:
        with self._lock:
            self._duration = float(self._media.duration or 0.0)
        self._publish_event()

    def _on_time_update(self) -> None:
        with self._lock:
            self._current_time = float(self._media.current_time)
        self._publish_event()

    def _on_ended(self) -> None:
        with self._lock:
            self._is_playing = False
            self._current_time = 0.0
        self._publish_event()


__all__ = [
    "DEFAULT_VOLUME",
    "PlayableTrack",
    "PlaybackController",
    "PlaybackState",
    "PlayerStatus",
]
