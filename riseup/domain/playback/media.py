"""Audio rendering primitive driven by the playback controller."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

MEDIA_EVENTS = ("loadedmetadata", "timeupdate", "ended")


class PlaybackRejected(RuntimeError):
    """play() was refused, e.g. no source or an autoplay policy."""


class MediaElement:
    """
    Minimal media element contract: ``src``, ``current_time``, ``volume``,
    ``duration``, ``load()``, ``play()``, ``pause()`` and the
    ``loadedmetadata`` / ``timeupdate`` / ``ended`` events.
    """

    def __init__(self) -> None:
        self.src: str = ""
        self.current_time: float = 0.0
        self.volume: float = 1.0
        self.duration: float = 0.0
        self.paused: bool = True
        self._listeners: Dict[str, List[Callable[[], None]]] = defaultdict(list)

    def add_event_listener(self, event: str, handler: Callable[[], None]) -> None:
        if event not in MEDIA_EVENTS:
            raise ValueError(f"Unknown media event: {event}")
        if handler not in self._listeners[event]:
            self._listeners[event].append(handler)

    def remove_event_listener(self, event: str, handler: Callable[[], None]) -> None:
        if handler in self._listeners.get(event, []):
            self._listeners[event].remove(handler)

    def dispatch(self, event: str) -> None:
        for handler in list(self._listeners.get(event, [])):
            handler()

    def load(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def play(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def pause(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class HeadlessMediaElement(MediaElement):
    """In-process element with a simulated clock; no audio output."""

    def __init__(
        self,
        *,
        durations: Optional[Mapping[str, float]] = None,
        autoplay_allowed: bool = True,
    ) -> None:
        super().__init__()
        self.durations = dict(durations or {})
        self.autoplay_allowed = autoplay_allowed
        self.load_count = 0

    def load(self) -> None:
        self.load_count += 1
        self.paused = True
        self.current_time = 0.0
        self.duration = 0.0
        if not self.src:
            return
        known = self.durations.get(self.src)
        if known is not None:
            self.duration = float(known)
            self.dispatch("loadedmetadata")

    def play(self) -> None:
        if not self.src:
            raise PlaybackRejected("No media source loaded")
        if not self.autoplay_allowed:
            raise PlaybackRejected("Playback blocked by autoplay policy")
        if self.duration and self.current_time >= self.duration:
            # Replaying a finished source starts over
            self.current_time = 0.0
        self.paused = False

    def pause(self) -> None:
        self.paused = True

    def advance(self, seconds: float) -> None:
        """Move the clock forward while playing, firing timeupdate/ended."""
        if self.paused or not self.src:
            return
        self.current_time += seconds
        if self.duration and self.current_time >= self.duration:
            self.current_time = self.duration
            self.dispatch("timeupdate")
            self.paused = True
            self.dispatch("ended")
            return
        self.dispatch("timeupdate")


__all__ = ["MediaElement", "HeadlessMediaElement", "PlaybackRejected", "MEDIA_EVENTS"]
