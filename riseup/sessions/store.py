#!/usr/bin/env python
"""
Keyed session storage.

Routes never touch the store directly; the Flask session interface reads
and writes whole session bodies by id. The in-memory store keeps sessions
inside one process, so a multi-instance deployment needs a shared backend
implementing the same three calls.
"""

from __future__ import annotations

import copy
import logging
import time
from typing import Any, Callable, Dict, Optional

from riseup.utils.cache import MISSING, TTLCache


logger = logging.getLogger(__name__)


class SessionStore:
    """Interface: get/set/destroy session bodies by id with a lifetime."""

    def get(self, sid: str) -> Optional[Dict[str, Any]]:  # pragma: no cover - interface
        raise NotImplementedError

    def set(self, sid: str, data: Dict[str, Any], ttl: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def destroy(self, sid: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    def __init__(
        self,
        *,
        default_ttl: int = 60 * 60 * 24 * 7,
        maxsize: int = 100_000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cache = TTLCache(maxsize=maxsize, ttl=default_ttl, clock=clock)

    def get(self, sid: str) -> Optional[Dict[str, Any]]:
        value = self._cache.get(sid, MISSING)
        if value is MISSING:
            return None
        # Callers mutate the returned dict; keep the stored copy pristine
        return copy.deepcopy(value)

    def set(self, sid: str, data: Dict[str, Any], ttl: int) -> None:
        self._cache.set(sid, copy.deepcopy(dict(data)), ttl=ttl)

    def destroy(self, sid: str) -> None:
        if self._cache.pop(sid, None) is not None:
            logger.debug("Destroyed session %s", sid[:8])

    def __len__(self) -> int:
        return len(self._cache)


__all__ = ["SessionStore", "MemorySessionStore"]
