"""Server-side sessions: keyed store plus the Flask adapter."""

from __future__ import annotations

from .interface import ServerSideSession, StoreBackedSessionInterface
from .store import MemorySessionStore, SessionStore


def init_sessions(app, store: SessionStore | None = None) -> SessionStore:
    """Install a store-backed session interface on the app."""
    ttl = int(app.config.get("SESSION_TTL_SECONDS", 60 * 60 * 24 * 7))
    if store is None:
        store = MemorySessionStore(
            default_ttl=ttl,
            maxsize=int(app.config.get("SESSION_STORE_MAXSIZE", 100_000)),
        )
    app.session_interface = StoreBackedSessionInterface(store, ttl)
    app.extensions["session_store"] = store
    return store


__all__ = [
    "SessionStore",
    "MemorySessionStore",
    "ServerSideSession",
    "StoreBackedSessionInterface",
    "init_sessions",
]
