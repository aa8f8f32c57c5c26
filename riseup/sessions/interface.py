"""Flask session interface that keeps session bodies in a SessionStore."""

from __future__ import annotations

import secrets
from typing import Any, Dict, Optional

from flask import Flask, Request, Response
from flask.sessions import SessionInterface, SessionMixin
from werkzeug.datastructures import CallbackDict

from riseup.sessions.store import SessionStore


class ServerSideSession(CallbackDict, SessionMixin):
    """Session dict tracking modification; only ``sid`` travels in the cookie."""

    def __init__(
        self,
        initial: Optional[Dict[str, Any]] = None,
        sid: Optional[str] = None,
        new: bool = False,
    ) -> None:
        def on_update(self) -> None:
            self.modified = True
            self.accessed = True

        super().__init__(initial, on_update)
        self.sid = sid
        self.new = new
        self.modified = False
        self.accessed = False


class StoreBackedSessionInterface(SessionInterface):
    session_class = ServerSideSession

    def __init__(self, store: SessionStore, ttl_seconds: int) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def _generate_sid() -> str:
        return secrets.token_urlsafe(32)

    def open_session(self, app: Flask, request: Request) -> ServerSideSession:
        sid = request.cookies.get(self.get_cookie_name(app))
        if sid:
            data = self.store.get(sid)
            if data is not None:
                return self.session_class(data, sid=sid)
        return self.session_class(sid=self._generate_sid(), new=True)

    def save_session(self, app: Flask, session: ServerSideSession, response: Response) -> None:  # type: ignore[override]
        name = self.get_cookie_name(app)
        domain = self.get_cookie_domain(app)
        path = self.get_cookie_path(app)

        if session.accessed:
            response.vary.add("Cookie")

        if not session:
            if session.modified and not session.new:
                self.store.destroy(session.sid)
                response.delete_cookie(name, domain=domain, path=path)
            return

        if not session.modified:
            return

        self.store.set(session.sid, dict(session), self.ttl_seconds)
        response.set_cookie(
            name,
            session.sid,
            max_age=self.ttl_seconds,
            domain=domain,
            path=path,
            httponly=self.get_cookie_httponly(app),
            secure=self.get_cookie_secure(app),
            samesite=self.get_cookie_samesite(app),
        )


__all__ = ["ServerSideSession", "StoreBackedSessionInterface"]
