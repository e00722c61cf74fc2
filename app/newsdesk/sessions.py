"""
Server-side sessions.

The cookie carries only a signed, random session id. Session state lives in a
``SessionStore`` (process memory or the ``sessions`` table) and expires after a
fixed TTL: lazily on lookup, and in bulk by ``SessionPruner`` on a schedule.
"""
from __future__ import annotations

import json
import logging
import secrets
import threading
from datetime import datetime, timedelta
from typing import Any

from flask import Flask, Request, Response, current_app, session
from flask.sessions import SessionInterface, SessionMixin
from itsdangerous import BadSignature, Signer
from sqlalchemy import delete
from sqlalchemy.orm import sessionmaker
from werkzeug.datastructures import CallbackDict

from app.newsdesk.db import session_scope
from app.newsdesk.models import SessionRow
from app.newsdesk.storage import SqlStorage, Storage
from app.newsdesk.utils import utcnow

logger = logging.getLogger(__name__)


def _new_sid() -> str:
    return secrets.token_urlsafe(32)


class SessionStore:
    def get(self, sid: str) -> dict[str, Any] | None:
        raise NotImplementedError

    def set(self, sid: str, data: dict[str, Any], expires_at: datetime) -> None:
        raise NotImplementedError

    def delete(self, sid: str) -> None:
        raise NotImplementedError

    def prune(self, now: datetime | None = None) -> int:
        """Drop expired sessions; returns how many were removed."""
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[str, datetime]] = {}

    def get(self, sid: str) -> dict[str, Any] | None:
        with self._lock:
            entry = self._entries.get(sid)
            if entry is None:
                return None
            raw, expires_at = entry
            if expires_at <= utcnow():
                del self._entries[sid]
                return None
        return json.loads(raw)

    def set(self, sid: str, data: dict[str, Any], expires_at: datetime) -> None:
        raw = json.dumps(data)
        with self._lock:
            self._entries[sid] = (raw, expires_at)

    def delete(self, sid: str) -> None:
        with self._lock:
            self._entries.pop(sid, None)

    def prune(self, now: datetime | None = None) -> int:
        now = now or utcnow()
        with self._lock:
            expired = [sid for sid, (_, exp) in self._entries.items() if exp <= now]
            for sid in expired:
                del self._entries[sid]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class SqlSessionStore(SessionStore):
    def __init__(self, sm: sessionmaker) -> None:
        self.sm = sm

    def get(self, sid: str) -> dict[str, Any] | None:
        with session_scope(self.sm) as s:
            row = s.get(SessionRow, sid)
            if row is None:
                return None
            if row.expires_at <= utcnow():
                s.delete(row)
                return None
            raw = row.data
        return json.loads(raw)

    def set(self, sid: str, data: dict[str, Any], expires_at: datetime) -> None:
        with session_scope(self.sm) as s:
            s.merge(SessionRow(sid=sid, data=json.dumps(data), expires_at=expires_at))

    def delete(self, sid: str) -> None:
        with session_scope(self.sm) as s:
            s.execute(delete(SessionRow).where(SessionRow.sid == sid))

    def prune(self, now: datetime | None = None) -> int:
        now = now or utcnow()
        with session_scope(self.sm) as s:
            result = s.execute(delete(SessionRow).where(SessionRow.expires_at <= now))
            return result.rowcount or 0


def session_store_for(storage: Storage) -> SessionStore:
    """Sessions live next to the entities: in the database for SQL storage."""
    if isinstance(storage, SqlStorage):
        return SqlSessionStore(storage.sm)
    return MemorySessionStore()


class ServerSideSession(CallbackDict, SessionMixin):
    def __init__(self, initial: dict | None = None, sid: str | None = None, new: bool = False) -> None:
        def on_update(self: "ServerSideSession") -> None:
            self.modified = True

        CallbackDict.__init__(self, initial, on_update)
        self.sid = sid or _new_sid()
        self.new = new
        self.modified = False


class ServerSideSessionInterface(SessionInterface):
    salt = "newsdesk-session"

    def __init__(self, store: SessionStore, ttl: timedelta) -> None:
        self.store = store
        self.ttl = ttl

    def _signer(self, app: Flask) -> Signer | None:
        if not app.secret_key:
            return None
        return Signer(app.secret_key, salt=self.salt, key_derivation="hmac")

    def open_session(self, app: Flask, request: Request) -> ServerSideSession | None:
        signer = self._signer(app)
        if signer is None:
            return None
        cookie = request.cookies.get(self.get_cookie_name(app))
        if not cookie:
            return ServerSideSession(new=True)
        try:
            sid = signer.unsign(cookie).decode("utf-8")
        except BadSignature:
            return ServerSideSession(new=True)
        try:
            data = self.store.get(sid)
        except Exception:
            # Treat an unreachable store as "no session"; the request proceeds anonymously.
            app.logger.exception("Session store lookup failed")
            data = None
        if data is None:
            return ServerSideSession(new=True)
        return ServerSideSession(data, sid=sid)

    def save_session(self, app: Flask, session: SessionMixin, response: Response) -> None:  # type: ignore[override]
        assert isinstance(session, ServerSideSession)
        name = self.get_cookie_name(app)
        domain = self.get_cookie_domain(app)
        path = self.get_cookie_path(app)

        if not session:
            if session.modified:
                self.store.delete(session.sid)
                response.delete_cookie(
                    name,
                    domain=domain,
                    path=path,
                    secure=self.get_cookie_secure(app),
                    samesite=self.get_cookie_samesite(app),
                    httponly=self.get_cookie_httponly(app),
                )
            return

        if not session.modified:
            return

        signer = self._signer(app)
        assert signer is not None
        self.store.set(session.sid, dict(session), utcnow() + self.ttl)
        response.set_cookie(
            name,
            signer.sign(session.sid).decode("utf-8"),
            max_age=int(self.ttl.total_seconds()),
            httponly=self.get_cookie_httponly(app),
            domain=domain,
            path=path,
            secure=self.get_cookie_secure(app),
            samesite=self.get_cookie_samesite(app),
        )


def regenerate_session() -> None:
    """
    Issue a fresh session id for the current session (login/registration),
    dropping the old server-side entry so a pre-login id can't be reused.
    """
    interface = current_app.session_interface
    if not isinstance(interface, ServerSideSessionInterface) or not isinstance(session, ServerSideSession):
        return
    interface.store.delete(session.sid)
    session.sid = _new_sid()
    session.modified = True


class SessionPruner:
    """Background sweep of expired sessions every ``interval`` seconds."""

    def __init__(self, store: SessionStore, interval: float) -> None:
        self.store = store
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def sweep(self) -> int:
        try:
            removed = self.store.prune()
        except Exception:
            logger.exception("Session prune failed")
            return 0
        if removed:
            logger.info("Pruned %s expired session(s)", removed)
        return removed

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.sweep()

    def start(self) -> None:
        if self._thread is not None or self.interval <= 0:
            return
        self._thread = threading.Thread(target=self._run, name="session-pruner", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
