"""
auth/memory.py -- In-memory AuthBackend for tests and embedding.

All state lives in two dicts owned by the instance and guarded by a single
Lock. Nothing is shared between instances, and callers never reach the dicts
directly: every read returns a copy, so mutating a returned record cannot
change what is stored.

add_user checks and inserts under the same lock, so two concurrent signups
for one username cannot both succeed.

Nothing is persisted. Sessions are never swept; expired ones stay until
deleted.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import replace
from datetime import datetime
from threading import Lock

from auth.backend import AuthBackend
from auth.errors import DuplicateUsernameError, SessionNotFoundError, StorageError, UserNotFoundError
from auth.models import UserRecord, UserSession

logger = logging.getLogger("auther.store")


class InMemoryBackend(AuthBackend):
    """Dict-backed backend. Thread-safe; one lock covers users and sessions.

    Usage:
        backend = InMemoryBackend()
        record = backend.add_user("jsmith", "John Smith", pw_hash, salt)
        backend.get_user_by_username("jsmith").id == record.id
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._ids = itertools.count(1)
        self._users: dict[int, UserRecord] = {}
        self._ids_by_username: dict[str, int] = {}
        self._sessions: dict[str, UserSession] = {}

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def add_user(
        self,
        username: str,
        full_name: str,
        password_hash: bytes,
        password_salt: bytes,
        is_disabled: bool = False,
    ) -> UserRecord:
        with self._lock:
            if username in self._ids_by_username:
                raise DuplicateUsernameError()
            record = UserRecord(
                id=next(self._ids),
                username=username,
                full_name=full_name,
                password_hash=bytes(password_hash),
                password_salt=bytes(password_salt),
                is_disabled=is_disabled,
            )
            self._users[record.id] = record
            self._ids_by_username[username] = record.id
            logger.debug("memory: added user id=%s", record.id)
            return replace(record)

    def get_user_by_username(self, username: str) -> UserRecord:
        with self._lock:
            user_id = self._ids_by_username.get(username)
            if user_id is None:
                raise UserNotFoundError()
            return replace(self._users[user_id])

    def get_user_by_id(self, user_id: int) -> UserRecord:
        with self._lock:
            record = self._users.get(user_id)
            if record is None:
                raise UserNotFoundError()
            return replace(record)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(self, token: str, user_id: int, login_time: datetime, last_seen_time: datetime) -> None:
        with self._lock:
            # Token is the primary key. A collision means the random source is broken.
            if token in self._sessions:
                raise StorageError("session token already exists")
            self._sessions[token] = UserSession(
                token=token,
                user_id=user_id,
                login_time=login_time,
                last_seen_time=last_seen_time,
            )

    def get_session(self, token: str) -> UserSession:
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                raise SessionNotFoundError()
            return replace(session)

    def update_session_last_seen(self, token: str, last_seen_time: datetime) -> None:
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                raise SessionNotFoundError()
            session.last_seen_time = last_seen_time

    def delete_session(self, token: str) -> None:
        with self._lock:
            if self._sessions.pop(token, None) is None:
                raise SessionNotFoundError()
