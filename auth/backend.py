"""
auth/backend.py -- Storage contract consumed by the Authenticator.

Pattern: Repository. AuthBackend is pure CRUD over two entities (users and
sessions) with no policy. Expiry, hashing, and token generation all live in
auth/authenticator.py, so any backend that honours this contract can be
swapped in without touching security code.

Error contract (identical for every implementation):
  add_user            -> DuplicateUsernameError if the username is taken.
                         This is the authoritative uniqueness guard; the
                         authenticator's pre-check is only an optimization.
  get_user_*          -> UserNotFoundError
  get_session / update_session_last_seen / delete_session
                      -> SessionNotFoundError
  anything else       -> StorageError, chaining the driver exception.

Implementations: auth/memory.py (InMemoryBackend), auth/store.py (SQLBackend).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from auth.models import UserRecord, UserSession


class AuthBackend(ABC):
    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @abstractmethod
    def add_user(
        self,
        username: str,
        full_name: str,
        password_hash: bytes,
        password_salt: bytes,
        is_disabled: bool = False,
    ) -> UserRecord:
        """Insert a user and return the stored record with its assigned ID."""

    @abstractmethod
    def get_user_by_username(self, username: str) -> UserRecord:
        """Exact, case-sensitive match."""

    @abstractmethod
    def get_user_by_id(self, user_id: int) -> UserRecord: ...

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    @abstractmethod
    def create_session(self, token: str, user_id: int, login_time: datetime, last_seen_time: datetime) -> None: ...

    @abstractmethod
    def get_session(self, token: str) -> UserSession: ...

    @abstractmethod
    def update_session_last_seen(self, token: str, last_seen_time: datetime) -> None: ...

    @abstractmethod
    def delete_session(self, token: str) -> None: ...

    def close(self) -> None:
        """Release any held resources. Default: nothing to release."""
