"""
auth/authenticator.py -- Signup, signin, signout, and token authentication.

The Authenticator owns every security decision: key derivation parameters,
token generation, the expiry window, and constant-time comparison. The
backend it wraps is plain CRUD (see auth/backend.py).

Session lifecycle:
  created  signup or signin inserts a session with login = last-seen = now
  active   each successful authenticate() refreshes last-seen
  expired  authenticate() sees now - login_time > expiry window. The window
           is measured from login, so activity never extends it.
  revoked  signout() deletes the row

Expired and revoked are terminal: such a token never again yields a User.
Expired rows are not swept; purging them is left to the operator.

The Authenticator holds no state besides the backend handle and its settings,
so one instance can be shared across threads. Each call is self-contained.

Layer rule: imports core/ and auth/ only.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from auth.backend import AuthBackend
from auth.errors import (
    DuplicateUsernameError,
    InvalidCredentialsError,
    SessionExpiredError,
    SessionNotFoundError,
    UserNotFoundError,
)
from auth.hashing import HashParams, derive_key, equalize_timing, generate_salt, generate_token, verify_password
from auth.memory import InMemoryBackend
from auth.models import User
from auth.store import SQLBackend
from core.config import Settings, get_settings

logger = logging.getLogger("auther.auth")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Authenticator:
    """Authentication protocol on top of an AuthBackend.

    Usage:
        auth = new_in_memory_authenticator()
        token = auth.signup("John Smith", "jsmith", "supersecretpassword")
        user = auth.authenticate(token)
        auth.signout(token)

    Args:
        backend:  Any AuthBackend implementation.
        settings: Hash parameters and expiry window. Defaults to get_settings().
        clock:    Zero-argument callable returning an aware UTC datetime.
                  Defaults to datetime.now(timezone.utc).
    """

    def __init__(
        self,
        backend: AuthBackend,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.backend = backend
        self.hash_params = HashParams.from_settings(settings)
        self.session_expiry = timedelta(seconds=settings.session_expiry_seconds)
        self._now = clock or _utcnow

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def signup(self, full_name: str, username: str, password: str) -> str:
        """Register a user and return a token for their first session.

        Raises DuplicateUsernameError if the username is taken. The lookup
        here is a fast path only; the backend's add_user is the real guard
        against two concurrent signups for the same name.

        Raises ValueError for an empty username, StorageError if a backend
        write fails, and RandomGenerationError if the OS random source fails.

        The user row and the first session are two separate writes. If the
        session insert fails, the user stays registered and a retry raises
        DuplicateUsernameError; the caller should signin instead.
        """
        if not username:
            raise ValueError("username must not be empty")
        try:
            self.backend.get_user_by_username(username)
        except UserNotFoundError:
            pass
        else:
            raise DuplicateUsernameError()

        salt = generate_salt()
        password_hash = derive_key(password, salt, self.hash_params)
        record = self.backend.add_user(username, full_name, password_hash, salt, is_disabled=False)

        token = self._issue_session(record.id)
        logger.info("signup: created user=%r id=%s", username, record.id)
        return token

    def signin(self, username: str, password: str) -> str:
        """Verify a username/password pair and return a new session token.

        Prior sessions for the same user stay valid; each signin adds one.

        Raises UserNotFoundError for an unknown username and
        InvalidCredentialsError for a wrong password. Both are
        AuthenticationFailedError with the same message, and both run one
        full key derivation, so neither the message nor the timing tells
        the caller which one happened.
        """
        try:
            record = self.backend.get_user_by_username(username)
        except UserNotFoundError:
            equalize_timing(password, self.hash_params)
            logger.warning("signin: failed for user=%r", username)
            raise

        if not verify_password(password, record.password_salt, record.password_hash, self.hash_params):
            logger.warning("signin: failed for user=%r", username)
            raise InvalidCredentialsError()

        token = self._issue_session(record.id)
        logger.info("signin: user=%r id=%s", username, record.id)
        return token

    def signout(self, token: str) -> None:
        """Delete the session for token. Raises SessionNotFoundError if there is none."""
        if not token:
            raise SessionNotFoundError()
        self.backend.delete_session(token)
        logger.info("signout: session revoked")

    def authenticate(self, token: str) -> User:
        """Resolve a session token to its User.

        Raises SessionNotFoundError for an unknown, empty, or revoked token and
        SessionExpiredError once the session is older than the expiry window.

        On success the session's last-seen time is updated before the user is
        returned. A storage failure during that update propagates as
        StorageError; the call does not succeed without it.
        """
        if not token:
            raise SessionNotFoundError()
        session = self.backend.get_session(token)

        now = self._now()
        if now - session.login_time > self.session_expiry:
            logger.warning("authenticate: session expired for user id=%s", session.user_id)
            raise SessionExpiredError()

        self.backend.update_session_last_seen(token, now)
        record = self.backend.get_user_by_id(session.user_id)
        logger.debug("authenticate: user id=%s", record.id)
        return record.public()

    def close(self) -> None:
        self.backend.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _issue_session(self, user_id: int) -> str:
        token = generate_token()
        now = self._now()
        self.backend.create_session(token, user_id, login_time=now, last_seen_time=now)
        return token


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def new_in_memory_authenticator(settings: Settings | None = None) -> Authenticator:
    """Authenticator over a fresh InMemoryBackend. State dies with the object."""
    return Authenticator(InMemoryBackend(), settings=settings)


def new_sql_authenticator(db_url: str | None = None, settings: Settings | None = None) -> Authenticator:
    """Authenticator over SQLBackend. db_url defaults to settings.db_url."""
    settings = settings or get_settings()
    return Authenticator(SQLBackend(db_url or settings.db_url), settings=settings)
