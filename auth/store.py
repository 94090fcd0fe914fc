"""
auth/store.py -- SQLAlchemy Core AuthBackend for relational databases.

Pattern: Repository + Data Mapper. SQLBackend is the repository;
_row_to_user / _row_to_session are the mappers. The authenticator never
touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(username) on the users table is the authoritative duplicate guard.
  The authenticator checks for an existing username first, but two concurrent
  signups can both pass that check; the second INSERT then fails here with
  IntegrityError and surfaces as DuplicateUsernameError.

Schema:
  users     id, username, fullname, passwordhash, passwordsalt, isdisabled
  sessions  sessionkey (PK), userid (FK users.id), logintime, lastseentime

  logintime / lastseentime are integer epoch seconds. Datetimes come back as
  timezone-aware UTC, truncated to the second.

Tables are created on construction with create_all(), which is a no-op for
tables that already exist. No migrations are run.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Integer,
    LargeBinary,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.pool import StaticPool

from auth.backend import AuthBackend
from auth.errors import DuplicateUsernameError, SessionNotFoundError, StorageError, UserNotFoundError
from auth.models import UserRecord, UserSession

logger = logging.getLogger("auther.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("fullname", Text, nullable=False),
    Column("passwordhash", LargeBinary, nullable=False),
    Column("passwordsalt", LargeBinary, nullable=False),
    Column("isdisabled", Boolean, nullable=False, default=False),
)

_sessions = Table(
    "sessions",
    _metadata,
    Column("sessionkey", Text, primary_key=True),
    Column("userid", Integer, ForeignKey("users.id"), nullable=False),
    Column("logintime", Integer, nullable=False),  # epoch seconds
    Column("lastseentime", Integer, nullable=False),  # epoch seconds
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block behind a writer.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _to_epoch(value: datetime) -> int:
    return int(value.timestamp())


def _from_epoch(value: int) -> datetime:
    return datetime.fromtimestamp(value, timezone.utc)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SQLBackend(AuthBackend):
    """Relational backend for users and sessions.

    Usage:
        backend = SQLBackend("postgresql+psycopg://auther@localhost/auther")
        record = backend.add_user("jsmith", "John Smith", pw_hash, salt)
        backend.close()

    Any SQLAlchemy URL works. SQLite gets check_same_thread=False, and an
    in-memory SQLite URL gets StaticPool, so one backend can be shared across
    worker threads.
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        engine_kwargs: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            # An in-memory SQLite database lives and dies with one connection.
            # StaticPool hands that single connection to every thread.
            if ":memory:" in db_url or "mode=memory" in db_url:
                engine_kwargs["poolclass"] = StaticPool
        self.engine: Engine = create_engine(db_url, connect_args=connect_args, **engine_kwargs)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        try:
            _metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StorageError("failed to create auth tables") from exc

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
        """Insert a new user and return it with the assigned database ID.

        IntegrityError can only come from UNIQUE(username) here, since id is
        generated by the database.
        """
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        username=username,
                        fullname=full_name,
                        passwordhash=password_hash,
                        passwordsalt=password_salt,
                        isdisabled=is_disabled,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise DuplicateUsernameError() from exc
        except SQLAlchemyError as exc:
            raise StorageError("failed to add user") from exc
        user_id = result.inserted_primary_key[0]
        logger.debug("sql: added user id=%s", user_id)
        return UserRecord(
            id=user_id,
            username=username,
            full_name=full_name,
            password_hash=password_hash,
            password_salt=password_salt,
            is_disabled=is_disabled,
        )

    def get_user_by_username(self, username: str) -> UserRecord:
        """Look up a user by exact username (case-sensitive)."""
        row = self._fetch_one(_users.select().where(_users.c.username == username), "failed to look up user")
        if row is None:
            raise UserNotFoundError()
        return _row_to_user(row)

    def get_user_by_id(self, user_id: int) -> UserRecord:
        row = self._fetch_one(_users.select().where(_users.c.id == user_id), "failed to look up user")
        if row is None:
            raise UserNotFoundError()
        return _row_to_user(row)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(self, token: str, user_id: int, login_time: datetime, last_seen_time: datetime) -> None:
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _sessions.insert().values(
                        sessionkey=token,
                        userid=user_id,
                        logintime=_to_epoch(login_time),
                        lastseentime=_to_epoch(last_seen_time),
                    )
                )
                conn.commit()
        except SQLAlchemyError as exc:
            raise StorageError("failed to create session") from exc

    def get_session(self, token: str) -> UserSession:
        row = self._fetch_one(_sessions.select().where(_sessions.c.sessionkey == token), "failed to look up session")
        if row is None:
            raise SessionNotFoundError()
        return _row_to_session(row)

    def update_session_last_seen(self, token: str, last_seen_time: datetime) -> None:
        """Stamp lastseentime. Zero rows updated means the session is gone."""
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _sessions.update()
                    .where(_sessions.c.sessionkey == token)
                    .values(lastseentime=_to_epoch(last_seen_time))
                )
                conn.commit()
        except SQLAlchemyError as exc:
            raise StorageError("failed to update session") from exc
        if result.rowcount == 0:
            raise SessionNotFoundError()

    def delete_session(self, token: str) -> None:
        try:
            with self.engine.connect() as conn:
                result = conn.execute(_sessions.delete().where(_sessions.c.sessionkey == token))
                conn.commit()
        except SQLAlchemyError as exc:
            raise StorageError("failed to delete session") from exc
        if result.rowcount == 0:
            raise SessionNotFoundError()

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fetch_one(self, query, failure: str):
        try:
            with self.engine.connect() as conn:
                return conn.execute(query).fetchone()
        except SQLAlchemyError as exc:
            raise StorageError(failure) from exc


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> UserRecord:
    return UserRecord(
        id=row.id,
        username=row.username,
        full_name=row.fullname,
        password_hash=bytes(row.passwordhash),
        password_salt=bytes(row.passwordsalt),
        is_disabled=bool(row.isdisabled),
    )


def _row_to_session(row) -> UserSession:
    return UserSession(
        token=row.sessionkey,
        user_id=row.userid,
        login_time=_from_epoch(row.logintime),
        last_seen_time=_from_epoch(row.lastseentime),
    )
