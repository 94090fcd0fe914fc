"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, near-zero logic). Backends own
persistence; auth/authenticator.py owns policy.

User is the public identity. UserRecord adds the credential material that
only the authenticator and the backends ever see. Keeping them as separate
types means a UserRecord cannot be handed to a caller by accident: the
authenticator returns record.public(), never the record itself.

Layer rule: no imports from core/ or other auth/ modules.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """An authenticated identity as returned to callers.

    id is opaque to the authenticator. Both bundled backends use sequential
    integers, but any hashable, comparable value works.
    """

    id: int
    username: str  # unique, case-sensitive
    full_name: str


@dataclass
class UserRecord:
    """A stored user plus credential material.

    Immutable after creation except for is_disabled, which is kept for
    schema compatibility. No operation currently consults it.
    """

    id: int
    username: str
    full_name: str
    password_hash: bytes  # derived key, length set by kdf_length
    password_salt: bytes  # 48 random bytes, unique per user
    is_disabled: bool = False

    def public(self) -> User:
        return User(id=self.id, username=self.username, full_name=self.full_name)


@dataclass
class UserSession:
    """A logged-in session. token is the primary key and the bearer credential.

    Datetimes are timezone-aware UTC. The relational backend stores them as
    integer epoch seconds, so sub-second precision does not survive a round trip.
    """

    token: str
    user_id: int
    login_time: datetime
    last_seen_time: datetime
