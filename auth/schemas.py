"""
auth/schemas.py -- Outward data-transfer shape for users.

This Pydantic v2 model is the serialization contract for anything that calls
auther (an HTTP layer, a CLI, a message bus). It is intentionally separate
from the dataclasses in auth/models.py, which own the internal domain
representation.

UserOut has no fields for credential material, so model_dump() of a
UserOut built from a UserRecord can never leak the hash or salt.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from auth.models import User, UserRecord


class UserOut(BaseModel):
    """Public user representation: {id, username, fullname}."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str = Field(min_length=1)
    fullname: str

    @classmethod
    def from_user(cls, user: User | UserRecord) -> "UserOut":
        return cls(id=user.id, username=user.username, fullname=user.full_name)
