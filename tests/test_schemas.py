"""
tests/test_schemas.py -- Outward user shape and error taxonomy.

Covers:
  - UserOut serializes to exactly {id, username, fullname}
  - building UserOut from a UserRecord drops credential material
  - every error carries a code, and signin failures share one message
"""

from __future__ import annotations

import pytest

from auth import errors
from auth.models import User, UserRecord
from auth.schemas import UserOut


def test_user_out_shape():
    out = UserOut.from_user(User(id=7, username="jsmith", full_name="John Smith"))
    assert out.model_dump() == {"id": 7, "username": "jsmith", "fullname": "John Smith"}


def test_user_out_from_record_omits_credentials():
    record = UserRecord(
        id=7,
        username="jsmith",
        full_name="John Smith",
        password_hash=b"\xaa" * 32,
        password_salt=b"\xbb" * 48,
        is_disabled=True,
    )
    dumped = UserOut.from_user(record).model_dump_json()
    assert "password" not in dumped
    assert "disabled" not in dumped
    assert set(UserOut.from_user(record).model_dump()) == {"id", "username", "fullname"}


def test_record_public_view():
    record = UserRecord(7, "jsmith", "John Smith", b"h", b"s")
    assert record.public() == User(id=7, username="jsmith", full_name="John Smith")


@pytest.mark.parametrize(
    "exc_type",
    [
        errors.DuplicateUsernameError,
        errors.UserNotFoundError,
        errors.InvalidCredentialsError,
        errors.SessionNotFoundError,
        errors.SessionExpiredError,
        errors.RandomGenerationError,
        errors.StorageError,
    ],
)
def test_errors_have_codes_and_messages(exc_type):
    exc = exc_type()
    assert isinstance(exc, errors.AuthError)
    assert exc.code and exc.code != errors.AuthError.code
    assert str(exc)


def test_signin_failures_share_base_and_message():
    assert issubclass(errors.UserNotFoundError, errors.AuthenticationFailedError)
    assert issubclass(errors.UserNotFoundError, errors.NotFoundError)
    assert issubclass(errors.SessionNotFoundError, errors.NotFoundError)
    assert str(errors.UserNotFoundError()) == str(errors.InvalidCredentialsError())
