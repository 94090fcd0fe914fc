"""
auth/errors.py -- Exception taxonomy for auther.

Every failure the library reports is an AuthError subclass. Each class carries
a stable `code` string so an outer layer (HTTP handler, CLI) can map errors
to responses without matching on message text.

None of these are retried internally. The caller owns retry policy.

Messages never contain passwords, tokens, hashes, or salts. UserNotFoundError
and InvalidCredentialsError share AuthenticationFailedError as a base and
the same default message, so a caller that surfaces str(exc) does not reveal
whether the username exists.

Layer rule: no imports from anywhere else in the project.
"""

from __future__ import annotations

_GENERIC_AUTH_FAILURE = "invalid username or password"


class AuthError(Exception):
    """Base class for every error raised by auther."""

    code = "auth_error"
    default_message = "authentication error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


# ---------------------------------------------------------------------------
# Storage-level errors (raised by backends)
# ---------------------------------------------------------------------------


class StorageError(AuthError):
    """Any persistence failure. The driver exception is chained as __cause__."""

    code = "storage_error"
    default_message = "storage operation failed"


class NotFoundError(AuthError):
    code = "not_found"
    default_message = "record not found"


class SessionNotFoundError(NotFoundError):
    code = "session_not_found"
    default_message = "session not found"


class DuplicateUsernameError(AuthError):
    code = "duplicate_username"
    default_message = "username already in use"


# ---------------------------------------------------------------------------
# Protocol-level errors (raised by the authenticator)
# ---------------------------------------------------------------------------


class AuthenticationFailedError(AuthError):
    """Common base for the two signin failures that must look identical."""

    code = "authentication_failed"
    default_message = _GENERIC_AUTH_FAILURE


class InvalidCredentialsError(AuthenticationFailedError):
    code = "invalid_credentials"


class UserNotFoundError(NotFoundError, AuthenticationFailedError):
    """Unknown username. Also the storage miss for a lookup by user ID."""

    code = "user_not_found"
    default_message = _GENERIC_AUTH_FAILURE


class SessionExpiredError(AuthError):
    code = "session_expired"
    default_message = "session expired"


class RandomGenerationError(AuthError):
    code = "random_generation_failed"
    default_message = "secure random source unavailable"
