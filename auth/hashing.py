"""
auth/hashing.py -- Password key derivation, salts, and session tokens.

Security design decisions:
  Passwords: PBKDF2-HMAC from hashlib over (password, per-user salt). The hash
       name, iteration count, and output length come from HashParams, built
       from Settings. LEGACY_PARAMS (SHA-1, 4096, 32) reproduces credentials
       created by existing deployments byte for byte.

  Comparison: hmac.compare_digest, so the time taken does not depend on how
       many leading bytes of a guess are correct.

  Unknown usernames: signin still runs a full derivation against _DUMMY_SALT
       and discards the result. Response time then does not reveal whether a
       username exists.

  Salts and tokens: 48 bytes from the OS CSPRNG via secrets. Tokens are the
       standard base64 encoding of those bytes (64 characters, 384 bits).
       If the OS source fails, RandomGenerationError is raised; there is no
       fallback to a weaker generator.

Layer rule: imports core/ (settings) and auth/errors only.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
from dataclasses import dataclass
from typing import TYPE_CHECKING

from auth.errors import RandomGenerationError
from core.config import LEGACY_KDF_HASH_NAME, LEGACY_KDF_ITERATIONS, LEGACY_KDF_LENGTH

if TYPE_CHECKING:
    from core.config import Settings

SALT_BYTES = 48
TOKEN_BYTES = 48


@dataclass(frozen=True)
class HashParams:
    hash_name: str
    iterations: int
    length: int

    @classmethod
    def from_settings(cls, settings: Settings) -> HashParams:
        return cls(
            hash_name=settings.kdf_hash_name,
            iterations=settings.kdf_iterations,
            length=settings.kdf_length,
        )


LEGACY_PARAMS = HashParams(LEGACY_KDF_HASH_NAME, LEGACY_KDF_ITERATIONS, LEGACY_KDF_LENGTH)


# ---------------------------------------------------------------------------
# Randomness
# ---------------------------------------------------------------------------


def _random_bytes(n: int) -> bytes:
    try:
        return secrets.token_bytes(n)
    except (NotImplementedError, OSError) as exc:
        raise RandomGenerationError() from exc


def generate_salt() -> bytes:
    """Return SALT_BYTES fresh random bytes for a new user."""
    return _random_bytes(SALT_BYTES)


def generate_token() -> str:
    """Return a new session token: base64 of TOKEN_BYTES random bytes."""
    return base64.b64encode(_random_bytes(TOKEN_BYTES)).decode("ascii")


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------


def derive_key(password: str, salt: bytes, params: HashParams) -> bytes:
    """Return PBKDF2-HMAC(params.hash_name) of the UTF-8 password over salt."""
    return hashlib.pbkdf2_hmac(
        params.hash_name,
        password.encode("utf-8"),
        salt,
        params.iterations,
        dklen=params.length,
    )


def verify_password(password: str, salt: bytes, expected: bytes, params: HashParams) -> bool:
    """Recompute the key for password and compare it to expected in constant time."""
    return hmac.compare_digest(derive_key(password, salt, params), expected)


# Fixed at import. Only ever used to burn the same CPU as a real check.
_DUMMY_SALT: bytes = secrets.token_bytes(SALT_BYTES)


def equalize_timing(password: str, params: HashParams) -> None:
    """Run one derivation whose result is thrown away.

    Call this on the unknown-username path before raising, so that branch
    costs the same as a wrong-password check.
    """
    derive_key(password, _DUMMY_SALT, params)
