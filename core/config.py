"""
core/config.py -- Centralized library configuration via pydantic-settings.

All environment variable reads for auther happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from AUTHER_* environment
      variables and an optional .env file. Type coercion and validation are
      built in (e.g. AUTHER_KDF_ITERATIONS=4096 arrives as an int).

  @model_validator(mode="after"): Cross-field rules once every field is
      resolved. legacy_kdf overrides the three KDF fields, and the hash name
      is test-run through hashlib.pbkdf2_hmac so a typo fails at startup,
      not at first signup.

Security notes:
  The default KDF is PBKDF2-HMAC-SHA256 at 600k iterations. Deployments that
  hold credentials created with the old parameters (SHA-1, 4096 iterations,
  32 bytes) must set AUTHER_LEGACY_KDF=true, otherwise every stored hash
  fails to verify.

Layer rule: core/ is the kernel. This module may not import from auth/.
"""

import hashlib
import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("auther.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'auther.db'}"

# Parameters used by credentials created before the KDF became configurable.
LEGACY_KDF_HASH_NAME = "sha1"
LEGACY_KDF_ITERATIONS = 4096
LEGACY_KDF_LENGTH = 32


class Settings(BaseSettings):
    """Library settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. Tests pass keyword overrides
    directly: Settings(legacy_kdf=True).

    Environment variable name mapping: AUTHER_ prefix plus the uppercased
    field name. E.g. `session_expiry_seconds` reads AUTHER_SESSION_EXPIRY_SECONDS.
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTHER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    db_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    # Measured from login time, not last-seen time. Activity does not extend it.
    session_expiry_seconds: int = Field(default=14 * 24 * 60 * 60, gt=0)

    # ------------------------------------------------------------------
    # Password key derivation (PBKDF2-HMAC)
    # ------------------------------------------------------------------

    kdf_hash_name: str = "sha256"
    kdf_iterations: int = Field(default=600_000, ge=1)
    kdf_length: int = Field(default=32, ge=16)
    legacy_kdf: bool = False

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_kdf(self) -> "Settings":
        """Apply the legacy KDF override and reject unknown hash names.

        legacy_kdf=true wins over any explicit kdf_* values: the point of the
        flag is byte-for-byte compatibility, and a half-applied override
        would silently break every existing credential.
        """
        if self.legacy_kdf:
            self.kdf_hash_name = LEGACY_KDF_HASH_NAME
            self.kdf_iterations = LEGACY_KDF_ITERATIONS
            self.kdf_length = LEGACY_KDF_LENGTH
            logger.warning(
                "WARNING: legacy KDF enabled (PBKDF2-HMAC-SHA1, 4096 iterations). "
                "Use only to verify credentials from existing deployments."
            )
        try:
            # XOF digests (shake_*) pass hashlib.new() but cannot back HMAC.
            hashlib.pbkdf2_hmac(self.kdf_hash_name, b"", b"", 1)
        except (ValueError, TypeError):
            raise ValueError(f"Unsupported kdf_hash_name: {self.kdf_hash_name!r}") from None
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    Library code should call get_settings() rather than constructing Settings()
    directly, unless a caller passes explicit settings in.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
