"""
tests/test_config.py -- Unit tests for core/config.py.

Covers:
  - defaults: 14-day expiry, PBKDF2-SHA256 at 600k iterations
  - legacy_kdf forces SHA-1 / 4096 / 32 regardless of explicit kdf_* values
  - unknown or non-HMAC hash names and out-of-range numbers are rejected
  - the default SQLite file sits inside the core package directory
  - AUTHER_* environment variables are read through get_settings()
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from core import config
from core.config import Settings, get_settings


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults():
    s = Settings()
    assert s.session_expiry_seconds == 14 * 24 * 3600
    assert (s.kdf_hash_name, s.kdf_iterations, s.kdf_length) == ("sha256", 600_000, 32)
    assert s.legacy_kdf is False
    assert s.db_url.startswith("sqlite:///")


def test_legacy_kdf_overrides_explicit_values():
    s = Settings(legacy_kdf=True, kdf_hash_name="sha512", kdf_iterations=1_000_000)
    assert (s.kdf_hash_name, s.kdf_iterations, s.kdf_length) == ("sha1", 4096, 32)


@pytest.mark.parametrize("name", ["not-a-hash", "shake_128", "shake_256"])
def test_unknown_hash_name_rejected(name):
    # shake_* construct through hashlib.new() but cannot drive PBKDF2-HMAC.
    with pytest.raises(ValidationError):
        Settings(kdf_hash_name=name)


def test_default_db_lives_in_package_dir():
    assert Settings().db_url == f"sqlite:///{Path(config.__file__).parent / 'auther.db'}"


@pytest.mark.parametrize(
    "field,value",
    [("kdf_iterations", 0), ("kdf_length", 8), ("session_expiry_seconds", 0)],
)
def test_out_of_range_values_rejected(field, value):
    with pytest.raises(ValidationError):
        Settings(**{field: value})


def test_environment_variables(monkeypatch):
    monkeypatch.setenv("AUTHER_SESSION_EXPIRY_SECONDS", "3600")
    monkeypatch.setenv("AUTHER_KDF_ITERATIONS", "1000")
    monkeypatch.setenv("AUTHER_DB_URL", "sqlite:///:memory:")
    s = get_settings()
    assert s.session_expiry_seconds == 3600
    assert s.kdf_iterations == 1000
    assert s.db_url == "sqlite:///:memory:"


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
