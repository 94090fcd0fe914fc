"""
tests/conftest.py -- Shared test fixtures for auther.

This module provides:
  - fast_settings: Settings with the legacy KDF (4096 iterations) so the
    suite does not spend seconds per signup on the 600k-iteration default
  - backend: parametrized over InMemoryBackend and an in-memory SQLBackend,
    so every contract test runs against both implementations
  - authenticator: an Authenticator over `backend` with a controllable clock
  - clock: the FakeClock driving that authenticator

SQLBackend gives in-memory SQLite URLs a StaticPool, so plain sqlite:///:memory:
is visible from every thread. The username race test in
test_memory_backend.py uses InMemoryBackend only.
"""

from __future__ import annotations

from collections.abc import Generator
from datetime import datetime, timedelta, timezone

import pytest

from auth.authenticator import Authenticator
from auth.backend import AuthBackend
from auth.memory import InMemoryBackend
from auth.store import SQLBackend
from core.config import Settings


class FakeClock:
    """Callable clock that only moves when a test advances it."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def fast_settings() -> Settings:
    return Settings(legacy_kdf=True, db_url="sqlite:///:memory:")


@pytest.fixture(params=["memory", "sql"])
def backend(request) -> Generator[AuthBackend, None, None]:
    """Fresh backend per test, once for each implementation."""
    if request.param == "memory":
        b: AuthBackend = InMemoryBackend()
    else:
        b = SQLBackend("sqlite:///:memory:")
    yield b
    b.close()


@pytest.fixture
def clock() -> FakeClock:
    # Whole seconds, so SQL epoch-second storage round-trips exactly.
    return FakeClock(datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def authenticator(backend, fast_settings, clock) -> Authenticator:
    return Authenticator(backend, settings=fast_settings, clock=clock)
