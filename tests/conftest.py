"""Shared test fixtures for Bloom tracker tests."""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DB_PATH", ":memory:")
    monkeypatch.setenv("ENCRYPTION_KEY", "")
    monkeypatch.setenv("DEFAULT_STAGE", "Incubator Stage")
    monkeypatch.setenv("AUTOSAVE_DELAY_SECONDS", "0.01")
    monkeypatch.setenv("COMPLETION_DELAY_SECONDS", "0")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from bloom.core.storage import PersistenceWriteError  # noqa: E402
from bloom.core.storage.kv import InMemoryKeyValueStore  # noqa: E402
from bloom.domains.wellness.pages.catalog import PageCatalog, load_page_catalog  # noqa: E402

# Monday; the week around it runs Sun 2026-10-18 .. Sat 2026-10-24.
NOW = datetime(2026, 10, 19, 9, 30)


class FakeClock:
    """Settable clock for components that take ``clock=``."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FailingStore(InMemoryKeyValueStore):
    """In-memory store whose writes can be switched to fail."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__(initial)
        self.fail_writes = False

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise PersistenceWriteError(f"disk full writing {key!r}", key=key)
        super().set(key, value)


# ---------------------------------------------------------------------------
# Storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def tracker_db():
    """Create an in-memory TrackerDatabase for testing."""
    from bloom.core.storage.database import TrackerDatabase

    db = TrackerDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def value_encryptor():
    """Create a ValueEncryptor with a test key."""
    from cryptography.fernet import Fernet

    from bloom.core.storage.encryption import ValueEncryptor

    return ValueEncryptor(Fernet.generate_key().decode())


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Domain fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def catalog() -> PageCatalog:
    return load_page_catalog()
