"""Pytest configuration for all tests."""

import logging
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from webauthz_token.core.config import get_settings
from webauthz_token.infrastructure.auth import TokenService
from webauthz_token.infrastructure.persistence.database import DatabaseManager
from webauthz_token.infrastructure.persistence.token_store import InMemoryTokenStore, SQLTokenStore


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Reload settings for every test so env overrides do not leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class FailingTokenStore:
    """Store that refuses every create and records the calls it received."""

    def __init__(self) -> None:
        self.create_calls: list[tuple[str, dict[str, Any]]] = []
        self.fetch_calls: list[str] = []

    async def create_token(self, index: str, record: dict[str, Any]) -> bool:
        self.create_calls.append((index, record))
        return False

    async def fetch_token(self, index: str) -> dict[str, Any] | None:
        self.fetch_calls.append(index)
        return None


class StubTokenStore:
    """Store that accepts every create and returns a fixed record on fetch."""

    def __init__(self, record: Any) -> None:
        self.record = record
        self.fetched: list[str] = []

    async def create_token(self, index: str, record: dict[str, Any]) -> bool:
        return True

    async def fetch_token(self, index: str) -> Any:
        self.fetched.append(index)
        return self.record


class RecordingLogger:
    """Logger exposing trace/info/warn/error, each taking one message string."""

    def __init__(self) -> None:
        self.lines: list[tuple[str, str]] = []

    def trace(self, message: str) -> None:
        self.lines.append(("trace", message))

    def info(self, message: str) -> None:
        self.lines.append(("info", message))

    def warn(self, message: str) -> None:
        self.lines.append(("warn", message))

    def error(self, message: str) -> None:
        self.lines.append(("error", message))


def fixed_bytes(n: int) -> bytes:
    """Deterministic random source for tests."""
    return bytes(i % 256 for i in range(n))


@pytest.fixture
def memory_store() -> InMemoryTokenStore:
    return InMemoryTokenStore()


@pytest.fixture
def token_service(memory_store) -> TokenService:
    return TokenService(memory_store)


@pytest_asyncio.fixture
async def db_manager() -> AsyncGenerator[DatabaseManager, None]:
    """Database manager bound to an in-memory SQLite database with tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    db = DatabaseManager(engine=engine)
    await db.create_tables()

    yield db

    await db.drop_tables()
    await db.disconnect()


@pytest.fixture
def sql_store(db_manager) -> SQLTokenStore:
    return SQLTokenStore(db_manager)


@pytest.fixture
def failing_store() -> FailingTokenStore:
    return FailingTokenStore()


@pytest.fixture
def make_stub_store():
    """Factory for stores that return a fixed record from every fetch."""
    return StubTokenStore


@pytest.fixture
def fixed_random():
    return fixed_bytes


@pytest.fixture
def stdlib_logger(caplog) -> logging.Logger:
    """Standard library logger with DEBUG enabled and captured."""
    caplog.set_level(logging.DEBUG, logger="webauthz_token.tests")
    return logging.getLogger("webauthz_token.tests")


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()
