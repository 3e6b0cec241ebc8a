"""Token store implementations.

Both stores implement the create-if-absent / fetch-by-index contract that
``TokenService`` depends on.
"""

import asyncio
import copy
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from webauthz_token.core.logging import get_logger
from webauthz_token.infrastructure.persistence.database import DatabaseManager
from webauthz_token.infrastructure.persistence.repositories import TokenRepository

logger = get_logger(__name__)


class InMemoryTokenStore:
    """Process-local token store.

    Records are deep-copied in and out so neither the caller nor the
    service can mutate what is stored.
    """

    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def create_token(self, index: str, record: dict[str, Any]) -> bool:
        async with self._lock:
            if index in self._records:
                logger.warning("Token index already exists", token_type=record.get("type"))
                return False
            self._records[index] = copy.deepcopy(record)
            return True

    async def fetch_token(self, index: str) -> dict[str, Any] | None:
        record = self._records.get(index)
        return copy.deepcopy(record) if record is not None else None

    def __len__(self) -> int:
        return len(self._records)


class SQLTokenStore:
    """Token store backed by the ``tokens`` table.

    Each operation runs in its own session; a create is committed before
    it reports success.
    """

    def __init__(self, db: DatabaseManager) -> None:
        """Initialize the store.

        Args:
            db: Database manager providing sessions.
        """
        self._db = db

    async def create_token(self, index: str, record: dict[str, Any]) -> bool:
        """Insert a record, returning False if the index exists or the write fails."""
        try:
            async with self._db.session() as session:
                await TokenRepository(session).create(index, record)
                await session.commit()
        except IntegrityError:
            logger.warning("Token index already exists", token_type=record.get("type"))
            return False
        except SQLAlchemyError as e:
            logger.error("Failed to store token record", token_type=record.get("type"), error=str(e))
            return False
        return True

    async def fetch_token(self, index: str) -> dict[str, Any] | None:
        async with self._db.session() as session:
            model = await TokenRepository(session).get_by_index(index)
            return dict(model.record) if model is not None else None
