"""Repository for token record operations.

Provides database operations for storing and looking up token records by
their index.
"""

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from webauthz_token.infrastructure.persistence.models import TokenModel


class TokenRepository:
    """Repository for token record database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self._session = session

    async def create(self, index: str, record: dict[str, Any]) -> TokenModel:
        """Store a new token record.

        Args:
            index: Token index used as primary key.
            record: Token record including ``type`` and ``client_id``.

        Returns:
            The stored model.

        Raises:
            sqlalchemy.exc.IntegrityError: If a record already exists at the index.
        """
        model = TokenModel(
            token_index=index,
            token_type=record["type"],
            client_id=record["client_id"],
            record=record,
        )
        self._session.add(model)
        await self._session.flush()
        return model

    async def get_by_index(self, index: str) -> TokenModel | None:
        """Look up a token record by its index.

        Args:
            index: Token index derived from a bearer token.

        Returns:
            The TokenModel if found, None otherwise.
        """
        stmt = select(TokenModel).where(TokenModel.token_index == index)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def exists(self, index: str) -> bool:
        """Check whether a record exists at the index."""
        stmt = select(func.count()).select_from(TokenModel).where(TokenModel.token_index == index)
        result = await self._session.execute(stmt)
        return result.scalar_one() > 0

    async def count_for_client(self, client_id: str, token_type: str | None = None) -> int:
        """Count stored tokens for a client, optionally of one type."""
        stmt = select(func.count()).select_from(TokenModel).where(TokenModel.client_id == client_id)
        if token_type is not None:
            stmt = stmt.where(TokenModel.token_type == token_type)
        result = await self._session.execute(stmt)
        return result.scalar_one()
