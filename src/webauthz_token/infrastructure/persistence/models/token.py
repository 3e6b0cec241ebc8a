"""SQLAlchemy model for token records.

Each row is keyed by the token index, which embeds the token type, the
client_id and a hash of the secret. The secret itself is never stored.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from webauthz_token.infrastructure.persistence.database import Base


class TokenModel(Base):
    """SQLAlchemy model for the tokens table.

    Text columns put no length limit on types or client ids.

    Attributes:
        token_index: Primary key, ``<type>:<client_id>:<hash>``.
        token_type: Token category, duplicated from the record for queries.
        client_id: Owning client, duplicated from the record for queries.
        record: Full token record including caller metadata.
        created_at: Timestamp when the token was issued.
    """

    __tablename__ = "tokens"

    token_index: Mapped[str] = mapped_column(
        Text,
        primary_key=True,
        comment="Token type, client_id and secret hash joined by the separator",
    )
    token_type: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Token category (client, grant, refresh, access, ...)",
    )
    client_id: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Client that owns the token",
    )
    record: Mapped[dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        comment="Token record returned on successful verification",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Creation timestamp",
    )

    __table_args__ = (
        Index("ix_tokens_type_client", "token_type", "client_id"),
    )

    def __repr__(self) -> str:
        return f"<Token(type={self.token_type}, client_id={self.client_id})>"
