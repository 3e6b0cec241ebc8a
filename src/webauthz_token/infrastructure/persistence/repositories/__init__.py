"""Repositories wrapping database sessions."""

from webauthz_token.infrastructure.persistence.repositories.token_repository import (
    TokenRepository,
)

__all__ = ["TokenRepository"]
