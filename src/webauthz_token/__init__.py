"""webauthz-token - opaque bearer tokens for Webauthz.

Mints per-client, per-type bearer tokens whose secrets are never stored,
and verifies presented tokens against the stored index records.
"""

__version__ = "0.1.0"

from webauthz_token.domain.entities.token import TokenErrorKind, TokenType
from webauthz_token.infrastructure.auth import (
    InvalidTokenError,
    InvalidTokenFormatError,
    TokenCheckResult,
    TokenError,
    TokenNotFoundError,
    TokenRecord,
    TokenService,
)
from webauthz_token.infrastructure.persistence.token_store import InMemoryTokenStore, SQLTokenStore

__all__ = [
    "InMemoryTokenStore",
    "InvalidTokenError",
    "InvalidTokenFormatError",
    "SQLTokenStore",
    "TokenCheckResult",
    "TokenError",
    "TokenErrorKind",
    "TokenNotFoundError",
    "TokenRecord",
    "TokenService",
    "TokenType",
    "__version__",
]
