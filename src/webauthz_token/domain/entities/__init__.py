"""Domain entities for webauthz-token.

Entities are pure Python dataclasses and enums that represent core token
concepts. They have no dependencies on infrastructure or external frameworks.
"""

from webauthz_token.domain.entities.token import (
    RESERVED_FIELDS,
    ParsedToken,
    TokenErrorKind,
    TokenType,
)

__all__ = [
    "RESERVED_FIELDS",
    "ParsedToken",
    "TokenErrorKind",
    "TokenType",
]
