"""Token entities.

Defines the token categories, the verification failure kinds and the parsed
form of a presented bearer token.
"""

from dataclasses import dataclass, field
from enum import Enum

# Record fields owned by the service; caller metadata may not override them
RESERVED_FIELDS = frozenset({"type", "client_id", "token_buffer_length"})


class TokenType(str, Enum):
    """Well-known token categories.

    The service accepts any non-empty category string; these are the ones
    issued by the Webauthz flows.
    """

    CLIENT = "client"
    GRANT = "grant"
    REFRESH = "refresh"
    ACCESS = "access"


class TokenErrorKind(str, Enum):
    """Reasons a presented bearer token fails verification."""

    INVALID_TOKEN_FORMAT = "invalid_token_format"
    TOKEN_NOT_FOUND = "token_not_found"
    INVALID_TOKEN = "invalid_token"


@dataclass(frozen=True)
class ParsedToken:
    """A bearer token split into its components.

    Attributes:
        type: Token category from the first field.
        client_id: Owning client from the second field.
        secret: Raw secret bytes decoded from the third field.
    """

    type: str
    client_id: str
    secret: bytes = field(repr=False)

    @property
    def secret_length(self) -> int:
        """Number of bytes in the decoded secret."""
        return len(self.secret)
