"""Token record and verification result types.

``TokenRecord`` is the value persisted at a token index; ``TokenCheckResult``
is the non-raising outcome of verifying a bearer token.
"""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from webauthz_token.domain.entities.token import TokenErrorKind


class TokenRecord(BaseModel):
    """Record stored for an issued token.

    Caller metadata (scopes, a ``not_after`` timestamp, ...) is carried as
    extra fields and passed through unchanged.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    type: str = Field(..., min_length=1, description="Token category")
    client_id: str = Field(..., min_length=1, description="Client that owns the token")
    token_buffer_length: int = Field(..., description="Length in bytes of the token secret")

    @property
    def metadata(self) -> dict[str, Any]:
        """Caller supplied fields, without the service owned ones."""
        return dict(self.model_extra or {})


@dataclass(frozen=True)
class TokenCheckResult:
    """Outcome of verifying a bearer token.

    Exactly one of ``record`` and ``error`` is set.
    """

    record: TokenRecord | None = None
    error: TokenErrorKind | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.record is not None
