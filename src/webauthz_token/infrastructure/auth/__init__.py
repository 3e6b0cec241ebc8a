"""Token cryptography and the token service.

This module provides the base64url/digest primitives and the service that
mints and verifies bearer tokens.
"""

from webauthz_token.infrastructure.auth.token_codec import (
    TOKEN_SECRET_LENGTH,
    HashlibDigest,
    TokenDigest,
    base64url_decode,
    base64url_encode,
    mask_token,
    random_token_bytes,
)
from webauthz_token.infrastructure.auth.token_service import (
    InvalidTokenError,
    InvalidTokenFormatError,
    TokenError,
    TokenNotFoundError,
    TokenService,
    TokenStoreProtocol,
)
from webauthz_token.infrastructure.auth.token_types import TokenCheckResult, TokenRecord

__all__ = [
    "TOKEN_SECRET_LENGTH",
    "HashlibDigest",
    "InvalidTokenError",
    "InvalidTokenFormatError",
    "TokenCheckResult",
    "TokenDigest",
    "TokenError",
    "TokenNotFoundError",
    "TokenRecord",
    "TokenService",
    "TokenStoreProtocol",
    "base64url_decode",
    "base64url_encode",
    "mask_token",
    "random_token_bytes",
]
