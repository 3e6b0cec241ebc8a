"""Encoding, hashing and randomness primitives for bearer tokens.

Secrets are rendered with the url-safe base64 alphabet of RFC 4648 section 5
with padding stripped. Token indexes are derived from a one-way digest of the
raw secret bytes, SHA-384 unless configured otherwise.
"""

import base64
import hashlib
import secrets
from typing import Protocol

# Random bytes in every token secret; fixed regardless of digest or separator
TOKEN_SECRET_LENGTH = 96


def base64url_encode(data: bytes) -> str:
    """Encode bytes to a base64url string without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def base64url_decode(data: str) -> bytes:
    """Decode an unpadded base64url string.

    Args:
        data: Encoded value, with or without padding.

    Returns:
        The decoded bytes.

    Raises:
        ValueError: If the value is not valid base64url.
    """
    try:
        raw = data.encode("ascii")
    except UnicodeEncodeError as e:
        raise ValueError("base64url value must be ASCII") from e
    if b"+" in raw or b"/" in raw:
        raise ValueError("base64url value contains standard base64 characters")
    padding = b"=" * (-len(raw) % 4)
    # binascii.Error is a ValueError subclass
    return base64.b64decode(raw + padding, altchars=b"-_", validate=True)


def random_token_bytes(length: int) -> bytes:
    """Return ``length`` bytes from the operating system CSPRNG."""
    return secrets.token_bytes(length)


class TokenDigest(Protocol):
    """One-way hash strategy used to derive token indexes."""

    name: str

    def digest(self, data: bytes) -> bytes: ...


class HashlibDigest:
    """Digest strategy backed by a fixed-size :mod:`hashlib` algorithm."""

    def __init__(self, algorithm: str = "sha384") -> None:
        """Initialize the digest strategy.

        Args:
            algorithm: Name of a hashlib algorithm.

        Raises:
            ValueError: If hashlib does not provide the algorithm.
        """
        self.digest_size = hashlib.new(algorithm).digest_size
        if not self.digest_size:
            raise ValueError(f"Variable length digests are not supported: {algorithm}")
        self.name = algorithm.lower()

    def digest(self, data: bytes) -> bytes:
        return hashlib.new(self.name, data).digest()

    def __repr__(self) -> str:
        return f"HashlibDigest({self.name!r})"


def mask_token(token: str, separator: str = ":") -> str:
    """Mask a bearer token for display.

    Format: <type>:<client_id>:abcd...wxyz

    Args:
        token: The full bearer token, or any string.
        separator: Separator used by the token.

    Returns:
        Masked token string that does not reveal the secret.
    """
    parts = token.split(separator)
    if len(parts) == 3:
        category, client_id, secret = parts
        if len(secret) > 12:
            secret = f"{secret[:4]}...{secret[-4:]}"
        else:
            secret = "****"
        return separator.join([category, client_id, secret])

    if len(token) > 12:
        return f"{token[:6]}...{token[-4:]}"
    return "****"
