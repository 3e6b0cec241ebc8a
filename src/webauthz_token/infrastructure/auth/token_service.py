"""Bearer token issuance and verification.

A bearer token is ``<type><sep><client_id><sep><base64url(secret)>`` where the
secret is fresh random bytes. Only a record keyed by
``<type><sep><client_id><sep><base64url(digest(secret))>`` is persisted, so
storage never holds a usable token. Prefixing the index with the type and
client_id gives every (type, client) pair its own token space.
"""

from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any, Protocol

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from webauthz_token.core.config import get_settings, validate_separator
from webauthz_token.core.logging import as_keyword_logger
from webauthz_token.domain.entities.token import RESERVED_FIELDS, ParsedToken, TokenErrorKind
from webauthz_token.infrastructure.auth.token_codec import (
    TOKEN_SECRET_LENGTH,
    HashlibDigest,
    TokenDigest,
    base64url_decode,
    base64url_encode,
    mask_token,
    random_token_bytes,
)
from webauthz_token.infrastructure.auth.token_types import TokenCheckResult, TokenRecord


class TokenError(Exception):
    """Base exception for bearer token verification failures."""

    kind: TokenErrorKind = TokenErrorKind.INVALID_TOKEN


class InvalidTokenFormatError(TokenError):
    """Raised when a bearer token does not parse into type, client_id and secret."""

    kind = TokenErrorKind.INVALID_TOKEN_FORMAT


class TokenNotFoundError(TokenError):
    """Raised when no record exists at the index derived from a bearer token."""

    kind = TokenErrorKind.TOKEN_NOT_FOUND


class InvalidTokenError(TokenError):
    """Raised when the stored record disagrees with the presented token."""

    kind = TokenErrorKind.INVALID_TOKEN


class TokenStoreProtocol(Protocol):
    """Persistence collaborator for token records."""

    async def create_token(self, index: str, record: dict[str, Any]) -> bool:
        """Insert ``record`` at ``index`` only if the index is unused."""
        ...

    async def fetch_token(self, index: str) -> Mapping[str, Any] | None:
        """Return the record at ``index``, or None."""
        ...


class TokenLogger(Protocol):
    """Keyword-style logger; see :func:`as_keyword_logger` for plain loggers."""

    def debug(self, event: str, **kw: Any) -> Any: ...

    def info(self, event: str, **kw: Any) -> Any: ...

    def warning(self, event: str, **kw: Any) -> Any: ...

    def error(self, event: str, **kw: Any) -> Any: ...


def _as_str(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class TokenService:
    """Mint and verify opaque bearer tokens.

    Changing the separator of a running deployment makes every token issued
    with the previous separator unparseable, so it must stay fixed for the
    lifetime of the stored tokens.
    """

    def __init__(
        self,
        database: TokenStoreProtocol,
        *,
        separator: str | None = None,
        log: Any = None,
        digest: TokenDigest | None = None,
        random_source: Callable[[int], bytes] | None = None,
    ) -> None:
        """Initialize the token service.

        Args:
            database: Store implementing ``create_token`` and ``fetch_token``.
            separator: Field separator; defaults to the configured one.
            log: structlog logger, :class:`logging.Logger`, or any logger with
                trace/info/warn/error methods taking one message string;
                defaults to the package structlog logger.
            digest: Hash strategy for indexes; defaults to the configured
                hashlib algorithm.
            random_source: Callable returning n random bytes; defaults to the
                operating system CSPRNG.
        """
        if database is None:
            raise ValueError("TokenService requires a database")

        settings = get_settings()
        self.database = database
        self.separator = validate_separator(
            separator if separator is not None else settings.token_separator
        )
        self.log: TokenLogger = as_keyword_logger(log, __name__)
        self.digest = digest or HashlibDigest(settings.token_hash_algorithm)
        self.random_source = random_source or random_token_bytes

    def derive_index(self, type: str, client_id: str, secret: bytes) -> str:
        """Compute the storage index for a secret in a (type, client) namespace."""
        token_hash = base64url_encode(self.digest.digest(secret))
        return self.separator.join([type, client_id, token_hash])

    def _check_field(self, name: str, value: Any) -> str:
        value = _as_str(value)
        if not isinstance(value, str) or not value:
            raise ValueError(f"{name} must be a non-empty string")
        if self.separator in value:
            raise ValueError(f"{name} must not contain the separator {self.separator!r}")
        return value

    async def generate_token(
        self,
        type: str,
        client_id: str,
        metadata: Mapping[str, Any] | None = None,
        **extra: Any,
    ) -> str | None:
        """Mint a token and persist its index record.

        Args:
            type: Token category, e.g. ``access``.
            client_id: Client that owns the token.
            metadata: Opaque fields stored with the record.
            **extra: More opaque fields, merged over ``metadata``.

        Returns:
            The bearer token, or None if the store did not create the record.

        Raises:
            ValueError: If type or client_id is empty or contains the
                separator, or metadata uses a reserved field name or has no
                JSON representation.
        """
        type = self._check_field("type", type)
        client_id = self._check_field("client_id", client_id)

        info = {**(metadata or {}), **extra}
        reserved = RESERVED_FIELDS.intersection(info)
        if reserved:
            raise ValueError(f"Metadata uses reserved fields: {', '.join(sorted(reserved))}")

        secret = self.random_source(TOKEN_SECRET_LENGTH)
        token = self.separator.join([type, client_id, base64url_encode(secret)])
        index = self.derive_index(type, client_id, secret)
        # Both stores keep the JSON form, so a datetime comes back as an ISO string
        try:
            record = TokenRecord.model_validate(
                {**info, "type": type, "client_id": client_id, "token_buffer_length": len(secret)}
            ).model_dump(mode="json")
        except (ValidationError, PydanticSerializationError) as e:
            raise ValueError(f"Metadata is not JSON serializable: {e}") from e

        is_created = await self.database.create_token(index, record)
        if not is_created:
            # Never hand out a token without a stored record
            self.log.debug("generate_token: store did not create token", type=type, client_id=client_id)
            return None

        self.log.info("Token issued", type=type, client_id=client_id, token=mask_token(token, self.separator))
        return token

    def parse_token(self, bearer_token: str) -> ParsedToken:
        """Split a bearer token into type, client_id and raw secret.

        Raises:
            InvalidTokenFormatError: If the token does not have exactly three
                non-empty fields or the secret is not valid base64url.
        """
        if not isinstance(bearer_token, str):
            raise InvalidTokenFormatError("Bearer token must be a string")

        parts = bearer_token.split(self.separator)
        if len(parts) != 3 or not all(parts):
            raise InvalidTokenFormatError("Invalid token format: must have 3 non-empty parts")

        type, client_id, token_value = parts
        try:
            secret = base64url_decode(token_value)
        except ValueError as e:
            raise InvalidTokenFormatError("Invalid token format: secret is not base64url") from e

        return ParsedToken(type=type, client_id=client_id, secret=secret)

    async def check_token(self, bearer_token: str) -> TokenRecord:
        """Verify a bearer token and return its stored record.

        Expiry is not evaluated; callers compare any ``not_after`` metadata
        in the returned record themselves.

        Args:
            bearer_token: Token as presented in the Authorization header.

        Returns:
            TokenRecord: The record stored when the token was minted.

        Raises:
            InvalidTokenFormatError: If the token cannot be parsed.
            TokenNotFoundError: If no record exists for the token.
            InvalidTokenError: If the record does not match the token.
        """
        masked = mask_token(bearer_token, self.separator) if isinstance(bearer_token, str) else None

        try:
            parsed = self.parse_token(bearer_token)
        except InvalidTokenFormatError as e:
            self.log.debug("check_token: invalid bearer token format", token=masked, reason=str(e))
            raise

        # The token space is per type, per client
        index = self.derive_index(parsed.type, parsed.client_id, parsed.secret)
        stored = await self.database.fetch_token(index)

        if not isinstance(stored, Mapping):
            self.log.debug("check_token: token not found", token=masked)
            raise TokenNotFoundError("Token not found")

        if stored.get("type") != parsed.type:
            self.log.debug("check_token: token type does not match stored value", token=masked)
            raise InvalidTokenError("Invalid token")

        if stored.get("client_id") != parsed.client_id:
            self.log.debug("check_token: token client_id does not match stored value", token=masked)
            raise InvalidTokenError("Invalid token")

        if stored.get("token_buffer_length") != parsed.secret_length:
            self.log.debug("check_token: token length does not match stored value", token=masked)
            raise InvalidTokenError("Invalid token")

        try:
            record = TokenRecord.model_validate(dict(stored))
        except ValidationError as e:
            self.log.debug("check_token: stored record is malformed", token=masked, errors=e.error_count())
            raise InvalidTokenError("Invalid token") from e

        self.log.debug("check_token: token valid", type=record.type, client_id=record.client_id)
        return record

    async def verify_token(self, bearer_token: str) -> TokenCheckResult:
        """Verify a bearer token without raising for token errors.

        Returns:
            TokenCheckResult: The record on success, otherwise the error kind.
        """
        try:
            record = await self.check_token(bearer_token)
        except TokenError as e:
            return TokenCheckResult(error=e.kind)
        return TokenCheckResult(record=record)
