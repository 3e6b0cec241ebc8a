"""Unit tests for TokenService.check_token and verify_token."""

import pytest

from webauthz_token.domain.entities.token import TokenErrorKind
from webauthz_token.infrastructure.auth import (
    InvalidTokenError,
    InvalidTokenFormatError,
    TokenError,
    TokenNotFoundError,
    TokenRecord,
    TokenService,
)


def _flip_char(value: str, position: int) -> str:
    replacement = "B" if value[position] == "A" else "A"
    return value[:position] + replacement + value[position + 1:]


class TestCheckToken:
    """Tests for successful verification."""

    @pytest.mark.asyncio
    async def test_roundtrip_returns_stored_record(self, memory_store, fixed_random):
        service = TokenService(memory_store, random_source=fixed_random)
        token = await service.generate_token("access", "c1", {"scope": "read"})

        record = await service.check_token(token)

        assert isinstance(record, TokenRecord)
        assert record.model_dump() == {
            "type": "access",
            "client_id": "c1",
            "scope": "read",
            "token_buffer_length": 96,
        }
        assert record.metadata == {"scope": "read"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "token_type,client_id,metadata",
        [
            ("client", "app-1", {}),
            ("grant", "app-2", {"scope": ["read", "write"], "realm": "r"}),
            ("refresh", "app-3", {"not_after": 1893456000, "nested": {"a": [1, 2]}}),
        ],
    )
    async def test_roundtrip_preserves_metadata(self, token_service, token_type, client_id, metadata):
        token = await token_service.generate_token(token_type, client_id, metadata)

        record = await token_service.check_token(token)

        assert record.type == token_type
        assert record.client_id == client_id
        assert record.metadata == metadata

    @pytest.mark.asyncio
    async def test_expired_not_after_is_not_evaluated(self, token_service):
        """Test expiry metadata is returned to the caller, not enforced."""
        token = await token_service.generate_token("access", "c1", {"not_after": 0})

        record = await token_service.check_token(token)

        assert record.metadata["not_after"] == 0

    @pytest.mark.asyncio
    async def test_custom_separator(self, memory_store):
        service = TokenService(memory_store, separator="~")
        token = await service.generate_token("access", "c:1")

        assert token.startswith("access~c:1~")
        record = await service.check_token(token)
        assert record.client_id == "c:1"


class TestCheckTokenFailures:
    """Tests for the failure paths of check_token."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "bearer",
        [
            "",
            "access",
            "access:c1",
            "access:c1:abcd:extra",
            "access:c1:",
            ":c1:abcd",
            "access::abcd",
            "access:c1:not*base64",
            "access:c1:a",
        ],
    )
    async def test_malformed_token(self, token_service, bearer):
        with pytest.raises(InvalidTokenFormatError):
            await token_service.check_token(bearer)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bearer", [None, 123, b"access:c1:abcd"])
    async def test_non_string_token(self, token_service, bearer):
        with pytest.raises(InvalidTokenFormatError):
            await token_service.check_token(bearer)

    @pytest.mark.asyncio
    async def test_old_separator_tokens_fail_to_parse(self, memory_store):
        token = await TokenService(memory_store).generate_token("access", "c1")

        with pytest.raises(InvalidTokenFormatError):
            await TokenService(memory_store, separator="~").check_token(token)

    @pytest.mark.asyncio
    async def test_unknown_token(self, token_service):
        token = await token_service.generate_token("access", "c1")
        other = TokenService(type(token_service.database)())

        with pytest.raises(TokenNotFoundError):
            await other.check_token(token)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("position", [0, 1, 63, 127])
    async def test_tampered_secret(self, token_service, position):
        """Test flipping a character of the secret changes the index."""
        token = await token_service.generate_token("access", "c1")
        token_type, client_id, secret = token.split(":")
        tampered = ":".join([token_type, client_id, _flip_char(secret, position)])

        with pytest.raises(TokenNotFoundError):
            await token_service.check_token(tampered)

    @pytest.mark.asyncio
    async def test_truncated_secret(self, token_service):
        token = await token_service.generate_token("access", "c1")

        with pytest.raises((TokenNotFoundError, InvalidTokenFormatError)):
            await token_service.check_token(token[:-2])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["type", "client_id"])
    async def test_swapped_namespace(self, token_service, field):
        """Test moving a secret to another type or client does not verify."""
        token = await token_service.generate_token("access", "c1")
        token_type, client_id, secret = token.split(":")
        if field == "type":
            token_type = "refresh"
        else:
            client_id = "c2"

        with pytest.raises(TokenNotFoundError):
            await token_service.check_token(":".join([token_type, client_id, secret]))

    @pytest.mark.asyncio
    async def test_empty_secret_example(self, token_service):
        await token_service.generate_token("access", "c1")

        with pytest.raises(TokenError):
            await token_service.check_token("access:c1:")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "stored",
        [
            {"type": "refresh", "client_id": "c1", "token_buffer_length": 96},
            {"type": "access", "client_id": "c2", "token_buffer_length": 96},
            {"type": "access", "client_id": "c1", "token_buffer_length": 95},
            {"type": "access", "client_id": "c1", "token_buffer_length": "96"},
            {"type": "access", "client_id": "c1"},
        ],
    )
    async def test_record_mismatch(self, make_stub_store, fixed_random, stored):
        """Test a record that disagrees with the token is rejected."""
        service = TokenService(make_stub_store(stored), random_source=fixed_random)
        token = await service.generate_token("access", "c1")

        with pytest.raises(InvalidTokenError):
            await service.check_token(token)

    @pytest.mark.asyncio
    async def test_record_not_a_mapping(self, make_stub_store):
        service = TokenService(make_stub_store("access:c1"))
        token = await service.generate_token("access", "c1")

        with pytest.raises(TokenNotFoundError):
            await service.check_token(token)

    @pytest.mark.asyncio
    async def test_fetch_uses_derived_index(self, make_stub_store, fixed_random):
        store = make_stub_store(None)
        service = TokenService(store, random_source=fixed_random)
        token = await service.generate_token("access", "c1")

        with pytest.raises(TokenNotFoundError):
            await service.check_token(token)

        parsed = service.parse_token(token)
        assert store.fetched == [service.derive_index("access", "c1", parsed.secret)]


class TestVerifyToken:
    """Tests for the non-raising verify_token."""

    @pytest.mark.asyncio
    async def test_success(self, token_service):
        token = await token_service.generate_token("access", "c1", {"scope": "read"})

        result = await token_service.verify_token(token)

        assert result.ok
        assert result.error is None
        assert result.record.metadata == {"scope": "read"}

    @pytest.mark.asyncio
    async def test_invalid_format(self, token_service):
        result = await token_service.verify_token("access:c1")

        assert not result.ok
        assert result.record is None
        assert result.error == TokenErrorKind.INVALID_TOKEN_FORMAT

    @pytest.mark.asyncio
    async def test_not_found(self, token_service):
        result = await token_service.verify_token("access:c1:" + "A" * 128)

        assert result.error == TokenErrorKind.TOKEN_NOT_FOUND

    @pytest.mark.asyncio
    async def test_invalid_token(self, make_stub_store):
        service = TokenService(make_stub_store({"type": "access", "client_id": "other", "token_buffer_length": 96}))
        token = await service.generate_token("access", "c1")

        result = await service.verify_token(token)

        assert result.error == TokenErrorKind.INVALID_TOKEN
        assert result.record is None


class TestInjectedLogger:
    """Tests that diagnostics through a plain logger never change outcomes."""

    @pytest.mark.asyncio
    async def test_stdlib_logger_invalid_format(self, memory_store, stdlib_logger, caplog):
        service = TokenService(memory_store, log=stdlib_logger)

        with pytest.raises(InvalidTokenFormatError):
            await service.check_token("access:c1")

        assert any("invalid bearer token format" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_stdlib_logger_not_found(self, memory_store, stdlib_logger):
        service = TokenService(memory_store, log=stdlib_logger)

        with pytest.raises(TokenNotFoundError):
            await service.check_token("access:c1:" + "A" * 128)

    @pytest.mark.asyncio
    async def test_stdlib_logger_invalid_token(self, make_stub_store, stdlib_logger):
        stored = {"type": "access", "client_id": "other", "token_buffer_length": 96}
        service = TokenService(make_stub_store(stored), log=stdlib_logger)
        token = await service.generate_token("access", "c1")

        with pytest.raises(InvalidTokenError):
            await service.check_token(token)

    @pytest.mark.asyncio
    async def test_stdlib_logger_mint_logs_masked_token(self, memory_store, stdlib_logger, caplog):
        service = TokenService(memory_store, log=stdlib_logger)

        token = await service.generate_token("access", "c1")

        messages = [r.getMessage() for r in caplog.records]
        assert any(m.startswith("Token issued") for m in messages)
        assert all(token.split(":")[2] not in m for m in messages)

    @pytest.mark.asyncio
    async def test_trace_warn_logger_receives_strings(self, memory_store, recording_logger):
        service = TokenService(memory_store, log=recording_logger)

        token = await service.generate_token("access", "c1")
        await service.check_token(token)
        with pytest.raises(InvalidTokenFormatError):
            await service.check_token("garbage")

        levels = [level for level, _ in recording_logger.lines]
        assert "info" in levels
        assert "trace" in levels
        assert all(isinstance(message, str) for _, message in recording_logger.lines)
