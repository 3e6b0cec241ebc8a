"""Unit tests for token encoding, hashing and masking helpers."""

import base64
import hashlib

import pytest

from webauthz_token.infrastructure.auth.token_codec import (
    HashlibDigest,
    base64url_decode,
    base64url_encode,
    mask_token,
    random_token_bytes,
)


class TestBase64Url:
    """Tests for the url-safe base64 transform."""

    def test_encode_uses_url_safe_alphabet_without_padding(self):
        """Test that + and / are replaced and = padding is stripped."""
        data = b"\xfb\xff\xbf"  # standard base64: "+/+/"
        assert base64.b64encode(data) == b"+/+/"
        assert base64url_encode(data) == "-_-_"

        assert base64url_encode(b"a") == "YQ"
        assert "=" not in base64url_encode(b"ab")

    def test_decode_accepts_unpadded_input(self):
        assert base64url_decode("YQ") == b"a"
        assert base64url_decode("YWI") == b"ab"
        assert base64url_decode("-_-_") == b"\xfb\xff\xbf"

    def test_decode_accepts_padded_input(self):
        assert base64url_decode("YQ==") == b"a"

    @pytest.mark.parametrize("value", ["+/+/", "abc*", "Y", "é"])
    def test_decode_rejects_invalid_input(self, value):
        """Test that standard-alphabet, foreign and truncated values are rejected."""
        with pytest.raises(ValueError):
            base64url_decode(value)

    def test_96_byte_secret_encodes_to_128_chars(self):
        encoded = base64url_encode(bytes(96))
        assert len(encoded) == 128
        assert base64url_decode(encoded) == bytes(96)


class TestHashlibDigest:
    """Tests for the hashlib digest strategy."""

    def test_default_is_sha384(self):
        digest = HashlibDigest()
        assert digest.name == "sha384"
        assert digest.digest_size == 48
        assert digest.digest(b"secret") == hashlib.sha384(b"secret").digest()

    def test_other_algorithm(self):
        digest = HashlibDigest("SHA256")
        assert digest.name == "sha256"
        assert digest.digest(b"secret") == hashlib.sha256(b"secret").digest()

    def test_unknown_algorithm_rejected(self):
        with pytest.raises(ValueError):
            HashlibDigest("not-a-hash")

    def test_variable_length_algorithm_rejected(self):
        with pytest.raises(ValueError, match="Variable length"):
            HashlibDigest("shake_128")


def test_random_token_bytes_length_and_freshness():
    first = random_token_bytes(96)
    second = random_token_bytes(96)
    assert len(first) == 96
    assert first != second


class TestMaskToken:
    """Tests for mask_token."""

    def test_mask_bearer_token(self):
        token = "access:c1:" + "A" * 4 + "x" * 120 + "Z" * 4
        masked = mask_token(token)
        assert masked == "access:c1:AAAA...ZZZZ"
        assert "x" not in masked

    def test_mask_short_secret(self):
        assert mask_token("access:c1:abc") == "access:c1:****"

    def test_mask_custom_separator(self):
        token = "grant~c2~" + "q" * 128
        assert mask_token(token, "~") == "grant~c2~qqqq...qqqq"

    def test_mask_unstructured_value(self):
        assert mask_token("garbage-without-separators") == "garbag...tors"
        assert mask_token("short") == "****"
