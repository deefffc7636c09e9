"""Test the signing primitive.

Ed25519 key generation, signing and never-raising verification.
"""

from __future__ import annotations

import pytest

from zkdiploma.sdk.errors import SigningFailure
from zkdiploma.sdk.models import IssuerKeyPair
from zkdiploma.sdk.signing import (
    derive_public_key,
    generate_key_pair,
    is_valid_public_key,
    key_pair_matches,
    sign_payload,
    verify_payload,
)
from tests.helpers import flip_hex_char


def test_generate_key_pair_format() -> None:
    key_pair = generate_key_pair()

    assert len(key_pair.private_key) == 64
    assert len(key_pair.public_key) == 64
    assert is_valid_public_key(key_pair.public_key)
    assert key_pair_matches(key_pair)


def test_generate_key_pair_unique() -> None:
    """Test that key generation draws fresh randomness."""
    assert generate_key_pair().private_key != generate_key_pair().private_key


def test_private_key_hidden_from_repr() -> None:
    key_pair = generate_key_pair()

    assert key_pair.private_key not in repr(key_pair)


def test_sign_verify_round_trip() -> None:
    """Test that fresh signatures over the same message always verify."""
    key_pair = generate_key_pair()
    payload = b'{"degreeHash":"abc"}'

    for _ in range(3):
        signature = sign_payload(payload, key_pair.private_key)
        assert len(signature) == 128
        assert verify_payload(payload, signature, key_pair.public_key) is True


def test_verify_wrong_payload() -> None:
    key_pair = generate_key_pair()
    signature = sign_payload(b"message", key_pair.private_key)

    assert verify_payload(b"other message", signature, key_pair.public_key) is False


def test_verify_wrong_key() -> None:
    signature = sign_payload(b"message", generate_key_pair().private_key)

    assert verify_payload(b"message", signature, generate_key_pair().public_key) is False


def test_verify_tampered_signature() -> None:
    key_pair = generate_key_pair()
    signature = sign_payload(b"message", key_pair.private_key)

    assert verify_payload(b"message", flip_hex_char(signature), key_pair.public_key) is False


@pytest.mark.parametrize("signature", ["", "too_short", "x" * 128, "g" * 128, "ab" * 65])
def test_verify_malformed_signature_returns_false(signature: str) -> None:
    key_pair = generate_key_pair()

    assert verify_payload(b"message", signature, key_pair.public_key) is False


@pytest.mark.parametrize("public_key", ["", "abc", "zz" * 32, "ab" * 33])
def test_verify_malformed_key_returns_false(public_key: str) -> None:
    key_pair = generate_key_pair()
    signature = sign_payload(b"message", key_pair.private_key)

    assert verify_payload(b"message", signature, public_key) is False


@pytest.mark.parametrize("private_key", ["", "not-hex", "ab" * 16, "zz" * 32])
def test_sign_malformed_private_key_raises(private_key: str) -> None:
    with pytest.raises(SigningFailure):
        sign_payload(b"message", private_key)


def test_derive_public_key() -> None:
    key_pair = generate_key_pair()

    assert derive_public_key(key_pair.private_key) == key_pair.public_key


def test_key_pair_matches_detects_foreign_public_key() -> None:
    key_pair = IssuerKeyPair(
        private_key=generate_key_pair().private_key,
        public_key=generate_key_pair().public_key,
    )

    assert key_pair_matches(key_pair) is False
