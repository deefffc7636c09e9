"""Signing primitive.

Ed25519 key generation, signing and verification over raw byte payloads.
Keys and signatures cross the boundary as lowercase hex.
"""

from __future__ import annotations

import logging

from nacl.exceptions import CryptoError
from nacl.signing import SigningKey, VerifyKey

from zkdiploma.sdk.errors import InvalidInput, SigningFailure
from zkdiploma.sdk.hashing import is_valid_hex
from zkdiploma.sdk.models import IssuerKeyPair

logger = logging.getLogger(__name__)

KEY_HEX_LENGTH = 64
SIGNATURE_HEX_LENGTH = 128


def generate_key_pair() -> IssuerKeyPair:
    """Generate Ed25519 key pair from the OS CSPRNG."""
    signing_key = SigningKey.generate()
    return IssuerKeyPair(
        private_key=signing_key.encode().hex(),
        public_key=bytes(signing_key.verify_key).hex(),
    )


def sign_payload(payload: bytes, private_key_hex: str) -> str:
    """Sign payload and return hex signature.

    Raises:
        SigningFailure: If the private key is malformed
    """
    if not isinstance(payload, bytes):
        raise InvalidInput("Payload must be bytes")

    signing_key = _load_signing_key(private_key_hex)
    signed = signing_key.sign(payload)
    return signed.signature.hex()


def verify_payload(payload: bytes, signature_hex: str, public_key_hex: str) -> bool:
    """Verify hex signature over payload. Never raises."""
    if not isinstance(payload, bytes) or not signature_hex or not public_key_hex:
        return False
    if not _has_hex_length(signature_hex, SIGNATURE_HEX_LENGTH):
        return False

    verify_key = load_verify_key(public_key_hex)
    if verify_key is None:
        return False

    try:
        verify_key.verify(payload, bytes.fromhex(signature_hex))
        return True
    except (CryptoError, ValueError, TypeError):
        return False


def load_verify_key(public_key_hex: str) -> VerifyKey | None:
    """Parse hex public key, returning None when malformed."""
    if not _has_hex_length(public_key_hex, KEY_HEX_LENGTH):
        return None
    try:
        return VerifyKey(bytes.fromhex(public_key_hex))
    except (ValueError, TypeError):
        return None


def is_valid_public_key(public_key_hex: str) -> bool:
    """Check public key format."""
    return load_verify_key(public_key_hex) is not None


def derive_public_key(private_key_hex: str) -> str:
    """Derive hex public key from hex private key.

    Used for loading key files only; issuance never calls this.
    """
    return bytes(_load_signing_key(private_key_hex).verify_key).hex()


def key_pair_matches(key_pair: IssuerKeyPair) -> bool:
    """Check that the key pair halves belong together."""
    try:
        return derive_public_key(key_pair.private_key) == key_pair.public_key.lower()
    except SigningFailure:
        return False


def _load_signing_key(private_key_hex: str) -> SigningKey:
    """Parse hex private key (32-byte seed)."""
    if not _has_hex_length(private_key_hex, KEY_HEX_LENGTH):
        logger.debug("Rejected private key with unexpected encoding")
        raise SigningFailure("Private key must be 64 hex characters")
    try:
        return SigningKey(bytes.fromhex(private_key_hex))
    except (ValueError, TypeError) as e:
        raise SigningFailure(f"Invalid private key: {e}")


def _has_hex_length(value: str, length: int) -> bool:
    return isinstance(value, str) and len(value) == length and is_valid_hex(value)
