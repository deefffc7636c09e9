"""did:key identifiers for issuer public keys.

W3C did:key encoding of Ed25519 issuer keys, so verifiers may list trusted
issuers either as hex public keys or as DIDs.
"""

from __future__ import annotations

from typing import Any

import multibase

from zkdiploma.sdk.signing import is_valid_public_key

DID_KEY_PREFIX = "did:key:"
ED25519_MULTICODEC = b'\xed\x01'


def issuer_did(public_key_hex: str) -> str:
    """Encode hex Ed25519 public key as did:key."""
    if not is_valid_public_key(public_key_hex):
        raise ValueError("Issuer public key must be 64 hex characters")

    multicodec_key = ED25519_MULTICODEC + bytes.fromhex(public_key_hex)
    multibase_key = multibase.encode('base58btc', multicodec_key)
    return f"{DID_KEY_PREFIX}{multibase_key.decode('utf-8')}"


def did_to_public_key(did_key: str) -> str:
    """Parse did:key back to hex public key."""
    if not validate_did_key_format(did_key):
        raise ValueError(f"Invalid did:key format: {did_key}")

    multicodec_bytes = multibase.decode(did_key[len(DID_KEY_PREFIX):])
    return _extract_public_key(multicodec_bytes).hex()


def validate_did_key_format(did_key: str) -> bool:
    """Validate Ed25519 did:key format."""
    if not isinstance(did_key, str) or not did_key.startswith(DID_KEY_PREFIX + "z6Mk"):
        return False

    try:
        _extract_public_key(multibase.decode(did_key[len(DID_KEY_PREFIX):]))
        return True
    except Exception:
        return False


def normalize_issuer_key(issuer: str) -> str:
    """Return lowercase hex public key for a hex key or did:key."""
    if isinstance(issuer, str) and issuer.startswith(DID_KEY_PREFIX):
        return did_to_public_key(issuer)
    if not is_valid_public_key(issuer):
        raise ValueError("Issuer key must be a did:key or 64 hex characters")
    return issuer.lower()


def resolve_did_document(did_key: str) -> dict[str, Any]:
    """Generate DID document for an issuer did:key."""
    if not validate_did_key_format(did_key):
        raise ValueError(f"Invalid did:key: {did_key}")

    multibase_key = did_key[len(DID_KEY_PREFIX):]
    key_id = f"{did_key}#{multibase_key}"
    return {
        "@context": [
            "https://www.w3.org/ns/did/v1",
            "https://w3id.org/security/suites/ed25519-2020/v1"
        ],
        "id": did_key,
        "verificationMethod": [{
            "id": key_id,
            "type": "Ed25519VerificationKey2020",
            "controller": did_key,
            "publicKeyMultibase": multibase_key
        }],
        "assertionMethod": [key_id]
    }


def _extract_public_key(multicodec_bytes: bytes) -> bytes:
    """Strip the Ed25519 multicodec prefix."""
    if len(multicodec_bytes) != 34 or multicodec_bytes[:2] != ED25519_MULTICODEC:
        raise ValueError("Invalid Ed25519 multicodec format")
    return multicodec_bytes[2:]
