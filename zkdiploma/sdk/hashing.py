"""Hashing primitive and canonical JSON encoding.

All digests are SHA-256, lowercase hex. Multi-field hashing escapes the
separator so distinct field lists can never encode to the same string.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from zkdiploma.sdk.errors import InvalidInput

FIELD_SEPARATOR = "|"
DIGEST_HEX_LENGTH = 64
_HEX_CHARS = frozenset("0123456789abcdefABCDEF")


def hash_data(data: str) -> str:
    """Hash UTF-8 text with SHA-256.

    Args:
        data: Text to hash (may be empty)

    Returns:
        Hex-encoded SHA-256 digest
    """
    if not isinstance(data, str):
        raise InvalidInput(f"Hash input must be text, got {type(data).__name__}")
    return hashlib.sha256(data.encode('utf-8')).hexdigest()


def hash_fields(fields: list[str]) -> str:
    """Hash an ordered list of fields joined with an escaped separator."""
    if not fields:
        raise InvalidInput("At least one field is required")
    return hash_data(FIELD_SEPARATOR.join(_escape_field(f) for f in fields))


def merkle_root(digests: list[str]) -> str:
    """Fold digests pairwise into a single root digest.

    The last digest of an odd-sized level is paired with itself.
    """
    if not digests:
        raise InvalidInput("Cannot create merkle root from empty list")

    level = list(digests)
    while len(level) > 1:
        if len(level) % 2:
            level.append(level[-1])
        level = [hash_data(level[i] + level[i + 1]) for i in range(0, len(level), 2)]
    return level[0]


def canonical_json(data: dict[str, Any]) -> str:
    """Encode a dictionary as canonical JSON (sorted keys, no whitespace)."""
    if not data:
        raise ValueError("Data cannot be empty")
    return json.dumps(data, sort_keys=True, separators=(',', ':'))


def canonical_json_hash(data: dict[str, Any]) -> str:
    """Generate deterministic SHA-256 hash from canonical JSON."""
    return hash_data(canonical_json(data))


def is_hex_digest(value: str) -> bool:
    """Check that value looks like a SHA-256 hex digest."""
    if not isinstance(value, str) or len(value) != DIGEST_HEX_LENGTH:
        return False
    return is_valid_hex(value)


def is_valid_hex(value: str) -> bool:
    """Validate even-length hex string."""
    if not isinstance(value, str) or not value or len(value) % 2:
        return False
    return all(c in _HEX_CHARS for c in value)


def _escape_field(field: str) -> str:
    if not isinstance(field, str):
        raise InvalidInput(f"Field must be text, got {type(field).__name__}")
    return field.replace("\\", "\\\\").replace(FIELD_SEPARATOR, "\\" + FIELD_SEPARATOR)
