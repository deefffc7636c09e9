"""Shared builders for zkdiploma tests."""

from __future__ import annotations

from typing import Any

from zkdiploma.sdk.issuer import issue_credential
from zkdiploma.sdk.models import Credential, IssuerKeyPair
from zkdiploma.sdk.signing import generate_key_pair


def scenario_diploma(**overrides: Any) -> dict[str, Any]:
    """Diploma data used across the suite, as boundary JSON."""
    data: dict[str, Any] = {
        "degree": "B.Sc. CS",
        "school": "MIT",
        "graduationDate": "2023-05-15",
        "studentId": "123456789",
        "gpa": 3.85,
    }
    data.update(overrides)
    return {key: value for key, value in data.items() if value is not None}


def issue_scenario_credential(
    key_pair: IssuerKeyPair | None = None,
    blinding_seed: str | None = None,
    **overrides: Any,
) -> tuple[Credential, IssuerKeyPair, dict[str, Any]]:
    """Issue a credential for the scenario diploma."""
    key_pair = key_pair or generate_key_pair()
    diploma = scenario_diploma(**overrides)
    return issue_credential(diploma, key_pair, blinding_seed), key_pair, diploma


def flip_hex_char(value: str, index: int = -1) -> str:
    """Change one hex character of value."""
    index = index % len(value)
    replacement = "0" if value[index] != "0" else "1"
    return value[:index] + replacement + value[index + 1:]
