"""Commitment computation and comparison for diploma data.

Plain mode hashes each field on its own, matching the reference scheme.
Blinded mode mixes a subject-held seed and the field name into every
commitment, so equal values no longer commit identically across credentials
and low-entropy fields cannot be brute forced without the seed.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from zkdiploma.sdk.errors import InvalidInput
from zkdiploma.sdk.hashing import hash_data, hash_fields
from zkdiploma.sdk.models import CommitmentSet, DiplomaData

COMMITMENT_FIELDS = ("degree_hash", "school_hash", "date_hash", "student_id_hash", "gpa_hash")


def coerce_diploma_data(data: DiplomaData | dict[str, Any]) -> DiplomaData:
    """Validate diploma data, raising InvalidInput without echoing values."""
    if isinstance(data, DiplomaData):
        data = data.model_dump()
    if not isinstance(data, dict):
        raise InvalidInput("Diploma data must be an object")

    try:
        return DiplomaData.model_validate(data)
    except ValidationError as e:
        raise InvalidInput(f"Invalid diploma data: {_describe_errors(e)}")


def format_gpa(gpa: float) -> str:
    """Locale-independent shortest round-trip text for a GPA value."""
    return repr(float(gpa))


def compute_commitments(data: DiplomaData | dict[str, Any], blinding_seed: str | None = None) -> CommitmentSet:
    """Compute the commitment set for diploma data.

    Args:
        data: Diploma data (validated first)
        blinding_seed: Optional subject-held secret for blinded commitments

    Returns:
        Commitment set with gpa commitment only when gpa is present
    """
    diploma = coerce_diploma_data(data)
    if blinding_seed is not None and not blinding_seed:
        raise InvalidInput("Blinding seed must not be empty")

    def commit(name: str, value: str) -> str:
        if blinding_seed is None:
            return hash_data(value)
        return hash_fields([name, blinding_seed, value])

    gpa_hash = None
    if diploma.gpa is not None:
        gpa_hash = commit("gpa", format_gpa(diploma.gpa))

    return CommitmentSet(
        degree_hash=commit("degree", diploma.degree),
        school_hash=commit("school", diploma.school),
        date_hash=commit("graduationDate", diploma.graduation_date),
        student_id_hash=commit("studentId", diploma.student_id),
        gpa_hash=gpa_hash,
    )


def mismatched_fields(expected: CommitmentSet, actual: CommitmentSet) -> list[str]:
    """Return commitment fields that differ.

    A gpa commitment present on one side only counts as a mismatch.
    """
    return [
        field for field in COMMITMENT_FIELDS
        if _normalize(getattr(expected, field)) != _normalize(getattr(actual, field))
    ]


def commitments_match(expected: CommitmentSet, actual: CommitmentSet) -> bool:
    return not mismatched_fields(expected, actual)


def _normalize(digest: str | None) -> str | None:
    return digest.lower() if digest is not None else None


def _describe_errors(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "data"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)
