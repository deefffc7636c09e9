"""Pydantic models for credential, commitment and proof data structures.

Boundary JSON uses camelCase aliases; Python code uses snake_case names.
Every public artifact is frozen: once built it is never mutated.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from zkdiploma.sdk.hashing import canonical_json, hash_fields

HEX_DIGEST_PATTERN = r"^[0-9a-fA-F]{64}$"


class BoundaryModel(BaseModel):
    """Base for models exchanged as camelCase JSON."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_dict(self) -> dict[str, Any]:
        """Dump as camelCase dictionary, omitting absent optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


class IssuerKeyPair(BaseModel):
    """Issuer signing key pair (hex encoded)."""

    model_config = ConfigDict(frozen=True)

    private_key: str = Field(..., repr=False, description="Ed25519 private key seed (hex)")
    public_key: str = Field(..., description="Ed25519 public key (hex)")


class DiplomaData(BoundaryModel):
    """Private diploma facts. Never persisted or sent to a verifier."""

    degree: str = Field(..., min_length=1, description="Degree title")
    school: str = Field(..., min_length=1, description="Issuing school")
    graduation_date: str = Field(..., alias="graduationDate", min_length=1, description="Graduation date")
    student_id: str = Field(..., alias="studentId", min_length=1, description="Student identifier")
    gpa: float | None = Field(default=None, ge=0.0, le=4.0, description="Optional GPA on a 4.0 scale")

    @field_validator("degree", "school", "graduation_date", "student_id")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject whitespace-only text."""
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("gpa")
    @classmethod
    def validate_gpa_finite(cls, v: float | None) -> float | None:
        if v is not None and not math.isfinite(v):
            raise ValueError("must be a finite number")
        return v

    def __repr__(self) -> str:
        return "DiplomaData(<redacted>)"

    __str__ = __repr__


class CommitmentSet(BoundaryModel):
    """One hash commitment per diploma field."""

    degree_hash: str = Field(..., alias="degreeHash", pattern=HEX_DIGEST_PATTERN)
    school_hash: str = Field(..., alias="schoolHash", pattern=HEX_DIGEST_PATTERN)
    date_hash: str = Field(..., alias="dateHash", pattern=HEX_DIGEST_PATTERN)
    student_id_hash: str = Field(..., alias="studentIdHash", pattern=HEX_DIGEST_PATTERN)
    gpa_hash: str | None = Field(default=None, alias="gpaHash", pattern=HEX_DIGEST_PATTERN)

    def canonical_encoding(self) -> bytes:
        """Stable byte encoding that the issuer signs."""
        return canonical_json(self.to_dict()).encode('utf-8')


class Credential(BoundaryModel):
    """Issuer attestation over a commitment set."""

    commitments: CommitmentSet = Field(..., alias="hashedData")
    signature: str = Field(..., min_length=1, description="Signature over the canonical commitment encoding (hex)")
    issuer_public_key: str = Field(..., alias="issuerPublicKey", min_length=1, description="Issuer public key (hex)")
    timestamp: int = Field(..., ge=0, description="Issuance time in milliseconds since epoch")

    @property
    def credential_id(self) -> str:
        """Stable identifier for external revocation registries."""
        encoding = self.commitments.canonical_encoding().decode('utf-8')
        return hash_fields([encoding, self.issuer_public_key, str(self.timestamp)])


class Proof(BoundaryModel):
    """Holder-generated proof. Carries no private data."""

    proof: str = Field(..., description="Opaque proof payload")
    public_inputs: tuple[str, ...] = Field(..., alias="publicInputs")
    verification_key: str = Field(..., alias="verificationKey")


class VerificationRequest(BoundaryModel):
    """Verifier input: a proof plus the issuer key it should be checked against."""

    proof: str
    public_inputs: tuple[str, ...] = Field(..., alias="publicInputs")
    verification_key: str = Field(..., alias="verificationKey")
    issuer_public_key: str = Field(..., alias="issuerPublicKey")

    def to_proof(self) -> Proof:
        return Proof(
            proof=self.proof,
            public_inputs=self.public_inputs,
            verification_key=self.verification_key,
        )


class VerificationResult(BoundaryModel):
    """Verifier decision."""

    is_valid: bool = Field(..., alias="isValid")
    message: str
    verified_at: int = Field(..., alias="verifiedAt", description="Milliseconds since epoch")
    error: str | None = Field(default=None, description="Name of the failed check")


class TrustPolicy(BoundaryModel):
    """Accepted issuer keys. An empty allow-list means permissive mode."""

    trusted_issuers: frozenset[str] = Field(default_factory=frozenset, alias="trustedIssuers")

    @property
    def permissive(self) -> bool:
        return not self.trusted_issuers
