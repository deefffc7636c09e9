"""Error taxonomy for credential issuance, proof generation and verification.

Validation and mismatch errors are user-facing. Infrastructure errors signal
that a cryptographic primitive or proof backend could not complete, so callers
can decide whether to retry.
"""

from __future__ import annotations


class ZKDiplomaError(Exception):
    """Base class for all zkdiploma errors."""


class InvalidInput(ZKDiplomaError, ValueError):
    """Malformed or missing caller-supplied data."""


class ImportFormatError(ZKDiplomaError, ValueError):
    """Persisted credential could not be read back."""


class InputMismatch(ZKDiplomaError):
    """Private inputs do not match the credential's commitments."""


class InfrastructureError(ZKDiplomaError):
    """A cryptographic primitive or proof backend failed."""


class SigningFailure(InfrastructureError):
    """Signing primitive could not produce a signature."""


class BackendFailure(InfrastructureError):
    """Proof backend could not complete."""


class VerificationError(ZKDiplomaError):
    """Verifier-side structural rejection."""

    code = "VerificationError"


class MalformedProof(VerificationError):
    code = "MalformedProof"


class UntrustedIssuer(VerificationError):
    code = "UntrustedIssuer"


class InvalidPublicInputs(VerificationError):
    code = "InvalidPublicInputs"
