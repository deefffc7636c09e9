"""Proof verification.

Verification is a pure function of the proof, the issuer key and the trust
policy. It never sees private data and performs no I/O.
"""

from __future__ import annotations

import logging
import time

from zkdiploma.sdk.backend import ProofBackend, ProofStatement, get_backend
from zkdiploma.sdk.did import DID_KEY_PREFIX, normalize_issuer_key, validate_did_key_format
from zkdiploma.sdk.errors import InvalidPublicInputs, MalformedProof, UntrustedIssuer, VerificationError
from zkdiploma.sdk.models import Proof, TrustPolicy, VerificationRequest, VerificationResult
from zkdiploma.sdk.signing import is_valid_public_key

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = (
    "Zero-knowledge proof verified successfully! "
    "The degree is authentic without revealing personal data."
)


def verify_proof(
    proof: Proof,
    issuer_public_key: str,
    trust_policy: TrustPolicy | None = None,
    backend: ProofBackend | None = None,
) -> VerificationResult:
    """Verify a proof against an issuer key and trust policy.

    Checks run in order: structure, issuer trust, public inputs, then the
    backend's cryptographic check. The first failing check decides the
    result.
    """
    trust_policy = trust_policy or TrustPolicy()
    backend = backend or get_backend()

    try:
        check_structure(proof, backend)
        check_issuer_trust(issuer_public_key, trust_policy)
        check_public_inputs(proof.public_inputs, issuer_public_key)
    except VerificationError as e:
        logger.info("Proof rejected: %s", e.code)
        return _result(False, str(e), e.code)

    statement = ProofStatement(public_inputs=proof.public_inputs, verification_key=proof.verification_key)
    try:
        accepted = backend.verify(statement, proof.proof)
    except Exception as e:
        logger.warning("Proof backend '%s' failed during verification: %s", backend.name, type(e).__name__)
        return _result(False, "Verification process failed", "BackendFailure")

    if not accepted:
        logger.info("Proof rejected: InvalidProof")
        return _result(False, "Cryptographic proof verification failed", "InvalidProof")

    return _result(True, SUCCESS_MESSAGE)


def verify_request(
    request: VerificationRequest,
    trust_policy: TrustPolicy | None = None,
    backend: ProofBackend | None = None,
) -> VerificationResult:
    """Verify a verification request as received at the boundary."""
    return verify_proof(request.to_proof(), request.issuer_public_key, trust_policy, backend)


def check_structure(proof: Proof, backend: ProofBackend) -> None:
    if not isinstance(proof, Proof):
        raise MalformedProof("Invalid proof structure: proof object required")
    if not backend.is_well_formed(proof.proof, proof.verification_key):
        raise MalformedProof("Invalid proof structure")


def check_issuer_trust(issuer_public_key: str, trust_policy: TrustPolicy) -> None:
    """Allow-list membership, or key format validation in permissive mode."""
    if not issuer_public_key or not isinstance(issuer_public_key, str):
        raise UntrustedIssuer("Invalid or untrusted issuer: issuer key missing")

    if trust_policy.permissive:
        if not _is_well_formed_issuer(issuer_public_key):
            raise UntrustedIssuer("Invalid or untrusted issuer: malformed issuer key")
        return

    if _normalize_or_none(issuer_public_key) not in _trusted_keys(trust_policy):
        raise UntrustedIssuer("Invalid or untrusted issuer: issuer is not in the trusted list")


def check_public_inputs(public_inputs: tuple[str, ...], issuer_public_key: str) -> None:
    if not public_inputs:
        raise InvalidPublicInputs("Invalid public inputs: list is empty")
    if not all(isinstance(value, str) and value for value in public_inputs):
        raise InvalidPublicInputs("Invalid public inputs: every entry must be a non-empty string")
    if _normalize_or_none(public_inputs[0]) != _normalize_or_none(issuer_public_key):
        raise InvalidPublicInputs("Invalid public inputs: proof is bound to a different issuer")


def _is_well_formed_issuer(issuer: str) -> bool:
    if issuer.startswith(DID_KEY_PREFIX):
        return validate_did_key_format(issuer)
    return is_valid_public_key(issuer)


def _normalize_or_none(issuer: str) -> str | None:
    try:
        return normalize_issuer_key(issuer)
    except ValueError:
        return None


def _trusted_keys(trust_policy: TrustPolicy) -> set[str]:
    trusted = {_normalize_or_none(issuer) for issuer in trust_policy.trusted_issuers}
    trusted.discard(None)
    return trusted


def _result(is_valid: bool, message: str, error: str | None = None) -> VerificationResult:
    return VerificationResult(
        is_valid=is_valid,
        message=message,
        verified_at=time.time_ns() // 1_000_000,
        error=error,
    )
