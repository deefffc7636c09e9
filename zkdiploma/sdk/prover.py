"""Proof generation.

The prover is the only component that sees a credential and the holder's
private data together. It emits a proof only after the private data has been
shown to recompute the exact commitments signed into the credential.
"""

from __future__ import annotations

import logging
from typing import Any

from zkdiploma.sdk.backend import ProofBackend, ProofStatement, ProofWitness, get_backend
from zkdiploma.sdk.commitments import compute_commitments, mismatched_fields
from zkdiploma.sdk.errors import BackendFailure, InputMismatch, InvalidInput, ZKDiplomaError
from zkdiploma.sdk.issuer import verify_credential_signature
from zkdiploma.sdk.models import Credential, DiplomaData, Proof

logger = logging.getLogger(__name__)

VERIFIED_TAG = "degree_verified"


def generate_proof(
    credential: Credential,
    private_inputs: DiplomaData | dict[str, Any],
    backend: ProofBackend | None = None,
    blinding_seed: str | None = None,
) -> Proof:
    """Generate a proof that private inputs match a credential.

    Args:
        credential: Issuer-signed credential
        private_inputs: Holder's diploma data
        backend: Proof backend (reference backend by default)
        blinding_seed: Seed used at issuance for blinded commitments

    Returns:
        Proof with public inputs [issuer key, timestamp, verified tag]

    Raises:
        InvalidInput: Malformed inputs or a credential whose signature fails
        InputMismatch: Private inputs do not match the credential
        BackendFailure: Proof backend could not complete
    """
    if not isinstance(credential, Credential):
        raise InvalidInput("Credential is required")
    if not verify_credential_signature(credential):
        raise InvalidInput("Credential signature does not verify")

    backend = backend or get_backend()
    recomputed = compute_commitments(private_inputs, blinding_seed)

    mismatched = mismatched_fields(credential.commitments, recomputed)
    if mismatched:
        logger.info("Proof refused for credential %s: %d field(s) mismatched",
                    credential.credential_id[:16], len(mismatched))
        raise InputMismatch(f"Private inputs do not match the credential data: {_field_labels(mismatched)}")

    statement = ProofStatement(
        public_inputs=build_public_inputs(credential),
        verification_key=backend.verification_key_for(credential.issuer_public_key),
    )
    witness = ProofWitness(
        credential_commitments=credential.commitments,
        recomputed_commitments=recomputed,
        signature=credential.signature,
    )
    payload = _run_backend(backend, statement, witness)

    logger.info("Generated %s proof for credential %s", backend.name, credential.credential_id[:16])
    return Proof(
        proof=payload,
        public_inputs=statement.public_inputs,
        verification_key=statement.verification_key,
    )


def build_public_inputs(credential: Credential) -> tuple[str, str, str]:
    """Public inputs: nothing derived from private data."""
    return (credential.issuer_public_key, str(credential.timestamp), VERIFIED_TAG)


def _run_backend(backend: ProofBackend, statement: ProofStatement, witness: ProofWitness) -> str:
    try:
        payload = backend.prove(statement, witness)
    except ZKDiplomaError:
        raise
    except Exception as e:
        raise BackendFailure(f"Proof backend '{backend.name}' failed: {e}") from e

    if not isinstance(payload, str) or not payload:
        raise BackendFailure(f"Proof backend '{backend.name}' returned an empty proof")
    return payload


def _field_labels(fields: list[str]) -> str:
    return ", ".join(field.removesuffix("_hash") for field in fields)
