"""Pluggable proof backends.

A backend proves the statement "I know private inputs whose commitments match
the commitment set signed into this credential" and verifies such proofs from
public information only. The reference backend satisfies the protocol
contract for tests and demos; it is not zero-knowledge sound.
"""

from __future__ import annotations

import secrets
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from zkdiploma.sdk.commitments import commitments_match
from zkdiploma.sdk.errors import BackendFailure
from zkdiploma.sdk.hashing import hash_fields, is_hex_digest, is_valid_hex
from zkdiploma.sdk.models import CommitmentSet


class ProofStatement(BaseModel):
    """Public side of a proof."""

    model_config = ConfigDict(frozen=True)

    public_inputs: tuple[str, ...]
    verification_key: str


class ProofWitness(BaseModel):
    """Private side of a proof. Never leaves the prover."""

    model_config = ConfigDict(frozen=True)

    credential_commitments: CommitmentSet
    recomputed_commitments: CommitmentSet
    signature: str = Field(..., repr=False)


@runtime_checkable
class ProofBackend(Protocol):
    """Proof system capability used by the prover and verifier."""

    name: str

    def verification_key_for(self, issuer_public_key: str) -> str: ...

    def prove(self, statement: ProofStatement, witness: ProofWitness) -> str: ...

    def verify(self, statement: ProofStatement, proof: str) -> bool: ...

    def is_well_formed(self, proof: str, verification_key: str) -> bool: ...


class ReferenceProofBackend:
    """Hash-binding stand-in for a succinct proof system.

    Payload layout: ``zkproof_`` + 32-hex nonce + 64-hex binding over the
    verification key and public inputs. The verification key is ``vk_`` + the
    first 16 hex characters of the issuer key. Anyone can compute a valid
    payload, so this backend only checks the protocol plumbing.
    """

    name = "reference"
    proof_prefix = "zkproof_"
    key_prefix = "vk_"
    domain_tag = "zkdiploma-reference-proof"
    nonce_hex_length = 32
    key_id_hex_length = 16
    min_proof_length = 10
    max_proof_length = 1000

    def verification_key_for(self, issuer_public_key: str) -> str:
        return f"{self.key_prefix}{issuer_public_key[:self.key_id_hex_length]}"

    def prove(self, statement: ProofStatement, witness: ProofWitness) -> str:
        if not commitments_match(witness.credential_commitments, witness.recomputed_commitments):
            raise BackendFailure("Witness does not satisfy the statement")

        nonce = secrets.token_hex(self.nonce_hex_length // 2)
        return f"{self.proof_prefix}{nonce}{self._binding(statement, nonce)}"

    def verify(self, statement: ProofStatement, proof: str) -> bool:
        if not self.is_well_formed(proof, statement.verification_key):
            return False

        body = proof[len(self.proof_prefix):]
        nonce, binding = body[:self.nonce_hex_length], body[self.nonce_hex_length:]
        return secrets.compare_digest(binding, self._binding(statement, nonce))

    def is_well_formed(self, proof: str, verification_key: str) -> bool:
        """Check payload and verification key layout without verifying."""
        if not isinstance(proof, str) or not isinstance(verification_key, str):
            return False
        if not self.min_proof_length <= len(proof) <= self.max_proof_length:
            return False
        if not proof.startswith(self.proof_prefix) or not verification_key.startswith(self.key_prefix):
            return False

        key_id = verification_key[len(self.key_prefix):]
        if len(key_id) != self.key_id_hex_length or not is_valid_hex(key_id):
            return False

        body = proof[len(self.proof_prefix):]
        nonce, binding = body[:self.nonce_hex_length], body[self.nonce_hex_length:]
        return len(nonce) == self.nonce_hex_length and is_valid_hex(nonce) and is_hex_digest(binding)

    def _binding(self, statement: ProofStatement, nonce: str) -> str:
        return hash_fields([self.domain_tag, statement.verification_key, *statement.public_inputs, nonce])


_BACKENDS: dict[str, type] = {
    ReferenceProofBackend.name: ReferenceProofBackend,
}


def register_backend(name: str, backend_cls: type) -> None:
    """Register a proof backend class under a name."""
    if not name:
        raise ValueError("Backend name is required")
    _BACKENDS[name] = backend_cls


def get_backend(name: str = ReferenceProofBackend.name) -> ProofBackend:
    """Instantiate a registered proof backend by name."""
    try:
        return _BACKENDS[name]()
    except KeyError:
        raise ValueError(f"Unknown proof backend: {name}. Available: {sorted(_BACKENDS)}")
