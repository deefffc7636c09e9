"""Credential issuance and credential signature verification.

The issuer signs the canonical encoding of a commitment set. The public key
recorded in a credential is always the caller-supplied half of the signing
key pair; it is never derived or regenerated here.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any

from pydantic import ValidationError

from zkdiploma.sdk.commitments import compute_commitments
from zkdiploma.sdk.errors import ImportFormatError, InvalidInput
from zkdiploma.sdk.models import Credential, DiplomaData, IssuerKeyPair
from zkdiploma.sdk.signing import generate_key_pair, is_valid_public_key, sign_payload, verify_payload

logger = logging.getLogger(__name__)

REQUIRED_CREDENTIAL_FIELDS = ("hashedData", "signature", "issuerPublicKey", "timestamp")
REQUIRED_HASH_FIELDS = ("degreeHash", "schoolHash", "dateHash", "studentIdHash")


def issue_credential(
    diploma_data: DiplomaData | dict[str, Any],
    key_pair: IssuerKeyPair,
    blinding_seed: str | None = None,
) -> Credential:
    """Issue a signed credential over diploma data commitments.

    Args:
        diploma_data: Private diploma data
        key_pair: Issuer key pair; its public key is recorded as-is
        blinding_seed: Optional subject-held seed for blinded commitments

    Returns:
        Credential whose signature verifies against key_pair.public_key

    Raises:
        InvalidInput: Invalid diploma data or a public key that does not
            verify signatures made with the private key
        SigningFailure: Malformed private key
    """
    if not isinstance(key_pair, IssuerKeyPair):
        raise InvalidInput("Issuer key pair is required")
    if not is_valid_public_key(key_pair.public_key):
        raise InvalidInput("Issuer public key must be 64 hex characters")

    commitments = compute_commitments(diploma_data, blinding_seed)
    payload = commitments.canonical_encoding()
    signature = sign_payload(payload, key_pair.private_key)

    if not verify_payload(payload, signature, key_pair.public_key):
        raise InvalidInput("Issuer public key does not match the signing key")

    credential = Credential(
        commitments=commitments,
        signature=signature,
        issuer_public_key=key_pair.public_key,
        timestamp=_now_ms(),
    )
    logger.info("Issued credential %s for issuer %s", credential.credential_id[:16], key_pair.public_key[:16])
    return credential


def batch_issue_credentials(
    diploma_data_list: list[DiplomaData | dict[str, Any]],
    key_pair: IssuerKeyPair,
) -> list[Credential]:
    """Issue credentials in order; the first failure aborts the batch."""
    _validate_batch(diploma_data_list)

    credentials = []
    for index, diploma_data in enumerate(diploma_data_list):
        try:
            credentials.append(issue_credential(diploma_data, key_pair))
        except Exception:
            logger.warning("Batch issuance failed at entry %d of %d", index, len(diploma_data_list))
            raise
    return credentials


async def batch_issue_credentials_async(
    diploma_data_list: list[DiplomaData | dict[str, Any]],
    key_pair: IssuerKeyPair,
) -> list[Credential]:
    """Issue credentials concurrently in worker threads.

    Output order matches input order. The first failure is raised and no
    partial list is returned; results of sibling entries are discarded.
    """
    _validate_batch(diploma_data_list)

    tasks = [
        asyncio.ensure_future(asyncio.to_thread(issue_credential, diploma_data, key_pair))
        for diploma_data in diploma_data_list
    ]
    try:
        return list(await asyncio.gather(*tasks))
    except Exception:
        for task in tasks:
            task.cancel()
        logger.warning("Concurrent batch issuance of %d entries failed", len(diploma_data_list))
        raise


def verify_credential_signature(credential: Credential | dict[str, Any]) -> bool:
    """Verify a credential's signature over its commitments. Never raises."""
    if isinstance(credential, dict):
        try:
            credential = Credential.model_validate(credential)
        except ValidationError:
            return False
    if not isinstance(credential, Credential):
        return False

    payload = credential.commitments.canonical_encoding()
    return verify_payload(payload, credential.signature, credential.issuer_public_key)


def export_credential(credential: Credential) -> str:
    """Serialize credential to indented JSON."""
    return json.dumps(credential.to_dict(), indent=2)


def import_credential(content: str) -> Credential:
    """Parse and validate serialized credential.

    Raises:
        ImportFormatError: Describing the first structural problem found
    """
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, TypeError) as e:
        raise ImportFormatError(f"Invalid credential format: not valid JSON ({e})")

    if not isinstance(data, dict):
        raise ImportFormatError("Invalid credential format: expected a JSON object")

    missing = [field for field in REQUIRED_CREDENTIAL_FIELDS if field not in data]
    if missing:
        raise ImportFormatError(f"Invalid credential format: missing fields {missing}")

    hashed_data = data["hashedData"]
    if not isinstance(hashed_data, dict):
        raise ImportFormatError("Invalid credential format: hashedData must be an object")

    missing_hashes = [field for field in REQUIRED_HASH_FIELDS if field not in hashed_data]
    if missing_hashes:
        raise ImportFormatError(f"Invalid credential format: missing hash fields {missing_hashes}")

    try:
        return Credential.model_validate(data)
    except ValidationError as e:
        fields = sorted({".".join(str(part) for part in item["loc"]) for item in e.errors()})
        raise ImportFormatError(f"Invalid credential format: invalid fields {fields}")


def create_sample_credential() -> tuple[DiplomaData, Credential, IssuerKeyPair]:
    """Create a sample diploma, issuer key pair and credential for demos."""
    key_pair = generate_key_pair()
    diploma_data = DiplomaData(
        degree="Bachelor of Science in Computer Science",
        school="Massachusetts Institute of Technology",
        graduation_date="2023-05-15",
        student_id="123456789",
        gpa=3.85,
    )
    return diploma_data, issue_credential(diploma_data, key_pair), key_pair


def _validate_batch(diploma_data_list: list[Any]) -> None:
    if not isinstance(diploma_data_list, list) or not diploma_data_list:
        raise InvalidInput("Diploma data list must be a non-empty list")


def _now_ms() -> int:
    return time.time_ns() // 1_000_000
