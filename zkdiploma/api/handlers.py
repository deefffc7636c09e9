"""Transport handlers for the issuance and verification endpoints.

Framework agnostic: each handler takes the HTTP method, request headers and
parsed JSON body and returns an HttpResponse. Private diploma data never
appears in responses or logs.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from zkdiploma import __version__
from zkdiploma.config import ZKDiplomaSettings, issuer_key_pair, trust_policy
from zkdiploma.sdk.backend import get_backend
from zkdiploma.sdk.commitments import coerce_diploma_data
from zkdiploma.sdk.did import issuer_did
from zkdiploma.sdk.errors import InfrastructureError, InvalidInput
from zkdiploma.sdk.issuer import batch_issue_credentials, issue_credential
from zkdiploma.sdk.models import VerificationRequest
from zkdiploma.sdk.signing import generate_key_pair
from zkdiploma.sdk.verifier import verify_request

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}
SUPPORTED_ACTIONS = ("generate-keys", "issue-credential", "batch-issue")
VERIFICATION_FIELDS = ("proof", "publicInputs", "verificationKey", "issuerPublicKey")


class HttpResponse(BaseModel):
    """Transport-neutral response."""

    status: int
    headers: dict[str, str] = Field(default_factory=lambda: dict(CORS_HEADERS))
    body: dict[str, Any] | None = None


def handle_issue_request(
    method: str,
    headers: dict[str, str],
    body: Any,
    settings: ZKDiplomaSettings,
) -> HttpResponse:
    """Handle an issuance endpoint request."""
    preflight = _check_method(method)
    if preflight is not None:
        return preflight

    if not _header(headers, "authorization") or not settings.issuer_private_key:
        return _error(401, "Unauthorized", "Valid authorization required")
    if not isinstance(body, dict):
        return _error(400, "Invalid request", "Request body must be a JSON object")

    action = body.get("action")
    try:
        if action == "generate-keys":
            return _generate_keys()
        if action == "issue-credential":
            return _issue(body.get("diplomaData"), settings)
        if action == "batch-issue":
            return _batch_issue(body.get("diplomaDataList"), settings)
    except InvalidInput as e:
        return _error(400, "Invalid request", str(e))
    except InfrastructureError as e:
        logger.error("Credential issuance failed: %s", type(e).__name__)
        return _error(500, "Internal server error", "Failed to process credential request")
    except Exception as e:
        logger.error("Unexpected credential issuance error: %s", type(e).__name__)
        return _error(500, "Internal server error", "Failed to process credential request")

    return _error(400, "Invalid request", f"Unknown action. Supported actions: {', '.join(SUPPORTED_ACTIONS)}")


def handle_verify_request(
    method: str,
    headers: dict[str, str],
    body: Any,
    settings: ZKDiplomaSettings,
) -> HttpResponse:
    """Handle a verification endpoint request."""
    preflight = _check_method(method)
    if preflight is not None:
        return preflight

    if not isinstance(body, dict) or any(_is_missing(body.get(field)) for field in VERIFICATION_FIELDS):
        return _verification_error(400, "Invalid request: missing required fields")

    try:
        request = VerificationRequest.model_validate(body)
    except ValidationError:
        return _verification_error(400, "Invalid request: malformed fields")

    try:
        result = verify_request(request, trust_policy(settings), get_backend(settings.proof_backend))
    except Exception as e:
        logger.error("Verification endpoint error: %s", type(e).__name__)
        return _verification_error(500, "Internal verification error")

    return HttpResponse(status=200, body=result.to_dict())


def health_check() -> dict[str, Any]:
    """Service health information."""
    return {"status": "healthy", "timestamp": _now_ms(), "version": __version__}


def issuer_public_key_info(settings: ZKDiplomaSettings) -> dict[str, Any]:
    """Public key of the configured issuer, for verifiers."""
    key_pair = issuer_key_pair(settings)
    return {
        "publicKey": key_pair.public_key,
        "keyId": issuer_did(key_pair.public_key),
        "issuedAt": _now_ms(),
    }


def _generate_keys() -> HttpResponse:
    key_pair = generate_key_pair()
    return HttpResponse(status=200, body={
        "success": True,
        "keys": {
            "publicKey": key_pair.public_key,
            "did": issuer_did(key_pair.public_key),
            "message": "Private key generated (store securely - not returned)",
        },
    })


def _issue(diploma_data: Any, settings: ZKDiplomaSettings) -> HttpResponse:
    if not isinstance(diploma_data, dict):
        raise InvalidInput("Missing required diploma data fields")

    credential = issue_credential(diploma_data, issuer_key_pair(settings))
    return HttpResponse(status=200, body={
        "success": True,
        "credential": credential.to_dict(),
        "message": "Credential issued successfully",
    })


def _batch_issue(diploma_data_list: Any, settings: ZKDiplomaSettings) -> HttpResponse:
    if not isinstance(diploma_data_list, list) or not diploma_data_list:
        raise InvalidInput("diplomaDataList must be a non-empty array")

    for index, diploma_data in enumerate(diploma_data_list):
        try:
            coerce_diploma_data(diploma_data)
        except InvalidInput as e:
            raise InvalidInput(f"Entry {index}: {e}")

    credentials = batch_issue_credentials(diploma_data_list, issuer_key_pair(settings))
    return HttpResponse(status=200, body={
        "success": True,
        "credentials": [credential.to_dict() for credential in credentials],
        "message": f"Issued {len(credentials)} credentials",
    })


def _check_method(method: str) -> HttpResponse | None:
    method = (method or "").upper()
    if method == "OPTIONS":
        return HttpResponse(status=200)
    if method != "POST":
        return _error(405, "Method not allowed", "Only POST requests are allowed")
    return None


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def _header(headers: dict[str, str], name: str) -> str | None:
    for key, value in (headers or {}).items():
        if key.lower() == name:
            return value
    return None


def _error(status: int, error: str, message: str) -> HttpResponse:
    return HttpResponse(status=status, body={"error": error, "message": message})


def _verification_error(status: int, message: str) -> HttpResponse:
    return HttpResponse(status=status, body={"isValid": False, "message": message, "verifiedAt": _now_ms()})


def _now_ms() -> int:
    return time.time_ns() // 1_000_000
