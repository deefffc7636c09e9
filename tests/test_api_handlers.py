"""Test issuance and verification transport handlers."""

from __future__ import annotations

import json
import logging

import pytest

from zkdiploma import __version__
from zkdiploma.api.handlers import (
    CORS_HEADERS,
    handle_issue_request,
    handle_verify_request,
    health_check,
    issuer_public_key_info,
)
from zkdiploma.config import ZKDiplomaSettings
from zkdiploma.sdk.did import issuer_did
from zkdiploma.sdk.issuer import import_credential, verify_credential_signature
from zkdiploma.sdk.prover import generate_proof
from zkdiploma.sdk.signing import generate_key_pair
from tests.helpers import issue_scenario_credential, scenario_diploma

AUTH = {"Authorization": "Bearer test"}


@pytest.fixture
def key_pair():
    return generate_key_pair()


@pytest.fixture
def settings(key_pair) -> ZKDiplomaSettings:
    """Settings with a configured issuer key pair."""
    return ZKDiplomaSettings(
        issuer_private_key=key_pair.private_key,
        issuer_public_key=key_pair.public_key,
        trusted_issuers=[],
    )


@pytest.fixture
def verify_body() -> dict:
    credential, key_pair, diploma = issue_scenario_credential()
    proof = generate_proof(credential, diploma)
    return {**proof.to_dict(), "issuerPublicKey": key_pair.public_key}


@pytest.mark.parametrize("handler", [handle_issue_request, handle_verify_request])
def test_options_preflight(handler, settings: ZKDiplomaSettings) -> None:
    response = handler("OPTIONS", {}, None, settings)

    assert response.status == 200
    assert response.headers == CORS_HEADERS


@pytest.mark.parametrize("handler", [handle_issue_request, handle_verify_request])
@pytest.mark.parametrize("method", ["GET", "PUT", "DELETE"])
def test_non_post_rejected(handler, method: str, settings: ZKDiplomaSettings) -> None:
    response = handler(method, AUTH, {}, settings)

    assert response.status == 405
    assert response.body["error"] == "Method not allowed"
    assert response.headers["Access-Control-Allow-Origin"] == "*"


def test_issue_requires_authorization(settings: ZKDiplomaSettings) -> None:
    response = handle_issue_request("POST", {}, {"action": "generate-keys"}, settings)

    assert response.status == 401


def test_issue_requires_configured_keys() -> None:
    response = handle_issue_request("POST", AUTH, {"action": "generate-keys"}, ZKDiplomaSettings())

    assert response.status == 401


def test_generate_keys_never_returns_private_key(settings: ZKDiplomaSettings) -> None:
    response = handle_issue_request("POST", {"authorization": "x"}, {"action": "generate-keys"}, settings)

    assert response.status == 200
    keys = response.body["keys"]
    assert len(keys["publicKey"]) == 64
    assert keys["did"] == issuer_did(keys["publicKey"])
    assert "privateKey" not in keys


def test_issue_credential(settings: ZKDiplomaSettings, key_pair) -> None:
    body = {"action": "issue-credential", "diplomaData": scenario_diploma()}

    response = handle_issue_request("POST", AUTH, body, settings)

    assert response.status == 200
    assert response.body["success"] is True
    credential = import_credential(json.dumps(response.body["credential"]))
    assert credential.issuer_public_key == key_pair.public_key
    assert verify_credential_signature(credential)


def test_issue_credential_missing_data(settings: ZKDiplomaSettings) -> None:
    response = handle_issue_request("POST", AUTH, {"action": "issue-credential"}, settings)

    assert response.status == 400
    assert response.body["error"] == "Invalid request"


def test_issue_credential_invalid_data_not_echoed(settings: ZKDiplomaSettings) -> None:
    body = {"action": "issue-credential", "diplomaData": scenario_diploma(degree="", studentId="S-SECRET-42")}

    response = handle_issue_request("POST", AUTH, body, settings)

    assert response.status == 400
    assert "S-SECRET-42" not in str(response.body)


def test_batch_issue(settings: ZKDiplomaSettings) -> None:
    body = {"action": "batch-issue", "diplomaDataList": [scenario_diploma(studentId=str(i)) for i in range(3)]}

    response = handle_issue_request("POST", AUTH, body, settings)

    assert response.status == 200
    assert len(response.body["credentials"]) == 3
    assert response.body["message"] == "Issued 3 credentials"


def test_batch_issue_invalid_entry_fails_whole_batch(settings: ZKDiplomaSettings) -> None:
    body = {"action": "batch-issue", "diplomaDataList": [scenario_diploma(), scenario_diploma(school="")]}

    response = handle_issue_request("POST", AUTH, body, settings)

    assert response.status == 400
    assert "Entry 1" in response.body["message"]
    assert "credentials" not in response.body


@pytest.mark.parametrize("diploma_list", [[], "not-a-list", None])
def test_batch_issue_requires_list(settings: ZKDiplomaSettings, diploma_list: object) -> None:
    body = {"action": "batch-issue", "diplomaDataList": diploma_list}

    response = handle_issue_request("POST", AUTH, body, settings)

    assert response.status == 400
    assert "non-empty array" in response.body["message"]


def test_unknown_action(settings: ZKDiplomaSettings) -> None:
    response = handle_issue_request("POST", AUTH, {"action": "revoke"}, settings)

    assert response.status == 400
    assert "generate-keys, issue-credential, batch-issue" in response.body["message"]


def test_signing_failure_is_server_error(key_pair) -> None:
    settings = ZKDiplomaSettings(issuer_private_key="not-hex", issuer_public_key=key_pair.public_key)
    body = {"action": "issue-credential", "diplomaData": scenario_diploma()}

    response = handle_issue_request("POST", AUTH, body, settings)

    assert response.status == 500
    assert response.body["message"] == "Failed to process credential request"


def test_issue_logs_no_private_data(settings: ZKDiplomaSettings, caplog: pytest.LogCaptureFixture) -> None:
    body = {"action": "issue-credential", "diplomaData": scenario_diploma(studentId="S-SECRET-42")}

    with caplog.at_level(logging.DEBUG):
        handle_issue_request("POST", AUTH, body, settings)

    assert "S-SECRET-42" not in caplog.text


def test_verify_valid_proof(verify_body: dict, settings: ZKDiplomaSettings) -> None:
    response = handle_verify_request("POST", {}, verify_body, settings)

    assert response.status == 200
    assert response.body["isValid"] is True
    assert isinstance(response.body["verifiedAt"], int)


@pytest.mark.parametrize("field", ["proof", "publicInputs", "verificationKey", "issuerPublicKey"])
def test_verify_missing_field(verify_body: dict, settings: ZKDiplomaSettings, field: str) -> None:
    del verify_body[field]

    response = handle_verify_request("POST", {}, verify_body, settings)

    assert response.status == 400
    assert response.body["isValid"] is False
    assert "missing required fields" in response.body["message"]


def test_verify_empty_public_inputs(verify_body: dict, settings: ZKDiplomaSettings) -> None:
    verify_body["publicInputs"] = []

    response = handle_verify_request("POST", {}, verify_body, settings)

    assert response.status == 200
    assert response.body["isValid"] is False
    assert response.body["error"] == "InvalidPublicInputs"


def test_verify_malformed_field_types(verify_body: dict, settings: ZKDiplomaSettings) -> None:
    verify_body["publicInputs"] = "not-a-list"

    response = handle_verify_request("POST", {}, verify_body, settings)

    assert response.status == 400
    assert response.body["isValid"] is False


def test_verify_uses_configured_trust_policy(verify_body: dict, key_pair) -> None:
    settings = ZKDiplomaSettings(trusted_issuers=[key_pair.public_key])

    response = handle_verify_request("POST", {}, verify_body, settings)

    assert response.body["isValid"] is False
    assert response.body["error"] == "UntrustedIssuer"


def test_health_check() -> None:
    health = health_check()

    assert health["status"] == "healthy"
    assert health["version"] == __version__


def test_issuer_public_key_info(settings: ZKDiplomaSettings, key_pair) -> None:
    info = issuer_public_key_info(settings)

    assert info["publicKey"] == key_pair.public_key
    assert info["keyId"] == issuer_did(key_pair.public_key)
