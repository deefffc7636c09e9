"""Test commitment computation and comparison."""

from __future__ import annotations

import pytest

from zkdiploma.sdk.commitments import (
    coerce_diploma_data,
    commitments_match,
    compute_commitments,
    format_gpa,
    mismatched_fields,
)
from zkdiploma.sdk.errors import InvalidInput
from zkdiploma.sdk.hashing import hash_data
from zkdiploma.sdk.models import DiplomaData
from tests.helpers import scenario_diploma


def test_plain_commitments_hash_each_field() -> None:
    commitments = compute_commitments(scenario_diploma())

    assert commitments.degree_hash == hash_data("B.Sc. CS")
    assert commitments.school_hash == hash_data("MIT")
    assert commitments.date_hash == hash_data("2023-05-15")
    assert commitments.student_id_hash == hash_data("123456789")
    assert commitments.gpa_hash == hash_data("3.85")


def test_commitments_deterministic() -> None:
    assert compute_commitments(scenario_diploma()) == compute_commitments(scenario_diploma())


def test_commitments_accept_model_and_dict() -> None:
    model = DiplomaData.model_validate(scenario_diploma())

    assert compute_commitments(model) == compute_commitments(scenario_diploma())


def test_gpa_absent_has_no_commitment() -> None:
    commitments = compute_commitments(scenario_diploma(gpa=None))

    assert commitments.gpa_hash is None
    assert "gpaHash" not in commitments.to_dict()


@pytest.mark.parametrize("field, value", [
    ("degree", "M.Sc. CS"),
    ("school", "Stanford"),
    ("graduationDate", "2023-05-16"),
    ("studentId", "123456780"),
    ("gpa", 3.86),
])
def test_single_field_change_changes_one_commitment(field: str, value: object) -> None:
    """Test that distinct inputs never collide and changes stay local."""
    original = compute_commitments(scenario_diploma())
    altered = compute_commitments(scenario_diploma(**{field: value}))

    assert len(mismatched_fields(original, altered)) == 1
    assert not commitments_match(original, altered)


def test_gpa_present_vs_absent_mismatch() -> None:
    with_gpa = compute_commitments(scenario_diploma())
    without_gpa = compute_commitments(scenario_diploma(gpa=None))

    assert mismatched_fields(with_gpa, without_gpa) == ["gpa_hash"]
    assert mismatched_fields(without_gpa, with_gpa) == ["gpa_hash"]


def test_both_gpa_absent_match() -> None:
    assert commitments_match(
        compute_commitments(scenario_diploma(gpa=None)),
        compute_commitments(scenario_diploma(gpa=None)),
    )


def test_format_gpa_locale_independent() -> None:
    """Test that equal GPA values always format identically."""
    assert format_gpa(3.85) == "3.85"
    assert format_gpa(4) == format_gpa(4.0) == "4.0"
    assert format_gpa(0) == "0.0"


def test_blinded_commitments_deviate_from_plain_reference_scheme() -> None:
    """Blinded mode intentionally differs from the unsalted reference commitments."""
    plain = compute_commitments(scenario_diploma())
    blinded = compute_commitments(scenario_diploma(), blinding_seed="holder-secret")

    assert len(mismatched_fields(plain, blinded)) == 5
    assert blinded == compute_commitments(scenario_diploma(), blinding_seed="holder-secret")
    assert blinded != compute_commitments(scenario_diploma(), blinding_seed="other-secret")


def test_blinded_commitments_hide_repeated_values_across_fields() -> None:
    """Same value in two fields commits differently when blinded."""
    data = scenario_diploma(degree="same", school="same")

    plain = compute_commitments(data)
    blinded = compute_commitments(data, blinding_seed="seed")

    assert plain.degree_hash == plain.school_hash
    assert blinded.degree_hash != blinded.school_hash


def test_empty_blinding_seed_rejected() -> None:
    with pytest.raises(InvalidInput, match="Blinding seed"):
        compute_commitments(scenario_diploma(), blinding_seed="")


@pytest.mark.parametrize("overrides", [
    {"degree": ""},
    {"school": "   "},
    {"graduationDate": ""},
    {"studentId": ""},
    {"gpa": 4.01},
    {"gpa": -0.1},
    {"gpa": float("nan")},
])
def test_invalid_diploma_data(overrides: dict) -> None:
    with pytest.raises(InvalidInput, match="Invalid diploma data"):
        coerce_diploma_data(scenario_diploma(**overrides))


def test_missing_required_field() -> None:
    data = scenario_diploma()
    del data["studentId"]

    with pytest.raises(InvalidInput, match="studentId"):
        coerce_diploma_data(data)


def test_invalid_diploma_error_does_not_echo_values() -> None:
    """Validation errors name fields, never private values."""
    with pytest.raises(InvalidInput) as exc_info:
        coerce_diploma_data(scenario_diploma(gpa=9.75, studentId="S-SECRET-42"))

    assert "9.75" not in str(exc_info.value)
    assert "S-SECRET-42" not in str(exc_info.value)


def test_diploma_repr_redacted() -> None:
    diploma = DiplomaData.model_validate(scenario_diploma())

    assert "123456789" not in repr(diploma)
    assert "MIT" not in str(diploma)


def test_non_object_rejected() -> None:
    with pytest.raises(InvalidInput, match="must be an object"):
        coerce_diploma_data(["not", "a", "dict"])  # type: ignore[arg-type]
