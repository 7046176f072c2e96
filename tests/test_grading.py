"""Grade derivation tests."""
from decimal import Decimal

import pytest

from rms.services.grading import (
    DEFAULT_GRADE_BANDS,
    bands_from_mapping,
    compute_grade,
    mapping_from_bands,
    round2,
)


def test_full_band_result():
    outcome = compute_grade(Decimal("85"), Decimal("100"), Decimal("40"))
    assert outcome.percentage == Decimal("85.00")
    assert outcome.grade == "A"
    assert outcome.grade_point == Decimal("9")
    assert outcome.is_passed is True


def test_failing_result_on_smaller_scale():
    outcome = compute_grade(Decimal("15"), Decimal("50"), Decimal("20"))
    assert outcome.percentage == Decimal("30.00")
    assert outcome.grade == "F"
    assert outcome.grade_point == Decimal("0")
    assert outcome.is_passed is False


@pytest.mark.parametrize(
    "marks, grade",
    [("90", "A+"), ("89.99", "A"), ("80", "A"), ("70", "B+"), ("60", "B"), ("50", "C"), ("40", "D"), ("39.99", "F")],
)
def test_band_boundaries_are_inclusive_at_minimum(marks, grade):
    assert compute_grade(Decimal(marks), Decimal("100"), Decimal("40")).grade == grade


def test_pass_depends_on_pass_marks_not_grade():
    # 45% is a D but below a pass mark of 50
    outcome = compute_grade(Decimal("45"), Decimal("100"), Decimal("50"))
    assert outcome.grade == "D"
    assert outcome.is_passed is False


def test_percentage_rounds_half_up():
    assert compute_grade(Decimal("1"), Decimal("3"), Decimal("0")).percentage == Decimal("33.33")
    assert compute_grade(Decimal("2"), Decimal("3"), Decimal("0")).percentage == Decimal("66.67")
    assert round2(Decimal("0.125")) == Decimal("0.13")


def test_zero_max_marks_rejected():
    with pytest.raises(ValueError):
        compute_grade(Decimal("1"), Decimal("0"), Decimal("0"))


def test_default_mapping_round_trips_through_config_shape():
    mapping = mapping_from_bands(DEFAULT_GRADE_BANDS)
    assert mapping["A+"] == {"min": 90.0, "max": 100.0, "gradePoint": 10.0}
    assert mapping["A"]["max"] == 89.99
    assert bands_from_mapping(mapping) == DEFAULT_GRADE_BANDS


def test_custom_mapping_orders_bands():
    bands = bands_from_mapping({
        "FAIL": {"min": 0, "max": 49.99, "gradePoint": 0},
        "PASS": {"min": 50, "max": 100, "gradePoint": 4},
    })
    assert [b.grade for b in bands] == ["PASS", "FAIL"]
    assert compute_grade(Decimal("55"), Decimal("100"), Decimal("50"), bands).grade == "PASS"


@pytest.mark.parametrize(
    "mapping",
    [
        {},
        [],
        {"A": {"min": 50, "gradePoint": 4}},
        {"A": {"gradePoint": 4}, "F": {"min": 0, "gradePoint": 0}},
        {"A": {"min": 120, "gradePoint": 4}, "F": {"min": 0, "gradePoint": 0}},
        {"A": "90"},
    ],
)
def test_invalid_mappings_rejected(mapping):
    with pytest.raises(ValueError):
        bands_from_mapping(mapping)
