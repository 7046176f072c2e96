"""Grade derivation.

Pure functions only: the result service calls :func:`compute_grade` on every
write that touches ``marks_obtained`` and stores the outcome on the row.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class GradeBand:
    """Percentage band; ``min_percentage`` is inclusive."""

    grade: str
    min_percentage: Decimal
    grade_point: Decimal


@dataclass(frozen=True)
class GradeOutcome:
    percentage: Decimal
    grade: str
    grade_point: Decimal
    is_passed: bool


DEFAULT_GRADE_BANDS: tuple[GradeBand, ...] = (
    GradeBand("A+", Decimal("90"), Decimal("10")),
    GradeBand("A", Decimal("80"), Decimal("9")),
    GradeBand("B+", Decimal("70"), Decimal("8")),
    GradeBand("B", Decimal("60"), Decimal("7")),
    GradeBand("C", Decimal("50"), Decimal("6")),
    GradeBand("D", Decimal("40"), Decimal("5")),
    GradeBand("F", Decimal("0"), Decimal("0")),
)


def round2(value: Decimal | float | int) -> Decimal:
    """Round half-up to two decimal places."""
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def compute_percentage(marks_obtained: Decimal, max_marks: Decimal) -> Decimal:
    if max_marks <= 0:
        raise ValueError("max_marks must be positive")
    return round2(Decimal(marks_obtained) / Decimal(max_marks) * 100)


def grade_for_percentage(
    percentage: Decimal,
    bands: tuple[GradeBand, ...] = DEFAULT_GRADE_BANDS,
) -> GradeBand:
    for band in bands:
        if percentage >= band.min_percentage:
            return band
    # Bands always end at 0 so this only happens with negative input
    return bands[-1]


def compute_grade(
    marks_obtained: Decimal,
    max_marks: Decimal,
    pass_marks: Decimal,
    bands: tuple[GradeBand, ...] = DEFAULT_GRADE_BANDS,
) -> GradeOutcome:
    """Derive percentage, grade, grade point and pass flag for a mark.

    Pass/fail compares raw marks against ``pass_marks`` and does not depend
    on the grade band.
    """
    marks_obtained = Decimal(marks_obtained)
    percentage = compute_percentage(marks_obtained, max_marks)
    band = grade_for_percentage(percentage, bands)
    return GradeOutcome(
        percentage=percentage,
        grade=band.grade,
        grade_point=band.grade_point,
        is_passed=marks_obtained >= Decimal(pass_marks),
    )


def bands_from_mapping(mapping: Any) -> tuple[GradeBand, ...]:
    """Build a band table from a ``GRADE_MAPPING`` config value.

    The value maps grade labels to ``{"min": .., "max": .., "gradePoint": ..}``.
    Raises ``ValueError`` when the mapping is unusable.
    """
    if not isinstance(mapping, dict) or not mapping:
        raise ValueError("Grade mapping must be a non-empty object")

    bands = []
    for grade, band in mapping.items():
        if not isinstance(band, dict):
            raise ValueError(f"Grade {grade!r} must map to an object")
        try:
            min_percentage = Decimal(str(band["min"]))
            grade_point = Decimal(str(band.get("gradePoint", band.get("grade_point"))))
        except (KeyError, InvalidOperation) as e:
            raise ValueError(f"Grade {grade!r} is missing min or gradePoint") from e
        if min_percentage < 0 or min_percentage > 100:
            raise ValueError(f"Grade {grade!r} has an out-of-range minimum")
        bands.append(GradeBand(str(grade), min_percentage, grade_point))

    bands.sort(key=lambda b: b.min_percentage, reverse=True)
    if bands[-1].min_percentage != 0:
        raise ValueError("Grade mapping must include a band starting at 0")
    return tuple(bands)


def mapping_from_bands(bands: tuple[GradeBand, ...] = DEFAULT_GRADE_BANDS) -> dict[str, dict]:
    """Inverse of :func:`bands_from_mapping`, used to seed the config row."""
    mapping = {}
    upper = Decimal("100")
    for band in bands:
        mapping[band.grade] = {
            "min": float(band.min_percentage),
            "max": float(upper),
            "gradePoint": float(band.grade_point),
        }
        upper = band.min_percentage - Decimal("0.01")
    return mapping
