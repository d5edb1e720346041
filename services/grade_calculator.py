"""
services/grade_calculator.py

Turns raw scores into a final grade:
  category averages -> blended final percentage -> letter grade -> GPA.

Pure functions over a GradeRecord (schemas/grades.py). Nothing here touches the
database; services/grade_service.py calls recompute() once per save.

Blend rule
- Fixed category weights (assignments 30, quizzes 20, midterm 25, final 25).
- A category enters the blend only when it has data: a list with a positive
  total weight, or a fixed component whose score is set. Its weight is added to
  numerator and denominator only then, so the effective weight of each category
  shifts as components are added. This is the historical behaviour and is kept
  as the default; blend_mode="all_categories" counts missing categories as 0.
- A list whose weights sum to 0 counts as having no data, so zero-weight items
  never move the final percentage. Older records treated any non-empty list as
  present, scoring such a list as 0% at the full category weight.
"""

import math
from collections import Counter
from numbers import Real
from typing import Iterable, Mapping, Optional, Sequence, Tuple

from schemas.grades import (
    FinalGrade, FixedComponent, GradeRecord, GradeStats, LetterGrade, ScoreComponent,
)
from utils.errors import ValidationError

CATEGORY_WEIGHTS = {"assignments": 30, "quizzes": 20, "midterm": 25, "final": 25}

BLEND_PRESENT_ONLY = "present_only"
BLEND_ALL_CATEGORIES = "all_categories"

# evaluated highest first, first match wins
LETTER_THRESHOLDS = (
    (97, LetterGrade.A_PLUS),
    (93, LetterGrade.A),
    (90, LetterGrade.A_MINUS),
    (87, LetterGrade.B_PLUS),
    (83, LetterGrade.B),
    (80, LetterGrade.B_MINUS),
    (77, LetterGrade.C_PLUS),
    (73, LetterGrade.C),
    (70, LetterGrade.C_MINUS),
    (67, LetterGrade.D_PLUS),
    (63, LetterGrade.D),
    (60, LetterGrade.D_MINUS),
)

GPA_POINTS = {
    LetterGrade.A_PLUS: 4.0, LetterGrade.A: 4.0, LetterGrade.A_MINUS: 3.7,
    LetterGrade.B_PLUS: 3.3, LetterGrade.B: 3.0, LetterGrade.B_MINUS: 2.7,
    LetterGrade.C_PLUS: 2.3, LetterGrade.C: 2.0, LetterGrade.C_MINUS: 1.7,
    LetterGrade.D_PLUS: 1.3, LetterGrade.D: 1.0, LetterGrade.D_MINUS: 0.7,
    LetterGrade.F: 0.0,
}


def _number(value, field: str) -> float:
    """Finite, non-negative real or ValidationError."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValidationError(f"{field} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ValidationError(f"{field} must be finite, got {value!r}")
    if value < 0:
        raise ValidationError(f"{field} must not be negative, got {value!r}")
    return float(value)


def _ratio(score, max_score, label: str) -> float:
    max_score = _number(max_score, f"{label}.max_score")
    if max_score <= 0:
        raise ValidationError(f"{label}.max_score must be greater than 0")
    return _number(score, f"{label}.score") / max_score


def _weighted_category(components: Sequence[ScoreComponent], label: str) -> Tuple[float, float]:
    # returns (percentage, total weight)
    weighted = 0.0
    total_weight = 0.0
    for i, component in enumerate(components):
        where = f"{label}[{i}]"
        weight = _number(component.weight, f"{where}.weight")
        weighted += _ratio(component.score, component.max_score, where) * weight
        total_weight += weight
    if total_weight == 0:
        return 0.0, 0.0
    return weighted / total_weight * 100, total_weight


def category_average(components: Sequence[ScoreComponent], label: str = "components") -> float:
    """
    Σ(score / max_score × weight) / Σ(weight) × 100.

    An empty list, or one whose weights sum to 0, averages to 0.
    Raises ValidationError on a max_score <= 0 or any non-finite/negative number.
    """
    return _weighted_category(components, label)[0]


def fixed_percentage(component: Optional[FixedComponent], label: str) -> Optional[float]:
    """Percentage of a single fixed component, or None while it is ungraded."""
    if component is None or component.score is None:
        return None
    return _ratio(component.score, component.max_score, label) * 100


def final_percentage(
    record: GradeRecord,
    weights: Optional[Mapping[str, float]] = None,
    blend_mode: str = BLEND_PRESENT_ONLY,
) -> float:
    if blend_mode not in (BLEND_PRESENT_ONLY, BLEND_ALL_CATEGORIES):
        raise ValueError(f"unknown blend mode: {blend_mode}")
    weights = CATEGORY_WEIGHTS if weights is None else weights

    categories = {}
    for name in ("assignments", "quizzes"):
        percentage, total_weight = _weighted_category(getattr(record, name), name)
        categories[name] = percentage if total_weight > 0 else None
    for name in ("midterm", "final"):
        categories[name] = fixed_percentage(getattr(record, name), name)

    total_score = 0.0
    total_weight = 0.0
    for name, percentage in categories.items():
        if percentage is None:
            if blend_mode == BLEND_PRESENT_ONLY:
                continue
            percentage = 0.0
        weight = _number(weights[name], f"weight for {name}")
        total_score += percentage / 100 * weight
        total_weight += weight

    if total_weight == 0:
        return 0.0
    result = total_score / total_weight * 100
    if result > 100:
        raise ValidationError(f"final percentage {result:.2f} exceeds 100; check scores against max scores")
    return result


def letter_grade(percentage: float) -> LetterGrade:
    if isinstance(percentage, bool) or not isinstance(percentage, Real) or not math.isfinite(percentage):
        raise ValidationError(f"percentage must be a finite number, got {percentage!r}")
    for threshold, letter in LETTER_THRESHOLDS:
        if percentage >= threshold:
            return letter
    return LetterGrade.F


def gpa(letter) -> float:
    try:
        return GPA_POINTS[LetterGrade(letter)]
    except ValueError:
        raise ValidationError(f"unknown letter grade: {letter!r}")


def _validate_ungraded_inputs(record: GradeRecord):
    # participation and attendance do not enter the blend but must still be sane
    if record.participation is not None and record.participation.score is not None:
        ratio = _ratio(record.participation.score, record.participation.max_score, "participation")
        if ratio > 1:
            raise ValidationError("participation.score exceeds participation.max_score")
    if record.attendance_percentage is not None:
        value = _number(record.attendance_percentage, "attendance_percentage")
        if value > 100:
            raise ValidationError("attendance_percentage must be between 0 and 100")


def recompute(
    record: GradeRecord,
    weights: Optional[Mapping[str, float]] = None,
    blend_mode: str = BLEND_PRESENT_ONLY,
) -> FinalGrade:
    """
    Derive percentage -> letter -> GPA and store them on record.final_grade.

    The final grade is replaced in a single assignment after every step has
    succeeded; on ValidationError the record keeps its previous final grade.
    """
    _validate_ungraded_inputs(record)
    percentage = final_percentage(record, weights, blend_mode)
    letter = letter_grade(percentage)
    result = FinalGrade(percentage=percentage, letter_grade=letter, gpa=gpa(letter))
    record.final_grade = result
    return result


def course_grade_stats(final_grades: Iterable[Optional[FinalGrade]]) -> GradeStats:
    """Totals for one course/term; ungraded records count as students but not in averages."""
    total = 0
    graded = []
    for grade in final_grades:
        total += 1
        if grade is not None:
            graded.append(grade)

    if not graded:
        return GradeStats(total_students=total)

    distribution = Counter(g.letter_grade.value for g in graded)
    return GradeStats(
        total_students=total,
        avg_grade=sum(g.percentage for g in graded) / len(graded),
        avg_gpa=sum(g.gpa for g in graded) / len(graded),
        grade_distribution=dict(distribution),
    )
