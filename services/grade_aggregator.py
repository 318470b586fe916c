"""
services/grade_aggregator.py

Class-record arithmetic:
- per-category Total / PS (percentage score) / WS (weighted score)
- initial grade = sum of the category WS values
- transmutation of the 0-100 initial grade to the 1.00-5.00 scale

plus the helpers used by the student grade report (remarks, GWA, status,
merging midterm/final term rows).

Display values are rounded half-up to 2 decimals. The transmutation always
compares the unrounded initial grade, so 74.999 is "5.00" even though it
prints as 75.00.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from schemas.grading import (
    EXAM,
    PERFORMANCE,
    WRITTEN,
    Activity,
    ActivitySet,
    AggregatedRow,
    CourseGrade,
    GradeMatrix,
    GwaSummary,
    Student,
    TermGradeRow,
    grade_key,
)
from services.exceptions import InvalidInput

logger = logging.getLogger(__name__)


# ==========================================================
# [Constants]
# ==========================================================
WEIGHTS: Dict[str, int] = {WRITTEN: 30, PERFORMANCE: 40, EXAM: 30}

# (minimum initial grade, transmuted grade), highest first
TRANSMUTATION_TABLE: Tuple[Tuple[int, str], ...] = (
    (97, "1.00"),
    (94, "1.25"),
    (91, "1.50"),
    (88, "1.75"),
    (85, "2.00"),
    (82, "2.25"),
    (79, "2.50"),
    (76, "2.75"),
    (75, "3.00"),
)
FAILING_GRADE = "5.00"
PASSING_PERCENT = 75

# (highest transmuted grade, label), best first
GWA_STATUS_TABLE: Tuple[Tuple[float, str], ...] = (
    (1.50, "Excellent Performance"),
    (2.00, "Very Good Performance"),
    (2.50, "Good Performance"),
    (3.00, "Satisfactory Performance"),
)
GWA_STATUS_FLOOR = "Below Average Performance"

_CENT = Decimal("0.01")


# ==========================================================
# [Scalar helpers]
# ==========================================================
def round2(value: float) -> float:
    """Round half away from zero to 2 decimals (Python's round() is half-even)."""
    return float(Decimal(repr(float(value))).quantize(_CENT, rounding=ROUND_HALF_UP))


def transmute(percentage: float) -> str:
    """Map a 0-100 grade onto the 1.00-5.00 scale."""
    for minimum, grade in TRANSMUTATION_TABLE:
        if percentage >= minimum:
            return grade
    return FAILING_GRADE


def normalize_score(value) -> float:
    """Missing -> 0, negative -> 0. Anything non-numeric is rejected."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        raise InvalidInput(f"Score must be numeric, got {value!r}")
    try:
        score = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"Score must be numeric, got {value!r}") from None
    if score != score:  # NaN
        raise InvalidInput("Score must be numeric, got NaN")
    if score < 0:
        logger.debug("Clamping negative score %s to 0", score)
        return 0.0
    return score


def _check_activities(activities: Iterable[Activity]) -> None:
    for activity in activities:
        if activity.max_score is None or activity.max_score <= 0:
            raise InvalidInput(
                f"Activity {activity.id} ({activity.title!r}) has a non-positive max_score: {activity.max_score}"
            )


# ==========================================================
# [Category aggregation]
# ==========================================================
class CategoryScore(NamedTuple):
    total: float
    max_score: float
    ps: float            # unrounded
    ws: float            # unrounded


def category_score(
    activities: Sequence[Activity],
    student_id: int,
    grades: GradeMatrix,
    weight: float,
) -> CategoryScore:
    total = sum(normalize_score(grades.get(grade_key(student_id, a.id))) for a in activities)
    max_score = sum(a.max_score for a in activities)
    if max_score > 0:
        ratio = total / max_score
        return CategoryScore(total, max_score, ratio * 100, ratio * weight)
    return CategoryScore(total, max_score, 0.0, 0.0)


def activity_scores(activities: Sequence[Activity], student_id: int, grades: GradeMatrix) -> List[float]:
    """Per-activity cells of the class record; ungraded shows as 0."""
    return [normalize_score(grades.get(grade_key(student_id, a.id))) for a in activities]


def aggregate_student(student_id: int, activity_set: ActivitySet, grades: GradeMatrix) -> AggregatedRow:
    _check_activities(activity_set.all())

    written = category_score(activity_set.written, student_id, grades, WEIGHTS[WRITTEN])
    performance = category_score(activity_set.performance, student_id, grades, WEIGHTS[PERFORMANCE])

    initial = written.ws + performance.ws
    exam_fields = {}
    if activity_set.has_exam:
        exam = category_score(activity_set.exam, student_id, grades, WEIGHTS[EXAM])
        initial += exam.ws
        exam_fields = {
            "exam_score": round2(exam.total),
            "exam_ps": round2(exam.ps),
            "exam_ws": round2(exam.ws),
        }

    return AggregatedRow(
        written_total=round2(written.total),
        written_ps=round2(written.ps),
        written_ws=round2(written.ws),
        performance_total=round2(performance.total),
        performance_ps=round2(performance.ps),
        performance_ws=round2(performance.ws),
        initial_grade=round2(initial),
        final_grade=transmute(initial),
        **exam_fields,
    )


def aggregate_class(
    students: Sequence[Student],
    activity_set: ActivitySet,
    grades: GradeMatrix,
) -> List[Tuple[Student, AggregatedRow]]:
    return [(s, aggregate_student(s.id, activity_set, grades)) for s in students]


# ==========================================================
# [Student report helpers]
# ==========================================================
def remark_for(final_grade_num: Optional[float]) -> str:
    value = float(final_grade_num or 0)
    if value >= PASSING_PERCENT:
        return "PASSED"
    if value > 0:
        return "FAILED"
    return "INC"


def gwa_status(gwa: str) -> str:
    value = float(gwa)
    for ceiling, label in GWA_STATUS_TABLE:
        if value <= ceiling:
            return label
    return GWA_STATUS_FLOOR


def compute_gwa(grades: Iterable[CourseGrade], default_credits: float = 3.0) -> Optional[GwaSummary]:
    """
    Credit-weighted mean of final_grade_num (0-100) over courses that have a grade,
    transmuted with the class-record table. None when no course qualifies.
    """
    total_units = 0.0
    total_points = 0.0
    for g in grades:
        grade_num = float(g.final_grade_num or 0)
        if grade_num > 0:
            units = float(g.credits if g.credits is not None else default_credits)
            total_units += units
            total_points += grade_num * units

    if total_units <= 0:
        return None

    gwa_numeric = total_points / total_units
    letter = transmute(gwa_numeric)
    return GwaSummary(
        total_units=round2(total_units),
        gwa_numeric=round2(gwa_numeric),
        gwa=letter,
        status=gwa_status(letter),
    )


def merge_term_grades(rows: Iterable[TermGradeRow]) -> List[CourseGrade]:
    """
    Fold midterm / final rows of the same subject into one report line.
    Both numeric grades present -> average; otherwise whichever one is > 0.
    """
    merged: Dict[str, dict] = {}
    for row in rows:
        entry = merged.setdefault(row.course_code, {
            "course_code": row.course_code,
            "course_name": row.course_name,
            "credits": row.credits,
            "midterm_grade": "-",
            "final_grade": "-",
            "midterm_num": 0.0,
            "final_num": 0.0,
        })
        period_type = (row.period_type or "").lower()
        if "midterm" in period_type:
            entry["midterm_grade"] = row.final_grade or "-"
            entry["midterm_num"] = float(row.final_grade_num or 0)
        elif "final" in period_type:
            entry["final_grade"] = row.final_grade or "-"
            entry["final_num"] = float(row.final_grade_num or 0)

    result = []
    for entry in merged.values():
        mid, fin = entry.pop("midterm_num"), entry.pop("final_num")
        if mid > 0 and fin > 0:
            averaged = (mid + fin) / 2
        else:
            averaged = mid if mid > 0 else fin if fin > 0 else 0.0

        entry["final_grade_num"] = round2(averaged)
        entry["final_grade"] = transmute(averaged) if averaged > 0 else FAILING_GRADE
        entry["remarks"] = remark_for(averaged)
        result.append(CourseGrade(**entry))
    return result
