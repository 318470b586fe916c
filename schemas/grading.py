"""
schemas/grading.py

Normalized DTOs consumed by the grading pipeline.
They are built once at the data-access boundary (services/report_data.py);
nothing downstream looks at ORM rows or alternate field names.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =========================================================
# 1) Class record inputs
# =========================================================

WRITTEN = "written"
PERFORMANCE = "performance"
EXAM = "exam"
CATEGORIES = (WRITTEN, PERFORMANCE, EXAM)


class Activity(BaseModel):
    id: int
    title: str = ""
    category: str                              # written / performance / exam
    max_score: float
    course_id: Optional[int] = None

    model_config = ConfigDict(frozen=True)


class GradeEntry(BaseModel):
    student_id: int
    activity_id: int
    score: Optional[float] = None              # None = ungraded

    model_config = ConfigDict(frozen=True)


class Student(BaseModel):
    id: int                                    # internal key used by the grade matrix
    student_id: str                            # display code
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None
    year_level: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class CourseInfo(BaseModel):
    """Descriptive bundle printed in export headers; never interpreted."""
    course_name: str = "N/A"
    course_code: str = ""
    teacher_name: str = "N/A"
    section_name: str = "N/A"
    period_info: str = ""

    model_config = ConfigDict(frozen=True)


class ActivitySet(BaseModel):
    """Activities of one course, partitioned by category and kept in display order."""
    written: List[Activity] = Field(default_factory=list)
    performance: List[Activity] = Field(default_factory=list)
    exam: List[Activity] = Field(default_factory=list)

    @classmethod
    def from_activities(cls, activities: Iterable[Activity]) -> "ActivitySet":
        buckets: Dict[str, List[Activity]] = {c: [] for c in CATEGORIES}
        for activity in activities:
            # unknown categories are dropped from every total
            if activity.category in buckets:
                buckets[activity.category].append(activity)
        return cls(**buckets)

    @property
    def has_exam(self) -> bool:
        return bool(self.exam)

    def all(self) -> List[Activity]:
        return [*self.written, *self.performance, *self.exam]


def grade_key(student_id: int, activity_id: int) -> str:
    """Key of the grade matrix: "<student id>_<activity id>"."""
    return f"{student_id}_{activity_id}"


GradeMatrix = Dict[str, Optional[float]]


def build_grade_matrix(entries: Iterable[GradeEntry]) -> GradeMatrix:
    return {grade_key(e.student_id, e.activity_id): e.score for e in entries}


# =========================================================
# 2) Derived rows
# =========================================================

class AggregatedRow(BaseModel):
    written_total: float = 0
    written_ps: float = 0
    written_ws: float = 0
    performance_total: float = 0
    performance_ps: float = 0
    performance_ws: float = 0
    exam_score: Optional[float] = None         # exam fields stay None when the course has no exam
    exam_ps: Optional[float] = None
    exam_ws: Optional[float] = None
    initial_grade: float = 0
    final_grade: str = "5.00"

    model_config = ConfigDict(frozen=True)


# =========================================================
# 3) Student grade report
# =========================================================

class AcademicPeriod(BaseModel):
    id: Optional[int] = None
    school_year: str = ""
    semester: str = ""
    period_type: str = ""

    @property
    def label(self) -> str:
        return f"{self.school_year} - {self.semester} ({self.period_type})"


class TermGradeRow(BaseModel):
    """One final_grades row joined with its subject and period."""
    course_code: str
    course_name: str = ""
    credits: Optional[float] = None
    period_type: str = ""
    final_grade: Optional[str] = None
    final_grade_num: Optional[float] = None


class CourseGrade(BaseModel):
    """One line of the student grade report."""
    course_code: str = ""
    course_name: str = ""
    credits: Optional[float] = None
    midterm_grade: str = "-"
    final_grade: str = "-"
    final_grade_num: float = 0
    remarks: str = "INC"


class GwaSummary(BaseModel):
    total_units: float
    gwa_numeric: float
    gwa: str
    status: str
