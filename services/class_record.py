"""
services/class_record.py

Builds the class record matrix (students x activities) shared by both export
encoders. The column layout is computed once here so the CSV and the XLSX
outputs always agree on column positions:

    No, Student ID, Name, W1..Wn, Total, PS, WS, P1..Pm, Total, PS, WS,
    [Exam, PS, WS], Initial, Final
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

from schemas.grading import ActivitySet, AggregatedRow, CourseInfo, GradeMatrix, Student
from services.grade_aggregator import activity_scores, aggregate_student

LEGEND = "Legend: HPS = Highest Possible Score, PS = Percentage Score, WS = Weighted Score"


class ColumnLayout:
    """1-based column positions of every block of the class record."""

    def __init__(self, activities: ActivitySet):
        self.activities = activities
        col = 4  # after No / Student ID / Name

        self.written_start = col
        col += len(activities.written)
        self.written_total, self.written_ps, self.written_ws = col, col + 1, col + 2
        col += 3

        self.performance_start = col
        col += len(activities.performance)
        self.performance_total, self.performance_ps, self.performance_ws = col, col + 1, col + 2
        col += 3

        self.exam_score: Optional[int] = None
        self.exam_ps: Optional[int] = None
        self.exam_ws: Optional[int] = None
        if activities.has_exam:
            self.exam_score, self.exam_ps, self.exam_ws = col, col + 1, col + 2
            col += 3

        self.initial = col
        self.final = col + 1
        self.last_column = self.final

    @property
    def decimal_columns(self) -> List[int]:
        """Columns formatted with 2 decimals (PS / WS / Initial)."""
        cols = [self.written_ps, self.written_ws, self.performance_ps, self.performance_ws]
        if self.exam_ps is not None:
            cols += [self.exam_ps, self.exam_ws]
        cols.append(self.initial)
        return cols

    def header(self, long_labels: bool = False) -> List[str]:
        a = self.activities
        labels = ["No", "Student ID", "Name"]

        labels += [f"W{i}" for i in range(1, len(a.written) + 1)]
        labels += _block("Written", long_labels)

        labels += [f"P{i}" for i in range(1, len(a.performance) + 1)]
        labels += _block("Performance", long_labels)

        if a.has_exam:
            labels += ["Exam Score", "Exam PS", "Exam WS"] if long_labels else ["Exam", "PS", "WS"]

        labels += ["Initial Grade", "Final Grade"] if long_labels else ["Initial", "Final"]
        return labels


def _block(name: str, long_labels: bool) -> List[str]:
    if long_labels:
        return [f"{name} Total", f"{name} PS", f"{name} WS"]
    return ["Total", "PS", "WS"]


@dataclass(frozen=True)
class StudentRecord:
    index: int                          # 1-based position in the enrolled list
    student: Student
    written_scores: List[float]
    performance_scores: List[float]
    exam_scores: List[float]
    aggregate: AggregatedRow

    @property
    def exam_total(self) -> float:
        return sum(self.exam_scores)


class ClassRecord:
    """One course/section class record, ready to be encoded."""

    def __init__(
        self,
        course_info: CourseInfo,
        students: Sequence[Student],
        activities: ActivitySet,
        grades: GradeMatrix,
    ):
        self.course_info = course_info
        self.students = list(students)
        self.activities = activities
        self.grades = grades
        self.layout = ColumnLayout(activities)

    # ✅ metadata lines printed above the table (period line only when known)
    def title_lines(self) -> List[str]:
        info = self.course_info
        lines = [
            f"{info.course_code} - {info.course_name}",
            f"Teacher: {info.teacher_name} | Section: {info.section_name}",
        ]
        if info.period_info:
            lines.append(info.period_info)
        lines.append(f"Total Students: {len(self.students)}")
        lines.append(LEGEND)
        return lines

    @property
    def written_max(self) -> float:
        return sum(a.max_score for a in self.activities.written)

    @property
    def performance_max(self) -> float:
        return sum(a.max_score for a in self.activities.performance)

    @property
    def exam_max(self) -> float:
        return sum(a.max_score for a in self.activities.exam)

    def records(self) -> Iterator[StudentRecord]:
        a = self.activities
        for idx, student in enumerate(self.students, start=1):
            yield StudentRecord(
                index=idx,
                student=student,
                written_scores=activity_scores(a.written, student.id, self.grades),
                performance_scores=activity_scores(a.performance, student.id, self.grades),
                exam_scores=activity_scores(a.exam, student.id, self.grades),
                aggregate=aggregate_student(student.id, a, self.grades),
            )

    def literal_rows(self) -> List[list]:
        """Pre-computed rows in layout order (used by the flat-text export)."""
        rows = []
        for rec in self.records():
            agg = rec.aggregate
            row = [rec.index, rec.student.student_id, rec.student.full_name]
            row += rec.written_scores
            row += [agg.written_total, agg.written_ps, agg.written_ws]
            row += rec.performance_scores
            row += [agg.performance_total, agg.performance_ps, agg.performance_ws]
            if self.activities.has_exam:
                row += [agg.exam_score, agg.exam_ps, agg.exam_ws]
            row += [agg.initial_grade, agg.final_grade]
            rows.append(row)
        return rows
