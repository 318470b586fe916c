"""
services/report_data.py

Data-access boundary of the report pipeline.
Reads ORM rows once and turns them into the DTOs in schemas/grading.py,
so the aggregation / rendering code never touches SQLAlchemy objects.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from models.academic_periods import AcademicPeriod as AcademicPeriodModel
from models.activities import Activity as ActivityModel, ActivityGrade as ActivityGradeModel
from models.final_grades import FinalGrade as FinalGradeModel
from models.sections import Section as SectionModel
from models.students import Student as StudentModel
from models.subjects import Subject as SubjectModel
from models.teacher_subjects import TeacherSubject as TeacherSubjectModel
from schemas.grading import (
    EXAM,
    PERFORMANCE,
    WRITTEN,
    AcademicPeriod,
    Activity,
    ActivitySet,
    CourseGrade,
    CourseInfo,
    GradeEntry,
    Student,
    TermGradeRow,
    build_grade_matrix,
)
from services.class_record import ClassRecord
from services.exceptions import RecordNotFound
from services.grade_aggregator import merge_term_grades

logger = logging.getLogger(__name__)

# activity.type -> class record category; other types are not graded
ACTIVITY_TYPE_CATEGORIES: Dict[str, str] = {
    "quiz": WRITTEN,
    "assignment": WRITTEN,
    "other": WRITTEN,
    "project": PERFORMANCE,
    "laboratory": PERFORMANCE,
    "performance": PERFORMANCE,
    "exam": EXAM,
}


def classify_activity_type(activity_type: Optional[str]) -> Optional[str]:
    return ACTIVITY_TYPE_CATEGORIES.get((activity_type or "").strip().lower())


# ==========================================================
# [Converters]
# ==========================================================
def to_student(row: StudentModel) -> Student:
    return Student(
        id=row.id,
        student_id=row.student_id or str(row.id),
        first_name=row.first_name or "",
        last_name=row.last_name or "",
        email=row.email,
        year_level=row.year_level,
    )


def to_period(row: Optional[AcademicPeriodModel]) -> Optional[AcademicPeriod]:
    if row is None:
        return None
    return AcademicPeriod(
        id=row.id,
        school_year=row.school_year or "",
        semester=row.semester or "",
        period_type=row.period_type or "",
    )


def to_activity(row: ActivityModel) -> Optional[Activity]:
    category = classify_activity_type(row.type)
    if category is None:
        logger.debug("Activity %s has ungraded type %r, skipped", row.id, row.type)
        return None
    return Activity(
        id=row.id,
        title=row.title or "",
        category=category,
        max_score=row.max_score,
        course_id=row.course_id,
    )


# ==========================================================
# [Class record]
# ==========================================================
def load_class_record(
    db: Session,
    course_id: int,
    section_id: int,
    academic_period_id: Optional[int] = None,
) -> ClassRecord:
    course = db.query(TeacherSubjectModel).filter(TeacherSubjectModel.id == course_id).first()
    if course is None or course.subject is None:
        raise RecordNotFound("Course not found")

    section = db.query(SectionModel).filter(SectionModel.id == section_id).first()
    if section is None:
        raise RecordNotFound("Section not found")

    period = None
    if academic_period_id:
        period = to_period(
            db.query(AcademicPeriodModel).filter(AcademicPeriodModel.id == academic_period_id).first()
        )

    subject = course.subject
    course_info = CourseInfo(
        course_code=subject.course_code or "",
        course_name=subject.course_name or "",
        teacher_name=course.teacher.full_name if course.teacher else "N/A",
        section_name=section.name or "N/A",
        period_info=period.label if period else "",
    )

    activity_query = (
        db.query(ActivityModel)
        .filter(ActivityModel.course_id == course_id, ActivityModel.section_id == section_id)
    )
    if academic_period_id:
        activity_query = activity_query.filter(ActivityModel.academic_period_id == academic_period_id)
    activity_rows = activity_query.order_by(ActivityModel.id).all()
    activities = ActivitySet.from_activities(
        a for a in (to_activity(row) for row in activity_rows) if a is not None
    )

    student_query = db.query(StudentModel).filter(StudentModel.section_id == section_id)
    if subject.year_level:
        student_query = student_query.filter(StudentModel.year_level == subject.year_level)
    students = [to_student(s) for s in student_query.order_by(StudentModel.id).all()]

    entries: List[GradeEntry] = []
    activity_ids = [a.id for a in activities.all()]
    student_ids = [s.id for s in students]
    if activity_ids and student_ids:
        rows = (
            db.query(ActivityGradeModel)
            .filter(ActivityGradeModel.activity_id.in_(activity_ids))
            .filter(ActivityGradeModel.student_id.in_(student_ids))
            .all()
        )
        entries = [GradeEntry(student_id=r.student_id, activity_id=r.activity_id, score=r.grade) for r in rows]

    logger.info(
        "Class record loaded: course=%s section=%s students=%d activities=%d grades=%d",
        course_id, section_id, len(students), len(activity_ids), len(entries),
    )
    return ClassRecord(course_info, students, activities, build_grade_matrix(entries))


def class_record_basename(record: ClassRecord, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    info = record.course_info
    code = info.course_code or "Course"
    section = info.section_name if info.section_name and info.section_name != "N/A" else "Section"
    return f"ClassRecord_{code}_{section}_{now:%Y%m%d_%H%M%S}"


# ==========================================================
# [Student grade report]
# ==========================================================
def list_students(
    db: Session,
    section_id: Optional[int] = None,
    year_level: Optional[str] = None,
    status: Optional[str] = "active",
) -> List[Student]:
    query = db.query(StudentModel)
    if section_id is not None:
        query = query.filter(StudentModel.section_id == section_id)
    if year_level:
        query = query.filter(StudentModel.year_level == year_level)
    if status:
        query = query.filter(StudentModel.status == status)
    return [to_student(s) for s in query.order_by(StudentModel.last_name, StudentModel.first_name).all()]


def get_student(db: Session, student_pk: int) -> Optional[Student]:
    row = db.query(StudentModel).filter(StudentModel.id == student_pk).first()
    return to_student(row) if row else None


def get_period(db: Session, period_ids: Sequence[int]) -> Optional[AcademicPeriod]:
    """The first requested period is the one printed on the report."""
    if not period_ids:
        return None
    return to_period(db.query(AcademicPeriodModel).filter(AcademicPeriodModel.id == period_ids[0]).first())


def load_course_grades(db: Session, student_pk: int, period_ids: Sequence[int]) -> List[CourseGrade]:
    if not period_ids:
        return []

    rows = (
        db.query(FinalGradeModel, SubjectModel, AcademicPeriodModel)
        .join(SubjectModel, SubjectModel.id == FinalGradeModel.subject_id)
        .join(AcademicPeriodModel, AcademicPeriodModel.id == FinalGradeModel.academic_period_id)
        .filter(FinalGradeModel.student_id == student_pk)
        .filter(FinalGradeModel.academic_period_id.in_(list(period_ids)))
        .order_by(SubjectModel.course_code, AcademicPeriodModel.id)
        .all()
    )
    term_rows = [
        TermGradeRow(
            course_code=subject.course_code,
            course_name=subject.course_name or "",
            credits=subject.credits,
            period_type=period.period_type or "",
            final_grade=grade.final_grade,
            final_grade_num=grade.final_grade_num,
        )
        for grade, subject, period in rows
    ]
    return merge_term_grades(term_rows)
