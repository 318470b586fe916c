import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import CurrentUser, require_login, require_teacher
from models.final_grades import FinalGrade as FinalGradeModel
from models.teachers import Teacher as TeacherModel
from models.teacher_subjects import TeacherSubject as TeacherSubjectModel, TeacherSubjectSection
from schemas.final_grades import FinalGrade as FinalGradeSchema, FinalGradeSubmit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/final-grades", tags=["final grades"])


def _forbidden(message: str) -> JSONResponse:
    return JSONResponse(status_code=403, content={"success": False, "error": {"code": 403, "message": message}})


# ==========================================================
# [CREATE / UPDATE] submit term grades
# ==========================================================
@router.post("/submit")
def submit_final_grades(
    body: FinalGradeSubmit,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_teacher),
):
    teacher = db.query(TeacherModel).filter(TeacherModel.user_id == user.user_id).first()
    if teacher is None:
        return _forbidden("Teacher profile not found for current user")

    assignment = (
        db.query(TeacherSubjectModel)
        .join(TeacherSubjectSection, TeacherSubjectSection.teacher_subject_id == TeacherSubjectModel.id)
        .filter(
            TeacherSubjectModel.teacher_id == teacher.id,
            TeacherSubjectModel.subject_id == body.subject_id,
            TeacherSubjectSection.section_id == body.section_id,
        )
        .first()
    )
    if assignment is None:
        return _forbidden("You are not assigned to teach this subject/section")

    inserted, updated, errors = 0, 0, []
    now = datetime.now()
    for item in body.grades:
        if not item.student_id or not item.final_grade:
            errors.append(f"Invalid grade data for student {item.student_id}")
            continue

        existing = (
            db.query(FinalGradeModel)
            .filter(
                FinalGradeModel.student_id == item.student_id,
                FinalGradeModel.subject_id == body.subject_id,
                FinalGradeModel.academic_period_id == body.academic_period_id,
                FinalGradeModel.term == body.term,
            )
            .first()
        )
        if existing:
            existing.final_grade = item.final_grade
            existing.final_grade_num = item.final_grade_num
            existing.submitted_by = user.user_id
            existing.submitted_at = now
            existing.status = "submitted"
            updated += 1
        else:
            db.add(FinalGradeModel(
                student_id=item.student_id,
                subject_id=body.subject_id,
                section_id=body.section_id,
                academic_period_id=body.academic_period_id,
                term=body.term,
                final_grade=item.final_grade,
                final_grade_num=item.final_grade_num,
                status="submitted",
                submitted_by=user.user_id,
                submitted_at=now,
            ))
            db.flush()  # a repeated student in the same submission updates this row
            inserted += 1

    db.commit()
    logger.info(
        "Final grades submitted by user %s: subject=%s section=%s period=%s inserted=%d updated=%d",
        user.user_id, body.subject_id, body.section_id, body.academic_period_id, inserted, updated,
    )
    return {
        "success": True,
        "message": f"Grades submitted successfully ({inserted} inserted, {updated} updated)",
        "inserted": inserted,
        "updated": updated,
        "errors": errors,
    }


# ==========================================================
# [READ] final grades by filter
# ==========================================================
@router.get("")
def get_final_grades(
    student_id: Optional[int] = None,
    subject_id: Optional[int] = None,
    academic_period_id: Optional[int] = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_login),
):
    query = db.query(FinalGradeModel)
    if student_id:
        query = query.filter(FinalGradeModel.student_id == student_id)
    if subject_id:
        query = query.filter(FinalGradeModel.subject_id == subject_id)
    if academic_period_id:
        query = query.filter(FinalGradeModel.academic_period_id == academic_period_id)

    records = query.order_by(FinalGradeModel.id).all()
    return {
        "success": True,
        "data": [FinalGradeSchema.model_validate(r).model_dump(mode="json") for r in records],
        "count": len(records),
    }
