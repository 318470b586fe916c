import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import CurrentUser, require_login
from schemas.reports import BulkReportRequest
from services.pdf_service import PDF_MEDIA_TYPE, ZIP_MEDIA_TYPE, PDFService, report_basename
from services.report_data import get_period, get_student, list_students, load_course_grades
from utils.filenames import content_disposition, sanitize_filename

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["grade reports"])

pdf_service = PDFService()


def _parse_period_ids(academic_period_ids: Optional[str], academic_period_id: Optional[int]) -> List[int]:
    """academic_period_ids="21,20" wins over the single academic_period_id."""
    if academic_period_ids:
        return [int(p) for p in academic_period_ids.split(",") if p.strip().isdigit() and int(p) > 0]
    if academic_period_id is not None:
        return [academic_period_id]
    return []


# ==========================================================
# [Selector]
# ==========================================================

# ✅ [READ] students available for report generation
@router.get("/students")
def get_report_students(
    section_id: Optional[int] = None,
    year_level: Optional[str] = None,
    status: Optional[str] = "active",
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_login),
):
    students = list_students(db, section_id=section_id, year_level=year_level, status=status)
    return {
        "success": True,
        "data": [s.model_dump() | {"full_name": s.full_name} for s in students],
    }


# ==========================================================
# [PDF]
# ==========================================================

# ✅ [PDF] individual student grade report
@router.get("/student/{student_id}/pdf")
def generate_student_report(
    student_id: int,
    academic_period_ids: Optional[str] = None,
    academic_period_id: Optional[int] = None,
    template: str = "standard",
    download: bool = False,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_login),
):
    student = get_student(db, student_id)
    if student is None:
        return JSONResponse(
            status_code=404,
            content={"success": False, "error": {"code": 404, "message": "Student not found"}},
        )

    period_ids = _parse_period_ids(academic_period_ids, academic_period_id)
    grades = load_course_grades(db, student.id, period_ids)
    period = get_period(db, period_ids)

    pdf_content = pdf_service.generate_student_pdf(student, grades, period, template)
    filename = sanitize_filename(report_basename(student), "pdf")
    return Response(
        content=pdf_content,
        media_type=PDF_MEDIA_TYPE,
        headers={
            "Content-Disposition": content_disposition(filename, download=download),
            "Cache-Control": "public, must-revalidate, max-age=0",
        },
    )


# ✅ [ZIP] one PDF per selected student
@router.post("/bulk/pdf")
def generate_bulk_reports(
    body: BulkReportRequest,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_login),
):
    period_ids = body.period_ids()

    students, grades_map = [], {}
    for sid in body.student_ids:
        student = get_student(db, sid)
        if student is None:
            logger.warning("Bulk report: student %s not found, skipped", sid)
            continue
        students.append(student)
        grades_map[student.id] = load_course_grades(db, student.id, period_ids)

    if not students:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": {"code": 400, "message": "No valid students found"}},
        )

    zip_content = pdf_service.generate_bulk_zip(students, grades_map, get_period(db, period_ids), body.template)
    filename = f"Grade_Reports_{datetime.now():%Y-%m-%d_%H-%M-%S}.zip"
    logger.info("User %s generated %d reports (%s)", user.user_id, len(students), filename)
    return Response(
        content=zip_content,
        media_type=ZIP_MEDIA_TYPE,
        headers={"Content-Disposition": content_disposition(filename)},
    )
