import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import CurrentUser, require_login
from services.csv_service import CSV_MEDIA_TYPE, CSVService
from services.excel_service import XLSX_MEDIA_TYPE, ExcelService
from services.report_data import class_record_basename, load_class_record
from utils.filenames import content_disposition, sanitize_filename

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/activities", tags=["class record"])

csv_service = CSVService()
excel_service = ExcelService()


# ==========================================================
# [Class record export]
# ==========================================================

# ✅ [CSV] flat class record with pre-computed grades
@router.get("/export-class-record")
def export_class_record_csv(
    course_id: int,
    section_id: int,
    academic_period_id: Optional[int] = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_login),
):
    record = load_class_record(db, course_id, section_id, academic_period_id)
    content = csv_service.render_class_record(record)
    filename = sanitize_filename(class_record_basename(record), "csv")

    logger.info("User %s exported %s", user.user_id, filename)
    return Response(
        content=content,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": content_disposition(filename)},
    )


# ✅ [XLSX] styled class record with live formulas
@router.get("/export-class-record-excel")
def export_class_record_excel(
    course_id: int,
    section_id: int,
    academic_period_id: Optional[int] = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_login),
):
    record = load_class_record(db, course_id, section_id, academic_period_id)
    content = excel_service.render_class_record(record)
    filename = sanitize_filename(class_record_basename(record), "xlsx")

    logger.info("User %s exported %s", user.user_id, filename)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": content_disposition(filename),
            "Cache-Control": "max-age=0",
        },
    )
