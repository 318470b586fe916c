import base64
import logging
import mimetypes
import os
import tempfile
import zipfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from config.settings import settings
from schemas.grading import AcademicPeriod, CourseGrade, Student
from services.exceptions import RenderingFailure, ResourceUnavailable
from services.grade_aggregator import compute_gwa

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
ZIP_MEDIA_TYPE = "application/zip"

TEMPLATES = {
    "standard": "student_report_standard.html",   # two-column layout
    "simple": "student_report_simple.html",       # legacy single-column layout
}


def report_basename(student: Student) -> str:
    return f"Grade_Report_{student.student_id or student.id}"


class PDFService:
    def __init__(self, template_dir: Optional[Path] = None, asset_dir: Optional[Path] = None):
        # template environment
        self.template_dir = Path(template_dir or settings.TEMPLATE_DIR)
        self.asset_dir = Path(asset_dir or settings.ASSET_DIR)
        self.env = Environment(
            loader=FileSystemLoader(self.template_dir),
            autoescape=select_autoescape(["html"]),
        )

    # ==========================================================
    # [Assets]
    # ==========================================================
    def _image_data_uri(self, filename: str) -> str:
        """Embed an image as a data URI so the PDF renderer never resolves paths."""
        path = self.asset_dir / filename
        if not path.is_file():
            raise ResourceUnavailable(f"Report asset not found: {path}")
        mime = mimetypes.guess_type(path.name)[0] or "image/png"
        data = base64.b64encode(path.read_bytes()).decode("ascii")
        return f"data:{mime};base64,{data}"

    def _optional_image(self, filename: str) -> Optional[str]:
        try:
            return self._image_data_uri(filename)
        except ResourceUnavailable as e:
            logger.warning("%s - rendering without it", e)
            return None

    # ==========================================================
    # [HTML]
    # ==========================================================
    def _render_template(self, template_name: str, data: Dict[str, Any]) -> str:
        """Render a template to HTML."""
        try:
            template = self.env.get_template(template_name)
            return template.render(**data)
        except TemplateError as e:
            raise RenderingFailure(f"Report template {template_name!r} failed: {e}") from e

    def build_student_report_html(
        self,
        student: Student,
        grades: Sequence[CourseGrade] = (),
        period: Optional[AcademicPeriod] = None,
        template: str = "standard",
        generated_at: Optional[datetime] = None,
    ) -> str:
        generated_at = generated_at or datetime.now()
        data = {
            "title": report_basename(student),
            "student": student,
            "grades": list(grades),
            "period": period or AcademicPeriod(),
            "gwa": compute_gwa(grades, default_credits=settings.DEFAULT_CREDITS),
            "default_credits": settings.DEFAULT_CREDITS,
            "logo": self._optional_image(settings.LOGO_FILE),
            "seal": self._optional_image(settings.SEAL_FILE),
            "generated_at": generated_at.strftime("%B %d, %Y %I:%M %p"),
            "year": generated_at.year,
            "school_name": settings.SCHOOL_NAME,
            "creator": settings.PDF_CREATOR,
        }
        return self._render_template(TEMPLATES.get(template, TEMPLATES["standard"]), data)

    # ==========================================================
    # [PDF]
    # ==========================================================
    def _html_to_pdf(self, html_content: str) -> bytes:
        """HTML -> PDF."""
        try:
            import weasyprint
        except (ImportError, OSError) as e:
            # OSError: the package is installed but pango/cairo are missing
            raise RenderingFailure(f"PDF renderer (WeasyPrint) is not available: {e}") from e

        try:
            return weasyprint.HTML(string=html_content, base_url=str(self.template_dir)).write_pdf()
        except Exception as e:
            raise RenderingFailure(f"PDF generation failed: {e}") from e

    def generate_student_pdf(
        self,
        student: Student,
        grades: Sequence[CourseGrade] = (),
        period: Optional[AcademicPeriod] = None,
        template: str = "standard",
        generated_at: Optional[datetime] = None,
    ) -> bytes:
        """Single student grade report."""
        html = self.build_student_report_html(student, grades, period, template, generated_at)
        return self._html_to_pdf(html)

    def generate_bulk_zip(
        self,
        students: Sequence[Student],
        grades_map: Mapping[int, List[CourseGrade]],
        period: Optional[AcademicPeriod] = None,
        template: str = "standard",
    ) -> bytes:
        """
        One PDF per student inside a ZIP archive.
        The archive is staged in a temp file; on any failure the partial file is removed.
        """
        fd, zip_path = tempfile.mkstemp(prefix="reports_", suffix=".zip")
        os.close(fd)
        try:
            with zipfile.ZipFile(zip_path, "w", zipfile.ZIP_DEFLATED) as archive:
                for student in students:
                    pdf = self.generate_student_pdf(student, grades_map.get(student.id, []), period, template)
                    archive.writestr(f"{report_basename(student)}.pdf", pdf)
            return Path(zip_path).read_bytes()
        except RenderingFailure:
            logger.exception("Bulk report archive aborted")
            raise
        except (OSError, zipfile.BadZipFile) as e:
            logger.exception("Bulk report archive aborted")
            raise RenderingFailure(f"Could not build report archive: {e}") from e
        finally:
            if os.path.exists(zip_path):
                os.unlink(zip_path)
