"""
services/excel_service.py

Formula-bearing XLSX class record (openpyxl).

Activity cells hold literal scores; Total / PS / WS / Initial / Final are
spreadsheet formulas so teachers can correct a score in Excel and see the
grade update. The nested IF in the Final column mirrors
services.grade_aggregator.TRANSMUTATION_TABLE.
"""

import io
import logging
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from services.class_record import ClassRecord, ColumnLayout
from services.exceptions import RenderingFailure
from services.grade_aggregator import FAILING_GRADE, TRANSMUTATION_TABLE, WEIGHTS
from schemas.grading import EXAM, PERFORMANCE, WRITTEN

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# ==========================================================
# [Styles]
# ==========================================================
TITLE_COLOR = "1F4788"
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HPS_FILL = PatternFill(start_color="E7E6E6", end_color="E7E6E6", fill_type="solid")
ZEBRA_FILL = PatternFill(start_color="F2F2F2", end_color="F2F2F2", fill_type="solid")
THIN = Side(style="thin")
THIN_BORDER = Border(left=THIN, right=THIN, top=THIN, bottom=THIN)
CENTER = Alignment(horizontal="center", vertical="center")
DECIMAL_FORMAT = "0.00"

# fixed minimum widths for No / Student ID / Name
MIN_WIDTHS = {"A": 5, "B": 15, "C": 25}
FORMULA_WIDTH = 8


def _num(value: float) -> str:
    """Number literal for a formula: 50.0 -> "50"."""
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def transmutation_formula(cell: str) -> str:
    """=IF(X>=97, "1.00", IF(X>=94, "1.25", ... IF(X>=75, "3.00", "5.00")))"""
    expr = f'"{FAILING_GRADE}"'
    for minimum, grade in reversed(TRANSMUTATION_TABLE):
        expr = f'IF({cell}>={minimum}, "{grade}", {expr})'
    return "=" + expr


def _ratio_formula(total_cell: str, max_score: float, scale: int) -> str:
    m = _num(max_score)
    return f"=IF({m}>0, ({total_cell}/{m})*{scale}, 0)"


class ExcelService:

    def render_class_record(self, record: ClassRecord) -> bytes:
        try:
            wb = self._build_workbook(record)
            out = io.BytesIO()
            wb.save(out)
        except RenderingFailure:
            raise
        except Exception as e:
            logger.exception("Class record workbook failed")
            raise RenderingFailure(f"Spreadsheet generation failed: {e}") from e
        return out.getvalue()

    # ==========================================================
    # [Workbook]
    # ==========================================================
    def _build_workbook(self, record: ClassRecord) -> Workbook:
        wb = Workbook()
        ws = wb.active
        ws.title = "Class Record"
        layout = record.layout

        row = self._write_title_block(ws, record)
        row += 1  # blank row

        header_row = row
        for col, label in enumerate(layout.header(), start=1):
            ws.cell(row=header_row, column=col, value=label)
        self._style_range(ws, header_row, layout.last_column,
                          font=Font(bold=True, color="FFFFFF"), fill=HEADER_FILL)

        hps_row = header_row + 1
        self._write_hps_row(ws, hps_row, record)
        self._style_range(ws, hps_row, layout.last_column,
                          font=Font(bold=True, italic=True), fill=HPS_FILL)

        data_start = hps_row + 1
        row = data_start
        for rec in record.records():
            self._write_student_row(ws, row, rec, record)
            row += 1
        data_end = row - 1

        for r in range(data_start, data_end + 1):
            zebra = ZEBRA_FILL if (r - data_start) % 2 == 1 else None
            self._style_range(ws, r, layout.last_column, fill=zebra)
            for col in layout.decimal_columns:
                ws.cell(row=r, column=col).number_format = DECIMAL_FORMAT

        self._autosize(ws, header_row, layout.last_column)
        ws.freeze_panes = f"D{data_start}"
        return wb

    def _write_title_block(self, ws, record: ClassRecord) -> int:
        """Returns the first free row."""
        info = record.course_info
        row = 1

        ws.cell(row=row, column=1, value=f"{info.course_code} - {info.course_name}")
        ws.merge_cells(f"A{row}:F{row}")
        ws.cell(row=row, column=1).font = Font(bold=True, size=16, color=TITLE_COLOR)
        ws.cell(row=row, column=1).alignment = Alignment(horizontal="center")
        row += 1

        ws.cell(row=row, column=1, value=f"Teacher: {info.teacher_name} | Section: {info.section_name}")
        ws.merge_cells(f"A{row}:F{row}")
        ws.cell(row=row, column=1).font = Font(bold=True, size=12)
        ws.cell(row=row, column=1).alignment = Alignment(horizontal="center")
        row += 1

        if info.period_info:
            ws.cell(row=row, column=1, value=info.period_info)
            ws.merge_cells(f"A{row}:F{row}")
            ws.cell(row=row, column=1).font = Font(italic=True, size=11)
            ws.cell(row=row, column=1).alignment = Alignment(horizontal="center")
            row += 1

        ws.cell(row=row, column=1, value=f"Total Students: {len(record.students)}").font = Font(bold=True)
        row += 1

        ws.cell(row=row, column=1, value=record.title_lines()[-1]).font = Font(italic=True, size=9)
        row += 1
        return row

    def _write_hps_row(self, ws, row: int, record: ClassRecord) -> None:
        layout = record.layout
        a = record.activities
        ws.cell(row=row, column=2, value="HPS →")

        for offset, act in enumerate(a.written):
            ws.cell(row=row, column=layout.written_start + offset, value=act.max_score)
        ws.cell(row=row, column=layout.written_total, value=record.written_max)

        for offset, act in enumerate(a.performance):
            ws.cell(row=row, column=layout.performance_start + offset, value=act.max_score)
        ws.cell(row=row, column=layout.performance_total, value=record.performance_max)

        if layout.exam_score is not None:
            ws.cell(row=row, column=layout.exam_score, value=record.exam_max)

    def _write_student_row(self, ws, row: int, rec, record: ClassRecord) -> None:
        layout: ColumnLayout = record.layout

        def ref(col: Optional[int]) -> str:
            return f"{get_column_letter(col)}{row}"

        ws.cell(row=row, column=1, value=rec.index)
        ws.cell(row=row, column=2, value=rec.student.student_id)
        ws.cell(row=row, column=3, value=rec.student.full_name)

        self._write_category(ws, row, layout.written_start, layout.written_total,
                             rec.written_scores, record.written_max, WEIGHTS[WRITTEN])
        self._write_category(ws, row, layout.performance_start, layout.performance_total,
                             rec.performance_scores, record.performance_max, WEIGHTS[PERFORMANCE])

        ws_cells = [ref(layout.written_ws), ref(layout.performance_ws)]
        if layout.exam_score is not None:
            # several exam activities collapse into one literal score column
            ws.cell(row=row, column=layout.exam_score, value=rec.exam_total)
            exam_cell = ref(layout.exam_score)
            ws.cell(row=row, column=layout.exam_ps, value=_ratio_formula(exam_cell, record.exam_max, 100))
            ws.cell(row=row, column=layout.exam_ws, value=_ratio_formula(exam_cell, record.exam_max, WEIGHTS[EXAM]))
            ws_cells.append(ref(layout.exam_ws))

        ws.cell(row=row, column=layout.initial, value="=" + "+".join(ws_cells))
        ws.cell(row=row, column=layout.final, value=transmutation_formula(ref(layout.initial)))

    @staticmethod
    def _write_category(ws, row, start_col, total_col, scores, max_score, weight) -> None:
        for offset, score in enumerate(scores):
            ws.cell(row=row, column=start_col + offset, value=score)

        if scores:
            first = f"{get_column_letter(start_col)}{row}"
            last = f"{get_column_letter(start_col + len(scores) - 1)}{row}"
            ws.cell(row=row, column=total_col, value=f"=SUM({first}:{last})")
        else:
            ws.cell(row=row, column=total_col, value=0)

        total_cell = f"{get_column_letter(total_col)}{row}"
        ws.cell(row=row, column=total_col + 1, value=_ratio_formula(total_cell, max_score, 100))
        ws.cell(row=row, column=total_col + 2, value=_ratio_formula(total_cell, max_score, weight))

    # ==========================================================
    # [Formatting]
    # ==========================================================
    @staticmethod
    def _style_range(ws, row: int, last_col: int, font=None, fill=None) -> None:
        for col in range(1, last_col + 1):
            cell = ws.cell(row=row, column=col)
            cell.border = THIN_BORDER
            cell.alignment = CENTER
            if font is not None:
                cell.font = font
            if fill is not None:
                cell.fill = fill

    @staticmethod
    def _autosize(ws, first_row: int, last_col: int) -> None:
        # title block excluded: the legend line would otherwise widen column A
        widths = {}
        for row in ws.iter_rows(min_row=first_row, min_col=1, max_col=last_col):
            for cell in row:
                if cell.value is None:
                    continue
                text = str(cell.value)
                length = FORMULA_WIDTH if text.startswith("=") else len(text)
                widths[cell.column_letter] = max(widths.get(cell.column_letter, 0), length)

        for col in range(1, last_col + 1):
            letter = get_column_letter(col)
            width = widths.get(letter, 0) + 2
            ws.column_dimensions[letter].width = max(width, MIN_WIDTHS.get(letter, 0))
