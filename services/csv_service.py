import csv
import io
import logging

from services.class_record import ClassRecord

logger = logging.getLogger(__name__)

UTF8_BOM = "\ufeff"
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def _cell(value):
    # 80.0 -> 80, so whole numbers print the way spreadsheet tools show them
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


class CSVService:
    """Flat class-record export: literal values, UTF-8 BOM prefix."""

    def render_class_record(self, record: ClassRecord) -> bytes:
        buffer = io.StringIO(newline="")
        buffer.write(UTF8_BOM)
        writer = csv.writer(buffer, lineterminator="\n")

        for line in record.title_lines():
            writer.writerow([line])
        writer.writerow([])

        writer.writerow(record.layout.header(long_labels=True))
        rows = record.literal_rows()
        for row in rows:
            writer.writerow([_cell(v) for v in row])

        logger.debug("CSV class record rendered: %d students", len(rows))
        return buffer.getvalue().encode("utf-8")
