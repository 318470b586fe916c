import csv
import sys
from sqlalchemy.orm import Session
from database.db import SessionLocal
from database.init_db import init_db
from models.activities import ActivityGrade as ActivityGradeModel  # ✅ model import

CSV_PATH = "data/activity_grades.csv"  # ✅ columns: student_id, activity_id, grade


def _parse_grade(raw: str):
    raw = (raw or "").strip()
    return float(raw) if raw else None   # blank cell = ungraded


def import_activity_grades(db: Session, csv_path: str = CSV_PATH) -> int:
    """Upsert activity scores from a CSV export of the gradebook. Returns rows written."""
    count = 0
    with open(csv_path, newline="", encoding="utf-8-sig") as csvfile:
        reader = csv.DictReader(csvfile)
        for row in reader:
            student_id = int(row["student_id"])
            activity_id = int(row["activity_id"])
            grade = (
                db.query(ActivityGradeModel)
                .filter(ActivityGradeModel.student_id == student_id, ActivityGradeModel.activity_id == activity_id)
                .first()
            )
            if grade is None:
                grade = ActivityGradeModel(student_id=student_id, activity_id=activity_id)
                db.add(grade)
                db.flush()  # later rows with the same key must find this one
            grade.grade = _parse_grade(row.get("grade"))
            count += 1

    db.commit()
    return count


if __name__ == "__main__":
    init_db()
    db: Session = SessionLocal()
    try:
        written = import_activity_grades(db, sys.argv[1] if len(sys.argv) > 1 else CSV_PATH)
    finally:
        db.close()
    print(f"✅ activity grades CSV -> DB: {written} rows")
