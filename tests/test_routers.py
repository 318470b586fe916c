import io
import re
import zipfile

import pytest
from openpyxl import load_workbook

from models.activities import Activity
from models.final_grades import FinalGrade
from routers import reports
from services.exceptions import RenderingFailure

CLASS_RECORD = {"course_id": 1, "section_id": 1, "academic_period_id": 21}


@pytest.fixture
def rendered_reports(monkeypatch):
    rendered = []

    def to_pdf(html):
        rendered.append(html)
        return b"%PDF-1.4 fake"

    monkeypatch.setattr(reports.pdf_service, "_html_to_pdf", to_pdf)
    return rendered


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_login_required(client):
    response = client.get("/v1/activities/export-class-record", params=CLASS_RECORD)

    assert response.status_code == 401
    assert response.json() == {"detail": "Unauthorized"}


# ==========================================================
# [Class record export]
# ==========================================================
def test_export_class_record_csv(client, teacher_headers):
    response = client.get("/v1/activities/export-class-record", params=CLASS_RECORD, headers=teacher_headers)

    assert response.status_code == 200
    assert response.headers["content-type"] == "text/csv; charset=utf-8"
    assert re.fullmatch(
        r'attachment; filename="ClassRecord_IT 301_BSIT 3A_\d{8}_\d{6}\.csv"',
        response.headers["content-disposition"],
    )
    assert response.content.startswith(b"\xef\xbb\xbf")

    lines = response.content.decode("utf-8-sig").split("\n")
    assert lines[:4] == [
        "IT 301 - Web Systems",
        "Teacher: Maria Santos | Section: BSIT 3A",
        "2024-2025 - 1st Semester (Midterm)",
        "Total Students: 2",
    ]
    # the "attendance" activity is not graded
    assert lines[6].startswith("No,Student ID,Name,W1,Written Total")
    assert lines[7] == "1,2024-0001,Ana Reyes,40,40,80,24,45,45,90,36,90,90,27,87,2.00"
    assert lines[8] == "2,2024-0002,Ben Cruz,25,25,50,15,0,0,0,0,0,0,0,15,5.00"
    assert "Carl" not in response.content.decode("utf-8-sig")


def test_export_class_record_csv_without_period(client, teacher_headers):
    params = {"course_id": 1, "section_id": 1}
    response = client.get("/v1/activities/export-class-record", params=params, headers=teacher_headers)

    lines = response.content.decode("utf-8-sig").split("\n")
    assert lines[2] == "Total Students: 2"


def test_export_class_record_excel(client, teacher_headers):
    response = client.get("/v1/activities/export-class-record-excel", params=CLASS_RECORD, headers=teacher_headers)

    assert response.status_code == 200
    assert response.headers["content-type"] == (
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert response.headers["cache-control"] == "max-age=0"
    assert response.headers["content-disposition"].endswith('.xlsx"')

    sheet = load_workbook(io.BytesIO(response.content)).active
    assert sheet["A1"].value == "IT 301 - Web Systems"
    assert sheet.freeze_panes == "D9"
    assert sheet["O9"].value == "=G9+K9+N9"


def test_export_unknown_course(client, teacher_headers):
    params = {"course_id": 99, "section_id": 1}
    response = client.get("/v1/activities/export-class-record", params=params, headers=teacher_headers)

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Course not found"


def test_export_unknown_section(client, teacher_headers):
    params = {"course_id": 1, "section_id": 99}
    response = client.get("/v1/activities/export-class-record-excel", params=params, headers=teacher_headers)

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Section not found"


def test_export_rejects_invalid_max_score(client, seeded_db, teacher_headers):
    seeded_db.add(Activity(id=5, course_id=1, section_id=1, academic_period_id=21,
                           title="Quiz 2", type="quiz", max_score=0))
    seeded_db.commit()

    response = client.get("/v1/activities/export-class-record", params=CLASS_RECORD, headers=teacher_headers)

    assert response.status_code == 400
    assert "max_score" in response.json()["error"]["message"]


# ==========================================================
# [Student grade reports]
# ==========================================================
def test_report_students(client, teacher_headers):
    response = client.get("/v1/reports/students", params={"section_id": 1}, headers=teacher_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert [s["full_name"] for s in data] == ["Ben Cruz", "Carl Lim", "Ana Reyes"]
    assert data[2]["student_id"] == "2024-0001"


def test_student_report_pdf(client, teacher_headers, rendered_reports):
    response = client.get(
        "/v1/reports/student/1/pdf",
        params={"academic_period_ids": "21,22"},
        headers=teacher_headers,
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == 'inline; filename="Grade_Report_2024-0001.pdf"'
    assert response.content == b"%PDF-1.4 fake"

    html = rendered_reports[0]
    assert "WEB SYSTEMS" in html
    assert "FAILED" in html
    assert "5.00" in html          # total units
    assert "2.50" in html          # GWA of 80.5
    assert "Good Performance" in html
    assert "Very Good Performance" not in html


def test_student_report_pdf_download(client, teacher_headers, rendered_reports):
    response = client.get(
        "/v1/reports/student/1/pdf",
        params={"academic_period_id": 21, "download": True, "template": "simple"},
        headers=teacher_headers,
    )

    assert response.status_code == 200
    assert response.headers["content-disposition"].startswith("attachment;")


def test_student_report_unknown_student(client, teacher_headers, rendered_reports):
    response = client.get("/v1/reports/student/999/pdf", headers=teacher_headers)

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Student not found"
    assert rendered_reports == []


def test_student_report_renderer_failure(client, teacher_headers, monkeypatch):
    def broken(html):
        raise RenderingFailure("PDF renderer (WeasyPrint) is not available")

    monkeypatch.setattr(reports.pdf_service, "_html_to_pdf", broken)
    response = client.get("/v1/reports/student/1/pdf", headers=teacher_headers)

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == "PDF renderer (WeasyPrint) is not available"


def test_bulk_reports(client, teacher_headers, rendered_reports):
    response = client.post(
        "/v1/reports/bulk/pdf",
        json={"student_ids": [1, 2, 999], "academic_period_ids": [21, 22]},
        headers=teacher_headers,
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    assert re.fullmatch(
        r'attachment; filename="Grade_Reports_\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}\.zip"',
        response.headers["content-disposition"],
    )
    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        assert archive.namelist() == ["Grade_Report_2024-0001.pdf", "Grade_Report_2024-0002.pdf"]


def test_bulk_reports_without_valid_students(client, teacher_headers, rendered_reports):
    response = client.post("/v1/reports/bulk/pdf", json={"student_ids": [998, 999]}, headers=teacher_headers)

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "No valid students found"


def test_bulk_reports_require_student_ids(client, teacher_headers):
    response = client.post("/v1/reports/bulk/pdf", json={"student_ids": []}, headers=teacher_headers)

    assert response.status_code == 422


# ==========================================================
# [Final grades]
# ==========================================================
SUBMISSION = {
    "subject_id": 1,
    "section_id": 1,
    "academic_period_id": 21,
    "term": "Midterm",
    "grades": [
        {"student_id": 1, "final_grade": "1.75", "final_grade_num": 88},
        {"student_id": 2, "final_grade": "2.50", "final_grade_num": 80},
        {"student_id": 3},
    ],
}


def test_submit_final_grades(client, teacher_headers):
    response = client.post("/v1/final-grades/submit", json=SUBMISSION, headers=teacher_headers)

    assert response.status_code == 200
    body = response.json()
    assert (body["inserted"], body["updated"]) == (1, 1)
    assert body["errors"] == ["Invalid grade data for student 3"]

    listed = client.get("/v1/final-grades", params={"academic_period_id": 21, "subject_id": 1},
                        headers=teacher_headers).json()
    assert listed["count"] == 2
    by_student = {g["student_id"]: g for g in listed["data"]}
    assert by_student[1]["final_grade"] == "1.75"
    assert by_student[1]["submitted_by"] == 10
    assert by_student[2]["status"] == "submitted"


def test_submit_final_grades_requires_teacher(client, student_headers):
    response = client.post("/v1/final-grades/submit", json=SUBMISSION, headers=student_headers)

    assert response.status_code == 403
    assert response.json() == {"detail": "Only teachers can submit grades"}


def test_submit_final_grades_unknown_teacher(client):
    headers = {"X-User-Id": "99", "X-User-Role": "teacher"}
    response = client.post("/v1/final-grades/submit", json=SUBMISSION, headers=headers)

    assert response.status_code == 403
    assert response.json()["error"]["message"] == "Teacher profile not found for current user"


def test_submit_final_grades_unassigned_subject(client, teacher_headers):
    response = client.post("/v1/final-grades/submit", json={**SUBMISSION, "subject_id": 2}, headers=teacher_headers)

    assert response.status_code == 403
    assert response.json()["error"]["message"] == "You are not assigned to teach this subject/section"


def test_list_final_grades_by_student(client, teacher_headers):
    response = client.get("/v1/final-grades", params={"student_id": 1}, headers=teacher_headers)

    assert response.status_code == 200
    assert response.json()["count"] == 3


def test_submit_final_grades_repeated_student_updates_once(client, seeded_db, teacher_headers):
    body = {
        **SUBMISSION,
        "grades": [
            {"student_id": 2, "final_grade": "3.00", "final_grade_num": 75},
            {"student_id": 2, "final_grade": "2.75", "final_grade_num": 77},
        ],
    }
    response = client.post("/v1/final-grades/submit", json=body, headers=teacher_headers)

    assert response.status_code == 200
    assert (response.json()["inserted"], response.json()["updated"]) == (1, 1)

    rows = (
        seeded_db.query(FinalGrade)
        .filter(FinalGrade.student_id == 2, FinalGrade.subject_id == 1,
                FinalGrade.academic_period_id == 21, FinalGrade.term == "Midterm")
        .all()
    )
    assert [(r.final_grade, r.final_grade_num) for r in rows] == [("2.75", 77)]
