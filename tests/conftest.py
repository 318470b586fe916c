import os

os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.db import get_db
from database.init_db import init_db
from main import app
from models.academic_periods import AcademicPeriod
from models.activities import Activity, ActivityGrade
from models.final_grades import FinalGrade
from models.sections import Section
from models.students import Student
from models.subjects import Subject
from models.teacher_subjects import TeacherSubject, TeacherSubjectSection
from models.teachers import Teacher
from schemas import grading


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded_db(db_session):
    """One course (IT 301) taught to BSIT 3A with quiz / project / exam activities."""
    db = db_session
    db.add_all([
        Teacher(id=1, user_id=10, first_name="Maria", last_name="Santos"),
        Subject(id=1, course_code="IT 301", course_name="Web Systems", credits=3, year_level="3rd Year"),
        Subject(id=2, course_code="IT 302", course_name="Networks", credits=2, year_level="3rd Year"),
        Section(id=1, name="BSIT 3A"),
        AcademicPeriod(id=21, school_year="2024-2025", semester="1st Semester", period_type="Midterm"),
        AcademicPeriod(id=22, school_year="2024-2025", semester="1st Semester", period_type="Final"),
        Student(id=1, student_id="2024-0001", first_name="Ana", last_name="Reyes",
                email="ana@example.edu", year_level="3rd Year", section_id=1, status="active"),
        Student(id=2, student_id="2024-0002", first_name="Ben", last_name="Cruz",
                year_level="3rd Year", section_id=1, status="active"),
        # different year level: not part of the IT 301 class record
        Student(id=3, student_id="2023-0100", first_name="Carl", last_name="Lim",
                year_level="2nd Year", section_id=1, status="active"),
    ])
    db.flush()
    db.add(TeacherSubject(id=1, teacher_id=1, subject_id=1))
    db.flush()
    db.add(TeacherSubjectSection(id=1, teacher_subject_id=1, section_id=1))
    db.add_all([
        Activity(id=1, course_id=1, section_id=1, academic_period_id=21, title="Quiz 1", type="quiz", max_score=50),
        Activity(id=2, course_id=1, section_id=1, academic_period_id=21, title="Project 1", type="project", max_score=50),
        Activity(id=3, course_id=1, section_id=1, academic_period_id=21, title="Midterm Exam", type="exam", max_score=100),
        Activity(id=4, course_id=1, section_id=1, academic_period_id=21, title="Attendance", type="attendance", max_score=10),
    ])
    db.flush()
    db.add_all([
        ActivityGrade(student_id=1, activity_id=1, grade=40),
        ActivityGrade(student_id=1, activity_id=2, grade=45),
        ActivityGrade(student_id=1, activity_id=3, grade=90),
        ActivityGrade(student_id=1, activity_id=4, grade=10),
        ActivityGrade(student_id=2, activity_id=1, grade=25),
        ActivityGrade(student_id=2, activity_id=2, grade=None),
    ])
    db.add_all([
        FinalGrade(student_id=1, subject_id=1, section_id=1, academic_period_id=21, term="Midterm",
                   final_grade="2.00", final_grade_num=86),
        FinalGrade(student_id=1, subject_id=1, section_id=1, academic_period_id=22, term="Final",
                   final_grade="1.75", final_grade_num=89),
        FinalGrade(student_id=1, subject_id=2, section_id=1, academic_period_id=21, term="Midterm",
                   final_grade="5.00", final_grade_num=70),
    ])
    db.commit()
    return db


@pytest.fixture
def client(seeded_db):
    app.dependency_overrides[get_db] = lambda: seeded_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def teacher_headers():
    return {"X-User-Id": "10", "X-User-Role": "teacher"}


@pytest.fixture
def student_headers():
    return {"X-User-Id": "55", "X-User-Role": "student"}


# ==========================================================
# [Pipeline DTO fixtures]
# ==========================================================
@pytest.fixture
def course_info():
    return grading.CourseInfo(
        course_code="IT 301",
        course_name="Web Systems",
        teacher_name="Maria Santos",
        section_name="BSIT 3A",
        period_info="2024-2025 - 1st Semester (Midterm)",
    )


@pytest.fixture
def students():
    return [
        grading.Student(id=1, student_id="2024-0001", first_name="Ana", last_name="Reyes"),
        grading.Student(id=2, student_id="2024-0002", first_name="Ben", last_name="Cruz"),
    ]


@pytest.fixture
def activity_set():
    return grading.ActivitySet(
        written=[grading.Activity(id=1, title="Quiz 1", category="written", max_score=50)],
        performance=[grading.Activity(id=2, title="Project 1", category="performance", max_score=50)],
        exam=[grading.Activity(id=3, title="Midterm Exam", category="exam", max_score=100)],
    )


@pytest.fixture
def grade_matrix():
    return {"1_1": 40, "1_2": 45, "1_3": 90, "2_1": 25, "2_2": None}
