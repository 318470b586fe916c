from database.db import Base, engine

# ✅ every model module must be imported before create_all so foreign keys resolve
from models import (  # noqa: F401
    academic_periods,
    activities,
    final_grades,
    sections,
    students,
    subjects,
    teacher_subjects,
    teachers,
)


def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)
