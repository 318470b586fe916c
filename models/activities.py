from sqlalchemy import Column, Integer, String, Float, ForeignKey, UniqueConstraint
from database.db import Base

class Activity(Base):
    __tablename__ = "activities"  # graded activities of a course

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("teacher_subjects.id"), nullable=False, index=True)
    section_id = Column(Integer, index=True)
    academic_period_id = Column(Integer, index=True)
    title = Column(String(200), nullable=False)
    type = Column(String(30), nullable=False)                 # quiz / assignment / project / laboratory / exam / ...
    max_score = Column(Float, nullable=False, default=100)


class ActivityGrade(Base):
    __tablename__ = "activity_grades"  # one score per student per activity
    __table_args__ = (UniqueConstraint("student_id", "activity_id"),)

    id = Column(Integer, primary_key=True, index=True)
    activity_id = Column(Integer, ForeignKey("activities.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    grade = Column(Float)                                     # NULL = ungraded
