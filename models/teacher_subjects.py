from sqlalchemy import Column, Integer, ForeignKey
from sqlalchemy.orm import relationship
from database.db import Base
from models.teachers import Teacher  # noqa: F401  ✅ imported so the string relationships resolve
from models.subjects import Subject  # noqa: F401

class TeacherSubject(Base):
    __tablename__ = "teacher_subjects"  # a teacher's course assignment; its id is the "course_id" used by activities

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("teachers.id"), nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)

    # ✅ course -> teacher / subject (N:1)
    teacher = relationship("Teacher")
    subject = relationship("Subject")


class TeacherSubjectSection(Base):
    __tablename__ = "teacher_subject_sections"

    id = Column(Integer, primary_key=True, index=True)
    teacher_subject_id = Column(Integer, ForeignKey("teacher_subjects.id"), nullable=False)
    section_id = Column(Integer, ForeignKey("sections.id"), nullable=False)

