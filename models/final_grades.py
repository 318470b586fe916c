from sqlalchemy import Column, Integer, Float, String, DateTime
from database.db import Base

class FinalGrade(Base):
    __tablename__ = "final_grades"  # submitted term grades

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, nullable=False, index=True)
    subject_id = Column(Integer, nullable=False, index=True)
    section_id = Column(Integer)
    academic_period_id = Column(Integer, nullable=False, index=True)
    term = Column(String(20), nullable=False)                 # Midterm / Final
    final_grade = Column(String(10))                          # transmuted 1.00 - 5.00
    final_grade_num = Column(Float)                           # numeric 0 - 100
    status = Column(String(20), default="submitted")
    submitted_by = Column(Integer)
    submitted_at = Column(DateTime)
