from sqlalchemy import Column, Integer, String
from database.db import Base

class AcademicPeriod(Base):
    __tablename__ = "academic_periods"

    id = Column(Integer, primary_key=True, index=True)
    school_year = Column(String(20), nullable=False)          # e.g. 2024-2025
    semester = Column(String(30), nullable=False)             # e.g. 1st Semester
    period_type = Column(String(20), nullable=False)          # Midterm / Final
