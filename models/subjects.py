from sqlalchemy import Column, Integer, String, Float
from database.db import Base

class Subject(Base):
    __tablename__ = "subjects"  # course catalogue

    id = Column(Integer, primary_key=True, index=True)         # subject ID (Primary Key)
    course_code = Column(String(30), nullable=False)          # e.g. IT 301
    course_name = Column(String(150), nullable=False)
    credits = Column(Float, default=3)                        # units
    year_level = Column(String(30))                           # enrolled year level, narrows the student list
