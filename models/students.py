from sqlalchemy import Column, Integer, String
from database.db import Base

class Student(Base):
    __tablename__ = "students"  # student master table

    id = Column(Integer, primary_key=True, index=True)               # internal student ID (Primary Key)
    student_id = Column(String(30), nullable=False, unique=True)    # display code printed on reports (e.g. 2024-00123)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(150))
    year_level = Column(String(30))                                  # e.g. "3rd Year"
    section_id = Column(Integer, index=True)                         # sections.id
    status = Column(String(20), default="active")                    # active / inactive / graduated
