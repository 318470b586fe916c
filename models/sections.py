from sqlalchemy import Column, Integer, String
from database.db import Base

class Section(Base):
    __tablename__ = "sections"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)                 # e.g. BSIT 3A
