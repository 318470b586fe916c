from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

# ==========================================================
# [Input schemas]
# ==========================================================
class FinalGradeItem(BaseModel):
    student_id: Optional[int] = None          # students.id
    final_grade_num: Optional[float] = None   # numeric 0 - 100
    final_grade: Optional[str] = None         # transmuted 1.00 - 5.00


class FinalGradeSubmit(BaseModel):
    subject_id: int
    section_id: int
    academic_period_id: int
    term: str                                 # Midterm / Final
    grades: List[FinalGradeItem] = Field(..., min_length=1)


# ==========================================================
# [Output schemas]
# ==========================================================
class FinalGrade(BaseModel):
    id: int
    student_id: int
    subject_id: int
    section_id: Optional[int] = None
    academic_period_id: int
    term: str
    final_grade: Optional[str] = None
    final_grade_num: Optional[float] = None
    status: Optional[str] = None
    submitted_by: Optional[int] = None
    submitted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
