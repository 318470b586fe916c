from pydantic import BaseModel, Field
from typing import List, Optional

# ==========================================================
# [Input schemas]
# ==========================================================
class BulkReportRequest(BaseModel):
    student_ids: List[int] = Field(..., min_length=1)
    academic_period_ids: Optional[List[int]] = None   # preferred
    academic_period_id: Optional[int] = None          # single period, older clients
    template: str = "standard"                        # standard / simple

    def period_ids(self) -> List[int]:
        if self.academic_period_ids:
            return list(self.academic_period_ids)
        if self.academic_period_id is not None:
            return [self.academic_period_id]
        return []
