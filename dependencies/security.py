from typing import Optional, Annotated
from fastapi import Depends, Header, HTTPException
from pydantic import BaseModel

# The gateway in front of this API authenticates the session and forwards
# the resolved user as headers; only simple role checks happen here.
UserIdHeader = Annotated[Optional[int], Header(alias="X-User-Id")]
UserRoleHeader = Annotated[Optional[str], Header(alias="X-User-Role")]


class CurrentUser(BaseModel):
    user_id: int
    role: str


def require_login(user_id: UserIdHeader = None, role: UserRoleHeader = None) -> CurrentUser:
    if not user_id or not role:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return CurrentUser(user_id=user_id, role=role.strip().lower())


def require_teacher(user: CurrentUser = Depends(require_login)) -> CurrentUser:
    if user.role != "teacher":
        raise HTTPException(status_code=403, detail="Only teachers can submit grades")
    return user
