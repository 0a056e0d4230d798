from typing import Literal
from pydantic import BaseModel

class EnrollmentCreate(BaseModel):
    user_id: int
    course_id: int
    status: Literal["active", "completed", "refunded"] = "active"
