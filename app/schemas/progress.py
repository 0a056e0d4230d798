from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

class MarkProgressRequest(BaseModel):
    enrollment_id: int = Field(ge=1)
    lesson_id: int = Field(ge=1)
    completed: bool = True

class LessonProgress(BaseModel):
    id: int
    enrollment_id: int
    lesson_id: int
    completed: bool
    completed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

class LessonStatus(BaseModel):
    lesson_id: int
    lesson_title: Optional[str] = None
    position: Optional[int] = None
    completed: bool
    completed_at: Optional[datetime] = None

class ProgressSummary(BaseModel):
    lessons_completed: int
    total_lessons: int
    percent: int
    lessons: List[LessonStatus] = []

class StudentRef(BaseModel):
    id: int
    name: str
    email: str

class StudentProgress(BaseModel):
    user: StudentRef
    completed_count: int
    total_lessons: int
    percent: int
