from typing import Optional
from pydantic import BaseModel

class CourseCreate(BaseModel):
    title: str
    description: Optional[str] = None
    published: bool = False
    instructor_id: int
