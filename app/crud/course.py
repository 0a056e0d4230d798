from sqlalchemy.orm import Session
from sqlalchemy import select, func
from app.crud.base import CRUDBase
from app.models.course import Course, Lesson
from app.schemas.course import CourseCreate

class CRUDCourse(CRUDBase[Course, CourseCreate, CourseCreate]):
    def count_lessons(self, db: Session, course_id: int) -> int:
        return db.scalar(select(func.count(Lesson.id)).where(Lesson.course_id == course_id)) or 0

    def get_lesson_in_course(self, db: Session, *, lesson_id: int, course_id: int) -> Lesson | None:
        return db.scalar(select(Lesson).where(Lesson.id == lesson_id, Lesson.course_id == course_id))

course_crud = CRUDCourse(Course)
