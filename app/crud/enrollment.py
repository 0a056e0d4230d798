from sqlalchemy.orm import Session
from sqlalchemy import select
from app.crud.base import CRUDBase
from app.models.enrollment import Enrollment, EnrollmentStatus, LessonProgress
from app.schemas.enrollment import EnrollmentCreate

class CRUDEnrollment(CRUDBase[Enrollment, EnrollmentCreate, EnrollmentCreate]):
    def get_for(self, db: Session, *, user_id: int, course_id: int) -> Enrollment | None:
        return db.scalar(select(Enrollment).where(Enrollment.user_id == user_id, Enrollment.course_id == course_id))

    def get_active(self, db: Session, *, user_id: int, course_id: int) -> Enrollment | None:
        return db.scalar(
            select(Enrollment).where(
                Enrollment.user_id == user_id,
                Enrollment.course_id == course_id,
                Enrollment.status == EnrollmentStatus.active.value,
            )
        )

    def get_progress_row(self, db: Session, *, enrollment_id: int, lesson_id: int) -> LessonProgress | None:
        return db.scalar(
            select(LessonProgress).where(
                LessonProgress.enrollment_id == enrollment_id, LessonProgress.lesson_id == lesson_id
            )
        )

enrollment_crud = CRUDEnrollment(Enrollment)
