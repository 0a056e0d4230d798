# app/services/progress.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy import select, and_, case, func
from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError, NotFoundError
from app.core.rbac import can_manage_course
from app.crud.course import course_crud
from app.crud.enrollment import enrollment_crud
from app.models.course import Lesson
from app.models.enrollment import Enrollment, LessonProgress
from app.models.user import User
from app.schemas.progress import LessonStatus, ProgressSummary, StudentProgress, StudentRef

logger = logging.getLogger(__name__)


def _percent(done: int, total: int) -> int:
    # half-up, whole percent
    if total <= 0:
        return 0
    return int(100 * done / total + 0.5)


def get_user_course_progress(db: Session, *, user_id: int, course_id: int) -> ProgressSummary:
    """Lesson completion for one user in one course, computed from the progress rows."""
    enrollment = enrollment_crud.get_for(db, user_id=user_id, course_id=course_id)
    if not enrollment:
        return ProgressSummary(
            lessons_completed=0,
            total_lessons=course_crud.count_lessons(db, course_id),
            percent=0,
            lessons=[],
        )

    rows = db.execute(
        select(Lesson.id, Lesson.title, Lesson.position, LessonProgress.completed, LessonProgress.completed_at)
        .outerjoin(
            LessonProgress,
            and_(LessonProgress.lesson_id == Lesson.id, LessonProgress.enrollment_id == enrollment.id),
        )
        .where(Lesson.course_id == course_id)
        .order_by(Lesson.position, Lesson.id)
    ).all()

    lessons = [
        LessonStatus(
            lesson_id=lesson_id,
            lesson_title=title,
            position=position,
            completed=bool(completed),
            completed_at=completed_at,
        )
        for lesson_id, title, position, completed, completed_at in rows
    ]
    done = sum(1 for lesson in lessons if lesson.completed)
    return ProgressSummary(
        lessons_completed=done,
        total_lessons=len(lessons),
        percent=_percent(done, len(lessons)),
        lessons=lessons,
    )


def has_completed_course(db: Session, *, user_id: int, course_id: int) -> bool:
    progress = get_user_course_progress(db, user_id=user_id, course_id=course_id)
    return progress.total_lessons > 0 and progress.lessons_completed == progress.total_lessons


def mark_lesson_progress(
    db: Session, *, user_id: int, enrollment_id: int, lesson_id: int, completed: bool
) -> LessonProgress:
    """Idempotent: re-marking a completed lesson keeps its original completed_at."""
    enrollment = enrollment_crud.get(db, enrollment_id)
    if not enrollment:
        raise NotFoundError("Enrollment not found")
    if enrollment.user_id != user_id:
        raise ForbiddenError("You can only mark progress for your own enrollments")

    lesson = course_crud.get_lesson_in_course(db, lesson_id=lesson_id, course_id=enrollment.course_id)
    if not lesson:
        raise NotFoundError("Lesson not found in this course")

    now = datetime.now(timezone.utc)
    row = enrollment_crud.get_progress_row(db, enrollment_id=enrollment_id, lesson_id=lesson_id)
    if row is None:
        row = LessonProgress(
            enrollment_id=enrollment_id,
            lesson_id=lesson_id,
            completed=completed,
            completed_at=now if completed else None,
        )
        db.add(row)
    elif completed and not row.completed:
        row.completed = True
        row.completed_at = now
    elif not completed:
        row.completed = False
        row.completed_at = None
    row.updated_at = now

    db.commit()
    db.refresh(row)
    logger.info(
        "lesson progress user=%s enrollment=%s lesson=%s completed=%s",
        user_id, enrollment_id, lesson_id, row.completed,
    )
    return row


def get_course_progress(
    db: Session, *, course_id: int, requester_id: int, requester_role: str
) -> List[StudentProgress]:
    course = course_crud.get(db, course_id)
    if not course:
        raise NotFoundError("Course not found")
    if not can_manage_course(requester_role, requester_id, course.instructor_id):
        raise ForbiddenError("You can only view progress for your own courses")

    total = course_crud.count_lessons(db, course_id)
    completed_count = func.count(case((LessonProgress.completed.is_(True), LessonProgress.id)))
    rows = db.execute(
        select(User.id, User.name, User.email, completed_count)
        .select_from(Enrollment)
        .join(User, User.id == Enrollment.user_id)
        .outerjoin(LessonProgress, LessonProgress.enrollment_id == Enrollment.id)
        .where(Enrollment.course_id == course_id)
        .group_by(User.id, User.name, User.email, Enrollment.id)
        .order_by(User.name)
    ).all()

    return [
        StudentProgress(
            user=StudentRef(id=uid, name=name, email=email),
            completed_count=done,
            total_lessons=total,
            percent=_percent(done, total),
        )
        for uid, name, email, done in rows
    ]
