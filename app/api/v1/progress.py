# app/api/v1/progress.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, CurrentUser
from app.schemas.progress import LessonProgress as LessonProgressOut, MarkProgressRequest, ProgressSummary
from app.services import progress as progress_service

router = APIRouter()

@router.post("/complete", response_model=LessonProgressOut)
def mark_complete(
    body: MarkProgressRequest,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return progress_service.mark_lesson_progress(
        db,
        user_id=user.id,
        enrollment_id=body.enrollment_id,
        lesson_id=body.lesson_id,
        completed=body.completed,
    )

@router.get("/me", response_model=ProgressSummary)
def my_progress(
    course_id: int = Query(..., ge=1),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return progress_service.get_user_course_progress(db, user_id=user.id, course_id=course_id)
