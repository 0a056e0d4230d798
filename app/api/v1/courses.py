# app/api/v1/courses.py
# Course scoped listings and quiz creation; courses and lessons themselves come from migrations and the seed data.
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_optional_user, CurrentUser
from app.core.rbac import require_roles, ROLE_ADMIN, ROLE_INSTRUCTOR
from app.schemas.certificate import CourseCertificate
from app.schemas.progress import StudentProgress
from app.schemas.quiz import Quiz as QuizOut, QuizCreate
from app.services import certificates as certificate_service
from app.services import progress as progress_service
from app.services import quizzes as quiz_service

router = APIRouter()

@router.get("/{course_id}/certificates", response_model=List[CourseCertificate])
def course_certificates(
    course_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_roles(ROLE_INSTRUCTOR, ROLE_ADMIN)),
):
    return certificate_service.list_course_certificates(
        db, course_id=course_id, requester_id=user.id, requester_role=user.role
    )

@router.get("/{course_id}/progress", response_model=List[StudentProgress])
def course_progress(
    course_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_roles(ROLE_INSTRUCTOR, ROLE_ADMIN)),
):
    return progress_service.get_course_progress(
        db, course_id=course_id, requester_id=user.id, requester_role=user.role
    )

@router.post("/{course_id}/quizzes", response_model=QuizOut, status_code=status.HTTP_201_CREATED)
def create_quiz(
    body: QuizCreate,
    course_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_roles(ROLE_INSTRUCTOR, ROLE_ADMIN)),
):
    return quiz_service.create_quiz(db, course_id=course_id, title=body.title, user_id=user.id, role=user.role)

@router.get("/{course_id}/quizzes", response_model=List[QuizOut])
def list_quizzes(
    course_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_optional_user),
):
    return quiz_service.list_quizzes_for_course(
        db,
        course_id=course_id,
        user_id=user.id if user else None,
        role=user.role if user else None,
    )
