# app/api/v1/quizzes.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, get_optional_user, CurrentUser
from app.core.rbac import require_roles, ROLE_ADMIN, ROLE_INSTRUCTOR
from app.schemas.quiz import (
    Question,
    QuestionCreate,
    QuestionUpdate,
    QuizDetail,
    Submission,
    SubmissionResult,
    SubmissionWithUser,
    SubmitQuizRequest,
)
from app.services import quizzes as quiz_service

router = APIRouter()

@router.get("/{quiz_id}", response_model=QuizDetail)
def get_quiz(
    quiz_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_optional_user),
):
    return quiz_service.get_quiz(
        db,
        quiz_id=quiz_id,
        user_id=user.id if user else None,
        role=user.role if user else None,
    )

# -------------------------- questions --------------------------

@router.post("/{quiz_id}/questions", response_model=Question, status_code=status.HTTP_201_CREATED)
def create_question(
    body: QuestionCreate,
    quiz_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_roles(ROLE_INSTRUCTOR, ROLE_ADMIN)),
):
    return quiz_service.create_question(db, quiz_id=quiz_id, data=body, user_id=user.id, role=user.role)

@router.put("/{quiz_id}/questions/{question_id}", response_model=Question)
def update_question(
    body: QuestionUpdate,
    quiz_id: int = Path(..., ge=1),
    question_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_roles(ROLE_INSTRUCTOR, ROLE_ADMIN)),
):
    return quiz_service.update_question(
        db, quiz_id=quiz_id, question_id=question_id, data=body, user_id=user.id, role=user.role
    )

@router.delete("/{quiz_id}/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_question(
    quiz_id: int = Path(..., ge=1),
    question_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_roles(ROLE_INSTRUCTOR, ROLE_ADMIN)),
):
    quiz_service.delete_question(db, quiz_id=quiz_id, question_id=question_id, user_id=user.id, role=user.role)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# -------------------------- submissions --------------------------

@router.post("/{quiz_id}/submit", response_model=SubmissionResult)
def submit(
    body: SubmitQuizRequest,
    quiz_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return quiz_service.submit_quiz(db, quiz_id=quiz_id, answers=body.answers, user_id=user.id)

@router.get("/{quiz_id}/submissions/me", response_model=Submission)
def my_latest_submission(
    quiz_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    sub = quiz_service.get_latest_submission(db, quiz_id=quiz_id, user_id=user.id)
    if not sub:
        raise HTTPException(status_code=404, detail="No submission found for this quiz")
    return sub

@router.get("/{quiz_id}/submissions", response_model=List[SubmissionWithUser])
def list_submissions(
    quiz_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return quiz_service.list_submissions(db, quiz_id=quiz_id, requester_id=user.id, requester_role=user.role)
