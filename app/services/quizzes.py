# app/services/quizzes.py
from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError, NotEnrolledError, NotFoundError, ValidationFailed
from app.core.rbac import can_manage_course, can_view_course_content
from app.crud.course import course_crud
from app.crud.enrollment import enrollment_crud
from app.crud.quiz import question_crud, quiz_crud, submission_crud
from app.models.course import Course
from app.models.quiz import Quiz, QuizQuestion, QuizSubmission
from app.schemas.quiz import (
    PublicQuestion,
    Question,
    QuestionCreate,
    QuestionResult,
    QuestionUpdate,
    Quiz as QuizOut,
    QuizDetail,
    SubmissionResult,
    SubmissionWithUser,
    Submitter,
)

logger = logging.getLogger(__name__)

INVALID_ANSWERS_LENGTH = "INVALID_ANSWERS_LENGTH"


def score_percent(correct: int, total: int) -> float:
    """100 * correct / total rounded half-up to one decimal."""
    value = (Decimal(100 * correct) / Decimal(total)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return float(value)


def grade(answers: Sequence[int], answer_key: Sequence[Tuple[int, int]]) -> SubmissionResult:
    """Compare selected indices with ``answer_key`` [(question_id, correct_index), ...] position by position."""
    if len(answers) != len(answer_key):
        raise ValidationFailed(
            f"Expected {len(answer_key)} answers, got {len(answers)}", code=INVALID_ANSWERS_LENGTH
        )
    results = [
        QuestionResult(id=question_id, correct=answer == correct_index)
        for answer, (question_id, correct_index) in zip(answers, answer_key)
    ]
    correct = sum(1 for r in results if r.correct)
    return SubmissionResult(
        total=len(results),
        correct=correct,
        score=score_percent(correct, len(results)),
        questions=results,
    )


def _quiz_and_course(db: Session, quiz_id: int) -> Tuple[Quiz, Course]:
    found = quiz_crud.get_with_course(db, quiz_id)
    if not found:
        raise NotFoundError("Quiz not found")
    return found


def _owned_quiz(db: Session, quiz_id: int, user_id: int, role: str, action: str) -> Tuple[Quiz, Course]:
    quiz, course = _quiz_and_course(db, quiz_id)
    if not can_manage_course(role, user_id, course.instructor_id):
        raise ForbiddenError(f"You do not have permission to {action}")
    return quiz, course


# ------------------------------ authoring ------------------------------

def create_quiz(db: Session, *, course_id: int, title: str, user_id: int, role: str) -> Quiz:
    course = course_crud.get(db, course_id)
    if not course:
        raise NotFoundError("Course not found")
    if not can_manage_course(role, user_id, course.instructor_id):
        raise ForbiddenError("You do not have permission to create quizzes for this course")
    quiz = quiz_crud.create(db, {"course_id": course_id, "title": title})
    logger.info("quiz %s created in course %s", quiz.id, course_id)
    return quiz


def list_quizzes_for_course(
    db: Session, *, course_id: int, user_id: Optional[int] = None, role: Optional[str] = None
) -> List[Quiz]:
    course = course_crud.get(db, course_id)
    if not course or (not course.published and not can_view_course_content(role, user_id, course.instructor_id)):
        raise NotFoundError("Course not found or not accessible")
    return quiz_crud.list_for_course(db, course_id)


def get_quiz(db: Session, *, quiz_id: int, user_id: Optional[int] = None, role: Optional[str] = None) -> QuizDetail:
    """Quiz with its questions; the answer key is only included for the owner and admins."""
    quiz, course = _quiz_and_course(db, quiz_id)
    privileged = can_view_course_content(role, user_id, course.instructor_id)
    if not privileged and not course.published:
        raise NotFoundError("Quiz not found")

    questions = quiz_crud.questions(db, quiz_id)
    shape = Question if privileged else PublicQuestion
    return QuizDetail(
        quiz=QuizOut.model_validate(quiz),
        questions=[shape.model_validate(q) for q in questions],
    )


def create_question(db: Session, *, quiz_id: int, data: QuestionCreate, user_id: int, role: str) -> QuizQuestion:
    _owned_quiz(db, quiz_id, user_id, role, "add questions to this quiz")
    return question_crud.create(db, data, extra={"quiz_id": quiz_id})


def update_question(
    db: Session, *, quiz_id: int, question_id: int, data: QuestionUpdate, user_id: int, role: str
) -> QuizQuestion:
    _owned_quiz(db, quiz_id, user_id, role, "update questions in this quiz")
    question = question_crud.get_in_quiz(db, question_id=question_id, quiz_id=quiz_id)
    if not question:
        raise NotFoundError("Question not found")

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        return question
    choices = changes.get("choices", question.choices)
    correct_index = changes.get("correct_index", question.correct_index)
    if correct_index >= len(choices):
        raise ValidationFailed("correct_index must point at one of the choices")
    return question_crud.update(db, question, changes)


def delete_question(db: Session, *, quiz_id: int, question_id: int, user_id: int, role: str) -> None:
    _owned_quiz(db, quiz_id, user_id, role, "delete questions from this quiz")
    question = question_crud.get_in_quiz(db, question_id=question_id, quiz_id=quiz_id)
    if not question:
        raise NotFoundError("Question not found")
    question_crud.remove(db, question.id)


# ------------------------------ grading ------------------------------

def submit_quiz(db: Session, *, quiz_id: int, answers: List[int], user_id: int) -> SubmissionResult:
    quiz, course = _quiz_and_course(db, quiz_id)

    # course state gate, applies to every role
    if not course.published:
        raise ForbiddenError("Quizzes of unpublished courses cannot be submitted")
    if not enrollment_crud.get_active(db, user_id=user_id, course_id=course.id):
        raise NotEnrolledError("You must be enrolled in the course to submit this quiz")

    answer_key = quiz_crud.answer_key(db, quiz_id)
    if not answer_key:
        raise ValidationFailed("Quiz has no questions", code=INVALID_ANSWERS_LENGTH)

    result = grade(answers, answer_key)

    submission_crud.create(
        db,
        {"quiz_id": quiz_id, "user_id": user_id, "answers": list(answers), "score": result.score},
    )
    logger.info(
        "quiz %s graded for user %s: %d/%d (%.1f)",
        quiz_id, user_id, result.correct, result.total, result.score,
    )
    return result


def get_latest_submission(db: Session, *, quiz_id: int, user_id: int) -> Optional[QuizSubmission]:
    return submission_crud.latest(db, quiz_id=quiz_id, user_id=user_id)


def list_submissions(
    db: Session, *, quiz_id: int, requester_id: int, requester_role: str
) -> List[SubmissionWithUser]:
    """Every attempt on the quiz, newest first, with the submitter's name and email."""
    _owned_quiz(db, quiz_id, requester_id, requester_role, "view submissions for this quiz")
    return [
        SubmissionWithUser(
            id=sub.id,
            user=Submitter(id=user.id, name=user.name, email=user.email),
            score=float(sub.score),
            answers=list(sub.answers),
            created_at=sub.created_at,
        )
        for sub, user in submission_crud.list_with_users(db, quiz_id)
    ]
