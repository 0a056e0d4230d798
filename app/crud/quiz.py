from typing import List, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import select
from app.crud.base import CRUDBase
from app.models.course import Course
from app.models.quiz import Quiz, QuizQuestion, QuizSubmission
from app.models.user import User
from app.schemas.quiz import QuizCreate, QuestionCreate, QuestionUpdate, SubmissionCreate

class CRUDQuiz(CRUDBase[Quiz, QuizCreate, QuizCreate]):
    def get_with_course(self, db: Session, quiz_id: int) -> Optional[Tuple[Quiz, Course]]:
        row = db.execute(
            select(Quiz, Course).join(Course, Course.id == Quiz.course_id).where(Quiz.id == quiz_id)
        ).first()
        return tuple(row) if row else None

    def list_for_course(self, db: Session, course_id: int) -> List[Quiz]:
        stmt = select(Quiz).where(Quiz.course_id == course_id).order_by(Quiz.created_at.desc(), Quiz.id.desc())
        return list(db.scalars(stmt).all())

    def questions(self, db: Session, quiz_id: int) -> List[QuizQuestion]:
        # question order is creation order
        stmt = select(QuizQuestion).where(QuizQuestion.quiz_id == quiz_id).order_by(QuizQuestion.created_at, QuizQuestion.id)
        return list(db.scalars(stmt).all())

    def answer_key(self, db: Session, quiz_id: int) -> List[Tuple[int, int]]:
        stmt = (
            select(QuizQuestion.id, QuizQuestion.correct_index)
            .where(QuizQuestion.quiz_id == quiz_id)
            .order_by(QuizQuestion.created_at, QuizQuestion.id)
        )
        return [tuple(r) for r in db.execute(stmt).all()]

class CRUDQuestion(CRUDBase[QuizQuestion, QuestionCreate, QuestionUpdate]):
    def get_in_quiz(self, db: Session, *, question_id: int, quiz_id: int) -> QuizQuestion | None:
        return db.scalar(select(QuizQuestion).where(QuizQuestion.id == question_id, QuizQuestion.quiz_id == quiz_id))

class CRUDSubmission(CRUDBase[QuizSubmission, SubmissionCreate, SubmissionCreate]):
    def latest(self, db: Session, *, quiz_id: int, user_id: int) -> QuizSubmission | None:
        stmt = (
            select(QuizSubmission)
            .where(QuizSubmission.quiz_id == quiz_id, QuizSubmission.user_id == user_id)
            .order_by(QuizSubmission.created_at.desc(), QuizSubmission.id.desc())
            .limit(1)
        )
        return db.scalar(stmt)

    def list_with_users(self, db: Session, quiz_id: int) -> List[Tuple[QuizSubmission, User]]:
        stmt = (
            select(QuizSubmission, User)
            .join(User, User.id == QuizSubmission.user_id)
            .where(QuizSubmission.quiz_id == quiz_id)
            .order_by(QuizSubmission.created_at.desc(), QuizSubmission.id.desc())
        )
        return [tuple(r) for r in db.execute(stmt).all()]

quiz_crud = CRUDQuiz(Quiz)
question_crud = CRUDQuestion(QuizQuestion)
submission_crud = CRUDSubmission(QuizSubmission)
