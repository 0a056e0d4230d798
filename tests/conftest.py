# ruff: noqa: E402
import os
import tempfile
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set testing environment before importing the app or settings
os.environ["RUN_MIGRATIONS_ON_STARTUP"] = "false"
os.environ["DATA_DIR"] = tempfile.mkdtemp(prefix="learnlite-test-")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from app.core.security_password import hash_password
from app.core.tokens import create_access_token
from app.db.base import Base
from app.db.session import get_db
from app.main import api
from app.models import (
    Course,
    Enrollment,
    Lesson,
    LessonProgress,
    Quiz,
    QuizQuestion,
    User,
)

TEST_PASSWORD = "password123"


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session):
    def override_get_db():
        yield session

    api.dependency_overrides[get_db] = override_get_db
    yield TestClient(api)
    api.dependency_overrides.clear()


class Factory:
    """Builds rows directly through the session; every helper commits."""

    def __init__(self, db):
        self.db = db
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def user(self, role: str = "student", name: Optional[str] = None, email: Optional[str] = None) -> User:
        n = self._next()
        return self._save(User(
            name=name or f"{role.title()} {n}",
            email=email or f"{role}{n}@example.com",
            role=role,
            hashed_password=hash_password(TEST_PASSWORD),
        ))

    def course(self, instructor: User, *, lessons: int = 0, published: bool = True, title: Optional[str] = None) -> Course:
        course = self._save(Course(
            title=title or f"Course {self._next()}",
            published=published,
            instructor_id=instructor.id,
        ))
        for position in range(1, lessons + 1):
            self.db.add(Lesson(course_id=course.id, title=f"Lesson {position}", position=position))
        self.db.commit()
        return course

    def lessons(self, course: Course) -> List[Lesson]:
        return sorted(course.lessons, key=lambda lesson: (lesson.position, lesson.id))

    def enroll(self, user: User, course: Course, status: str = "active") -> Enrollment:
        return self._save(Enrollment(user_id=user.id, course_id=course.id, status=status))

    def complete(self, enrollment: Enrollment, lessons: Iterable[Lesson]) -> None:
        for lesson in lessons:
            self.db.add(LessonProgress(enrollment_id=enrollment.id, lesson_id=lesson.id, completed=True))
        self.db.commit()

    def quiz(self, course: Course, questions: Sequence[Tuple[Sequence[str], int]] = (), title: str = "Quiz") -> Quiz:
        quiz = self._save(Quiz(course_id=course.id, title=title))
        for i, (choices, correct_index) in enumerate(questions, start=1):
            self.db.add(QuizQuestion(
                quiz_id=quiz.id, prompt=f"Question {i}", choices=list(choices), correct_index=correct_index,
            ))
            # one commit per question keeps creation order stable
            self.db.commit()
        return quiz


@pytest.fixture()
def factory(session) -> Factory:
    return Factory(session)


def auth_headers(user: Any) -> dict:
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def headers():
    return auth_headers
