from app.models.user import User
from app.models.course import Course, Lesson
from app.models.enrollment import Enrollment, EnrollmentStatus, LessonProgress
from app.models.quiz import Quiz, QuizQuestion, QuizSubmission
from app.models.certificate import Certificate
from app.models.outbox import OutboxEvent

__all__ = [
    "User", "Course", "Lesson", "Enrollment", "EnrollmentStatus", "LessonProgress",
    "Quiz", "QuizQuestion", "QuizSubmission", "Certificate", "OutboxEvent",
]
