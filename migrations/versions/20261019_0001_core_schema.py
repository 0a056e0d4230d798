"""core schema: users, courses, lessons, enrollments, progress, quizzes, certificates, outbox

Revision ID: 0001_core_schema
Revises:
Create Date: 2026-10-19 09:12:44.118203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_core_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at():
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="student"),
        _created_at(),
        sa.CheckConstraint("role IN ('admin', 'instructor', 'student')", name=op.f("ck_users_role")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "courses",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("instructor_id", sa.Integer(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["instructor_id"], ["users.id"], ondelete="CASCADE",
                                name=op.f("fk_courses_instructor_id_users")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_courses")),
    )
    op.create_index(op.f("ix_courses_instructor_id"), "courses", ["instructor_id"])

    op.create_table(
        "lessons",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], ondelete="CASCADE",
                                name=op.f("fk_lessons_course_id_courses")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_lessons")),
    )
    op.create_index(op.f("ix_lessons_course_id"), "lessons", ["course_id"])

    op.create_table(
        "enrollments",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        _created_at(),
        sa.CheckConstraint("status IN ('active', 'completed', 'refunded')", name=op.f("ck_enrollments_status")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE",
                                name=op.f("fk_enrollments_user_id_users")),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], ondelete="CASCADE",
                                name=op.f("fk_enrollments_course_id_courses")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_enrollments")),
        sa.UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),
    )
    op.create_index(op.f("ix_enrollments_user_id"), "enrollments", ["user_id"])
    op.create_index(op.f("ix_enrollments_course_id"), "enrollments", ["course_id"])

    op.create_table(
        "lesson_progress",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("enrollment_id", sa.Integer(), nullable=False),
        sa.Column("lesson_id", sa.Integer(), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["enrollment_id"], ["enrollments.id"], ondelete="CASCADE",
                                name=op.f("fk_lesson_progress_enrollment_id_enrollments")),
        sa.ForeignKeyConstraint(["lesson_id"], ["lessons.id"], ondelete="CASCADE",
                                name=op.f("fk_lesson_progress_lesson_id_lessons")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_lesson_progress")),
        sa.UniqueConstraint("enrollment_id", "lesson_id", name="uq_lesson_progress_enrollment_lesson"),
    )
    op.create_index(op.f("ix_lesson_progress_enrollment_id"), "lesson_progress", ["enrollment_id"])

    op.create_table(
        "quizzes",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], ondelete="CASCADE",
                                name=op.f("fk_quizzes_course_id_courses")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_quizzes")),
    )
    op.create_index(op.f("ix_quizzes_course_id"), "quizzes", ["course_id"])

    op.create_table(
        "quiz_questions",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("quiz_id", sa.Integer(), nullable=False),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column("choices", sa.JSON(), nullable=False),
        sa.Column("correct_index", sa.Integer(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["quiz_id"], ["quizzes.id"], ondelete="CASCADE",
                                name=op.f("fk_quiz_questions_quiz_id_quizzes")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_quiz_questions")),
    )
    op.create_index(op.f("ix_quiz_questions_quiz_id"), "quiz_questions", ["quiz_id"])

    op.create_table(
        "quiz_submissions",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("quiz_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("answers", sa.JSON(), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["quiz_id"], ["quizzes.id"], ondelete="CASCADE",
                                name=op.f("fk_quiz_submissions_quiz_id_quizzes")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE",
                                name=op.f("fk_quiz_submissions_user_id_users")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_quiz_submissions")),
    )
    op.create_index(op.f("ix_quiz_submissions_quiz_id"), "quiz_submissions", ["quiz_id"])
    op.create_index(op.f("ix_quiz_submissions_user_id"), "quiz_submissions", ["user_id"])

    op.create_table(
        "certificates",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(32), nullable=False),
        sa.Column("issued_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE",
                                name=op.f("fk_certificates_user_id_users")),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], ondelete="CASCADE",
                                name=op.f("fk_certificates_course_id_courses")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_certificates")),
        sa.UniqueConstraint("user_id", "course_id", name="uq_certificate_user_course"),
    )
    # unique index on code is the backstop for concurrent issuance
    op.create_index(op.f("ix_certificates_code"), "certificates", ["code"], unique=True)
    op.create_index(op.f("ix_certificates_user_id"), "certificates", ["user_id"])
    op.create_index(op.f("ix_certificates_course_id"), "certificates", ["course_id"])

    op.create_table(
        "outbox_events",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("topic", sa.String(100), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("processed", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_outbox_events")),
    )
    op.create_index(op.f("ix_outbox_events_topic"), "outbox_events", ["topic"])
    op.create_index(op.f("ix_outbox_events_processed"), "outbox_events", ["processed"])


def downgrade() -> None:
    for table in (
        "outbox_events", "certificates", "quiz_submissions", "quiz_questions", "quizzes",
        "lesson_progress", "enrollments", "lessons", "courses", "users",
    ):
        op.drop_table(table)
