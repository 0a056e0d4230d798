import itertools

import pytest
from sqlalchemy import select

from app.core.config import settings
from app.core.errors import ConflictError, ForbiddenError, NotFoundError, ResourceExhaustedError, ValidationFailed
from app.crud.certificate import certificate_crud
from app.models import Certificate, OutboxEvent
from app.services import certificates as service
from app.services.codes import CodeGenerator, is_valid_code


def _fixed(byte):
    return CodeGenerator(lambda n: bytes([byte] * n))


def _cycling(*values):
    it = itertools.cycle(values)
    return CodeGenerator(lambda n: bytes([next(it)] * n))


@pytest.fixture()
def setup(factory):
    instructor = factory.user("instructor")
    student = factory.user("student")
    course = factory.course(instructor, lessons=5)
    enrollment = factory.enroll(student, course)
    return instructor, student, course, enrollment


# ------------------------------ eligibility ------------------------------

def test_eligibility_without_enrollment(session, factory):
    instructor = factory.user("instructor")
    course = factory.course(instructor, lessons=2)
    result = service.check_eligibility(session, user_id=999, course_id=course.id)
    assert not result.eligible
    assert result.reason == "ENROLLMENT_NOT_FOUND"


def test_eligibility_refunded_enrollment(session, factory):
    instructor = factory.user("instructor")
    student = factory.user()
    course = factory.course(instructor, lessons=2)
    factory.enroll(student, course, status="refunded")
    result = service.check_eligibility(session, user_id=student.id, course_id=course.id)
    assert result.reason == "ENROLLMENT_NOT_ACTIVE"


def test_eligibility_course_without_lessons(session, factory):
    instructor = factory.user("instructor")
    student = factory.user()
    course = factory.course(instructor, lessons=0)
    factory.enroll(student, course)
    result = service.check_eligibility(session, user_id=student.id, course_id=course.id)
    assert not result.eligible
    assert result.reason == "NO_LESSONS_IN_COURSE"


def test_eligibility_partial_progress(session, factory, setup):
    _, student, course, enrollment = setup
    factory.complete(enrollment, factory.lessons(course)[:3])
    result = service.check_eligibility(session, user_id=student.id, course_id=course.id)
    assert not result.eligible
    assert result.reason == "NOT_ALL_LESSONS_COMPLETED: 3/5"


def test_eligibility_all_lessons_done(session, factory, setup):
    _, student, course, enrollment = setup
    factory.complete(enrollment, factory.lessons(course))
    result = service.check_eligibility(session, user_id=student.id, course_id=course.id)
    assert result.eligible
    assert result.reason is None


def test_completed_enrollment_is_still_checked_for_progress(session, factory):
    instructor = factory.user("instructor")
    student = factory.user()
    course = factory.course(instructor, lessons=2)
    enrollment = factory.enroll(student, course, status="completed")
    assert service.check_eligibility(session, user_id=student.id, course_id=course.id).reason == (
        "NOT_ALL_LESSONS_COMPLETED: 0/2"
    )
    factory.complete(enrollment, factory.lessons(course))
    assert service.check_eligibility(session, user_id=student.id, course_id=course.id).eligible


# ------------------------------ issuance ------------------------------

def test_issue_certificate(session, factory, setup):
    instructor, student, course, enrollment = setup
    factory.complete(enrollment, factory.lessons(course))

    cert = service.issue_certificate(
        session, user_id=student.id, course_id=course.id, issuer_id=instructor.id, issuer_role="instructor"
    )

    assert cert.id is not None
    assert cert.user_id == student.id
    assert cert.course_id == course.id
    assert is_valid_code(cert.code)
    assert cert.issued_at is not None


def test_issue_twice_conflicts(session, factory, setup):
    instructor, student, course, enrollment = setup
    factory.complete(enrollment, factory.lessons(course))
    kwargs = dict(user_id=student.id, course_id=course.id, issuer_id=instructor.id, issuer_role="instructor")

    service.issue_certificate(session, **kwargs)
    with pytest.raises(ConflictError) as exc:
        service.issue_certificate(session, **kwargs)

    assert exc.value.code == "ALREADY_ISSUED"
    assert session.scalar(select(Certificate.id).where(Certificate.user_id == student.id)) is not None
    assert len(session.scalars(select(Certificate)).all()) == 1


def test_issue_unknown_course(session, factory):
    admin = factory.user("admin")
    with pytest.raises(NotFoundError):
        service.issue_certificate(session, user_id=1, course_id=404, issuer_id=admin.id, issuer_role="admin")


def test_issue_by_other_instructor_is_forbidden(session, factory, setup):
    _, student, course, enrollment = setup
    factory.complete(enrollment, factory.lessons(course))
    stranger = factory.user("instructor")

    with pytest.raises(ForbiddenError) as exc:
        service.issue_certificate(
            session, user_id=student.id, course_id=course.id, issuer_id=stranger.id, issuer_role="instructor"
        )
    assert exc.value.code == "NOT_OWNER"


def test_admin_can_issue_for_any_course(session, factory, setup):
    _, student, course, enrollment = setup
    factory.complete(enrollment, factory.lessons(course))
    admin = factory.user("admin")
    cert = service.issue_certificate(
        session, user_id=student.id, course_id=course.id, issuer_id=admin.id, issuer_role="admin"
    )
    assert cert.user_id == student.id


def test_issue_rejects_ineligible_student(session, factory, setup):
    instructor, student, course, enrollment = setup
    factory.complete(enrollment, factory.lessons(course)[:3])

    with pytest.raises(ValidationFailed) as exc:
        service.issue_certificate(
            session, user_id=student.id, course_id=course.id, issuer_id=instructor.id, issuer_role="instructor"
        )
    assert exc.value.code == "NOT_ELIGIBLE"
    assert "NOT_ALL_LESSONS_COMPLETED: 3/5" in exc.value.message
    assert session.scalars(select(Certificate)).all() == []


def test_issue_retries_code_collision(session, factory, setup):
    instructor, student, course, enrollment = setup
    factory.complete(enrollment, factory.lessons(course))

    other = factory.user()
    other_enrollment = factory.enroll(other, course)
    factory.complete(other_enrollment, factory.lessons(course))
    first = service.issue_certificate(
        session, user_id=other.id, course_id=course.id, issuer_id=instructor.id, issuer_role="instructor",
        generator=_fixed(0),
    )
    assert first.code == "CERT-AAAAAA-AAAAAA"

    # the first code drawn collides, the second one is free
    second = service.issue_certificate(
        session, user_id=student.id, course_id=course.id, issuer_id=instructor.id, issuer_role="instructor",
        generator=_cycling(0, 0, 1, 1),
    )
    assert second.code == "CERT-BBBBBB-BBBBBB"


def test_issue_code_budget_exhausted(session, factory, setup, monkeypatch):
    instructor, student, course, enrollment = setup
    factory.complete(enrollment, factory.lessons(course))
    monkeypatch.setattr(certificate_crud, "code_exists", lambda db, code: True)

    with pytest.raises(ResourceExhaustedError) as exc:
        service.issue_certificate(
            session, user_id=student.id, course_id=course.id, issuer_id=instructor.id, issuer_role="instructor"
        )
    assert exc.value.status_code == 500
    assert session.scalars(select(Certificate)).all() == []


def test_concurrent_code_collision_is_reported_for_retry(session, factory, setup, monkeypatch):
    instructor, student, course, enrollment = setup
    factory.complete(enrollment, factory.lessons(course))
    other = factory.user()
    other_enrollment = factory.enroll(other, course)
    factory.complete(other_enrollment, factory.lessons(course))
    service.issue_certificate(
        session, user_id=other.id, course_id=course.id, issuer_id=instructor.id, issuer_role="instructor",
        generator=_fixed(0),
    )

    # the pre-check misses the code, as it would when another request inserts it first
    monkeypatch.setattr(certificate_crud, "code_exists", lambda db, code: False)
    with pytest.raises(ConflictError) as exc:
        service.issue_certificate(
            session, user_id=student.id, course_id=course.id, issuer_id=instructor.id, issuer_role="instructor",
            generator=_fixed(0),
        )
    assert exc.value.code == "CODE_COLLISION_RETRY"
    assert service.get_certificate(session, user_id=student.id, course_id=course.id) is None


def _miss_first_lookup(monkeypatch):
    """The first duplicate lookup sees nothing, as when a parallel request has not committed yet."""
    real = certificate_crud.get_by_user_course
    calls = []

    def lookup(db, *, user_id, course_id):
        calls.append((user_id, course_id))
        if len(calls) == 1:
            return None
        return real(db, user_id=user_id, course_id=course_id)

    monkeypatch.setattr(certificate_crud, "get_by_user_course", lookup)
    return calls


def test_concurrent_duplicate_issuance_is_reported_as_already_issued(session, factory, setup, monkeypatch):
    instructor, student, course, enrollment = setup
    factory.complete(enrollment, factory.lessons(course))
    kwargs = dict(user_id=student.id, course_id=course.id, issuer_id=instructor.id, issuer_role="instructor")
    service.issue_certificate(session, **kwargs)

    calls = _miss_first_lookup(monkeypatch)
    with pytest.raises(ConflictError) as exc:
        service.issue_certificate(session, **kwargs)

    assert exc.value.code == "ALREADY_ISSUED"
    assert exc.value.message == "Certificate already issued for this user and course"
    assert len(calls) == 2
    assert len(session.scalars(select(Certificate)).all()) == 1


def test_concurrent_duplicate_claim_is_reported_as_already_claimed(session, factory, setup, monkeypatch):
    _, student, course, enrollment = setup
    factory.complete(enrollment, factory.lessons(course))
    service.claim_certificate(session, user_id=student.id, course_id=course.id)

    calls = _miss_first_lookup(monkeypatch)
    with pytest.raises(ConflictError) as exc:
        service.claim_certificate(session, user_id=student.id, course_id=course.id)

    assert exc.value.code == "ALREADY_ISSUED"
    assert exc.value.message == "Certificate already claimed for this course"
    assert len(calls) == 2
    assert len(session.scalars(select(Certificate)).all()) == 1


def test_outbox_event_written_when_notifications_enabled(session, factory, setup, monkeypatch):
    instructor, student, course, enrollment = setup
    factory.complete(enrollment, factory.lessons(course))
    monkeypatch.setattr(settings, "NOTIFICATIONS_ENABLED", True)

    cert = service.issue_certificate(
        session, user_id=student.id, course_id=course.id, issuer_id=instructor.id, issuer_role="instructor"
    )

    events = session.scalars(select(OutboxEvent)).all()
    assert len(events) == 1
    assert events[0].topic == "certificate.issued"
    assert events[0].payload == {
        "certificateId": cert.id, "userId": student.id, "courseId": course.id, "code": cert.code,
    }
    assert events[0].processed is False


def test_no_outbox_event_by_default(session, factory, setup, monkeypatch):
    instructor, student, course, enrollment = setup
    factory.complete(enrollment, factory.lessons(course))
    monkeypatch.setattr(settings, "NOTIFICATIONS_ENABLED", False)
    service.issue_certificate(
        session, user_id=student.id, course_id=course.id, issuer_id=instructor.id, issuer_role="instructor"
    )
    assert session.scalars(select(OutboxEvent)).all() == []


# ------------------------------ claim ------------------------------

def test_claim_certificate(session, factory, setup):
    _, student, course, enrollment = setup
    factory.complete(enrollment, factory.lessons(course))

    cert = service.claim_certificate(session, user_id=student.id, course_id=course.id)
    assert cert.user_id == student.id

    with pytest.raises(ConflictError) as exc:
        service.claim_certificate(session, user_id=student.id, course_id=course.id)
    assert exc.value.code == "ALREADY_ISSUED"


def test_claim_requires_eligibility(session, setup):
    _, student, course, _ = setup
    with pytest.raises(ValidationFailed) as exc:
        service.claim_certificate(session, user_id=student.id, course_id=course.id)
    assert exc.value.code == "NOT_ELIGIBLE"
    assert "NOT_ALL_LESSONS_COMPLETED: 0/5" in exc.value.message


def test_claim_after_issue_conflicts(session, factory, setup):
    instructor, student, course, enrollment = setup
    factory.complete(enrollment, factory.lessons(course))
    service.issue_certificate(
        session, user_id=student.id, course_id=course.id, issuer_id=instructor.id, issuer_role="instructor"
    )
    with pytest.raises(ConflictError):
        service.claim_certificate(session, user_id=student.id, course_id=course.id)


# ------------------------------ verification & listings ------------------------------

def test_verify_discloses_only_name_title_and_date(session, factory):
    instructor = factory.user("instructor")
    student = factory.user(name="Ana Lima", email="ana@example.com")
    course = factory.course(instructor, lessons=1, title="Intro to SQL")
    enrollment = factory.enroll(student, course)
    factory.complete(enrollment, factory.lessons(course))
    cert = service.claim_certificate(session, user_id=student.id, course_id=course.id)

    result = service.verify_certificate(session, cert.code)

    assert result.valid
    assert result.user.name == "Ana Lima"
    assert result.course.title == "Intro to SQL"
    assert result.issued_at is not None
    dumped = result.model_dump(exclude_none=True)
    assert set(dumped) == {"valid", "user", "course", "issued_at"}
    assert dumped["user"] == {"name": "Ana Lima"}
    assert dumped["course"] == {"title": "Intro to SQL"}


@pytest.mark.parametrize("code", ["CERT-ZZZZZZ-ZZZZZZ", "not-a-code", ""])
def test_verify_unknown_or_malformed_code(session, code):
    result = service.verify_certificate(session, code)
    assert result.valid is False
    assert result.model_dump(exclude_none=True) == {"valid": False}


def test_list_user_and_course_certificates(session, factory):
    instructor = factory.user("instructor")
    student = factory.user()
    courses = [factory.course(instructor, lessons=1) for _ in range(2)]
    for course in courses:
        enrollment = factory.enroll(student, course)
        factory.complete(enrollment, factory.lessons(course))
        service.claim_certificate(session, user_id=student.id, course_id=course.id)

    mine = service.list_user_certificates(session, student.id)
    assert [c.course.id for c in mine] == [courses[1].id, courses[0].id]

    listed = service.list_course_certificates(
        session, course_id=courses[0].id, requester_id=instructor.id, requester_role="instructor"
    )
    assert len(listed) == 1
    assert listed[0].user.email == student.email

    with pytest.raises(ForbiddenError):
        service.list_course_certificates(
            session, course_id=courses[0].id, requester_id=student.id, requester_role="student"
        )
