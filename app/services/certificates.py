# app/services/certificates.py
"""Certificate eligibility, issuance and verification.

A certificate is issued at most once per (user, course). The existence check,
the code uniqueness loop and the insert run in one session transaction; the
unique constraints on ``certificates`` settle any race that slips through, and
a constraint hit is reported exactly like the pre-check would have reported it.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ResourceExhaustedError,
    ValidationFailed,
)
from app.core.rbac import can_manage_course
from app.crud.certificate import certificate_crud
from app.crud.course import course_crud
from app.crud.enrollment import enrollment_crud
from app.models.certificate import Certificate
from app.models.enrollment import EnrollmentStatus
from app.schemas.certificate import (
    CourseCertificate,
    CourseRef,
    EligibilityResult,
    NameRef,
    TitleRef,
    UserCertificate,
    UserRef,
    VerificationResult,
)
from app.services import outbox
from app.services.codes import CodeGenerator, generate_unique_code, is_valid_code
from app.services.progress import get_user_course_progress

logger = logging.getLogger(__name__)

ENROLLMENT_NOT_FOUND = "ENROLLMENT_NOT_FOUND"
ENROLLMENT_NOT_ACTIVE = "ENROLLMENT_NOT_ACTIVE"
NO_LESSONS_IN_COURSE = "NO_LESSONS_IN_COURSE"
NOT_ALL_LESSONS_COMPLETED = "NOT_ALL_LESSONS_COMPLETED"

# completed enrollments still go through the lesson check below, they are not eligible by status alone
_ELIGIBLE_STATUSES = {EnrollmentStatus.active.value, EnrollmentStatus.completed.value}

_default_generator = CodeGenerator()


def check_eligibility(db: Session, *, user_id: int, course_id: int) -> EligibilityResult:
    enrollment = enrollment_crud.get_for(db, user_id=user_id, course_id=course_id)
    if not enrollment:
        return EligibilityResult(eligible=False, reason=ENROLLMENT_NOT_FOUND)
    if enrollment.status not in _ELIGIBLE_STATUSES:
        return EligibilityResult(eligible=False, reason=ENROLLMENT_NOT_ACTIVE)

    progress = get_user_course_progress(db, user_id=user_id, course_id=course_id)
    if progress.total_lessons == 0:
        return EligibilityResult(eligible=False, reason=NO_LESSONS_IN_COURSE)
    if progress.lessons_completed < progress.total_lessons:
        return EligibilityResult(
            eligible=False,
            reason=f"{NOT_ALL_LESSONS_COMPLETED}: {progress.lessons_completed}/{progress.total_lessons}",
        )
    return EligibilityResult(eligible=True)


def _create_certificate(
    db: Session,
    *,
    user_id: int,
    course_id: int,
    generator: CodeGenerator,
    duplicate_message: str,
) -> Certificate:
    if certificate_crud.get_by_user_course(db, user_id=user_id, course_id=course_id):
        raise ConflictError(duplicate_message, code="ALREADY_ISSUED")

    attempt = generate_unique_code(
        lambda code: certificate_crud.code_exists(db, code),
        generator,
        settings.CERT_CODE_MAX_ATTEMPTS,
    )
    if not attempt.ok:
        logger.error(
            "certificate code budget exhausted after %d attempts (user=%s course=%s)",
            attempt.attempts, user_id, course_id,
        )
        raise ResourceExhaustedError("Failed to generate unique certificate code")

    cert = Certificate(user_id=user_id, course_id=course_id, code=attempt.code)
    db.add(cert)
    try:
        db.flush()
        if outbox.is_notifications_enabled():
            outbox.publish(db, "certificate.issued", {
                "certificateId": cert.id,
                "userId": user_id,
                "courseId": course_id,
                "code": cert.code,
            })
        db.commit()
    except IntegrityError:
        db.rollback()
        if certificate_crud.get_by_user_course(db, user_id=user_id, course_id=course_id):
            raise ConflictError(duplicate_message, code="ALREADY_ISSUED")
        logger.warning("certificate code taken by a concurrent issuance (user=%s course=%s)", user_id, course_id)
        raise ConflictError(
            "Certificate could not be issued because of a concurrent request; please retry",
            code="CODE_COLLISION_RETRY",
        )

    db.refresh(cert)
    logger.info("certificate %s issued (user=%s course=%s)", cert.code, user_id, course_id)
    return cert


def issue_certificate(
    db: Session,
    *,
    user_id: int,
    course_id: int,
    issuer_id: int,
    issuer_role: str,
    generator: Optional[CodeGenerator] = None,
) -> Certificate:
    """Instructor/admin issuance for a student who completed the course."""
    course = course_crud.get(db, course_id)
    if not course:
        raise NotFoundError("Course not found")
    if not can_manage_course(issuer_role, issuer_id, course.instructor_id):
        raise ForbiddenError("You can only issue certificates for your own courses", code="NOT_OWNER")

    eligibility = check_eligibility(db, user_id=user_id, course_id=course_id)
    if not eligibility.eligible:
        raise ValidationFailed(f"User is not eligible: {eligibility.reason}", code="NOT_ELIGIBLE")

    return _create_certificate(
        db,
        user_id=user_id,
        course_id=course_id,
        generator=generator or _default_generator,
        duplicate_message="Certificate already issued for this user and course",
    )


def claim_certificate(
    db: Session,
    *,
    user_id: int,
    course_id: int,
    generator: Optional[CodeGenerator] = None,
) -> Certificate:
    """Self-service issuance; the subject is the caller."""
    eligibility = check_eligibility(db, user_id=user_id, course_id=course_id)
    if not eligibility.eligible:
        raise ValidationFailed(f"Not eligible for certificate: {eligibility.reason}", code="NOT_ELIGIBLE")

    return _create_certificate(
        db,
        user_id=user_id,
        course_id=course_id,
        generator=generator or _default_generator,
        duplicate_message="Certificate already claimed for this course",
    )


def verify_certificate(db: Session, code: str) -> VerificationResult:
    if not is_valid_code(code):
        return VerificationResult(valid=False)
    row = certificate_crud.get_verification_row(db, code)
    if not row:
        return VerificationResult(valid=False)
    issued_at, user_name, course_title = row
    return VerificationResult(
        valid=True,
        user=NameRef(name=user_name),
        course=TitleRef(title=course_title),
        issued_at=issued_at,
    )


def get_certificate(db: Session, *, user_id: int, course_id: int) -> Optional[Certificate]:
    return certificate_crud.get_by_user_course(db, user_id=user_id, course_id=course_id)


def list_user_certificates(db: Session, user_id: int) -> List[UserCertificate]:
    return [
        UserCertificate(
            id=cert.id,
            code=cert.code,
            issued_at=cert.issued_at,
            course=CourseRef(id=course.id, title=course.title),
        )
        for cert, course in certificate_crud.list_for_user(db, user_id)
    ]


def list_course_certificates(
    db: Session, *, course_id: int, requester_id: int, requester_role: str
) -> List[CourseCertificate]:
    course = course_crud.get(db, course_id)
    if not course:
        raise NotFoundError("Course not found")
    if not can_manage_course(requester_role, requester_id, course.instructor_id):
        raise ForbiddenError("You can only view certificates for your own courses", code="NOT_OWNER")
    return [
        CourseCertificate(
            id=cert.id,
            code=cert.code,
            issued_at=cert.issued_at,
            user=UserRef(id=user.id, name=user.name, email=user.email),
        )
        for cert, user in certificate_crud.list_for_course(db, course_id)
    ]
