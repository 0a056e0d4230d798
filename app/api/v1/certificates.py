# app/api/v1/certificates.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, get_code_generator, CurrentUser
from app.core.rbac import require_roles, ROLE_ADMIN, ROLE_INSTRUCTOR, ROLE_STUDENT
from app.schemas.certificate import (
    Certificate as CertificateOut,
    ClaimCertificateRequest,
    EligibilityResult,
    IssueCertificateRequest,
    UserCertificate,
    VerificationResult,
)
from app.services import certificates as certificate_service
from app.services.codes import CodeGenerator

router = APIRouter()

@router.post("/issue", response_model=CertificateOut, status_code=status.HTTP_201_CREATED)
def issue(
    body: IssueCertificateRequest,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_roles(ROLE_INSTRUCTOR, ROLE_ADMIN)),
    generator: CodeGenerator = Depends(get_code_generator),
):
    return certificate_service.issue_certificate(
        db,
        user_id=body.user_id,
        course_id=body.course_id,
        issuer_id=user.id,
        issuer_role=user.role,
        generator=generator,
    )

@router.post("/claim", response_model=CertificateOut, status_code=status.HTTP_201_CREATED)
def claim(
    body: ClaimCertificateRequest,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_roles(ROLE_STUDENT)),
    generator: CodeGenerator = Depends(get_code_generator),
):
    return certificate_service.claim_certificate(db, user_id=user.id, course_id=body.course_id, generator=generator)

@router.get("/me", response_model=List[UserCertificate])
def my_certificates(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return certificate_service.list_user_certificates(db, user.id)

@router.get("/eligibility/{course_id}", response_model=EligibilityResult, response_model_exclude_none=True)
def my_eligibility(
    course_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return certificate_service.check_eligibility(db, user_id=user.id, course_id=course_id)

# -------------------- public verification --------------------

@router.get("/{code}", response_model=VerificationResult, response_model_exclude_none=True)
def verify_public(code: str, db: Session = Depends(get_db)):
    return certificate_service.verify_certificate(db, code)
