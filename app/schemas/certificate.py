from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

class CertificateCreate(BaseModel):
    user_id: int
    course_id: int
    code: str

class Certificate(BaseModel):
    id: int
    user_id: int
    course_id: int
    code: str
    issued_at: datetime

    model_config = {"from_attributes": True}

class IssueCertificateRequest(BaseModel):
    user_id: int = Field(ge=1)
    course_id: int = Field(ge=1)

class ClaimCertificateRequest(BaseModel):
    course_id: int = Field(ge=1)

class EligibilityResult(BaseModel):
    eligible: bool
    reason: Optional[str] = None

class NameRef(BaseModel):
    name: str

class TitleRef(BaseModel):
    title: str

class VerificationResult(BaseModel):
    """Public answer for a code: only name, title and timestamp are disclosed."""
    valid: bool
    user: Optional[NameRef] = None
    course: Optional[TitleRef] = None
    issued_at: Optional[datetime] = None

class CourseRef(BaseModel):
    id: int
    title: str

class UserRef(BaseModel):
    id: int
    name: str
    email: str

class UserCertificate(BaseModel):
    id: int
    code: str
    issued_at: datetime
    course: CourseRef

class CourseCertificate(BaseModel):
    id: int
    code: str
    issued_at: datetime
    user: UserRef
