from typing import Any, List, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import select
from app.crud.base import CRUDBase
from app.models.certificate import Certificate
from app.models.course import Course
from app.models.user import User
from app.schemas.certificate import CertificateCreate

class CRUDCertificate(CRUDBase[Certificate, CertificateCreate, CertificateCreate]):
    def get_by_user_course(self, db: Session, *, user_id: int, course_id: int) -> Certificate | None:
        return db.scalar(select(Certificate).where(Certificate.user_id == user_id, Certificate.course_id == course_id))

    def code_exists(self, db: Session, code: str) -> bool:
        return db.scalar(select(Certificate.id).where(Certificate.code == code)) is not None

    def get_verification_row(self, db: Session, code: str) -> Optional[Tuple[Any, str, str]]:
        """(issued_at, user name, course title) for a code, or None."""
        row = db.execute(
            select(Certificate.issued_at, User.name, Course.title)
            .join(User, User.id == Certificate.user_id)
            .join(Course, Course.id == Certificate.course_id)
            .where(Certificate.code == code)
        ).first()
        return tuple(row) if row else None

    def list_for_user(self, db: Session, user_id: int) -> List[Tuple[Certificate, Course]]:
        stmt = (
            select(Certificate, Course)
            .join(Course, Course.id == Certificate.course_id)
            .where(Certificate.user_id == user_id)
            .order_by(Certificate.issued_at.desc(), Certificate.id.desc())
        )
        return [tuple(r) for r in db.execute(stmt).all()]

    def list_for_course(self, db: Session, course_id: int) -> List[Tuple[Certificate, User]]:
        stmt = (
            select(Certificate, User)
            .join(User, User.id == Certificate.user_id)
            .where(Certificate.course_id == course_id)
            .order_by(Certificate.issued_at.desc(), Certificate.id.desc())
        )
        return [tuple(r) for r in db.execute(stmt).all()]

certificate_crud = CRUDCertificate(Certificate)
