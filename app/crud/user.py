from sqlalchemy.orm import Session
from sqlalchemy import select
from app.crud.base import CRUDBase
from app.models.user import User
from app.schemas.user import UserCreate, UserBase
from app.core.security_password import hash_password

class CRUDUser(CRUDBase[User, UserCreate, UserBase]):
    def create(self, db: Session, obj_in: UserCreate, extra=None) -> User:
        data = obj_in.model_dump()
        data["email"] = data["email"].strip().lower()
        data["hashed_password"] = hash_password(data.pop("password"))
        return super().create(db, data, extra)

    def get_by_email(self, db: Session, email: str) -> User | None:
        return db.scalar(select(User).where(User.email == email.strip().lower()))

user_crud = CRUDUser(User)
