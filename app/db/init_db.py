# app/db/init_db.py
import logging
from sqlalchemy.orm import Session

from app.crud.user import user_crud
from app.schemas.user import UserCreate

logger = logging.getLogger(__name__)

DEMO_USERS = [
    ("Admin Demo", "admin@learnlite.dev", "admin"),
    ("Instructor Demo", "instructor@learnlite.dev", "instructor"),
    ("Student Demo", "student@learnlite.dev", "student"),
]
DEMO_PASSWORD = "changeme123"

def init_db(db: Session) -> None:
    """Seed one user per role; existing emails are left untouched."""
    for name, email, role in DEMO_USERS:
        if user_crud.get_by_email(db, email):
            continue
        user_crud.create(db, UserCreate(name=name, email=email, role=role, password=DEMO_PASSWORD))
        logger.info("seeded %s user %s", role, email)
