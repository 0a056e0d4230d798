# app/core/rbac.py
from typing import Optional

from fastapi import Depends
from app.api.deps import CurrentUser, get_current_user
from app.core.errors import ForbiddenError

ROLE_ADMIN = "admin"
ROLE_INSTRUCTOR = "instructor"
ROLE_STUDENT = "student"


# Ownership rules are plain predicates over (role, subject, owner) so services
# can reuse them without a request object.

def is_admin(role: Optional[str]) -> bool:
    return role == ROLE_ADMIN

def owns_resource(subject_id: Optional[int], owner_id: Optional[int]) -> bool:
    return subject_id is not None and owner_id is not None and subject_id == owner_id

def can_manage_course(role: Optional[str], subject_id: Optional[int], instructor_id: Optional[int]) -> bool:
    """admin, or the instructor who owns the course."""
    if is_admin(role):
        return True
    return role == ROLE_INSTRUCTOR and owns_resource(subject_id, instructor_id)

def can_view_course_content(role: Optional[str], subject_id: Optional[int], instructor_id: Optional[int]) -> bool:
    """Unpublished content is visible to admins and to the owning user."""
    return is_admin(role) or owns_resource(subject_id, instructor_id)

def require_roles(*roles: str):
    allowed = set(roles)
    def dep(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in allowed:
            raise ForbiddenError("Insufficient role")
        return user
    return dep
