from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException

from app.core.tokens import decode_access
from app.db.session import get_db  # noqa: F401  re-exported for routers
from app.services.codes import CodeGenerator

@dataclass(frozen=True)
class CurrentUser:
    """Identity attached to an authenticated request."""
    id: int
    email: str
    role: str

# ----------------------------------------------------------------------
# Bearer token from the Authorization header
# ----------------------------------------------------------------------
def _parse_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]

def get_bearer_token(authorization: Optional[str] = Header(None, alias="Authorization")) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing Authorization header")
    token = _parse_bearer(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Invalid Authorization header. Expected: Bearer <token>")
    return token

def _user_from_token(token: str) -> Optional[CurrentUser]:
    payload = decode_access(token)
    if not payload:
        return None
    return CurrentUser(id=int(payload["sub"]), email=payload["email"], role=payload["role"])

def get_current_user(token: str = Depends(get_bearer_token)) -> CurrentUser:
    user = _user_from_token(token)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return user

def get_optional_user(authorization: Optional[str] = Header(None, alias="Authorization")) -> Optional[CurrentUser]:
    """Public routes: a valid token widens access, a missing or bad one is ignored."""
    token = _parse_bearer(authorization)
    return _user_from_token(token) if token else None

_code_generator = CodeGenerator()

def get_code_generator() -> CodeGenerator:
    return _code_generator

