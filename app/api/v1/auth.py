# app/api/v1/auth.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, CurrentUser
from app.core.security_password import check_password
from app.core.tokens import create_access_token
from app.crud.user import user_crud
from app.schemas.token import LoginRequest, Token
from app.schemas.user import UserOut

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/login", response_model=Token)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = user_crud.get_by_email(db, body.email)
    check = check_password(body.password, user.hashed_password if user else None)
    if not user or not check.ok:
        logger.info("failed login for %s", body.email)
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if check.new_hash:
        user.hashed_password = check.new_hash
        db.add(user); db.commit()

    return Token(access_token=create_access_token(user_id=user.id, email=user.email, role=user.role))

@router.get("/me", response_model=UserOut)
def me(current: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    user = user_crud.get(db, current.id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
