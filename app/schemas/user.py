# app/schemas/user.py
from __future__ import annotations
from typing import Literal
from pydantic import BaseModel, EmailStr, Field

RoleName = Literal["admin", "instructor", "student"]

class UserBase(BaseModel):
    name: str
    email: EmailStr
    role: RoleName = "student"

class UserCreate(UserBase):
    password: str = Field(min_length=8, max_length=128)

class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role: str

    model_config = {"from_attributes": True}
