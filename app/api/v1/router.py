# app/api/v1/router.py
from fastapi import APIRouter
from app.api.v1 import (
    auth,
    certificates,
    courses,
    progress,
    quizzes,
)

api_router = APIRouter()

api_router.include_router(auth.router,         prefix="/auth",         tags=["auth"])
api_router.include_router(certificates.router, prefix="/certificates", tags=["certificates"])
api_router.include_router(courses.router,      prefix="/courses",      tags=["courses"])
api_router.include_router(progress.router,     prefix="/progress",     tags=["progress"])
api_router.include_router(quizzes.router,      prefix="/quizzes",      tags=["quizzes"])
