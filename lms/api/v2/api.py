from fastapi import APIRouter

from .endpoints import (
    certificates_router,
    courses_router,
    discussions_router,
    progress_router,
    quizzes_router,
    users_router,
)

api_router = APIRouter()

api_router.include_router(users_router.router, prefix="/users", tags=["Users"])
api_router.include_router(courses_router.router, prefix="/courses", tags=["Courses"])
api_router.include_router(quizzes_router.router, prefix="/quizzes", tags=["Quizzes"])
api_router.include_router(progress_router.router, prefix="/progress", tags=["Progress"])
api_router.include_router(certificates_router.router, prefix="/certificates", tags=["Certificates"])
api_router.include_router(discussions_router.router, tags=["Discussions"])
