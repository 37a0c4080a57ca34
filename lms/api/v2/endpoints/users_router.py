import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from lms.api.v2.dependencies import get_current_user, get_db
from lms.core.config import settings
from lms.core.errors import DomainError
from lms.models.user.user_model import User
from lms.schemas.user import user_schema
from lms.services import auth_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=user_schema.User, status_code=status.HTTP_201_CREATED)
def register_user(
    user_in: user_schema.UserCreate,
    db: Session = Depends(get_db),
):
    try:
        return auth_service.register(db, user_in)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.post("/login", response_model=user_schema.Token)
def login_for_access_token(
    credentials: user_schema.LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
):
    try:
        user = auth_service.authenticate(db, credentials.email, credentials.password)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc

    access_token = auth_service.issue_token(user)

    # Cross-site cookie for browser clients; the body copy serves API clients.
    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,
        samesite="none",
        secure=settings.ENVIRONMENT == "production",
        path="/",
    )
    return {"access_token": access_token, "token_type": "bearer"}


@router.post("/logout")
def logout() -> JSONResponse:
    response = JSONResponse({"message": "Logout successful"})
    response.delete_cookie(
        key="access_token",
        path="/",
        samesite="none",
        secure=settings.ENVIRONMENT == "production",
    )
    return response


@router.get("/me", response_model=user_schema.User)
def read_users_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/me", response_model=user_schema.User)
def update_profile(
    profile_in: user_schema.UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return auth_service.update_profile(db, current_user, profile_in)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
