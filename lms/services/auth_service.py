import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from lms.core import security
from lms.core.config import settings
from lms.core.errors import AuthenticationError, DomainError, ForbiddenError
from lms.crud import user_crud
from lms.models.user.user_model import User
from lms.schemas.user.user_schema import UserCreate, UserUpdate
from lms.services.login_guard import LoginState, is_locked, register_login_attempt

logger = logging.getLogger(__name__)


def _as_aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _login_state(user: User) -> LoginState:
    return LoginState(
        failed_attempts=user.failed_login_attempts or 0,
        locked_until=_as_aware(user.locked_until),
        last_login_at=_as_aware(user.last_login_at),
    )


def _store_login_state(db: Session, user: User, state: LoginState) -> None:
    user.failed_login_attempts = state.failed_attempts
    user.locked_until = state.locked_until
    user.last_login_at = state.last_login_at
    db.commit()


def register(db: Session, user_in: UserCreate) -> User:
    if user_crud.get_user_by_email(db, email=user_in.email):
        raise DomainError("email_already_registered")
    user = user_crud.create_user(db=db, user=user_in)
    logger.info("User %s registered as %s", user.id, user.role.value)
    return user


def update_profile(db: Session, user: User, profile_in: UserUpdate) -> User:
    if profile_in.email is not None:
        owner = user_crud.get_user_by_email(db, email=profile_in.email)
        if owner is not None and owner.id != user.id:
            raise DomainError("email_already_registered")
    user = user_crud.update_user(db, user, profile_in)
    logger.info("User %s updated their profile", user.id)
    return user


def authenticate(db: Session, email: str, password: str, now: Optional[datetime] = None) -> User:
    """Check credentials and apply the failed-login lockout.

    Unknown email and wrong password are indistinguishable to the caller.
    Locked and deactivated accounts are rejected before the password is
    checked, so attempts against them do not extend the lock.
    """

    now = now or datetime.now(timezone.utc)
    user = user_crud.get_user_by_email(db, email=email)
    if user is None:
        raise AuthenticationError()

    state = _login_state(user)
    if is_locked(state, now):
        logger.warning("Login refused for locked account %s", user.id)
        raise ForbiddenError("account_locked")
    if not user.is_active:
        raise ForbiddenError("inactive_user")

    success = security.verify_password(password, user.hashed_password)
    new_state = register_login_attempt(
        state,
        success,
        now,
        max_attempts=settings.LOGIN_MAX_ATTEMPTS,
        lock_minutes=settings.LOGIN_LOCK_MINUTES,
    )
    _store_login_state(db, user, new_state)

    if not success:
        if is_locked(new_state, now):
            logger.warning(
                "Account %s locked until %s after %s failed logins",
                user.id,
                new_state.locked_until,
                new_state.failed_attempts,
            )
        raise AuthenticationError()
    return user


def issue_token(user: User) -> str:
    return security.create_access_token(subject=str(user.id))
