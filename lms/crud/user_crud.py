from typing import Optional

from sqlalchemy.orm import Session

from lms.core.security import get_password_hash
from lms.models.user.user_model import User
from lms.schemas.user.user_schema import UserCreate, UserUpdate


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """
    Return the user registered with ``email`` (case-insensitive), or None.
    """
    return db.query(User).filter(User.email == normalize_email(email)).first()


def create_user(db: Session, user: UserCreate) -> User:
    """
    Persist a new account with a bcrypt password hash.
    """
    db_user = User(
        name=user.name.strip(),
        email=normalize_email(user.email),
        hashed_password=get_password_hash(user.password),
        role=user.role,
        is_active=True,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def update_user(db: Session, db_user: User, user_in: UserUpdate) -> User:
    changes = user_in.model_dump(exclude_unset=True, exclude_none=True)
    if "name" in changes:
        db_user.name = changes["name"].strip()
    if "email" in changes:
        db_user.email = normalize_email(changes["email"])
    if "password" in changes:
        db_user.hashed_password = get_password_hash(changes["password"])
    db.commit()
    db.refresh(db_user)
    return db_user
