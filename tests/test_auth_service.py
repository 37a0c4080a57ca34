from datetime import datetime, timedelta, timezone

import pytest

from lms.core.errors import AuthenticationError, DomainError, ForbiddenError
from lms.models.user.user_model import UserRole
from lms.schemas.user.user_schema import UserCreate, UserUpdate
from lms.services import auth_service

NOW = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture()
def account(db_session):
    return auth_service.register(
        db_session,
        UserCreate(name="Leo", email="Leo@Example.com", password="s3cret!"),
    )


def test_register_normalizes_email_and_hashes_password(account):
    assert account.email == "leo@example.com"
    assert account.role == UserRole.STUDENT
    assert account.hashed_password != "s3cret!"


def test_duplicate_email_is_rejected(db_session, account):
    with pytest.raises(DomainError) as exc:
        auth_service.register(db_session, UserCreate(name="Leo 2", email="leo@example.com", password="another"))
    assert exc.value.code == "email_already_registered"
    assert exc.value.status_code == 400


def test_successful_login_stamps_last_login(db_session, account):
    user = auth_service.authenticate(db_session, "leo@example.com", "s3cret!", now=NOW)
    assert user.id == account.id
    assert user.failed_login_attempts == 0
    assert user.last_login_at is not None


def test_wrong_password_and_unknown_email_look_the_same(db_session, account):
    with pytest.raises(AuthenticationError) as wrong:
        auth_service.authenticate(db_session, "leo@example.com", "nope", now=NOW)
    with pytest.raises(AuthenticationError) as unknown:
        auth_service.authenticate(db_session, "ghost@example.com", "nope", now=NOW)
    assert wrong.value.code == unknown.value.code == "invalid_credentials"
    assert wrong.value.status_code == 401


def test_lockout_after_repeated_failures(db_session, account):
    for _ in range(5):
        with pytest.raises(AuthenticationError):
            auth_service.authenticate(db_session, "leo@example.com", "nope", now=NOW)

    # Even the right password is refused while locked.
    with pytest.raises(ForbiddenError) as exc:
        auth_service.authenticate(db_session, "leo@example.com", "s3cret!", now=NOW + timedelta(minutes=5))
    assert exc.value.code == "account_locked"

    user = auth_service.authenticate(db_session, "leo@example.com", "s3cret!", now=NOW + timedelta(minutes=31))
    assert user.failed_login_attempts == 0
    assert user.locked_until is None


def test_inactive_account_is_refused(db_session, account):
    account.is_active = False
    db_session.commit()
    with pytest.raises(ForbiddenError) as exc:
        auth_service.authenticate(db_session, "leo@example.com", "s3cret!", now=NOW)
    assert exc.value.code == "inactive_user"


def test_admin_role_cannot_be_self_assigned():
    with pytest.raises(ValueError):
        UserCreate(name="Eve", email="eve@example.com", password="123456", role=UserRole.ADMIN)


def test_token_carries_user_id(account):
    from jose import jwt

    from lms.core import security

    token = auth_service.issue_token(account)
    payload = jwt.decode(token, security.SECRET_KEY, algorithms=[security.ALGORITHM])
    assert payload["sub"] == str(account.id)


def test_update_profile(db_session, account):
    updated = auth_service.update_profile(
        db_session, account, UserUpdate(name=" Leonard ", email="Leonard@Example.com", password="n3w-pass")
    )
    assert updated.name == "Leonard"
    assert updated.email == "leonard@example.com"

    user = auth_service.authenticate(db_session, "leonard@example.com", "n3w-pass", now=NOW)
    assert user.id == account.id


def test_update_profile_keeps_omitted_fields(db_session, account):
    hashed = account.hashed_password
    updated = auth_service.update_profile(db_session, account, UserUpdate(name="Leo B."))
    assert updated.email == "leo@example.com"
    assert updated.hashed_password == hashed


def test_update_profile_rejects_taken_email(db_session, account):
    auth_service.register(db_session, UserCreate(name="Mia", email="mia@example.com", password="secret1"))

    with pytest.raises(DomainError) as exc:
        auth_service.update_profile(db_session, account, UserUpdate(email="MIA@example.com"))
    assert exc.value.code == "email_already_registered"

    # Re-submitting one's own address is not a conflict.
    assert auth_service.update_profile(db_session, account, UserUpdate(email="leo@example.com")).id == account.id
