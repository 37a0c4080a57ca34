"""Failed-login lockout as a pure state transition."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional


@dataclass(frozen=True, slots=True)
class LoginState:
    failed_attempts: int = 0
    locked_until: Optional[datetime] = None
    last_login_at: Optional[datetime] = None


def is_locked(state: LoginState, now: datetime) -> bool:
    return state.locked_until is not None and state.locked_until > now


def register_login_attempt(
    state: LoginState,
    success: bool,
    now: datetime,
    *,
    max_attempts: int,
    lock_minutes: int,
) -> LoginState:
    """Return the state after one login attempt.

    A success clears the counter and any lock. A failure increments the
    counter and, from ``max_attempts`` on, locks the account for
    ``lock_minutes`` starting at ``now``.
    """

    if success:
        return LoginState(failed_attempts=0, locked_until=None, last_login_at=now)

    failed = state.failed_attempts + 1
    locked_until = state.locked_until
    if failed >= max_attempts:
        locked_until = now + timedelta(minutes=lock_minutes)
    return replace(state, failed_attempts=failed, locked_until=locked_until)
