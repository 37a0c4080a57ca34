from datetime import datetime, timedelta, timezone

from lms.services.login_guard import LoginState, is_locked, register_login_attempt

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _fail(state: LoginState, now: datetime = NOW) -> LoginState:
    return register_login_attempt(state, False, now, max_attempts=5, lock_minutes=30)


def test_failures_below_threshold_do_not_lock():
    state = LoginState()
    for _ in range(4):
        state = _fail(state)
    assert state.failed_attempts == 4
    assert state.locked_until is None
    assert not is_locked(state, NOW)


def test_fifth_failure_locks_for_configured_minutes():
    state = LoginState(failed_attempts=4)
    state = _fail(state)
    assert state.failed_attempts == 5
    assert state.locked_until == NOW + timedelta(minutes=30)
    assert is_locked(state, NOW + timedelta(minutes=29))
    assert not is_locked(state, NOW + timedelta(minutes=30))


def test_success_resets_counter_and_lock():
    state = LoginState(failed_attempts=5, locked_until=NOW + timedelta(minutes=5))
    state = register_login_attempt(state, True, NOW, max_attempts=5, lock_minutes=30)
    assert state == LoginState(failed_attempts=0, locked_until=None, last_login_at=NOW)


def test_transition_does_not_mutate_input():
    original = LoginState(failed_attempts=1)
    _fail(original)
    assert original.failed_attempts == 1
