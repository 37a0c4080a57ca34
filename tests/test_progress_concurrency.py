"""Races between two sessions writing the same progress record."""

import pytest
from sqlalchemy.orm import sessionmaker

from lms.core.errors import ConflictError
from lms.models.progress.certificate_model import Certificate
from lms.models.progress.progress_model import ProgressRecord
from lms.models.user.user_model import User, UserRole
from lms.services import progress_service
from lms.services.progress_service import ProgressService
from tests.utils import create_course, create_user, enroll


@pytest.fixture()
def session_factory(file_engine):
    return sessionmaker(bind=file_engine, future=True)


@pytest.fixture()
def seeded(session_factory):
    """One learner enrolled in a course whose only item is a quiz."""

    with session_factory() as db:
        instructor = create_user(db, name="Ines", email="ines@example.com", role=UserRole.INSTRUCTOR)
        learner = create_user(db, name="Leo", email="leo@example.com")
        course = create_course(db, instructor, quizzes=1, passing_score=70)
        enroll(db, learner, course)
        ProgressService(db, learner).get_or_create(course.id)
        return learner.id, course.id, course.quizzes[0].id


def _service(db, learner_id):
    return ProgressService(db, db.get(User, learner_id))


def test_concurrent_quiz_attempts_keep_both_and_issue_one_certificate(session_factory, seeded, monkeypatch):
    learner_id, course_id, quiz_id = seeded
    first_db, second_db = session_factory(), session_factory()
    try:
        first = _service(first_db, learner_id)
        second = _service(second_db, learner_id)

        original_load = first._load_record
        interleaved = []

        def load_then_let_other_request_commit(course, learner, create):
            loaded = original_load(course, learner, create)
            if not interleaved:
                interleaved.append(True)
                second.record_quiz_attempt(course_id, quiz_id, 80)
            return loaded

        monkeypatch.setattr(first, "_load_record", load_then_let_other_request_commit)
        record = first.record_quiz_attempt(course_id, quiz_id, 90)

        state = record.quiz_state(quiz_id)
        assert state.attempts == 2
        assert state.best_score == 90
        assert state.completed is True
        assert record.overall_progress_percent == 100
    finally:
        first_db.close()
        second_db.close()

    with session_factory() as db:
        assert db.query(Certificate).filter(Certificate.user_id == learner_id).count() == 1
        assert db.query(ProgressRecord).count() == 1


def test_conflict_surfaces_after_retries_are_exhausted(session_factory, seeded, monkeypatch):
    learner_id, course_id, quiz_id = seeded
    monkeypatch.setattr(progress_service.settings, "PROGRESS_UPDATE_MAX_RETRIES", 2)

    first_db, second_db = session_factory(), session_factory()
    try:
        first = _service(first_db, learner_id)
        second = _service(second_db, learner_id)
        original_load = first._load_record

        def always_lose_the_race(course, learner, create):
            loaded = original_load(course, learner, create)
            second.record_quiz_attempt(course_id, quiz_id, 10)
            return loaded

        monkeypatch.setattr(first, "_load_record", always_lose_the_race)
        with pytest.raises(ConflictError) as exc:
            first.record_quiz_attempt(course_id, quiz_id, 10)
        assert exc.value.code == "progress_update_conflict"
        assert exc.value.status_code == 409
    finally:
        first_db.close()
        second_db.close()

    with session_factory() as db:
        record = db.query(ProgressRecord).one()
        # Only the two winning writes landed.
        assert record.quiz_state(quiz_id).attempts == 2


def test_concurrent_first_access_creates_one_record(session_factory, monkeypatch):
    with session_factory() as db:
        instructor = create_user(db, name="Ines", email="ines@example.com", role=UserRole.INSTRUCTOR)
        learner = create_user(db, name="Leo", email="leo@example.com")
        course = create_course(db, instructor, lessons=2)
        enroll(db, learner, course)
        learner_id, course_id = learner.id, course.id

    first_db, second_db = session_factory(), session_factory()
    try:
        first = _service(first_db, learner_id)
        second = _service(second_db, learner_id)
        original_find = first._find_record
        calls = []

        def miss_once_while_other_request_creates(learner, course):
            if not calls:
                calls.append(True)
                second.get_or_create(course_id)
                return None
            return original_find(learner, course)

        monkeypatch.setattr(first, "_find_record", miss_once_while_other_request_creates)
        record = first.get_or_create(course_id)
        assert len(record.lesson_states) == 2
    finally:
        first_db.close()
        second_db.close()

    with session_factory() as db:
        assert db.query(ProgressRecord).count() == 1
