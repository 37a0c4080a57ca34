import pytest

from lms.core.errors import ForbiddenError, NotFoundError
from lms.models.user.user_model import UserRole
from lms.services.enrollment_gate import Relation, is_authorized, load_course, require
from tests.utils import create_course, create_user, enroll


@pytest.fixture()
def setup(db_session):
    instructor = create_user(db_session, name="Ines", email="ines@example.com", role=UserRole.INSTRUCTOR)
    admin = create_user(db_session, name="Ada", email="ada@example.com", role=UserRole.ADMIN)
    learner = create_user(db_session, name="Leo", email="leo@example.com")
    outsider = create_user(db_session, name="Olga", email="olga@example.com")
    course = create_course(db_session, instructor, lessons=1)
    enroll(db_session, learner, course)
    return instructor, admin, learner, outsider, course


def test_enrolled_relation(db_session, setup):
    instructor, admin, learner, outsider, course = setup
    assert is_authorized(db_session, learner, course, Relation.ENROLLED)
    assert not is_authorized(db_session, outsider, course, Relation.ENROLLED)
    # Teaching a course is not the same as being enrolled in it.
    assert not is_authorized(db_session, instructor, course, Relation.ENROLLED)


def test_instructor_relations(db_session, setup):
    instructor, admin, learner, outsider, course = setup
    assert is_authorized(db_session, instructor, course, Relation.INSTRUCTOR)
    assert not is_authorized(db_session, admin, course, Relation.INSTRUCTOR)
    assert is_authorized(db_session, admin, course, Relation.ADMIN_OR_INSTRUCTOR)
    assert not is_authorized(db_session, learner, course, Relation.ADMIN_OR_INSTRUCTOR)


def test_participant_relation(db_session, setup):
    instructor, admin, learner, outsider, course = setup
    for user in (instructor, admin, learner):
        assert is_authorized(db_session, user, course, Relation.PARTICIPANT)
    assert not is_authorized(db_session, outsider, course, Relation.PARTICIPANT)


def test_require_raises_forbidden_with_code(db_session, setup):
    _, _, _, outsider, course = setup
    with pytest.raises(ForbiddenError) as exc:
        require(db_session, outsider, course, Relation.ENROLLED, "not_enrolled")
    assert exc.value.code == "not_enrolled"
    assert exc.value.status_code == 403


def test_load_course_unknown_id(db_session):
    with pytest.raises(NotFoundError) as exc:
        load_course(db_session, 999)
    assert exc.value.code == "course_not_found"
    assert exc.value.status_code == 404
