import pytest

from lms.core.errors import ForbiddenError, NotFoundError
from lms.models.user.user_model import UserRole
from lms.services import discussion_service
from tests.utils import create_course, create_user, enroll


@pytest.fixture()
def people(db_session):
    instructor = create_user(db_session, name="Ines", email="ines@example.com", role=UserRole.INSTRUCTOR)
    learner = create_user(db_session, name="Leo", email="leo@example.com")
    classmate = create_user(db_session, name="Cleo", email="cleo@example.com")
    outsider = create_user(db_session, name="Olga", email="olga@example.com")
    course = create_course(db_session, instructor, lessons=1)
    enroll(db_session, learner, course)
    enroll(db_session, classmate, course)
    return instructor, learner, classmate, outsider, course


def test_threads_are_listed_newest_first(db_session, people):
    _, learner, classmate, _, course = people
    older = discussion_service.create_discussion(db_session, learner, course.id, "First", "Hello")
    newer = discussion_service.create_discussion(db_session, classmate, course.id, "Second", "Hi")

    threads = discussion_service.list_discussions(db_session, learner, course.id)
    assert [t.id for t in threads] == [newer.id, older.id]


def test_outsiders_cannot_read_or_post(db_session, people):
    _, learner, _, outsider, course = people
    thread = discussion_service.create_discussion(db_session, learner, course.id, "Q", "?")

    with pytest.raises(ForbiddenError):
        discussion_service.list_discussions(db_session, outsider, course.id)
    with pytest.raises(ForbiddenError):
        discussion_service.create_discussion(db_session, outsider, course.id, "Spam", "spam")
    with pytest.raises(ForbiddenError):
        discussion_service.get_discussion(db_session, outsider, thread.id)


def test_instructor_replies_are_flagged(db_session, people):
    instructor, learner, classmate, _, course = people
    thread = discussion_service.create_discussion(db_session, learner, course.id, "Q", "How?")

    from_classmate = discussion_service.add_reply(db_session, classmate, thread.id, "Like this")
    from_instructor = discussion_service.add_reply(db_session, instructor, thread.id, "Exactly")

    assert from_classmate.is_instructor is False
    assert from_instructor.is_instructor is True
    thread = discussion_service.get_discussion(db_session, learner, thread.id)
    assert [r.content for r in thread.replies] == ["Like this", "Exactly"]


def test_resolve_permissions(db_session, people):
    instructor, learner, classmate, _, course = people
    thread = discussion_service.create_discussion(db_session, learner, course.id, "Q", "?")

    with pytest.raises(ForbiddenError) as exc:
        discussion_service.resolve(db_session, classmate, thread.id)
    assert exc.value.code == "discussion_resolve_denied"

    assert discussion_service.resolve(db_session, instructor, thread.id).is_resolved is True


def test_upvote_toggles(db_session, people):
    _, learner, classmate, _, course = people
    thread = discussion_service.create_discussion(db_session, learner, course.id, "Q", "?")

    assert discussion_service.toggle_upvote(db_session, classmate, thread.id) == (True, 1)
    assert discussion_service.toggle_upvote(db_session, learner, thread.id) == (True, 2)
    assert discussion_service.toggle_upvote(db_session, classmate, thread.id) == (False, 1)


def test_unknown_discussion(db_session, people):
    _, learner, _, _, _ = people
    with pytest.raises(NotFoundError) as exc:
        discussion_service.get_discussion(db_session, learner, 404)
    assert exc.value.code == "discussion_not_found"


def test_announcements(db_session, people):
    instructor, learner, _, outsider, course = people

    with pytest.raises(ForbiddenError):
        discussion_service.create_announcement(db_session, learner, course.id, "Hi", "all")

    posted = discussion_service.create_announcement(db_session, instructor, course.id, "Welcome", "Start here")
    assert [a.id for a in discussion_service.list_announcements(db_session, learner, course.id)] == [posted.id]
    with pytest.raises(ForbiddenError):
        discussion_service.list_announcements(db_session, outsider, course.id)


def test_announcement_update_and_delete(db_session, people):
    instructor, learner, _, _, course = people
    admin = create_user(db_session, name="Ada", email="ada@example.com", role=UserRole.ADMIN)
    posted = discussion_service.create_announcement(db_session, instructor, course.id, "Welcome", "Start here")

    with pytest.raises(ForbiddenError) as exc:
        discussion_service.update_announcement(db_session, learner, posted.id, title="Hacked")
    assert exc.value.code == "announcement_denied"

    updated = discussion_service.update_announcement(db_session, instructor, posted.id, content="Start with lesson 1")
    assert updated.title == "Welcome"
    assert updated.content == "Start with lesson 1"

    with pytest.raises(ForbiddenError):
        discussion_service.delete_announcement(db_session, learner, posted.id)

    discussion_service.delete_announcement(db_session, admin, posted.id)
    assert discussion_service.list_announcements(db_session, learner, course.id) == []

    with pytest.raises(NotFoundError) as exc:
        discussion_service.delete_announcement(db_session, instructor, posted.id)
    assert exc.value.code == "announcement_not_found"
