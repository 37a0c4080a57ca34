"""Single place deciding who may act on a course."""

from __future__ import annotations

import enum
import logging

from sqlalchemy.orm import Session

from lms.core.errors import ForbiddenError, NotFoundError
from lms.models.course.course_model import Course, Enrollment
from lms.models.user.user_model import User, UserRole

logger = logging.getLogger(__name__)


class Relation(str, enum.Enum):
    ENROLLED = "enrolled"
    INSTRUCTOR = "instructor"
    ADMIN_OR_INSTRUCTOR = "admin-or-instructor"
    # Any of the above; used by discussion boards and announcements.
    PARTICIPANT = "participant"


def is_enrolled(db: Session, user_id: int, course_id: int) -> bool:
    return (
        db.query(Enrollment.id)
        .filter(Enrollment.course_id == course_id, Enrollment.user_id == user_id)
        .first()
        is not None
    )


def is_authorized(db: Session, user: User, course: Course, relation: Relation) -> bool:
    is_instructor = course.instructor_id == user.id
    if relation is Relation.INSTRUCTOR:
        return is_instructor
    if relation is Relation.ADMIN_OR_INSTRUCTOR:
        return is_instructor or user.role == UserRole.ADMIN
    if relation is Relation.ENROLLED:
        return is_enrolled(db, user.id, course.id)
    if relation is Relation.PARTICIPANT:
        return (
            is_instructor
            or user.role == UserRole.ADMIN
            or is_enrolled(db, user.id, course.id)
        )
    raise ValueError(f"Unknown relation: {relation!r}")


def require(
    db: Session,
    user: User,
    course: Course,
    relation: Relation,
    code: str = "forbidden",
) -> None:
    if not is_authorized(db, user, course, relation):
        logger.info(
            "Access denied: user %s is not %s for course %s", user.id, relation.value, course.id
        )
        raise ForbiddenError(code)


def load_course(db: Session, course_id: int) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise NotFoundError("course_not_found")
    return course
