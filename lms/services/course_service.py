"""Course catalog: authoring, enrollment and ratings."""

from __future__ import annotations

import logging
import re
import unicodedata
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lms.core.errors import ConflictError, DomainError, ForbiddenError, NotFoundError
from lms.models.community.announcement_model import Announcement
from lms.models.community.discussion_model import Discussion
from lms.models.course.content_model import Assignment, Lesson, Quiz
from lms.models.course.course_model import Course, CourseCategory, CourseRating, Enrollment
from lms.models.progress.certificate_model import Certificate
from lms.models.progress.progress_model import ProgressRecord, QuizProgress
from lms.models.user.user_model import User, UserRole
from lms.schemas.course import course_schema
from lms.services.enrollment_gate import Relation, load_course, require
from lms.services.progress_service import ProgressService

logger = logging.getLogger(__name__)

_SLUG_STRIP = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    ascii_title = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    slug = _SLUG_STRIP.sub("-", ascii_title.lower()).strip("-")
    return slug or "course"


def _unique_slug(db: Session, title: str, exclude_id: Optional[int] = None) -> str:
    base = slugify(title)
    candidate = base
    suffix = 2
    while True:
        query = db.query(Course.id).filter(Course.slug == candidate)
        if exclude_id is not None:
            query = query.filter(Course.id != exclude_id)
        if query.first() is None:
            return candidate
        candidate = f"{base}-{suffix}"
        suffix += 1


def _next_order(items: list) -> int:
    return max((item.order for item in items), default=0) + 1


# ----------------------------------------------------------------------
# Catalog
# ----------------------------------------------------------------------
def list_published(
    db: Session,
    category: Optional[CourseCategory] = None,
    search: Optional[str] = None,
) -> List[Course]:
    query = db.query(Course).filter(Course.is_published.is_(True))
    if category is not None:
        query = query.filter(Course.category == category)
    if search:
        query = query.filter(func.lower(Course.title).contains(search.strip().lower()))
    return query.order_by(Course.created_at.desc(), Course.id.desc()).all()


def get_course(db: Session, course_id: int, viewer: Optional[User] = None) -> Course:
    """Published courses are public; drafts are visible to their owner and admins."""
    course = load_course(db, course_id)
    if not course.is_published:
        if viewer is None or not (viewer.id == course.instructor_id or viewer.role == UserRole.ADMIN):
            raise NotFoundError("course_not_found")
    return course


def create_course(db: Session, user: User, course_in: course_schema.CourseCreate) -> Course:
    if user.role not in (UserRole.INSTRUCTOR, UserRole.ADMIN):
        raise ForbiddenError("instructor_role_required")

    course = Course(
        **course_in.model_dump(),
        slug=_unique_slug(db, course_in.title),
        instructor_id=user.id,
        average_rating=0.0,
    )
    db.add(course)
    db.commit()
    db.refresh(course)
    logger.info("Course %s ('%s') created by user %s", course.id, course.slug, user.id)
    return course


def update_course(db: Session, user: User, course_id: int, course_in: course_schema.CourseUpdate) -> Course:
    course = load_course(db, course_id)
    require(db, user, course, Relation.ADMIN_OR_INSTRUCTOR, "course_edit_denied")

    changes = course_in.model_dump(exclude_unset=True)
    if "title" in changes and changes["title"] != course.title:
        course.slug = _unique_slug(db, changes["title"], exclude_id=course.id)
    for field, value in changes.items():
        setattr(course, field, value)
    db.commit()
    db.refresh(course)
    return course


def delete_course(db: Session, user: User, course_id: int) -> None:
    """Delete a course and everything hanging off it.

    Courses that already issued certificates are kept so the certificates
    stay verifiable.
    """
    course = load_course(db, course_id)
    require(db, user, course, Relation.ADMIN_OR_INSTRUCTOR, "course_edit_denied")

    issued = db.query(Certificate.id).filter(Certificate.course_id == course.id).first()
    if issued is not None:
        raise ConflictError("course_has_certificates")

    for model in (ProgressRecord, Discussion, Announcement):
        for row in db.query(model).filter(model.course_id == course.id).all():
            db.delete(row)
    db.delete(course)
    db.commit()
    logger.info("Course %s deleted by user %s", course_id, user.id)


# ----------------------------------------------------------------------
# Outline authoring
# ----------------------------------------------------------------------
def add_lesson(db: Session, user: User, course_id: int, lesson_in: course_schema.LessonCreate) -> Lesson:
    course = load_course(db, course_id)
    require(db, user, course, Relation.ADMIN_OR_INSTRUCTOR, "course_edit_denied")
    data = lesson_in.model_dump()
    data["order"] = data["order"] or _next_order(course.lessons)
    lesson = Lesson(**data)
    course.lessons.append(lesson)
    db.commit()
    ProgressService(db, user).reconcile_course(course.id)
    db.refresh(lesson)
    return lesson


def add_quiz(db: Session, user: User, course_id: int, quiz_in: course_schema.QuizCreate) -> Quiz:
    course = load_course(db, course_id)
    require(db, user, course, Relation.ADMIN_OR_INSTRUCTOR, "course_edit_denied")
    data = quiz_in.model_dump()
    data["order"] = data["order"] or _next_order(course.quizzes)
    quiz = Quiz(**data)
    course.quizzes.append(quiz)
    db.commit()
    ProgressService(db, user).reconcile_course(course.id)
    db.refresh(quiz)
    return quiz


def add_assignment(
    db: Session,
    user: User,
    course_id: int,
    assignment_in: course_schema.AssignmentCreate,
) -> Assignment:
    course = load_course(db, course_id)
    require(db, user, course, Relation.ADMIN_OR_INSTRUCTOR, "course_edit_denied")
    data = assignment_in.model_dump()
    data["order"] = data["order"] or _next_order(course.assignments)
    assignment = Assignment(**data)
    course.assignments.append(assignment)
    db.commit()
    ProgressService(db, user).reconcile_course(course.id)
    db.refresh(assignment)
    return assignment


def get_quiz(db: Session, quiz_id: int) -> Quiz:
    quiz = db.get(Quiz, quiz_id)
    if quiz is None:
        raise NotFoundError("quiz_not_found")
    return quiz


def update_quiz(db: Session, user: User, quiz_id: int, quiz_in: course_schema.QuizUpdate) -> Quiz:
    quiz = get_quiz(db, quiz_id)
    require(db, user, quiz.course, Relation.ADMIN_OR_INSTRUCTOR, "course_edit_denied")
    for field, value in quiz_in.model_dump(exclude_unset=True).items():
        setattr(quiz, field, value)
    db.commit()
    db.refresh(quiz)
    return quiz


def delete_quiz(db: Session, user: User, quiz_id: int) -> None:
    quiz = get_quiz(db, quiz_id)
    course = quiz.course
    require(db, user, course, Relation.ADMIN_OR_INSTRUCTOR, "course_edit_denied")
    # Learner states go with the quiz; the percentages are recomputed below.
    for state in db.query(QuizProgress).filter(QuizProgress.quiz_id == quiz.id).all():
        db.delete(state)
    course.quizzes.remove(quiz)
    db.commit()
    ProgressService(db, user).reconcile_course(course.id)
    logger.info("Quiz %s removed from course %s by user %s", quiz_id, course.id, user.id)


# ----------------------------------------------------------------------
# Enrollment and ratings
# ----------------------------------------------------------------------
def enroll(db: Session, user: User, course_id: int) -> ProgressRecord:
    """Enroll ``user`` and seed their progress record."""
    course = load_course(db, course_id)
    if not course.is_published:
        raise NotFoundError("course_not_found")
    if user.role != UserRole.STUDENT:
        raise ForbiddenError("student_role_required")

    db.add(Enrollment(course_id=course.id, user_id=user.id))
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DomainError("already_enrolled") from exc
    logger.info("User %s enrolled in course %s", user.id, course.id)

    return ProgressService(db, user).get_or_create(course.id)


def rate_course(db: Session, user: User, course_id: int, rating_in: course_schema.RatingIn) -> Course:
    course = load_course(db, course_id)
    require(db, user, course, Relation.ENROLLED, "enrollment_required")

    existing = (
        db.query(CourseRating)
        .filter(CourseRating.course_id == course.id, CourseRating.user_id == user.id)
        .first()
    )
    if existing is None:
        db.add(CourseRating(course_id=course.id, user_id=user.id, rating=rating_in.rating, review=rating_in.review))
    else:
        existing.rating = rating_in.rating
        existing.review = rating_in.review
    db.flush()

    average = db.query(func.avg(CourseRating.rating)).filter(CourseRating.course_id == course.id).scalar()
    course.average_rating = round(float(average or 0.0), 1)
    db.commit()
    db.refresh(course)
    return course


def list_students(db: Session, user: User, course_id: int) -> List[course_schema.EnrolledStudent]:
    course = load_course(db, course_id)
    require(db, user, course, Relation.ADMIN_OR_INSTRUCTOR, "course_edit_denied")

    rows = (
        db.query(User, Enrollment, ProgressRecord)
        .join(Enrollment, Enrollment.user_id == User.id)
        .outerjoin(
            ProgressRecord,
            (ProgressRecord.user_id == User.id) & (ProgressRecord.course_id == course.id),
        )
        .filter(Enrollment.course_id == course.id)
        .order_by(Enrollment.enrolled_at.asc(), User.id.asc())
        .all()
    )
    return [
        course_schema.EnrolledStudent(
            id=student.id,
            name=student.name,
            email=student.email,
            enrolled_at=enrollment.enrolled_at,
            overall_progress_percent=record.overall_progress_percent if record is not None else 0,
        )
        for student, enrollment, record in rows
    ]
