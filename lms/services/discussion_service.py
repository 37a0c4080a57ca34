import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lms.core.errors import ForbiddenError, NotFoundError
from lms.models.community.announcement_model import Announcement
from lms.models.community.discussion_model import Discussion, DiscussionReply, DiscussionUpvote
from lms.models.user.user_model import User, UserRole
from lms.services.enrollment_gate import Relation, load_course, require

logger = logging.getLogger(__name__)


def _load_discussion(db: Session, user: User, discussion_id: int) -> Discussion:
    discussion = db.get(Discussion, discussion_id)
    if discussion is None:
        raise NotFoundError("discussion_not_found")
    course = load_course(db, discussion.course_id)
    require(db, user, course, Relation.PARTICIPANT, "course_access_denied")
    return discussion


def list_discussions(db: Session, user: User, course_id: int) -> List[Discussion]:
    course = load_course(db, course_id)
    require(db, user, course, Relation.PARTICIPANT, "course_access_denied")
    return (
        db.query(Discussion)
        .filter(Discussion.course_id == course.id)
        .order_by(Discussion.created_at.desc(), Discussion.id.desc())
        .all()
    )


def create_discussion(db: Session, user: User, course_id: int, title: str, content: str) -> Discussion:
    course = load_course(db, course_id)
    require(db, user, course, Relation.PARTICIPANT, "course_access_denied")
    discussion = Discussion(course_id=course.id, author_id=user.id, title=title, content=content)
    db.add(discussion)
    db.commit()
    db.refresh(discussion)
    return discussion


def get_discussion(db: Session, user: User, discussion_id: int) -> Discussion:
    return _load_discussion(db, user, discussion_id)


def add_reply(db: Session, user: User, discussion_id: int, content: str) -> DiscussionReply:
    discussion = _load_discussion(db, user, discussion_id)
    course = load_course(db, discussion.course_id)
    reply = DiscussionReply(
        author_id=user.id,
        content=content,
        is_instructor=course.instructor_id == user.id,
    )
    discussion.replies.append(reply)
    db.commit()
    db.refresh(reply)
    return reply


def resolve(db: Session, user: User, discussion_id: int) -> Discussion:
    """Mark a thread resolved. Allowed for its author, the course instructor and admins."""
    discussion = _load_discussion(db, user, discussion_id)
    course = load_course(db, discussion.course_id)
    if user.id not in (discussion.author_id, course.instructor_id) and user.role != UserRole.ADMIN:
        raise ForbiddenError("discussion_resolve_denied")
    discussion.is_resolved = True
    db.commit()
    db.refresh(discussion)
    return discussion


def toggle_upvote(db: Session, user: User, discussion_id: int) -> Tuple[bool, int]:
    """Add or remove ``user``'s upvote. Returns ``(upvoted, upvote_count)``."""
    discussion = _load_discussion(db, user, discussion_id)
    existing = (
        db.query(DiscussionUpvote)
        .filter(DiscussionUpvote.discussion_id == discussion.id, DiscussionUpvote.user_id == user.id)
        .first()
    )
    if existing is not None:
        discussion.upvotes.remove(existing)
        db.commit()
        upvoted = False
    else:
        discussion.upvotes.append(DiscussionUpvote(user_id=user.id))
        try:
            db.commit()
        except IntegrityError:
            # Double click: the other request already stored the vote.
            db.rollback()
        upvoted = True

    db.refresh(discussion)
    return upvoted, discussion.upvote_count


def list_announcements(db: Session, user: User, course_id: int) -> List[Announcement]:
    course = load_course(db, course_id)
    require(db, user, course, Relation.PARTICIPANT, "course_access_denied")
    return (
        db.query(Announcement)
        .filter(Announcement.course_id == course.id)
        .order_by(Announcement.created_at.desc(), Announcement.id.desc())
        .all()
    )


def create_announcement(db: Session, user: User, course_id: int, title: str, content: str) -> Announcement:
    course = load_course(db, course_id)
    require(db, user, course, Relation.ADMIN_OR_INSTRUCTOR, "announcement_denied")
    announcement = Announcement(course_id=course.id, author_id=user.id, title=title, content=content)
    db.add(announcement)
    db.commit()
    db.refresh(announcement)
    logger.info("Announcement %s posted to course %s", announcement.id, course.id)
    return announcement


def _load_announcement(db: Session, user: User, announcement_id: int) -> Announcement:
    announcement = db.get(Announcement, announcement_id)
    if announcement is None:
        raise NotFoundError("announcement_not_found")
    course = load_course(db, announcement.course_id)
    require(db, user, course, Relation.ADMIN_OR_INSTRUCTOR, "announcement_denied")
    return announcement


def update_announcement(
    db: Session,
    user: User,
    announcement_id: int,
    title: Optional[str] = None,
    content: Optional[str] = None,
) -> Announcement:
    announcement = _load_announcement(db, user, announcement_id)
    if title is not None:
        announcement.title = title
    if content is not None:
        announcement.content = content
    db.commit()
    db.refresh(announcement)
    return announcement


def delete_announcement(db: Session, user: User, announcement_id: int) -> None:
    announcement = _load_announcement(db, user, announcement_id)
    course_id = announcement.course_id
    db.delete(announcement)
    db.commit()
    logger.info("Announcement %s removed from course %s by user %s", announcement_id, course_id, user.id)
