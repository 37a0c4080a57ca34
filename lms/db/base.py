"""Imports every SQLAlchemy model so ``Base.metadata`` knows all tables."""

from lms.db.base_class import Base

# Users
from lms.models.user.user_model import User, UserRole

# Course catalog
from lms.models.course.course_model import Course, CourseRating, Enrollment
from lms.models.course.content_model import Assignment, Lesson, Quiz

# Progress & certificates
from lms.models.progress.progress_model import (
    AssignmentProgress,
    LessonProgress,
    ProgressRecord,
    QuizProgress,
)
from lms.models.progress.certificate_model import Certificate

# Community
from lms.models.community.discussion_model import (
    Discussion,
    DiscussionReply,
    DiscussionUpvote,
)
from lms.models.community.announcement_model import Announcement

__all__ = (
    "Base",
    "User",
    "UserRole",
    "Course",
    "CourseRating",
    "Enrollment",
    "Lesson",
    "Quiz",
    "Assignment",
    "ProgressRecord",
    "LessonProgress",
    "QuizProgress",
    "AssignmentProgress",
    "Certificate",
    "Discussion",
    "DiscussionReply",
    "DiscussionUpvote",
    "Announcement",
)
