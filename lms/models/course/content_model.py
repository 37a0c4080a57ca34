import enum
from datetime import datetime
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from sqlalchemy import Integer, String, Text, ForeignKey, JSON, DateTime, Enum as EnumSQL
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lms.db.base_class import Base

if TYPE_CHECKING:
    from .course_model import Course


class LessonContentType(str, enum.Enum):
    VIDEO = "video"
    PDF = "pdf"
    TEXT = "text"


class Lesson(Base):
    __tablename__ = "lessons"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    content_type: Mapped[LessonContentType] = mapped_column(
        EnumSQL(LessonContentType, name="lesson_content_type_enum"), nullable=False, default=LessonContentType.TEXT
    )
    video_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    pdf_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, default=0)
    order: Mapped[int] = mapped_column(Integer, nullable=False)

    course: Mapped["Course"] = relationship(back_populates="lessons")

    def __repr__(self):
        return f"<Lesson(id={self.id}, title='{self.title}')>"


class Quiz(Base):
    """Graded quiz attached to a course.

    ``questions`` is a JSON list of ``{"question", "options", "correct_answer",
    "explanation"}`` dictionaries; ``correct_answer`` is the index of the right
    option.
    """

    __tablename__ = "quizzes"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    questions: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    passing_score: Mapped[int] = mapped_column(Integer, nullable=False, default=70)
    time_limit_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    max_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    order: Mapped[int] = mapped_column(Integer, nullable=False)

    course: Mapped["Course"] = relationship(back_populates="quizzes")

    def __repr__(self):
        return f"<Quiz(id={self.id}, title='{self.title}', passing_score={self.passing_score})>"


class Assignment(Base):
    __tablename__ = "assignments"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    max_score: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    order: Mapped[int] = mapped_column(Integer, nullable=False)

    course: Mapped["Course"] = relationship(back_populates="assignments")

    def __repr__(self):
        return f"<Assignment(id={self.id}, title='{self.title}')>"
