from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lms.db.base_class import Base

if TYPE_CHECKING:
    from ..course.course_model import Course
    from ..course.content_model import Assignment, Lesson, Quiz
    from ..user.user_model import User


class ProgressRecord(Base):
    """Per (learner, course) completion aggregate.

    ``version_id`` is SQLAlchemy's optimistic-concurrency counter: every flush
    that updates the row checks and bumps it, so two sessions mutating the
    same record cannot both commit.
    """

    __tablename__ = "progress_records"
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_progress_user_course"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), index=True, nullable=False)
    overall_progress_percent: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_accessed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    user: Mapped["User"] = relationship(back_populates="progress_records")
    course: Mapped["Course"] = relationship()
    lesson_states: Mapped[List["LessonProgress"]] = relationship(
        back_populates="record", cascade="all, delete-orphan", order_by="LessonProgress.lesson_id"
    )
    quiz_states: Mapped[List["QuizProgress"]] = relationship(
        back_populates="record", cascade="all, delete-orphan", order_by="QuizProgress.quiz_id"
    )
    assignment_states: Mapped[List["AssignmentProgress"]] = relationship(
        back_populates="record", cascade="all, delete-orphan", order_by="AssignmentProgress.assignment_id"
    )

    __mapper_args__ = {"version_id_col": version_id}

    def lesson_state(self, lesson_id: int) -> Optional["LessonProgress"]:
        return next((s for s in self.lesson_states if s.lesson_id == lesson_id), None)

    def quiz_state(self, quiz_id: int) -> Optional["QuizProgress"]:
        return next((s for s in self.quiz_states if s.quiz_id == quiz_id), None)

    def assignment_state(self, assignment_id: int) -> Optional["AssignmentProgress"]:
        return next((s for s in self.assignment_states if s.assignment_id == assignment_id), None)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return (
            f"<ProgressRecord(user_id={self.user_id}, course_id={self.course_id}, "
            f"overall={self.overall_progress_percent})>"
        )


class LessonProgress(Base):
    __tablename__ = "lesson_progress"
    __table_args__ = (UniqueConstraint("progress_id", "lesson_id", name="uq_lesson_progress"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    progress_id: Mapped[int] = mapped_column(ForeignKey("progress_records.id"), index=True)
    lesson_id: Mapped[int] = mapped_column(ForeignKey("lessons.id"), index=True)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    time_spent_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    record: Mapped[ProgressRecord] = relationship(back_populates="lesson_states")
    lesson: Mapped["Lesson"] = relationship()


class QuizProgress(Base):
    __tablename__ = "quiz_progress"
    __table_args__ = (UniqueConstraint("progress_id", "quiz_id", name="uq_quiz_progress"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    progress_id: Mapped[int] = mapped_column(ForeignKey("progress_records.id"), index=True)
    quiz_id: Mapped[int] = mapped_column(ForeignKey("quizzes.id"), index=True)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    best_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_attempt_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    record: Mapped[ProgressRecord] = relationship(back_populates="quiz_states")
    quiz: Mapped["Quiz"] = relationship()


class AssignmentProgress(Base):
    __tablename__ = "assignment_progress"
    __table_args__ = (UniqueConstraint("progress_id", "assignment_id", name="uq_assignment_progress"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    progress_id: Mapped[int] = mapped_column(ForeignKey("progress_records.id"), index=True)
    assignment_id: Mapped[int] = mapped_column(ForeignKey("assignments.id"), index=True)
    submitted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    submission_ref: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    grade: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    graded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    record: Mapped[ProgressRecord] = relationship(back_populates="assignment_states")
    assignment: Mapped["Assignment"] = relationship()
