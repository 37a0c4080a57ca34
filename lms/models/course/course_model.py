from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
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
    from ..user.user_model import User
    from .content_model import Assignment, Lesson, Quiz


class CourseCategory(str, enum.Enum):
    BUSINESS = "Business"
    TECHNOLOGY = "Technology"
    DESIGN = "Design"
    MARKETING = "Marketing"
    OTHER = "Other"


class CourseDifficulty(str, enum.Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class Course(Base):
    """Course definition: owns the outline (lessons, quizzes, assignments) and its enrollments."""

    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(120), unique=True, index=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[CourseCategory] = mapped_column(
        Enum(CourseCategory, name="course_category_enum", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
    )
    difficulty: Mapped[CourseDifficulty] = mapped_column(
        Enum(CourseDifficulty, name="course_difficulty_enum", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=CourseDifficulty.BEGINNER,
    )
    tags: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    price: Mapped[float] = mapped_column(Float, default=0.0)
    is_paid: Mapped[bool] = mapped_column(Boolean, default=False)
    is_published: Mapped[bool] = mapped_column(Boolean, default=False)
    average_rating: Mapped[float] = mapped_column(Float, default=0.0)
    instructor_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    instructor: Mapped["User"] = relationship(back_populates="taught_courses")
    lessons: Mapped[List["Lesson"]] = relationship(
        back_populates="course", cascade="all, delete-orphan", order_by="Lesson.order"
    )
    quizzes: Mapped[List["Quiz"]] = relationship(
        back_populates="course", cascade="all, delete-orphan", order_by="Quiz.order"
    )
    assignments: Mapped[List["Assignment"]] = relationship(
        back_populates="course", cascade="all, delete-orphan", order_by="Assignment.order"
    )
    enrollments: Mapped[List["Enrollment"]] = relationship(
        back_populates="course", cascade="all, delete-orphan"
    )
    ratings: Mapped[List["CourseRating"]] = relationship(
        back_populates="course", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Course(id={self.id}, slug='{self.slug}')>"


class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("course_id", "user_id", name="uq_enrollment_course_user"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    enrolled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    course: Mapped[Course] = relationship(back_populates="enrollments")
    user: Mapped["User"] = relationship(back_populates="enrollments")


class CourseRating(Base):
    __tablename__ = "course_ratings"
    __table_args__ = (UniqueConstraint("course_id", "user_id", name="uq_rating_course_user"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    review: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    course: Mapped[Course] = relationship(back_populates="ratings")
