from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from lms.models.course.content_model import LessonContentType
from lms.models.course.course_model import CourseCategory, CourseDifficulty


# --- Outline items ---
class LessonCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    content: str = ""
    content_type: LessonContentType = LessonContentType.TEXT
    video_url: Optional[str] = None
    pdf_url: Optional[str] = None
    duration_minutes: int = Field(0, ge=0)
    order: Optional[int] = Field(None, ge=1)


class LessonOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    course_id: int
    title: str
    description: str
    content: str
    content_type: LessonContentType
    video_url: Optional[str]
    pdf_url: Optional[str]
    duration_minutes: int
    order: int


class QuizQuestion(BaseModel):
    question: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=2)
    correct_answer: int = Field(..., ge=0)
    explanation: Optional[str] = None

    @model_validator(mode="after")
    def _answer_points_to_an_option(self) -> "QuizQuestion":
        if self.correct_answer >= len(self.options):
            raise ValueError("correct_answer_out_of_range")
        return self


class QuizCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    questions: List[QuizQuestion] = Field(default_factory=list)
    passing_score: int = Field(70, ge=0, le=100)
    time_limit_minutes: int = Field(30, ge=1)
    max_attempts: int = Field(3, ge=1)
    order: Optional[int] = Field(None, ge=1)


class QuizUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    questions: Optional[List[QuizQuestion]] = None
    passing_score: Optional[int] = Field(None, ge=0, le=100)
    time_limit_minutes: Optional[int] = Field(None, ge=1)
    max_attempts: Optional[int] = Field(None, ge=1)


class QuizQuestionOut(BaseModel):
    question: str
    options: List[str]
    # Hidden from learners.
    correct_answer: Optional[int] = None
    explanation: Optional[str] = None


class QuizOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    course_id: int
    title: str
    description: str
    questions: List[QuizQuestionOut]
    passing_score: int
    time_limit_minutes: int
    max_attempts: int
    order: int


class QuizSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    passing_score: int
    time_limit_minutes: int
    order: int


class AssignmentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    due_date: Optional[datetime] = None
    max_score: int = Field(100, ge=1)
    order: Optional[int] = Field(None, ge=1)


class AssignmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    course_id: int
    title: str
    description: str
    due_date: Optional[datetime]
    max_score: int
    order: int


# --- Courses ---
class CourseBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    category: CourseCategory
    difficulty: CourseDifficulty = CourseDifficulty.BEGINNER
    tags: Optional[str] = None
    price: float = Field(0.0, ge=0)
    is_paid: bool = False


class CourseCreate(CourseBase):
    is_published: bool = False


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[CourseCategory] = None
    difficulty: Optional[CourseDifficulty] = None
    tags: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    is_paid: Optional[bool] = None
    is_published: Optional[bool] = None


class CourseSummary(CourseBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    is_published: bool
    average_rating: float
    instructor_id: int
    created_at: Optional[datetime] = None


class CourseOut(CourseSummary):
    lessons: List[LessonOut] = []
    quizzes: List[QuizSummary] = []
    assignments: List[AssignmentOut] = []


class RatingIn(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    review: Optional[str] = None


class EnrolledStudent(BaseModel):
    id: int
    name: str
    email: str
    enrolled_at: Optional[datetime]
    overall_progress_percent: int
