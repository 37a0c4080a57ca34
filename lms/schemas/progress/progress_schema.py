from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LessonProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    lesson_id: int
    completed: bool
    completed_at: Optional[datetime]
    time_spent_seconds: int


class QuizProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    quiz_id: int
    completed: bool
    best_score: float
    attempts: int
    last_attempt_at: Optional[datetime]


class AssignmentProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    assignment_id: int
    submitted: bool
    submission_ref: Optional[str]
    grade: Optional[float]
    feedback: Optional[str]
    submitted_at: Optional[datetime]
    graded_at: Optional[datetime]


class ProgressRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    course_id: int
    overall_progress_percent: int
    last_accessed_at: Optional[datetime]
    lesson_states: List[LessonProgressOut]
    quiz_states: List[QuizProgressOut]
    assignment_states: List[AssignmentProgressOut]


class LessonCompleteIn(BaseModel):
    completed: bool = True
    time_spent_seconds: int = Field(0, ge=0)


class QuizAttemptIn(BaseModel):
    score: float = Field(..., ge=0, le=100)


class QuizSubmissionIn(BaseModel):
    # Question index (JSON object keys are strings) -> selected option index.
    answers: Dict[str, int]


class QuizResultOut(BaseModel):
    correct_count: int
    total_questions: int
    percent: float
    passed: bool
    progress: ProgressRecordOut


class AssignmentSubmitIn(BaseModel):
    submission_ref: str = Field(..., min_length=1)


class AssignmentGradeIn(BaseModel):
    learner_id: int
    grade: float = Field(..., ge=0)
    feedback: Optional[str] = None


class CertificateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    certificate_id: str
    user_id: int
    course_id: int
    issue_date: datetime
    completion_date: datetime


class CertificateVerificationOut(BaseModel):
    valid: bool = True
    certificate_id: str
    learner_name: str
    course_title: str
    issue_date: datetime
    completion_date: datetime
