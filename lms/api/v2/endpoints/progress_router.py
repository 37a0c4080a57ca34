from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from lms.api.v2.dependencies import get_current_user, get_db
from lms.core.errors import DomainError
from lms.models.user.user_model import User
from lms.schemas.progress import progress_schema
from lms.services.progress_service import ProgressService

router = APIRouter()


@router.get("/courses/{course_id}", response_model=progress_schema.ProgressRecordOut)
def read_course_progress(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return ProgressService(db=db, user=current_user).get_or_create(course_id)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/courses/{course_id}/lessons/{lesson_id}", response_model=progress_schema.LessonProgressOut)
def read_lesson_progress(
    course_id: int,
    lesson_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return ProgressService(db=db, user=current_user).get_lesson_progress(course_id, lesson_id)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.put("/courses/{course_id}/lessons/{lesson_id}", response_model=progress_schema.ProgressRecordOut)
def update_lesson_progress(
    course_id: int,
    lesson_id: int,
    payload: progress_schema.LessonCompleteIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = ProgressService(db=db, user=current_user)
    try:
        return service.mark_lesson_complete(
            course_id,
            lesson_id,
            payload.time_spent_seconds,
            completed=payload.completed,
        )
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.post(
    "/courses/{course_id}/quizzes/{quiz_id}/attempts",
    response_model=progress_schema.ProgressRecordOut,
)
def record_quiz_attempt(
    course_id: int,
    quiz_id: int,
    payload: progress_schema.QuizAttemptIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return ProgressService(db=db, user=current_user).record_quiz_attempt(course_id, quiz_id, payload.score)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.post(
    "/courses/{course_id}/assignments/{assignment_id}/submission",
    response_model=progress_schema.ProgressRecordOut,
)
def submit_assignment(
    course_id: int,
    assignment_id: int,
    payload: progress_schema.AssignmentSubmitIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = ProgressService(db=db, user=current_user)
    try:
        return service.record_assignment_submission(course_id, assignment_id, payload.submission_ref)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.put(
    "/courses/{course_id}/assignments/{assignment_id}/grade",
    response_model=progress_schema.ProgressRecordOut,
)
def grade_assignment(
    course_id: int,
    assignment_id: int,
    payload: progress_schema.AssignmentGradeIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = ProgressService(db=db, user=current_user)
    try:
        return service.record_assignment_grade(
            course_id,
            payload.learner_id,
            assignment_id,
            payload.grade,
            payload.feedback,
        )
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/courses/{course_id}/learners", response_model=List[progress_schema.ProgressRecordOut])
def list_learner_progress(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return ProgressService(db=db, user=current_user).list_course_progress(course_id)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
