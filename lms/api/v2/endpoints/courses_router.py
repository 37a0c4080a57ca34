from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from lms.api.v2.dependencies import get_current_user, get_db, get_optional_user
from lms.api.v2.endpoints.quizzes_router import quiz_payload
from lms.core.errors import DomainError
from lms.models.course.course_model import CourseCategory
from lms.models.user.user_model import User
from lms.schemas.course import course_schema
from lms.schemas.progress import progress_schema
from lms.services import course_service

router = APIRouter()


@router.get("", response_model=List[course_schema.CourseSummary])
def list_courses(
    category: Optional[CourseCategory] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return course_service.list_published(db, category=category, search=search)


@router.post("", response_model=course_schema.CourseSummary, status_code=status.HTTP_201_CREATED)
def create_course(
    course_in: course_schema.CourseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return course_service.create_course(db, current_user, course_in)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/{course_id}", response_model=course_schema.CourseOut)
def read_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    try:
        return course_service.get_course(db, course_id, viewer=current_user)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.patch("/{course_id}", response_model=course_schema.CourseSummary)
def update_course(
    course_id: int,
    course_in: course_schema.CourseUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return course_service.update_course(db, current_user, course_id, course_in)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        course_service.delete_course(db, current_user, course_id)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{course_id}/lessons", response_model=course_schema.LessonOut, status_code=status.HTTP_201_CREATED)
def add_lesson(
    course_id: int,
    lesson_in: course_schema.LessonCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return course_service.add_lesson(db, current_user, course_id, lesson_in)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.post("/{course_id}/quizzes", response_model=course_schema.QuizOut, status_code=status.HTTP_201_CREATED)
def add_quiz(
    course_id: int,
    quiz_in: course_schema.QuizCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        quiz = course_service.add_quiz(db, current_user, course_id, quiz_in)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
    return quiz_payload(quiz, reveal_answers=True)


@router.post(
    "/{course_id}/assignments",
    response_model=course_schema.AssignmentOut,
    status_code=status.HTTP_201_CREATED,
)
def add_assignment(
    course_id: int,
    assignment_in: course_schema.AssignmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return course_service.add_assignment(db, current_user, course_id, assignment_in)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.post(
    "/{course_id}/enroll",
    response_model=progress_schema.ProgressRecordOut,
    status_code=status.HTTP_201_CREATED,
)
def enroll_in_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return course_service.enroll(db, current_user, course_id)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.post("/{course_id}/ratings", response_model=course_schema.CourseSummary)
def rate_course(
    course_id: int,
    rating_in: course_schema.RatingIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return course_service.rate_course(db, current_user, course_id, rating_in)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/{course_id}/students", response_model=List[course_schema.EnrolledStudent])
def list_course_students(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return course_service.list_students(db, current_user, course_id)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
