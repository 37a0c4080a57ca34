from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from lms.api.v2.dependencies import get_current_user, get_db
from lms.core.errors import DomainError
from lms.models.course.content_model import Quiz
from lms.models.user.user_model import User
from lms.schemas.course import course_schema
from lms.schemas.progress import progress_schema
from lms.services import course_service
from lms.services.enrollment_gate import Relation, is_authorized
from lms.services.progress_service import ProgressService

router = APIRouter()


def quiz_payload(quiz: Quiz, reveal_answers: bool) -> course_schema.QuizOut:
    """Serialize ``quiz``; learners never see ``correct_answer`` or explanations."""

    questions = []
    for question in quiz.questions or []:
        item = course_schema.QuizQuestionOut(
            question=question.get("question", ""),
            options=list(question.get("options") or []),
        )
        if reveal_answers:
            item.correct_answer = question.get("correct_answer")
            item.explanation = question.get("explanation")
        questions.append(item)

    return course_schema.QuizOut(
        id=quiz.id,
        course_id=quiz.course_id,
        title=quiz.title,
        description=quiz.description,
        questions=questions,
        passing_score=quiz.passing_score,
        time_limit_minutes=quiz.time_limit_minutes,
        max_attempts=quiz.max_attempts,
        order=quiz.order,
    )


@router.get("/{quiz_id}", response_model=course_schema.QuizOut)
def read_quiz(
    quiz_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        quiz = course_service.get_quiz(db, quiz_id)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
    reveal = is_authorized(db, current_user, quiz.course, Relation.ADMIN_OR_INSTRUCTOR)
    return quiz_payload(quiz, reveal_answers=reveal)


@router.patch("/{quiz_id}", response_model=course_schema.QuizOut)
def update_quiz(
    quiz_id: int,
    quiz_in: course_schema.QuizUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        quiz = course_service.update_quiz(db, current_user, quiz_id, quiz_in)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
    return quiz_payload(quiz, reveal_answers=True)


@router.delete("/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_quiz(
    quiz_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        course_service.delete_quiz(db, current_user, quiz_id)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{quiz_id}/submit", response_model=progress_schema.QuizResultOut)
def submit_quiz(
    quiz_id: int,
    payload: progress_schema.QuizSubmissionIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = ProgressService(db=db, user=current_user)
    try:
        quiz = course_service.get_quiz(db, quiz_id)
        result, record = service.submit_quiz_answers(quiz.course_id, quiz.id, payload.answers)
    except DomainError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc

    return progress_schema.QuizResultOut(
        correct_count=result.correct_count,
        total_questions=result.total_questions,
        percent=result.percent,
        passed=result.passed,
        progress=progress_schema.ProgressRecordOut.model_validate(record),
    )
