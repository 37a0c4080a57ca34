import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError

from lms.core.config import settings
from lms.core.errors import ConflictError, DomainError, InvalidInputError, NotFoundError
from lms.models.course.content_model import Assignment, Quiz
from lms.models.course.course_model import Course
from lms.models.progress.progress_model import (
    AssignmentProgress,
    LessonProgress,
    ProgressRecord,
    QuizProgress,
)
from lms.models.user.user_model import User
from lms.services.certificate_service import CertificateIssuer
from lms.services.enrollment_gate import Relation, load_course, require
from lms.services.quiz_scorer import QuizScore, score_quiz

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def percent_half_up(completed: int, total: int) -> int:
    """``round(100 * completed / total)`` with halves rounded up, in integer arithmetic."""
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def compute_overall_progress(record: ProgressRecord) -> int:
    """Single source of truth for ``overall_progress_percent``.

    Lessons and quizzes count once completed, assignments once submitted
    (grading is not a completion gate).
    """
    total = len(record.lesson_states) + len(record.quiz_states) + len(record.assignment_states)
    completed = (
        sum(1 for state in record.lesson_states if state.completed)
        + sum(1 for state in record.quiz_states if state.completed)
        + sum(1 for state in record.assignment_states if state.submitted)
    )
    return percent_half_up(completed, total)


def _find_item(items: Sequence[T], item_id: int, code: str) -> T:
    for item in items:
        if item.id == item_id:
            return item
    raise NotFoundError(code)


def _sync_states(
    states: List[Any],
    item_ids: Sequence[int],
    key: str,
    factory: Callable[[int], Any],
) -> bool:
    """Make ``states`` hold exactly one entry per id in ``item_ids``."""
    changed = False
    wanted = set(item_ids)
    for state in list(states):
        if getattr(state, key) not in wanted:
            states.remove(state)
            changed = True
    present = {getattr(state, key) for state in states}
    for item_id in item_ids:
        if item_id not in present:
            states.append(factory(item_id))
            changed = True
    return changed


class ProgressService:
    """Owns the progress record lifecycle for one acting user.

    Every write goes through :meth:`_mutate`, which re-applies the mutation
    on a fresh copy of the record when another request committed first
    (``StaleDataError`` from the record's version counter).
    """

    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user
        self.certificates = CertificateIssuer(db)

    # ------------------------------------------------------------------
    # Learner operations
    # ------------------------------------------------------------------
    def get_or_create(self, course_id: int) -> ProgressRecord:
        course = self._authorize_learner(course_id)
        return self._mutate(course, None, touch=False)

    def get_lesson_progress(self, course_id: int, lesson_id: int) -> LessonProgress:
        record = self.get_or_create(course_id)
        state = record.lesson_state(lesson_id)
        if state is None:
            raise NotFoundError("lesson_not_found")
        return state

    def mark_lesson_complete(
        self,
        course_id: int,
        lesson_id: int,
        time_spent_seconds: int = 0,
        *,
        completed: bool = True,
    ) -> ProgressRecord:
        """Accumulate time on a lesson and, if ``completed``, latch it as done."""
        if (
            not isinstance(time_spent_seconds, int)
            or isinstance(time_spent_seconds, bool)
            or time_spent_seconds < 0
        ):
            raise InvalidInputError("invalid_time_spent")
        course = self._authorize_learner(course_id)
        now = _utcnow()

        def apply(record: ProgressRecord) -> None:
            state = record.lesson_state(lesson_id)
            if state is None:
                raise NotFoundError("lesson_not_found")
            state.time_spent_seconds = (state.time_spent_seconds or 0) + time_spent_seconds
            if completed and not state.completed:
                state.completed = True
                state.completed_at = now

        return self._mutate(course, apply)

    def record_quiz_attempt(self, course_id: int, quiz_id: int, score_percent: float) -> ProgressRecord:
        course = self._authorize_learner(course_id)
        quiz = _find_item(course.quizzes, quiz_id, "quiz_not_found")
        return self._record_quiz_attempt(course, quiz, score_percent)

    def submit_quiz_answers(
        self,
        course_id: int,
        quiz_id: int,
        answers: Mapping[Any, Any],
    ) -> Tuple[QuizScore, ProgressRecord]:
        """Grade ``answers`` and record the attempt."""
        course = self._authorize_learner(course_id)
        quiz = _find_item(course.quizzes, quiz_id, "quiz_not_found")
        questions = quiz.questions or []
        if questions and not answers:
            raise InvalidInputError("empty_answers")

        result = score_quiz(questions, answers, quiz.passing_score)
        record = self._record_quiz_attempt(course, quiz, result.percent)
        logger.info(
            "User %s scored %.1f%% on quiz %s (%s/%s)",
            self.user.id,
            result.percent,
            quiz.id,
            result.correct_count,
            result.total_questions,
        )
        return result, record

    def record_assignment_submission(
        self,
        course_id: int,
        assignment_id: int,
        submission_ref: str,
    ) -> ProgressRecord:
        if not submission_ref or not submission_ref.strip():
            raise InvalidInputError("submission_ref_required")
        course = self._authorize_learner(course_id)
        now = _utcnow()

        def apply(record: ProgressRecord) -> None:
            state = record.assignment_state(assignment_id)
            if state is None:
                raise NotFoundError("assignment_not_found")
            state.submitted = True
            state.submission_ref = submission_ref.strip()
            state.submitted_at = now

        return self._mutate(course, apply)

    # ------------------------------------------------------------------
    # Instructor operations
    # ------------------------------------------------------------------
    def record_assignment_grade(
        self,
        course_id: int,
        learner_id: int,
        assignment_id: int,
        grade: float,
        feedback: Optional[str] = None,
    ) -> ProgressRecord:
        """Grade a learner's submission. Does not move the percentage."""
        course = load_course(self.db, course_id)
        require(self.db, self.user, course, Relation.ADMIN_OR_INSTRUCTOR, "grading_not_allowed")
        assignment: Assignment = _find_item(course.assignments, assignment_id, "assignment_not_found")
        if grade is None or not (0 <= grade <= assignment.max_score):
            raise InvalidInputError("grade_out_of_range")
        now = _utcnow()

        def apply(record: ProgressRecord) -> None:
            state = record.assignment_state(assignment_id)
            if state is None:
                raise NotFoundError("assignment_not_found")
            if not state.submitted:
                raise NotFoundError("assignment_not_submitted")
            state.grade = grade
            state.feedback = feedback
            state.graded_at = now

        return self._mutate(course, apply, learner_id=learner_id, create=False)

    def list_course_progress(self, course_id: int) -> List[ProgressRecord]:
        course = load_course(self.db, course_id)
        require(self.db, self.user, course, Relation.ADMIN_OR_INSTRUCTOR, "progress_access_denied")
        return (
            self.db.query(ProgressRecord)
            .filter(ProgressRecord.course_id == course.id)
            .order_by(ProgressRecord.user_id.asc())
            .all()
        )

    def reconcile_course(self, course_id: int) -> int:
        """Re-align every learner's record after the course outline changed.

        Recomputes stored percentages and issues certificates that the new
        outline makes due. Returns the number of records visited.
        """
        course = load_course(self.db, course_id)
        require(self.db, self.user, course, Relation.ADMIN_OR_INSTRUCTOR, "course_edit_denied")
        learner_ids = [
            user_id
            for (user_id,) in self.db.query(ProgressRecord.user_id)
            .filter(ProgressRecord.course_id == course.id)
            .order_by(ProgressRecord.user_id.asc())
            .all()
        ]
        for learner_id in learner_ids:
            self._mutate(course, None, learner_id=learner_id, create=False, touch=False)
        if learner_ids:
            logger.info("Reconciled %s progress records for course %s", len(learner_ids), course.id)
        return len(learner_ids)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _authorize_learner(self, course_id: int) -> Course:
        course = load_course(self.db, course_id)
        require(self.db, self.user, course, Relation.ENROLLED, "not_enrolled")
        return course

    def _record_quiz_attempt(self, course: Course, quiz: Quiz, score_percent: float) -> ProgressRecord:
        if score_percent is None or not (0 <= score_percent <= 100):
            raise InvalidInputError("score_out_of_range")
        now = _utcnow()

        def apply(record: ProgressRecord) -> None:
            state = record.quiz_state(quiz.id)
            if state is None:
                raise NotFoundError("quiz_not_found")
            state.attempts = (state.attempts or 0) + 1
            state.last_attempt_at = now
            state.best_score = max(state.best_score or 0.0, float(score_percent))
            if score_percent >= quiz.passing_score:
                state.completed = True

        return self._mutate(course, apply)

    def _find_record(self, learner_id: int, course_id: int) -> Optional[ProgressRecord]:
        return (
            self.db.query(ProgressRecord)
            .filter(ProgressRecord.user_id == learner_id, ProgressRecord.course_id == course_id)
            .first()
        )

    def _create_record(self, learner_id: int, course: Course) -> ProgressRecord:
        record = ProgressRecord(
            user_id=learner_id,
            course_id=course.id,
            overall_progress_percent=0,
            last_accessed_at=_utcnow(),
        )
        self._reconcile(record, course)
        self.db.add(record)
        try:
            self.db.commit()
        except IntegrityError:
            # Another request created the record first.
            self.db.rollback()
            existing = self._find_record(learner_id, course.id)
            if existing is None:
                raise
            return existing
        logger.info("Progress record created for user %s / course %s", learner_id, course.id)
        return record

    def _reconcile(self, record: ProgressRecord, course: Course) -> bool:
        """Align the record's item states with the course's current outline."""
        changed = _sync_states(
            record.lesson_states,
            [lesson.id for lesson in course.lessons],
            "lesson_id",
            lambda item_id: LessonProgress(lesson_id=item_id, completed=False, time_spent_seconds=0),
        )
        changed |= _sync_states(
            record.quiz_states,
            [quiz.id for quiz in course.quizzes],
            "quiz_id",
            lambda item_id: QuizProgress(quiz_id=item_id, completed=False, best_score=0.0, attempts=0),
        )
        changed |= _sync_states(
            record.assignment_states,
            [assignment.id for assignment in course.assignments],
            "assignment_id",
            lambda item_id: AssignmentProgress(assignment_id=item_id, submitted=False),
        )
        return changed

    def _load_record(self, course: Course, learner_id: int, create: bool) -> Tuple[ProgressRecord, bool]:
        record = self._find_record(learner_id, course.id)
        if record is None:
            if not create:
                raise NotFoundError("progress_not_found")
            record = self._create_record(learner_id, course)
        changed = self._reconcile(record, course)
        return record, changed or record.overall_progress_percent != compute_overall_progress(record)

    def _mutate(
        self,
        course: Course,
        apply: Optional[Callable[[ProgressRecord], None]],
        *,
        learner_id: Optional[int] = None,
        create: bool = True,
        touch: bool = True,
    ) -> ProgressRecord:
        """Load, mutate, recompute and commit a record, then run the certificate check."""
        learner_id = self.user.id if learner_id is None else learner_id
        max_retries = max(int(settings.PROGRESS_UPDATE_MAX_RETRIES or 1), 1)

        for attempt in range(1, max_retries + 1):
            record, reconciled = self._load_record(course, learner_id, create)
            if apply is None and not reconciled:
                break

            if apply is not None:
                try:
                    apply(record)
                except DomainError:
                    self.db.rollback()
                    raise
            if touch:
                record.last_accessed_at = _utcnow()
            record.overall_progress_percent = compute_overall_progress(record)
            # Always emit the UPDATE so the version counter guards the write.
            flag_modified(record, "overall_progress_percent")

            try:
                self.db.commit()
            except StaleDataError:
                self.db.rollback()
                logger.warning(
                    "Concurrent update on progress of user %s / course %s (attempt %s/%s), retrying",
                    learner_id,
                    course.id,
                    attempt,
                    max_retries,
                )
                continue
            break
        else:
            logger.error(
                "Giving up on progress update for user %s / course %s after %s attempts",
                learner_id,
                course.id,
                max_retries,
            )
            raise ConflictError("progress_update_conflict")

        self.certificates.issue_if_complete(record)
        return record
