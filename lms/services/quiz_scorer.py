"""Pure grading of a quiz submission against its answer key."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence


@dataclass(frozen=True, slots=True)
class QuizScore:
    correct_count: int
    total_questions: int
    percent: float
    passed: bool


def _normalize_answers(answers: Mapping[Any, Any]) -> dict[int, Any]:
    """Key answers by integer question index.

    JSON object keys always arrive as strings, so ``{"0": 2}`` and ``{0: 2}``
    are treated the same. Keys that are not integers are ignored.
    """

    normalized: dict[int, Any] = {}
    for key, value in answers.items():
        try:
            normalized[int(key)] = value
        except (TypeError, ValueError):
            continue
    return normalized


def score_quiz(
    questions: Sequence[Mapping[str, Any]],
    answers: Mapping[Any, Any],
    passing_score: float,
) -> QuizScore:
    """Grade ``answers`` (question index -> selected option index).

    Missing answers count as incorrect. ``percent`` is not rounded. A quiz
    without questions scores 0 and never passes.
    """

    total = len(questions)
    if total == 0:
        return QuizScore(correct_count=0, total_questions=0, percent=0.0, passed=False)

    selected = _normalize_answers(answers)
    correct = 0
    for index, question in enumerate(questions):
        if index in selected and selected[index] == question.get("correct_answer"):
            correct += 1

    percent = 100 * correct / total
    return QuizScore(
        correct_count=correct,
        total_questions=total,
        percent=percent,
        passed=percent >= passing_score,
    )
