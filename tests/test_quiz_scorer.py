import pytest

from lms.services.quiz_scorer import score_quiz
from tests.utils import make_questions


def test_all_correct_passes():
    result = score_quiz(make_questions(4), {0: 0, 1: 0, 2: 0, 3: 0}, passing_score=70)
    assert result.correct_count == 4
    assert result.total_questions == 4
    assert result.percent == 100
    assert result.passed is True


def test_missing_answers_count_as_incorrect():
    result = score_quiz(make_questions(4), {0: 0, 2: 1}, passing_score=70)
    assert result.correct_count == 1
    assert result.percent == 25
    assert result.passed is False


def test_string_keys_from_json_are_accepted():
    result = score_quiz(make_questions(2), {"0": 0, "1": 0, "bogus": 0}, passing_score=70)
    assert result.correct_count == 2


def test_percent_is_not_rounded():
    result = score_quiz(make_questions(3), {0: 0}, passing_score=30)
    assert result.percent == pytest.approx(100 / 3)
    assert result.passed is True


def test_passing_threshold_is_inclusive():
    result = score_quiz(make_questions(10), {i: 0 for i in range(7)}, passing_score=70)
    assert result.percent == 70
    assert result.passed is True


def test_empty_quiz_never_passes():
    result = score_quiz([], {}, passing_score=0)
    assert result.total_questions == 0
    assert result.percent == 0
    assert result.passed is False
