import random

import pytest

from health_portal.services.quiz_service import (
    build_result, calculate_category_scores, calculate_score, grade_answers,
    percent, performance_level, select_subset,
)
from factories import make_question


@pytest.fixture
def questions():
    return [make_question(f"q{i}", category="Cardio" if i % 2 else None) for i in range(1, 6)]


def test_subset_without_limit_keeps_order(questions, rng):
    for limit in (None, 0, -3, 5, 9):
        assert select_subset(questions, limit, rng) == questions


def test_subset_is_sample_without_replacement(questions):
    subset = select_subset(questions, 3, random.Random(7))

    assert len(subset) == 3
    assert len({q.id for q in subset}) == 3
    assert all(q in questions for q in subset)


def test_subset_is_deterministic_for_seed(questions):
    a = select_subset(questions, 3, random.Random(123))
    b = select_subset(questions, 3, random.Random(123))

    assert [q.id for q in a] == [q.id for q in b]


def test_subset_does_not_mutate_input(questions, rng):
    original = list(questions)
    select_subset(questions, 2, rng)

    assert questions == original


def test_percent_rounds_half_up():
    assert percent(3, 5) == 60
    assert percent(1, 8) == 13
    assert percent(2, 3) == 67
    assert percent(1, 3) == 33
    assert percent(0, 0) == 0


def test_score_three_of_five(questions):
    answers = {"q1": "A", "q2": "A", "q3": "A", "q4": "B"}

    assert calculate_score(questions, answers) == 60


def test_skipped_and_missing_answers_are_wrong(questions):
    records = grade_answers(questions, {"q1": "", "q2": "A"})

    assert [r.is_correct for r in records] == [False, True, False, False, False]
    assert records[0].answer == ""


def test_question_without_answer_key_cannot_be_correct():
    q = make_question("x", answer="")

    assert grade_answers([q], {"x": ""})[0].is_correct is False


def test_category_scores_default_to_general(questions):
    scores = calculate_category_scores(questions, {"q1": "A", "q2": "A"})

    assert [(s.category, s.correct, s.total, s.score) for s in scores] == [
        ("Cardio", 1, 3, 33),
        ("General", 1, 2, 50),
    ]


def test_build_result_payload(questions):
    result = build_result(questions, {"q1": "A", "q2": "B"}, time_spent=42)
    payload = result.to_attempt_payload("quiz-1")

    assert payload["quizId"] == "quiz-1"
    assert payload["score"] == 20
    assert payload["correctAnswers"] == 1
    assert payload["totalQuestions"] == 5
    assert payload["timeSpent"] == 42
    assert payload["answers"][1] == {"questionId": "q2", "answer": "B", "isCorrect": False}


def test_empty_quiz_scores_zero():
    assert calculate_score([], {}) == 0
    assert build_result([], {}).score == 0


@pytest.mark.parametrize("score,level", [(100, "high"), (80, "high"), (79, "medium"), (60, "medium"), (59, "low")])
def test_performance_level(score, level):
    assert performance_level(score) == level
