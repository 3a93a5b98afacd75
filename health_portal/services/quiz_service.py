"""
services/quiz_service.py

출제 문제 추출 및 채점, 결과 분석 비즈니스 로직.
순수 Python 함수로 구성 — UI 코드, 전역 상태 변경 없음.
"""

import random
from typing import Dict, List, Optional

from config import DEFAULT_CATEGORY
from health_portal.models.question_model import Question
from health_portal.models.result_model import AnswerRecord, CategoryScore, QuizResult


def select_subset(
    questions: List[Question],
    limit: Optional[int],
    rng: Optional[random.Random] = None,
) -> List[Question]:
    """
    이번 응시에 출제할 문제를 고른다.

    limit이 None, 0 이하, 또는 전체 문제 수 이상이면 원래 순서 그대로 전체 사용.
    그 외에는 Fisher–Yates 셔플 후 앞에서 limit개 (비복원 추출).

    Args:
        questions: 퀴즈의 전체 문제 리스트
        limit:     응시당 출제 문제 수
        rng:       난수원. 테스트에서 시드 고정용. None이면 새 Random

    Returns:
        새 리스트 (입력 리스트는 변경하지 않음)
    """
    if limit is None or limit <= 0 or limit >= len(questions):
        return list(questions)

    rng = rng or random.Random()
    pool = list(questions)
    for i in range(len(pool) - 1, 0, -1):
        j = rng.randint(0, i)
        pool[i], pool[j] = pool[j], pool[i]
    return pool[:limit]


def percent(correct: int, total: int) -> int:
    """정수 백분율, 0.5는 올림 (12.5 → 13)."""
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)


def grade_answers(
    questions: List[Question],
    answers: Dict[str, str],
) -> List[AnswerRecord]:
    """
    문제별 정오 판정. 미응답·건너뜀은 빈 문자열 답안으로 오답 처리.
    """
    records: List[AnswerRecord] = []
    for q in questions:
        user_answer = answers.get(q.id, "")
        records.append(AnswerRecord(
            question_id=q.id,
            answer=user_answer,
            # 정답 정보가 없는 문제는 맞힐 수 없다
            is_correct=bool(q.correct_answer) and user_answer == q.correct_answer,
        ))
    return records


def calculate_score(
    questions: List[Question],
    answers: Dict[str, str],
) -> int:
    """
    100점 만점 환산 점수. questions가 비어 있으면 0.
    """
    if not questions:
        return 0
    correct_count = sum(1 for r in grade_answers(questions, answers) if r.is_correct)
    return percent(correct_count, len(questions))


def calculate_category_scores(
    questions: List[Question],
    answers: Dict[str, str],
) -> List[CategoryScore]:
    """
    카테고리별 점수. category가 없는 문제는 "General".
    처음 등장한 순서를 유지한다.
    """
    buckets: Dict[str, Dict[str, int]] = {}

    for q, record in zip(questions, grade_answers(questions, answers)):
        bucket = buckets.setdefault(q.category or DEFAULT_CATEGORY, {"correct": 0, "total": 0})
        bucket["total"] += 1
        if record.is_correct:
            bucket["correct"] += 1

    return [
        CategoryScore(category=name, correct=b["correct"], total=b["total"],
                      score=percent(b["correct"], b["total"]))
        for name, b in buckets.items()
    ]


def build_result(
    questions: List[Question],
    answers: Dict[str, str],
    time_spent: int = 0,
) -> QuizResult:
    """채점 전체를 QuizResult 하나로."""
    records = grade_answers(questions, answers)
    correct_count = sum(1 for r in records if r.is_correct)
    return QuizResult(
        score=calculate_score(questions, answers),
        correct_answers=correct_count,
        total_questions=len(questions),
        time_spent=max(0, int(time_spent)),
        category_scores=calculate_category_scores(questions, answers),
        answers=records,
    )


def performance_level(score: int) -> str:
    """
    결과 화면 색상 구간.

    Returns:
        "high" (80 이상), "medium" (60 이상), "low"
    """
    if score >= 80:
        return "high"
    if score >= 60:
        return "medium"
    return "low"
