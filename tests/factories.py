"""테스트용 모델 생성 헬퍼."""

from datetime import datetime

from health_portal.models.question_model import Question, Quiz, QuizData
from health_portal.models.report_model import HealthReport


class FakeClock:
    """수동으로 진행시키는 시계."""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_question(qid: str, answer: str = "A", category=None, language=None) -> Question:
    return Question(
        id=qid,
        question=f"Domanda {qid}?",
        options=[
            {"label": "A", "text": f"{qid} opzione A"},
            {"label": "B", "text": f"{qid} opzione B"},
            {"label": "C", "text": f"{qid} opzione C"},
        ],
        correctAnswer=answer,
        category=category,
        language=language,
    )


def make_quiz_data(
    n: int = 5, duration: int = 1, limit=None, quiz_id: str = "quiz-1", prefix: str = "q", **question_kwargs
) -> QuizData:
    return QuizData(
        quiz=Quiz(id=quiz_id, title="Prevenzione", duration=duration, maxQuestionsPerAttempt=limit),
        questions=[make_question(f"{prefix}{i}", **question_kwargs) for i in range(1, n + 1)],
    )


def make_report(rid: str, created: datetime, **fields) -> HealthReport:
    data = {
        "id": rid,
        "reportType": "blood_test",
        "fileName": f"{rid}.pdf",
        "createdAt": created,
    }
    data.update(fields)
    return HealthReport.model_validate(data)
