"""
models/result_model.py

채점 결과 모델. to_attempt_payload()가 POST /api/quiz-attempts 본문을 만든다.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class AnswerRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_id: str = Field(..., alias="questionId")
    answer: str = ""
    is_correct: bool = Field(..., alias="isCorrect")


class CategoryScore(BaseModel):
    category: str
    correct: int
    total: int
    score: int


class QuizResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    score: int = Field(..., ge=0, le=100)
    correct_answers: int = Field(..., alias="correctAnswers")
    total_questions: int = Field(..., alias="totalQuestions")
    time_spent: int = Field(0, alias="timeSpent", description="소요 시간 (초)")
    category_scores: List[CategoryScore] = Field(default_factory=list, alias="categoryScores")
    answers: List[AnswerRecord] = Field(default_factory=list)

    def to_attempt_payload(self, quiz_id: str) -> Dict[str, Any]:
        return {
            "quizId": quiz_id,
            "score": self.score,
            "correctAnswers": self.correct_answers,
            "totalQuestions": self.total_questions,
            "timeSpent": self.time_spent,
            "answers": [a.model_dump(by_alias=True) for a in self.answers],
        }
