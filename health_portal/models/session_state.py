"""
models/session_state.py

퀴즈 응시 상태를 담는 OMR 카드 모델.
Pydantic BaseModel 기반 — 직렬화/역직렬화 및 타입 안전성 확보.
UI 코드 없음. 상태 전이 규칙은 services/quiz_session.py가 담당.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from health_portal.models.question_model import Question, Quiz


class QuizStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class QuizSession(BaseModel):
    """
    사용자의 퀴즈 세션 전체 상태를 표현하는 모델.

    Attributes:
        quiz:             응시 중인 퀴즈 메타데이터.
        questions:        이번 응시에 출제된 문제 (세션 시작 후 고정).
        current_index:    현재 풀고 있는 문제의 인덱스 (0-based).
        answers:          사용자 답안지. {question.id: 선택한 보기 기호}
                          건너뛴 문제는 빈 문자열, 키가 없으면 미응답.
        start_time:       응시 시작 시각 (Unix timestamp). 시작 전이면 None.
        time_remaining:   남은 시간 (초). 진행 중에는 감소만 한다.
        last_tick:        마지막으로 시간을 차감한 시각 (sync_clock 기준점).
        status:           not_started → in_progress → completed
        submission_sent:  결과가 백엔드에 전송되었는지 여부.
    """

    quiz: Optional[Quiz] = None
    questions: List[Question] = Field(default_factory=list)
    current_index: int = Field(
        default=0,
        ge=0,
        description="현재 풀고 있는 문제 인덱스 (0-based)"
    )
    answers: Dict[str, str] = Field(
        default_factory=dict,
        description="사용자 답안지. key: question.id, value: 보기 기호"
    )
    start_time: Optional[float] = None
    time_remaining: int = Field(default=0, ge=0)
    last_tick: Optional[float] = None
    status: QuizStatus = QuizStatus.NOT_STARTED
    submission_sent: bool = False

    @property
    def current_question(self) -> Optional[Question]:
        if not self.questions:
            return None
        return self.questions[self.current_index]

    @property
    def answered_count(self) -> int:
        return sum(1 for v in self.answers.values() if v)
