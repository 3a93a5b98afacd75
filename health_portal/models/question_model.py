from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_OPTION_LABELS = "ABCDEFGHIJ"


class QuizOption(BaseModel):
    label: str = Field(..., min_length=1, description="보기 기호 (A, B, C ...)")
    text: str = Field(..., description="보기 내용")
    explanation: Optional[str] = Field(None, description="보기별 해설")


class Question(BaseModel):
    """
    퀴즈 문제 모델. 백엔드에서 받은 뒤 읽기 전용.
    Pydantic v2 적용
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(
        ...,
        description="문제 ID (고유 식별자)"
    )
    text: str = Field(
        ...,
        alias="question",
        min_length=1,
        description="문제 본문"
    )
    options: List[QuizOption] = Field(
        ...,
        description="보기 리스트 (순서 유지)"
    )
    correct_answer: str = Field(
        "",
        alias="correctAnswer",
        description="정답 보기 기호. 정답 정보가 없으면 빈 문자열"
    )
    explanation: Optional[str] = Field(None, description="해설")
    category: Optional[str] = Field(None, description="분류 (채점 시 카테고리별 집계)")
    domain: Optional[str] = Field(None, description="출제 영역")
    language: Optional[str] = Field(
        None,
        description="원문 언어 코드 (it, en, es, fr). 없으면 번역하지 않는다"
    )

    @field_validator("options", mode="before")
    @classmethod
    def normalize_options(cls, v: Any) -> Any:
        """
        백엔드가 주는 여러 형태의 보기를 {label, text}로 맞춘다.

        - "문자열"                 → {label: A.., text: 문자열}
        - ["a", "b"]               → text는 ", "로 연결
        - {id: "a", text: ...}     → label은 id 대문자
        - {text: {it: .., en: ..}} → it, en, value 순으로 첫 값 사용
        """
        if not isinstance(v, list):
            return v

        normalized = []
        for idx, opt in enumerate(v):
            label = _OPTION_LABELS[idx] if idx < len(_OPTION_LABELS) else chr(65 + idx)
            if isinstance(opt, QuizOption):
                normalized.append(opt)
            elif isinstance(opt, dict):
                text = opt.get("text")
                if isinstance(text, dict):
                    text = text.get("it") or text.get("en") or text.get("value") or next(iter(text.values()), "")
                if text is None:
                    text = opt.get("value") if isinstance(opt.get("value"), str) else ""
                if opt.get("label"):
                    label = str(opt["label"])
                elif opt.get("id"):
                    label = str(opt["id"]).upper()
                normalized.append({
                    "label": label,
                    "text": str(text),
                    "explanation": opt.get("explanation"),
                })
            elif isinstance(opt, list):
                normalized.append({"label": label, "text": ", ".join(str(o) for o in opt)})
            else:
                normalized.append({"label": label, "text": "" if opt is None else str(opt)})
        return normalized

    @field_validator("options")
    @classmethod
    def validate_options_length(cls, v: List[QuizOption]) -> List[QuizOption]:
        """
        검증 로직 1: 보기는 최소 2개 이상이어야 한다.
        """
        if len(v) < 2:
            raise ValueError("보기(options)는 최소 2개 이상의 항목이 필요합니다.")
        return v

    @model_validator(mode="after")
    def validate_answer_in_options(self) -> "Question":
        """
        검증 로직 2: 정답이 존재하는 경우, 반드시 보기 기호 중 하나여야 한다.
        """
        if self.correct_answer and self.correct_answer not in self.labels:
            raise ValueError(f"정답('{self.correct_answer}')이 보기 기호({self.labels})에 존재하지 않습니다.")
        return self

    @property
    def labels(self) -> List[str]:
        return [o.label for o in self.options]


class Quiz(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: str = ""
    duration: int = Field(..., ge=1, description="제한 시간 (분)")
    difficulty: str = ""
    max_questions_per_attempt: Optional[int] = Field(
        None,
        alias="maxQuestionsPerAttempt",
        description="응시당 출제 문제 수. None 또는 0 이하면 전체"
    )
    is_premium: bool = Field(False, alias="isPremium")


class QuizData(BaseModel):
    """GET /api/quizzes/{id} 응답."""

    quiz: Quiz
    questions: List[Question]


class TranslatedQuestion(BaseModel):
    """POST /api/translate-questions 응답의 문제 하나."""

    id: str
    question: str
    options: List[str] = Field(default_factory=list)
