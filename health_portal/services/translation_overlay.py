"""
services/translation_overlay.py

퀴즈 문제 번역 오버레이.
(출제 세트, 표시 언어) 조합마다 번역 API를 한 번만 호출하고 question.id로 캐시한다.
원문 언어와 표시 언어가 같으면 캐시를 거치지 않고 항상 원문을 보여준다.
"""

import logging
from typing import Callable, Dict, List, Optional, Set, Tuple

from health_portal.models.notice_model import Notice
from health_portal.models.question_model import Question, TranslatedQuestion
from health_portal.services.errors import PortalError

logger = logging.getLogger(__name__)

Translator = Callable[[List[Question], str], List[TranslatedQuestion]]


class TranslationOverlay:

    def __init__(self, translator: Optional[Translator] = None) -> None:
        self._translator = translator
        self._subset_key: Tuple[str, ...] = ()
        self._cache: Dict[str, Dict[str, TranslatedQuestion]] = {}
        self._requested: Set[str] = set()
        self.notices: List[Notice] = []

    def bind(self, questions: List[Question]) -> None:
        """출제 세트가 바뀌면 캐시를 비운다."""
        key = tuple(q.id for q in questions)
        if key != self._subset_key:
            self._subset_key = key
            self._cache.clear()
            self._requested.clear()

    @staticmethod
    def needs_translation(question: Question, language: str) -> bool:
        return bool(question.language) and question.language != language

    def prepare(self, questions: List[Question], language: str) -> None:
        """
        표시 언어로 번역이 필요한 문제를 한 번에 요청한다.
        실패하면 원문 그대로 두고 경고 알림만 남긴다 (같은 조합은 다시 요청하지 않음).
        """
        self.bind(questions)
        if self._translator is None or language in self._requested:
            return

        pending = [q for q in questions if self.needs_translation(q, language)]
        self._requested.add(language)
        if not pending:
            return

        try:
            translated = self._translator(pending, language)
        except PortalError as e:
            logger.warning(f"번역 실패 ({language}, {len(pending)}문제): {e}")
            self.notices.append(Notice(
                level="warning",
                title="Traduzione non disponibile",
                message="Le domande vengono mostrate nella lingua originale.",
            ))
            return

        bucket = self._cache.setdefault(language, {})
        for item in translated:
            bucket[item.id] = item
        logger.info(f"번역 완료: {len(bucket)}/{len(pending)}문제 → {language}")

    def display(self, question: Question, language: str) -> Question:
        """
        표시용 문제. 번역이 있으면 본문/보기 텍스트만 바꾼 사본, 없으면 원본.
        보기 기호와 정답은 바꾸지 않는다.
        """
        if not self.needs_translation(question, language):
            return question

        item = self._cache.get(language, {}).get(question.id)
        if item is None:
            return question

        options = [
            opt.model_copy(update={"text": item.options[i]}) if i < len(item.options) else opt
            for i, opt in enumerate(question.options)
        ]
        return question.model_copy(update={"text": item.question or question.text, "options": options})

    def drain_notices(self) -> List[Notice]:
        notices, self.notices = self.notices, []
        return notices
