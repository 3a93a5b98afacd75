"""
services/quiz_session.py

퀴즈 응시 상태 머신.

상태:
  not_started → in_progress → completed
  in_progress 안에서 답안 기록/건너뛰기/이동은 자기 전이.
  completed → in_progress 는 retake()로만 가능 (새 출제 세트, 답안 초기화).

제출은 세션마다 정확히 한 번 전송된다. completed 상태가 재진입 submit()을
거부하므로 타이머 0초 콜백이 두 번 와도 전송은 한 번뿐이다.
"""

import logging
import random
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from health_portal.models.notice_model import Notice
from health_portal.models.question_model import Question, Quiz, QuizData
from health_portal.models.result_model import QuizResult
from health_portal.models.session_state import QuizSession, QuizStatus
from health_portal.services.errors import PortalError, QuizStateError
from health_portal.services.quiz_service import build_result, select_subset
from health_portal.services.translation_overlay import TranslationOverlay, Translator

logger = logging.getLogger(__name__)

Submitter = Callable[[Dict[str, Any]], Any]


class QuizSessionMachine:
    """
    한 사용자의 퀴즈 세션 하나를 관리한다.

    Args:
        submitter:  결과 전송 함수. attempt payload(dict)를 받는다. 실패 시 PortalError.
        translator: 번역 함수. 없으면 항상 원문 표시.
        rng:        출제 세트 셔플용 난수원.
        clock:      현재 시각 함수 (초). 테스트에서 교체.
    """

    def __init__(
        self,
        submitter: Optional[Submitter] = None,
        translator: Optional[Translator] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.state = QuizSession()
        self.result: Optional[QuizResult] = None
        self.notices: List[Notice] = []
        self.overlay = TranslationOverlay(translator)

        self._submitter = submitter
        self._rng = rng or random.Random()
        self._clock = clock
        self._lock = threading.RLock()
        self._all_questions: List[Question] = []
        self._limit: Optional[int] = None
        self._pending_quiz: Optional[Quiz] = None

    # ── 상태 조회 ──────────────────────────────────────────────────────────

    @property
    def status(self) -> QuizStatus:
        return self.state.status

    @property
    def questions(self) -> List[Question]:
        return self.state.questions

    @property
    def current_answer(self) -> str:
        q = self.state.current_question
        return self.state.answers.get(q.id, "") if q else ""

    def _require(self, status: QuizStatus) -> None:
        if self.state.status != status:
            raise QuizStateError(
                f"현재 상태({self.state.status.value})에서는 허용되지 않는 동작입니다."
            )

    # ── 준비 / 시작 ───────────────────────────────────────────────────────

    def load(self, quiz_data: QuizData, limit: Optional[int] = None) -> None:
        """
        퀴즈 데이터와 출제 수를 받아 출제 세트를 고른다.

        limit을 주지 않으면 quiz.max_questions_per_attempt를 사용.
        응시 중에는 출제 세트를 다시 고르지 않는다 (current_index 유효성 유지).
        같은 퀴즈의 새 데이터는 다음 retake()에 반영되고,
        다른 퀴즈는 현재 응시를 끝내기 전까지 불러올 수 없다.

        Raises:
            QuizStateError: 응시 중에 다른 퀴즈를 불러오려 한 경우
        """
        with self._lock:
            if self.state.status == QuizStatus.IN_PROGRESS:
                if quiz_data.quiz.id != self.state.quiz.id:
                    raise QuizStateError("Un altro quiz è già in corso.")
                self._all_questions = list(quiz_data.questions)
                self._limit = limit if limit is not None else quiz_data.quiz.max_questions_per_attempt
                self._pending_quiz = quiz_data.quiz
                logger.info("응시 중 퀴즈 데이터 갱신: 출제 세트 유지")
                return

            self._all_questions = list(quiz_data.questions)
            self._limit = limit if limit is not None else quiz_data.quiz.max_questions_per_attempt
            self._pending_quiz = None

            subset = select_subset(self._all_questions, self._limit, self._rng)
            self.state = QuizSession(quiz=quiz_data.quiz, questions=subset)
            self.result = None
            self.overlay.bind(subset)
            logger.info(
                f"퀴즈 로드: {quiz_data.quiz.id} — {len(subset)}/{len(self._all_questions)}문제"
            )

    def start(self) -> None:
        with self._lock:
            self._require(QuizStatus.NOT_STARTED)
            if not self.state.questions or self.state.quiz is None:
                raise QuizStateError("출제할 문제가 없습니다.")

            now = self._clock()
            self.state.status = QuizStatus.IN_PROGRESS
            self.state.start_time = now
            self.state.last_tick = now
            self.state.time_remaining = self.state.quiz.duration * 60
            self.state.current_index = 0
            self.state.answers = {}
            self.state.submission_sent = False
            logger.info(f"퀴즈 시작: {self.state.quiz.id} ({self.state.time_remaining}초)")

    # ── 답안 / 이동 ───────────────────────────────────────────────────────

    def record_answer(self, question_id: str, label: str) -> None:
        """답안 기록 (덮어쓰기). 현재 위치는 바꾸지 않는다."""
        with self._lock:
            self._require(QuizStatus.IN_PROGRESS)
            question = next((q for q in self.state.questions if q.id == question_id), None)
            if question is None:
                raise QuizStateError(f"이번 응시에 없는 문제입니다: {question_id}")
            if label and label not in question.labels:
                raise QuizStateError(f"보기에 없는 답안입니다: {label}")
            self.state.answers[question_id] = label

    def advance(self) -> Optional[str]:
        """
        다음 문제로. 마지막 문제였다면 제출한다.

        Returns:
            이동한 문제에 저장돼 있던 답안 (없으면 ""). 제출한 경우 None.
        """
        with self._lock:
            self._require(QuizStatus.IN_PROGRESS)
            if self.state.current_index >= len(self.state.questions) - 1:
                self.submit()
                return None
            self.state.current_index += 1
            return self.current_answer

    def previous(self) -> str:
        with self._lock:
            self._require(QuizStatus.IN_PROGRESS)
            if self.state.current_index > 0:
                self.state.current_index -= 1
            return self.current_answer

    def go_to(self, index: int) -> int:
        """문제 번호 네비게이터. 범위를 벗어나면 가장 가까운 문제로."""
        with self._lock:
            self._require(QuizStatus.IN_PROGRESS)
            idx = max(0, min(index, len(self.state.questions) - 1))
            self.state.current_index = idx
            return idx

    def skip(self) -> Optional[str]:
        """빈 답안을 기록하고 advance()와 동일하게 진행."""
        with self._lock:
            self._require(QuizStatus.IN_PROGRESS)
            current = self.state.current_question
            self.state.answers[current.id] = ""
            return self.advance()

    # ── 타이머 ────────────────────────────────────────────────────────────

    def tick(self) -> bool:
        """
        1초 차감. 0초가 되면 강제 제출.

        Returns:
            이번 호출로 자동 제출되었으면 True.
        """
        with self._lock:
            if self.state.status != QuizStatus.IN_PROGRESS:
                return False

            self.state.time_remaining = max(0, self.state.time_remaining - 1)
            if self.state.last_tick is not None:
                self.state.last_tick += 1

            if self.state.time_remaining > 0:
                return False

            logger.info("시간 종료 — 자동 제출")
            self.notices.append(Notice(
                level="warning",
                title="Tempo scaduto",
                message="Il quiz è stato inviato automaticamente.",
            ))
            self.submit()
            return True

    def sync_clock(self) -> None:
        """
        마지막 차감 이후 흐른 실제 시간만큼 tick()을 적용한다.
        세션별 타이머 스레드가 없는 웹 API에서 요청마다 호출.
        """
        with self._lock:
            if self.state.status != QuizStatus.IN_PROGRESS or self.state.last_tick is None:
                return
            elapsed = int(self._clock() - self.state.last_tick)
            for _ in range(max(0, min(elapsed, self.state.time_remaining))):
                if self.tick():
                    break

    # ── 제출 ─────────────────────────────────────────────────────────────

    def submit(self) -> QuizResult:
        """
        출제 세트 기준으로 채점하고 결과를 전송한다.
        이미 completed면 기존 결과를 그대로 반환하고 다시 전송하지 않는다.
        """
        with self._lock:
            if self.state.status == QuizStatus.COMPLETED:
                return self.result
            self._require(QuizStatus.IN_PROGRESS)

            time_spent = int(self._clock() - (self.state.start_time or self._clock()))
            self.result = build_result(self.state.questions, self.state.answers, time_spent)
            self.state.status = QuizStatus.COMPLETED
            logger.info(
                f"퀴즈 제출: {self.state.quiz.id} — {self.result.score}점 "
                f"({self.result.correct_answers}/{self.result.total_questions})"
            )

            self._send_results()
            return self.result

    def exit(self) -> QuizResult:
        """나가기 확인 후 호출. 미응답은 오답으로 처리해 제출한다."""
        return self.submit()

    def retry_submission(self) -> bool:
        """전송 실패 후 재시도. 기록된 답안은 그대로 유지된다."""
        with self._lock:
            self._require(QuizStatus.COMPLETED)
            if self.state.submission_sent:
                return True
            return self._send_results()

    def _send_results(self) -> bool:
        if self.state.submission_sent:
            return True
        if self._submitter is None:
            logger.warning("결과 전송 함수가 없어 전송을 건너뜁니다.")
            return False

        payload = self.result.to_attempt_payload(self.state.quiz.id)
        try:
            self._submitter(payload)
        except PortalError as e:
            logger.error(f"결과 전송 실패: {e}")
            self.notices.append(Notice(
                level="error",
                title="Errore",
                message="Impossibile salvare i risultati del quiz.",
                blocking=True,
            ))
            return False

        self.state.submission_sent = True
        self.notices.append(Notice(
            level="success",
            title="Quiz Completato!",
            message=f"Hai ottenuto {self.result.score}% di risposte corrette.",
        ))
        return True

    # ── 재응시 ────────────────────────────────────────────────────────────

    def retake(self) -> None:
        """완료된 세션을 초기화하고 새 출제 세트로 다시 시작."""
        with self._lock:
            self._require(QuizStatus.COMPLETED)
            quiz = self._pending_quiz or self.state.quiz
            self._pending_quiz = None
            subset = select_subset(self._all_questions, self._limit, self._rng)
            self.state = QuizSession(quiz=quiz, questions=subset)
            self.result = None
            self.overlay.bind(subset)
            self.start()

    # ── 표시 ─────────────────────────────────────────────────────────────

    def display_question(self, index: int, language: str) -> Question:
        """표시 언어 기준 문제 (번역 오버레이 적용)."""
        with self._lock:
            if not (0 <= index < len(self.state.questions)):
                raise QuizStateError("문제를 찾을 수 없습니다.")
            self.overlay.prepare(self.state.questions, language)
            return self.overlay.display(self.state.questions[index], language)

    def drain_notices(self) -> List[Notice]:
        with self._lock:
            notices = self.notices + self.overlay.drain_notices()
            self.notices = []
            return notices
