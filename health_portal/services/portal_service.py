"""
services/portal_service.py

BackendClient + QueryCache 조합.
읽기는 캐시를 거치고, 생성/수정/삭제 후에는 관련 캐시 키를 무효화해
그 데이터를 보는 화면들이 다시 가져오게 한다.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Union

from health_portal.models.job_model import GenerationJob
from health_portal.models.question_model import Question, QuizData, TranslatedQuestion
from health_portal.models.report_model import HealthReport
from health_portal.services.backend_client import BackendClient
from health_portal.services.job_poller import JobPoller
from health_portal.services.query_cache import QueryCache

logger = logging.getLogger(__name__)

# ── 캐시 키 ─────────────────────────────────────────────────────────────────
CURRENT_USER_KEY = ("/api/auth/user",)
REPORTS_KEY = ("/api/health-score/reports/my",)
DASHBOARD_KEY = ("/api/user/dashboard",)
CATEGORIES_KEY = ("/api/categories-with-quizzes",)
QUIZZES_KEY = ("/api/quizzes",)
TRIAGE_SESSION_KEY = ("/api/triage/session/active",)
TRIAGE_ALERTS_KEY = ("/api/triage/alerts",)
CORPORATE_INVITES_KEY = ("/api/corporate/invites",)

_ADMIN_INVALIDATION = {
    "quizzes": [CATEGORIES_KEY, QUIZZES_KEY],
    "questions": [QUIZZES_KEY, ("/api/admin/questions",)],
    "on-demand-courses": [("/api/admin/on-demand-courses",)],
    "corporate-agreements": [("/api/admin/corporate-agreements",)],
}


class PortalService:

    def __init__(self, client: BackendClient, cache: QueryCache) -> None:
        self.client = client
        self.cache = cache

    # ── 사용자 / 리포트 ───────────────────────────────────────────────────

    def current_user(self) -> Dict[str, Any]:
        return self.cache.fetch(CURRENT_USER_KEY, self.client.get_current_user)

    def reports(self) -> List[HealthReport]:
        return self.cache.fetch(REPORTS_KEY, self.client.list_reports)

    def upload_report(
        self,
        file_name: str,
        content: bytes,
        content_type: str,
    ) -> Union[HealthReport, GenerationJob]:
        outcome = self.client.upload_report(file_name, content, content_type)
        if isinstance(outcome, HealthReport):
            self.cache.invalidate(REPORTS_KEY)
        return outcome

    def report_job_poller(
        self,
        job_id: str,
        on_complete: Optional[Callable[[GenerationJob], None]] = None,
    ) -> JobPoller:
        """비동기 업로드 작업 폴러. 완료 시 리포트 목록 무효화."""
        return JobPoller(
            self.client.get_report_job,
            job_id,
            cache=self.cache,
            invalidate_keys=[REPORTS_KEY],
            on_complete=on_complete,
            done_title="Analisi completata",
            done_message="Il referto è stato analizzato ed è disponibile nell'elenco.",
            failed_title="Analisi non riuscita",
        )

    def delete_report(self, report_id: str) -> None:
        self.client.delete_report(report_id)
        self.cache.invalidate(REPORTS_KEY)

    # ── 퀴즈 ──────────────────────────────────────────────────────────────

    def quiz(self, quiz_id: str) -> QuizData:
        return self.cache.fetch(QUIZZES_KEY + (quiz_id,), lambda: self.client.get_quiz(quiz_id))

    def submit_quiz_attempt(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = self.client.submit_quiz_attempt(payload)
        self.cache.invalidate(DASHBOARD_KEY)
        return data

    def translate_questions(self, questions: List[Question], target_language: str) -> List[TranslatedQuestion]:
        return self.client.translate_questions(questions, target_language)

    # ── 트리아지 ──────────────────────────────────────────────────────────

    def active_triage_session(self) -> Optional[Dict[str, Any]]:
        return self.cache.fetch(TRIAGE_SESSION_KEY, self.client.get_active_triage_session)

    def start_triage(self, initial_message: Optional[str] = None) -> Dict[str, Any]:
        data = self.client.start_triage(initial_message)
        self.cache.invalidate(TRIAGE_SESSION_KEY)
        return data

    def send_triage_message(self, session_id: str, content: str) -> Dict[str, Any]:
        data = self.client.send_triage_message(session_id, content)
        self.cache.invalidate(("/api/triage/messages", session_id))
        self.cache.invalidate(TRIAGE_SESSION_KEY)
        return data

    def close_triage_session(self, session_id: str) -> Dict[str, Any]:
        data = self.client.close_triage_session(session_id)
        self.cache.invalidate(TRIAGE_SESSION_KEY)
        return data

    def resolve_triage_alert(self, alert_id: str) -> Dict[str, Any]:
        data = self.client.resolve_triage_alert(alert_id)
        self.cache.invalidate(TRIAGE_ALERTS_KEY)
        return data

    # ── 관리자 ────────────────────────────────────────────────────────────

    def admin_list(self, resource: str) -> List[Dict[str, Any]]:
        return self.cache.fetch(("/api/admin", resource), lambda: self.client.admin_list(resource))

    def _after_admin_change(self, resource: str) -> None:
        self.cache.invalidate(("/api/admin", resource))
        for key in _ADMIN_INVALIDATION.get(resource, []):
            self.cache.invalidate(key)

    def admin_create(self, resource: str, data: Dict[str, Any]) -> Dict[str, Any]:
        created = self.client.admin_create(resource, data)
        self._after_admin_change(resource)
        return created

    def admin_update(self, resource: str, item_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        updated = self.client.admin_update(resource, item_id, data)
        self._after_admin_change(resource)
        return updated

    def admin_delete(self, resource: str, item_id: str) -> None:
        self.client.admin_delete(resource, item_id)
        self._after_admin_change(resource)

    def create_corporate_invite(self, email: str, **extra: Any) -> Dict[str, Any]:
        data = self.client.create_corporate_invite(email, **extra)
        self.cache.invalidate(CORPORATE_INVITES_KEY)
        return data

    def delete_corporate_invite(self, invite_id: str) -> None:
        self.client.delete_corporate_invite(invite_id)
        self.cache.invalidate(CORPORATE_INVITES_KEY)

    def start_question_generation(
        self,
        quiz_id: str,
        count: int,
        difficulty: str,
        on_complete: Optional[Callable[[GenerationJob], None]] = None,
    ) -> JobPoller:
        """
        문제 생성 작업을 시작하고 (아직 시작되지 않은) 폴러를 돌려준다.
        호출 측이 with 블록 또는 start()/cancel()로 수명을 관리한다.
        """
        job_id = self.client.start_question_generation(quiz_id, count, difficulty)
        logger.info(f"문제 생성 작업 시작: quiz={quiz_id}, job={job_id}, count={count}")
        return JobPoller(
            self.client.get_generation_job,
            job_id,
            cache=self.cache,
            invalidate_keys=[CATEGORIES_KEY, QUIZZES_KEY + (quiz_id,)],
            on_complete=on_complete,
            done_title="Generazione completata!",
            done_message="{count} domande sono state generate con successo.",
            failed_title="Generazione fallita",
        )
