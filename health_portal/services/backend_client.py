"""
services/backend_client.py

외부 REST 백엔드 HTTP 클라이언트 (httpx).
엔드포인트 형태는 백엔드 소유 — 여기서는 JSON/multipart를 그대로 주고받는다.

Public API (요약):
  - 리포트:  list_reports, upload_report, get_report_job, delete_report,
             get_report_image, download_report_pdf, get_value_trend
  - 퀴즈:    get_quiz, submit_quiz_attempt, translate_questions, generate_extended_audio
  - 트리아지: start_triage, get_active_triage_session, send_triage_message,
             close_triage_session, list_triage_alerts, resolve_triage_alert
  - 관리자:  admin_list/create/update/delete, 강의 영상/문제, 기업 초대/접근 권한,
             문제 생성 작업
  - ML:     ml_training_stats, list_ml_records, export_ml_records, validate_ml_record

오류 규칙:
  - 업로드 검증 실패 → UploadValidationError (네트워크 호출 없음)
  - 2xx 이외 응답 → BackendError, 본문에 requiresUpgrade=true면 UpgradeRequiredError
  - 2xx라도 본문이 JSON이 아니거나 모델과 맞지 않으면 BackendError
  - GET은 연결 오류/502·503·504에 지수 백오프 재시도
"""

import logging
import os
import time
from typing import Any, Callable, Dict, List, Optional, Union
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from config import (
    ALLOWED_UPLOAD_TYPES, BACKEND_BASE_URL, BACKEND_MAX_RETRIES, BACKEND_TIMEOUT,
    EXTENDED_AUDIO_TIMEOUT, MAX_UPLOAD_BYTES, SUPPORTED_LANGUAGES,
)
from health_portal.models.job_model import GenerationJob
from health_portal.models.question_model import Question, QuizData, TranslatedQuestion
from health_portal.models.report_model import HealthReport
from health_portal.services.errors import BackendError, UpgradeRequiredError, UploadValidationError

logger = logging.getLogger(__name__)

_BACKOFF_BASE = 0.5
_TRANSIENT_STATUS = (502, 503, 504)

# 관리자 CRUD 리소스: 이름 → (경로, 수정 메서드)
_ADMIN_RESOURCES: Dict[str, tuple] = {
    "quizzes": ("/api/admin/quizzes", "PATCH"),
    "questions": ("/api/admin/questions", "PATCH"),
    "on-demand-courses": ("/api/admin/on-demand-courses", "PUT"),
    "corporate-agreements": ("/api/admin/corporate-agreements", "PATCH"),
}
_CORPORATE_ACCESS_KINDS = ("quiz", "live-course", "on-demand-course")


def _parse(model: type, data: Any, path: str) -> Any:
    """2xx 본문을 모델로 변환. 형식이 어긋나면 BackendError (502와 같은 취급)."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning(f"{path} 응답 형식 오류: {e.error_count()}건")
        raise BackendError(None, "Risposta del server non valida.") from e


def _parse_list(model: type, data: Any, path: str) -> List[BaseModel]:
    if not isinstance(data, list):
        logger.warning(f"{path} 응답 형식 오류: 목록이 아님 ({type(data).__name__})")
        raise BackendError(None, "Risposta del server non valida.")
    return [_parse(model, item, path) for item in data]


def _require_dict(data: Any, path: str) -> Dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning(f"{path} 응답 형식 오류: 객체가 아님 ({type(data).__name__})")
        raise BackendError(None, "Risposta del server non valida.")
    return data


def validate_upload(file_name: str, content: bytes, content_type: str) -> None:
    """
    업로드 전 검증. PDF/JPEG/PNG/HEIC/WEBP, 10MB 이하.

    Raises:
        UploadValidationError
    """
    if not file_name:
        raise UploadValidationError("Seleziona un file da caricare.")
    if not content:
        raise UploadValidationError("Il file è vuoto.")
    if content_type not in ALLOWED_UPLOAD_TYPES:
        ext = os.path.splitext(file_name)[1].lower()
        if ext not in ALLOWED_UPLOAD_TYPES.values() and ext != ".jpeg":
            raise UploadValidationError(
                "Formato non supportato. Carica un file PDF, JPEG, PNG, HEIC o WEBP."
            )
    if len(content) > MAX_UPLOAD_BYTES:
        raise UploadValidationError("Il file supera la dimensione massima di 10MB.")


class BackendClient:
    """
    Args:
        base_url:    백엔드 주소
        timeout:     기본 요청 제한 시간 (초)
        transport:   httpx 전송 계층 (테스트에서 MockTransport 주입)
        headers:     공통 헤더 (인증 쿠키/토큰 등)
        max_retries: GET 최대 시도 횟수
        sleep:       백오프 대기 함수
    """

    def __init__(
        self,
        base_url: str = BACKEND_BASE_URL,
        timeout: float = BACKEND_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
        headers: Optional[Dict[str, str]] = None,
        max_retries: int = BACKEND_MAX_RETRIES,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers=headers,
        )
        self._max_retries = max(1, max_retries)
        self._sleep = sleep

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "BackendClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ══════════════════════════════════════════════════════════════════════
    # 공통 요청 처리
    # ══════════════════════════════════════════════════════════════════════

    def _request(
        self,
        method: str,
        path: str,
        *,
        raw: bool = False,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> Any:
        """요청 + 재시도 + 오류 변환. raw=True면 본문 bytes 반환."""
        if timeout is not None:
            kwargs["timeout"] = timeout
        attempts = self._max_retries if method == "GET" else 1

        for attempt in range(1, attempts + 1):
            try:
                response = self._client.request(method, path, **kwargs)
            except httpx.TimeoutException as e:
                if attempt < attempts:
                    self._backoff(attempt, path, "timeout")
                    continue
                logger.error(f"{method} {path} 시간 초과: {e}")
                raise BackendError(None, "Il server non ha risposto in tempo.") from e
            except httpx.TransportError as e:
                if attempt < attempts:
                    self._backoff(attempt, path, type(e).__name__)
                    continue
                logger.error(f"{method} {path} 연결 실패: {e}")
                raise BackendError(None, "Impossibile contattare il server.") from e

            if response.status_code in _TRANSIENT_STATUS and attempt < attempts:
                self._backoff(attempt, path, str(response.status_code))
                continue
            return self._handle_response(method, path, response, raw)

        raise BackendError(None, "Impossibile contattare il server.")

    def _backoff(self, attempt: int, path: str, reason: str) -> None:
        wait = _BACKOFF_BASE * (2 ** (attempt - 1))
        logger.warning(f"{path} 오류({reason}), {wait:.1f}초 후 재시도 ({attempt}/{self._max_retries})")
        self._sleep(wait)

    @staticmethod
    def _handle_response(method: str, path: str, response: httpx.Response, raw: bool) -> Any:
        if response.is_success:
            if raw:
                return response.content
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                logger.warning(f"{method} {path} → {response.status_code}: JSON이 아닌 응답")
                raise BackendError(response.status_code, "Risposta del server non valida.") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        message = body.get("message") or body.get("error") or response.reason_phrase or "Errore"
        logger.warning(f"{method} {path} → {response.status_code}: {message}")
        if body.get("requiresUpgrade"):
            raise UpgradeRequiredError(response.status_code, message)
        raise BackendError(response.status_code, message)

    # ══════════════════════════════════════════════════════════════════════
    # 사용자 / 리포트
    # ══════════════════════════════════════════════════════════════════════

    def get_current_user(self) -> Dict[str, Any]:
        return self._request("GET", "/api/auth/user")

    def list_reports(self) -> List[HealthReport]:
        path = "/api/health-score/reports/my"
        return _parse_list(HealthReport, self._request("GET", path) or [], path)

    def upload_report(
        self,
        file_name: str,
        content: bytes,
        content_type: str,
    ) -> Union[HealthReport, GenerationJob]:
        """
        리포트 업로드 (multipart). 작은 파일은 분석 결과가 바로 오고,
        큰 파일은 {jobId}가 와서 get_report_job()으로 폴링해야 한다.
        """
        validate_upload(file_name, content, content_type)
        path = "/api/health-score/upload"
        body = _require_dict(
            self._request("POST", path, files={"file": (file_name, content, content_type)}),
            path,
        )

        if body.get("jobId"):
            logger.info(f"업로드 비동기 처리: job={body['jobId']}")
            return GenerationJob(id=body["jobId"], status=body.get("status", "pending"))
        return _parse(HealthReport, body.get("report", body), path)

    def get_report_job(self, job_id: str) -> GenerationJob:
        path = f"/api/health-score/jobs/{quote(job_id, safe='')}"
        data = _require_dict(self._request("GET", path), path)
        data.setdefault("id", job_id)
        return _parse(GenerationJob, data, path)

    def delete_report(self, report_id: str) -> None:
        self._request("DELETE", f"/api/health-score/reports/{quote(report_id, safe='')}")

    def get_report_image(self, report_id: str) -> bytes:
        return self._request("GET", f"/api/health-score/reports/{quote(report_id, safe='')}/image", raw=True)

    def download_report_pdf(self, report_id: str) -> bytes:
        return self._request("GET", f"/api/health-score/reports/{quote(report_id, safe='')}/pdf", raw=True)

    def get_value_trend(self, value_name: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/health-score/trends/{quote(value_name, safe='')}")

    # ══════════════════════════════════════════════════════════════════════
    # 퀴즈
    # ══════════════════════════════════════════════════════════════════════

    def get_quiz(self, quiz_id: str) -> QuizData:
        path = f"/api/quizzes/{quote(quiz_id, safe='')}"
        return _parse(QuizData, self._request("GET", path), path)

    def submit_quiz_attempt(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/quiz-attempts", json=payload) or {}

    def translate_questions(
        self,
        questions: List[Question],
        target_language: str,
        quiz_title: Optional[str] = None,
    ) -> List[TranslatedQuestion]:
        if target_language not in SUPPORTED_LANGUAGES:
            raise UploadValidationError(f"Lingua non supportata: {target_language}")
        body: Dict[str, Any] = {
            "questions": [
                {
                    "id": q.id,
                    "question": q.text,
                    "options": [{"label": o.label, "text": o.text} for o in q.options],
                }
                for q in questions
            ],
            "targetLanguage": target_language,
        }
        if quiz_title:
            body["quizTitle"] = quiz_title
        path = "/api/translate-questions"
        data = _require_dict(self._request("POST", path, json=body), path)
        return _parse_list(TranslatedQuestion, data.get("translatedQuestions") or [], path)

    def generate_extended_audio(self, question_id: str) -> Dict[str, Any]:
        """확장 해설 오디오 생성. 60초 제한 — 무한 대기 방지."""
        return self._request(
            "POST",
            f"/api/questions/{quote(question_id, safe='')}/extended-audio",
            timeout=EXTENDED_AUDIO_TIMEOUT,
        )

    # ══════════════════════════════════════════════════════════════════════
    # 트리아지 (AI 상담)
    # ══════════════════════════════════════════════════════════════════════

    def start_triage(self, initial_message: Optional[str] = None) -> Dict[str, Any]:
        body = {"initialMessage": initial_message} if initial_message else {}
        return self._request("POST", "/api/triage/start", json=body)

    def get_active_triage_session(self) -> Optional[Dict[str, Any]]:
        return self._request("GET", "/api/triage/session/active")

    def send_triage_message(self, session_id: str, content: str) -> Dict[str, Any]:
        if not content.strip():
            raise UploadValidationError("Il messaggio è vuoto.")
        return self._request(
            "POST", f"/api/triage/{quote(session_id, safe='')}/message", json={"content": content}
        )

    def close_triage_session(self, session_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/api/triage/{quote(session_id, safe='')}/close")

    def list_triage_alerts(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/triage/alerts") or []

    def resolve_triage_alert(self, alert_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/api/triage/alerts/{quote(alert_id, safe='')}/resolve")

    # ══════════════════════════════════════════════════════════════════════
    # 관리자 CRUD
    # ══════════════════════════════════════════════════════════════════════

    @staticmethod
    def _admin_resource(resource: str) -> tuple:
        try:
            return _ADMIN_RESOURCES[resource]
        except KeyError:
            raise UploadValidationError(f"Risorsa sconosciuta: {resource}") from None

    def admin_list(self, resource: str) -> List[Dict[str, Any]]:
        path, _ = self._admin_resource(resource)
        return self._request("GET", path) or []

    def admin_create(self, resource: str, data: Dict[str, Any]) -> Dict[str, Any]:
        path, _ = self._admin_resource(resource)
        return self._request("POST", path, json=data)

    def admin_update(self, resource: str, item_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        path, method = self._admin_resource(resource)
        return self._request(method, f"{path}/{quote(item_id, safe='')}", json=data)

    def admin_delete(self, resource: str, item_id: str) -> None:
        path, _ = self._admin_resource(resource)
        self._request("DELETE", f"{path}/{quote(item_id, safe='')}")

    def list_course_videos(self, course_id: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/api/admin/on-demand-courses/{quote(course_id, safe='')}/videos") or []

    def create_course_video(self, course_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request(
            "POST", f"/api/admin/on-demand-courses/{quote(course_id, safe='')}/videos", json=data
        )

    def list_course_questions(self, course_id: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/api/admin/on-demand-courses/{quote(course_id, safe='')}/questions") or []

    def create_course_question(self, course_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request(
            "POST", f"/api/admin/on-demand-courses/{quote(course_id, safe='')}/questions", json=data
        )

    def list_corporate_invites(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/corporate/invites") or []

    def create_corporate_invite(self, email: str, **extra: Any) -> Dict[str, Any]:
        if not email or "@" not in email:
            raise UploadValidationError("Inserisci un indirizzo email valido.")
        return self._request("POST", "/api/corporate/invites", json={"email": email, **extra})

    def delete_corporate_invite(self, invite_id: str) -> None:
        self._request("DELETE", f"/api/corporate/invites/{quote(invite_id, safe='')}")

    def grant_corporate_access(self, kind: str, agreement_id: str, item_id: str) -> Dict[str, Any]:
        """기업 협약에 퀴즈/라이브 강의/주문형 강의 배정."""
        return self._corporate_access("POST", kind, agreement_id, item_id)

    def revoke_corporate_access(self, kind: str, agreement_id: str, item_id: str) -> Dict[str, Any]:
        return self._corporate_access("DELETE", kind, agreement_id, item_id)

    def _corporate_access(self, method: str, kind: str, agreement_id: str, item_id: str) -> Dict[str, Any]:
        if kind not in _CORPORATE_ACCESS_KINDS:
            raise UploadValidationError(f"Tipo di accesso sconosciuto: {kind}")
        return self._request(
            method,
            f"/api/admin/corporate-access/{kind}",
            json={"agreementId": agreement_id, "itemId": item_id},
        ) or {}

    def start_question_generation(self, quiz_id: str, count: int, difficulty: str) -> str:
        """AI 문제 생성 작업 시작. 작업 ID 반환."""
        if count <= 0:
            raise UploadValidationError("Il numero di domande deve essere positivo.")
        path = "/api/admin/generate-questions"
        data = _require_dict(
            self._request("POST", path, json={"quizId": quiz_id, "count": count, "difficulty": difficulty}),
            path,
        )
        if not data.get("jobId"):
            logger.warning(f"{path} 응답 형식 오류: jobId 없음")
            raise BackendError(None, "Risposta del server non valida.")
        return data["jobId"]

    def get_generation_job(self, job_id: str) -> GenerationJob:
        path = f"/api/admin/generation-jobs/{quote(job_id, safe='')}"
        data = _require_dict(self._request("GET", path), path)
        data.setdefault("id", job_id)
        return _parse(GenerationJob, data, path)

    # ══════════════════════════════════════════════════════════════════════
    # ML 학습 데이터 (관리자/의사 전용, 권한은 백엔드가 판단)
    # ══════════════════════════════════════════════════════════════════════

    def ml_training_stats(self) -> Dict[str, Any]:
        return self._request("GET", "/api/ml/training/stats")

    def list_ml_records(self, page: int = 1, request_type: str = "", model_used: str = "") -> Dict[str, Any]:
        params: Dict[str, Any] = {"page": page}
        if request_type:
            params["requestType"] = request_type
        if model_used:
            params["modelUsed"] = model_used
        return self._request("GET", "/api/ml/training/records", params=params)

    def export_ml_records(self, request_type: str = "", model_used: str = "") -> bytes:
        """아직 내보내지 않은 레코드만 내보낸다."""
        params: Dict[str, Any] = {"excludeAlreadyIncluded": "true"}
        if request_type:
            params["requestType"] = request_type
        if model_used:
            params["modelUsed"] = model_used
        return self._request("GET", "/api/ml/training/export", params=params, raw=True)

    def validate_ml_record(self, record_id: str, is_valid: bool, notes: str = "") -> Dict[str, Any]:
        return self._request(
            "POST",
            f"/api/ml/training/records/{quote(record_id, safe='')}/validate",
            json={"isValid": is_valid, "notes": notes},
        )
