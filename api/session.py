"""
api/session.py — 멀티유저 인메모리 세션 (쿠키 기반)

각 사용자에게 UUID 세션 ID를 발급하고, 세션별로 독립된 상태를 유지.
세션마다 자기 QueryCache를 가지며, PortalService를 통해 명시적으로 전달된다.
TTL(기본 1시간) 경과 시 자동 만료. 만료/초기화 시 진행 중인 폴러를 모두 취소한다.
"""

import threading
import time
import uuid
from typing import Any, Callable, Dict, List, Optional

from config import DEFAULT_LANGUAGE, SESSION_TTL
from health_portal.models.report_model import ReportQuery
from health_portal.services.backend_client import BackendClient
from health_portal.services.portal_service import PortalService
from health_portal.services.query_cache import QueryCache
from health_portal.services.quiz_session import QuizSessionMachine
from health_portal.services.scheduling import cancel_all
from health_portal.services.viewport_controller import ViewportController


def _new_state(backend: BackendClient) -> Dict[str, Any]:
    cache = QueryCache()
    portal = PortalService(backend, cache)
    return {
        "cache": cache,
        "portal": portal,
        "viewport": ViewportController(),
        "report_id": None,
        "findings": [],
        "markers": [],
        "quiz": QuizSessionMachine(
            submitter=portal.submit_quiz_attempt,
            translator=portal.translate_questions,
        ),
        "language": DEFAULT_LANGUAGE,
        "report_query": ReportQuery(),
        "report_page": 1,
        "pollers": {},
        "notices": [],
    }


def _dispose(state: Dict[str, Any]) -> None:
    """세션이 사라질 때 실행 중인 폴러 정리."""
    cancel_all(state.get("pollers", {}))


class SessionStore:
    """
    Args:
        backend: 모든 세션이 공유하는 백엔드 클라이언트 (캐시는 세션별)
        ttl:     세션 만료 시간 (초)
        clock:   현재 시각 함수
    """

    def __init__(
        self,
        backend: BackendClient,
        ttl: int = SESSION_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.backend = backend
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: Dict[str, Dict[str, Any]] = {}
        self._timestamps: Dict[str, float] = {}

    def create_session(self) -> str:
        """새 세션을 생성하고 세션 ID를 반환."""
        sid = uuid.uuid4().hex
        with self._lock:
            self._sessions[sid] = _new_state(self.backend)
            self._timestamps[sid] = self._clock()
        return sid

    def get_session(self, sid: str) -> Optional[Dict[str, Any]]:
        """세션 ID로 세션 데이터를 가져옴. 만료되었거나 없으면 None."""
        expired = None
        with self._lock:
            if sid not in self._sessions:
                return None
            if self._clock() - self._timestamps[sid] > self.ttl:
                expired = self._sessions.pop(sid)
                del self._timestamps[sid]
            else:
                self._timestamps[sid] = self._clock()  # 접근 시 갱신
                return self._sessions[sid]
        _dispose(expired)
        return None

    def get(self, sid: str, key: str, default=None):
        """세션에서 값 읽기."""
        session = self.get_session(sid)
        if session is None:
            return default
        return session.get(key, default)

    def put(self, sid: str, key: str, value) -> None:
        """세션에 값 쓰기."""
        with self._lock:
            if sid in self._sessions:
                self._sessions[sid][key] = value
                self._timestamps[sid] = self._clock()

    def reset(self, sid: str) -> None:
        """세션 초기화 (표시 언어는 유지)."""
        old = None
        with self._lock:
            if sid in self._sessions:
                old = self._sessions[sid]
                self._sessions[sid] = _new_state(self.backend)
                self._sessions[sid]["language"] = old.get("language", DEFAULT_LANGUAGE)
                self._timestamps[sid] = self._clock()
        if old is not None:
            _dispose(old)

    def cleanup_expired(self) -> int:
        """만료된 세션을 정리. 제거된 수 반환."""
        now = self._clock()
        removed: List[Dict[str, Any]] = []
        with self._lock:
            expired = [sid for sid, ts in self._timestamps.items() if now - ts > self.ttl]
            for sid in expired:
                removed.append(self._sessions.pop(sid))
                del self._timestamps[sid]
        for state in removed:
            _dispose(state)
        return len(removed)

    def close_all(self) -> None:
        with self._lock:
            states = list(self._sessions.values())
            self._sessions.clear()
            self._timestamps.clear()
        for state in states:
            _dispose(state)
