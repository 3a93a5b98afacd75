"""
services/job_poller.py

백엔드 비동기 작업(문제 생성, 리포트 분석) 상태 폴링.
3초 간격, completed/failed에서 스스로 멈춘다. 화면/세션 종료 시 cancel().
"""

import logging
from typing import Callable, List, Optional, Sequence

from config import JOB_POLL_INTERVAL
from health_portal.models.job_model import GenerationJob
from health_portal.models.notice_model import Notice
from health_portal.services.errors import JobFailedError, PortalError
from health_portal.services.query_cache import CacheKey, QueryCache
from health_portal.services.scheduling import IntervalTask

logger = logging.getLogger(__name__)


class JobPoller(IntervalTask):
    """
    Args:
        fetch_job:        job_id → GenerationJob (BackendClient 메서드 등)
        job_id:           폴링할 작업 ID
        cache:            완료 시 무효화할 캐시 핸들
        invalidate_keys:  완료 시 무효화할 키 접두사들
        on_complete:      완료 콜백
        on_failed:        실패 콜백 (JobFailedError 전달)
        done_title:       완료 알림 제목
        done_message:     완료 알림 본문. {count}는 job.generated_count로 채운다
        failed_title:     실패 알림 제목 (본문은 백엔드가 준 오류 메시지)
    """

    def __init__(
        self,
        fetch_job: Callable[[str], GenerationJob],
        job_id: str,
        cache: Optional[QueryCache] = None,
        invalidate_keys: Sequence[CacheKey] = (),
        on_complete: Optional[Callable[[GenerationJob], None]] = None,
        on_failed: Optional[Callable[[JobFailedError], None]] = None,
        interval: float = JOB_POLL_INTERVAL,
        done_title: str = "Operazione completata",
        done_message: str = "",
        failed_title: str = "Operazione non riuscita",
    ) -> None:
        super().__init__(interval, run_immediately=True, name=f"job-poller-{job_id}")
        self.job_id = job_id
        self.job: Optional[GenerationJob] = None
        self.notices: List[Notice] = []
        self._fetch_job = fetch_job
        self._cache = cache
        self._invalidate_keys = list(invalidate_keys)
        self._on_complete = on_complete
        self._on_failed = on_failed
        self._done_title = done_title
        self._done_message = done_message
        self._failed_title = failed_title

    def run_once(self) -> bool:
        try:
            job = self._fetch_job(self.job_id)
        except PortalError as e:
            # 일시적 오류는 다음 주기에 다시 시도
            logger.warning(f"작업 상태 조회 실패 ({self.job_id}): {e}")
            return True

        self.job = job
        if job.status == "completed":
            logger.info(f"작업 완료: {self.job_id} (생성 {job.generated_count})")
            if self._cache is not None:
                for key in self._invalidate_keys:
                    self._cache.invalidate(key)
            self.notices.append(Notice(
                level="success",
                title=self._done_title,
                message=self._done_message.format(count=job.generated_count or 0),
            ))
            if self._on_complete:
                self._on_complete(job)
            return False

        if job.status == "failed":
            reason = job.error or "Si è verificato un errore durante l'elaborazione."
            logger.error(f"작업 실패: {self.job_id} — {reason}")
            self.notices.append(Notice(
                level="error",
                title=self._failed_title,
                message=reason,
            ))
            if self._on_failed:
                self._on_failed(JobFailedError(self.job_id, reason))
            return False

        return True
