"""
services/errors.py

클라이언트 계층 예외.
모든 예외는 해당 사용자 동작에만 영향을 주며, 재시도로 복구 가능하다.
"""

from typing import Optional


class PortalError(Exception):
    """클라이언트 계층 공통 예외."""


class UploadValidationError(PortalError):
    """필수값 누락, 파일 형식/크기 오류. 네트워크 호출 전에 발생."""


class BackendError(PortalError):
    """백엔드가 2xx 이외로 응답했거나 연결에 실패한 경우."""

    def __init__(self, status_code: Optional[int], message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class UpgradeRequiredError(BackendError):
    """AI 토큰 한도 초과 등 요금제 업그레이드가 필요한 경우 (requiresUpgrade)."""


class JobFailedError(PortalError):
    """폴링 중인 비동기 작업이 failed 상태로 끝난 경우."""

    def __init__(self, job_id: str, reason: str) -> None:
        super().__init__(reason)
        self.job_id = job_id
        self.reason = reason


class QuizStateError(PortalError):
    """현재 퀴즈 상태에서 허용되지 않는 동작."""
