"""
services/scheduling.py

주기 작업 (작업 상태 폴링) 공통 기반.

IntervalTask는 컨텍스트 매니저다. with 블록 진입 시 시작하고, 블록을 벗어나면
어떤 경로로든 취소된다. 작업이 스스로 종료 상태에 도달하면(run_once()가 False)
그 자리에서 멈춘다. 취소 누락으로 스레드가 남지 않도록 정리는 __exit__ 한 곳에서 한다.
"""

import logging
import threading
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class IntervalTask:
    """
    interval초마다 run_once()를 호출하는 데몬 스레드.

    Args:
        interval:        호출 간격 (초)
        run_immediately: True면 시작 직후 한 번 먼저 호출
        name:            스레드 이름 (로그용)
    """

    def __init__(self, interval: float, run_immediately: bool = False, name: Optional[str] = None) -> None:
        self.interval = interval
        self.run_immediately = run_immediately
        self.name = name or type(self).__name__
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run_once(self) -> bool:
        """한 번 실행. False를 반환하면 반복을 멈춘다."""
        raise NotImplementedError

    @property
    def active(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    def start(self) -> "IntervalTask":
        if self.active:
            return self
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()
        return self

    def _loop(self) -> None:
        try:
            if self.run_immediately and not self.run_once():
                return
            while not self._stop.wait(self.interval):
                if not self.run_once():
                    return
        finally:
            self._stop.set()
            logger.debug(f"{self.name} 종료")

    def cancel(self) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.interval + 1.0)

    def join(self, timeout: Optional[float] = None) -> bool:
        """작업이 스스로 끝날 때까지 대기. 끝났으면 True."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def __enter__(self) -> "IntervalTask":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()


def cancel_all(tasks: Dict[str, IntervalTask]) -> int:
    """
    보관 중인 작업을 모두 취소하고 비운다. 화면을 떠나거나 세션이 끝날 때 호출.

    Returns:
        취소 시점에 아직 돌고 있던 작업 수
    """
    running = 0
    for task in list(tasks.values()):
        if task.active:
            running += 1
        task.cancel()
    tasks.clear()
    if running:
        logger.info(f"주기 작업 {running}개 취소")
    return running
