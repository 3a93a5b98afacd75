"""
services/query_cache.py

컴포넌트 간 공유 데이터(현재 사용자, 리포트, 카테고리 등)의 클라이언트 캐시.
키는 논리적 리소스 경로 튜플 — 예: ("/api/quizzes", quiz_id)
전역 싱글턴이 아니라 필요한 곳에 핸들을 직접 넘긴다.

동시 요청 병합은 하지 않는다. 같은 키를 여러 번 가져오면 마지막으로 끝난 응답이 남는다.
생성/수정/삭제 후에는 반드시 invalidate()로 관련 키를 무효화한다.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

CacheKey = Tuple[Hashable, ...]


class QueryCache:

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[CacheKey, Tuple[Any, float]] = {}

    def get(self, key: CacheKey, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
        return entry[0] if entry is not None else default

    def updated_at(self, key: CacheKey) -> Optional[float]:
        with self._lock:
            entry = self._entries.get(key)
        return entry[1] if entry is not None else None

    def set(self, key: CacheKey, value: Any) -> None:
        with self._lock:
            self._entries[key] = (value, time.time())

    def __contains__(self, key: CacheKey) -> bool:
        with self._lock:
            return key in self._entries

    def fetch(self, key: CacheKey, loader: Callable[[], Any]) -> Any:
        """
        캐시에 있으면 그대로, 없으면 loader() 결과를 저장 후 반환.
        loader가 예외를 던지면 캐시는 바뀌지 않는다.
        """
        with self._lock:
            entry = self._entries.get(key)
        if entry is not None:
            return entry[0]

        # 락 밖에서 로드. 같은 키 동시 로드 시 마지막 결과가 남는다
        value = loader()
        self.set(key, value)
        return value

    def invalidate(self, prefix: Union[CacheKey, str]) -> int:
        """
        prefix로 시작하는 모든 키 삭제.
        ("/api/quizzes",)는 ("/api/quizzes", "q1")도 지운다.

        Returns:
            삭제된 키 수
        """
        if isinstance(prefix, str):
            prefix = (prefix,)
        n = len(prefix)
        with self._lock:
            stale: List[CacheKey] = [k for k in self._entries if k[:n] == prefix]
            for k in stale:
                del self._entries[k]
        if stale:
            logger.info(f"캐시 무효화: {prefix} → {len(stale)}개")
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
