"""
소설별 업로드 잠금

같은 소설에 대한 두 업로드 세션이 동시에 "현재 최대 챕터 번호"를 읽고
그 뒤에 이어 붙이면 번호가 충돌하므로, 커밋 구간을 slug 단위로 직렬화합니다.
다른 소설끼리는 서로 기다리지 않습니다.
"""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from novel_backend.config.settings import settings
from novel_backend.ingestion.errors import ConcurrentIngestionError

logger = logging.getLogger(__name__)


class NovelLockRegistry:
    """slug별 RLock 관리 (대기/보유 중인 세션이 없으면 잠금 제거)"""

    def __init__(self):
        self._locks: Dict[str, threading.RLock] = {}
        self._users: Dict[str, int] = {}  # slug별 대기+보유 중인 hold() 수
        self._meta_lock = threading.Lock()  # _locks, _users 딕셔너리 보호

    def __len__(self) -> int:
        return len(self._locks)

    def _get_lock(self, slug: str) -> threading.RLock:
        with self._meta_lock:
            lock = self._locks.get(slug)
            if lock is None:
                lock = threading.RLock()
                self._locks[slug] = lock
            self._users[slug] = self._users.get(slug, 0) + 1
            return lock

    def _release_lock(self, slug: str) -> None:
        with self._meta_lock:
            remaining = self._users.get(slug, 1) - 1
            if remaining > 0:
                self._users[slug] = remaining
            else:
                self._users.pop(slug, None)
                self._locks.pop(slug, None)

    @contextmanager
    def hold(self, slug: str, timeout: Optional[float] = None) -> Iterator[None]:
        """
        slug 잠금을 잡은 상태로 블록 실행

        Args:
            slug: 소설 slug
            timeout: 대기 시간 (초, None이면 settings.lock_timeout_seconds)

        Raises:
            ConcurrentIngestionError: 시간 안에 잠금을 얻지 못함
        """
        if timeout is None:
            timeout = settings.lock_timeout_seconds
        lock = self._get_lock(slug)

        wait_start = time.time()
        if not lock.acquire(timeout=timeout):
            self._release_lock(slug)
            logger.warning(f"[WARNING] 업로드 잠금 대기 시간 초과: slug={slug}, timeout={timeout}s")
            raise ConcurrentIngestionError(
                f"Another upload for '{slug}' is in progress, try again later"
            )

        wait_time = time.time() - wait_start
        if wait_time > 0.1:
            logger.info(f"[INFO] 업로드 잠금 획득: slug={slug}, 대기 {wait_time:.3f}초")
        try:
            yield
        finally:
            lock.release()
            self._release_lock(slug)


# 전역 잠금 레지스트리 (프로세스 단위)
novel_locks = NovelLockRegistry()
