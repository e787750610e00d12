# -*- coding: utf-8 -*-
"""
세션 저장소 모듈
- 세션별 답변 목록 + 캐시된 UserProfile 보관
- 선택적 TTL / 최대 개수 (LRU 제거)
- Thread-safe: 저장소 전체는 RLock, 세션 단위 read-modify-write는 세션별 RLock
"""
import threading
import time
from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Dict, Iterator, Optional, Protocol, Tuple

from src.models import Answer, UserProfile


@dataclass(frozen=True)
class SessionState:
    answers: Tuple[Answer, ...] = ()
    profile: Optional[UserProfile] = None  # 새 답변 제출 시 None으로 무효화


class SessionStore(Protocol):
    """Session store protocol expected by DiagnosticService."""

    def get(self, session_id: str) -> Optional[SessionState]:
        ...

    def put(self, session_id: str, state: SessionState) -> None:
        ...

    def update(self, session_id: str, state: SessionState) -> bool:
        """세션이 남아 있을 때만 state를 교체하고 교체 여부를 반환"""
        ...

    def delete(self, session_id: str) -> None:
        ...

    def exists(self, session_id: str) -> bool:
        ...

    def lock(self, session_id: str):
        """세션 단위 read-modify-write를 직렬화하는 context manager"""
        ...


@dataclass
class _SessionLock:
    lock: threading.RLock = field(default_factory=threading.RLock)
    holders: int = 0  # lock()에 진입했거나 대기 중인 수


class InMemorySessionStore:
    """
    프로세스 메모리 기반 세션 저장소 (thread-safe)
    - ttl_seconds: 마지막 접근 이후 만료 시간 (None이면 만료 없음)
    - max_size: 최대 세션 수, 초과 시 가장 오래 사용하지 않은 세션 제거 (None이면 무제한)

    세션별 락은 세션 데이터와 별도로 관리한다. 락 항목은 lock()을 잡고 있거나
    기다리는 스레드가 있는 동안만 존재하고, 마지막 holder가 빠질 때 제거된다.
    따라서 delete/만료/LRU 제거가 사용 중인 락을 바꿔치기하지 않고,
    없는 세션 id 조회가 락 항목을 남기지도 않는다.
    """

    def __init__(self, max_size: Optional[int] = None, ttl_seconds: Optional[float] = None):
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self.sessions: OrderedDict[str, Dict] = OrderedDict()  # {session_id: {state, timestamp}}
        self._lock = threading.RLock()
        self._session_locks: Dict[str, _SessionLock] = {}

    def _cleanup_expired(self):
        """만료된 세션 제거 (caller must hold lock)"""
        if self.ttl_seconds is None:
            return
        now = time.time()
        expired_keys = [
            key for key, data in self.sessions.items()
            if now - data["timestamp"] > self.ttl_seconds
        ]
        for key in expired_keys:
            del self.sessions[key]

    def get(self, session_id: str) -> Optional[SessionState]:
        with self._lock:
            self._cleanup_expired()
            if session_id in self.sessions:
                self.sessions.move_to_end(session_id)
                entry = self.sessions[session_id]
                entry["timestamp"] = time.time()
                return entry["state"]
            return None

    def put(self, session_id: str, state: SessionState) -> None:
        with self._lock:
            self._cleanup_expired()

            if session_id in self.sessions:
                self.sessions.move_to_end(session_id)
            elif self.max_size is not None and len(self.sessions) >= self.max_size:
                self.sessions.popitem(last=False)

            self.sessions[session_id] = {
                "state": state,
                "timestamp": time.time(),
            }

    def update(self, session_id: str, state: SessionState) -> bool:
        with self._lock:
            self._cleanup_expired()
            if session_id not in self.sessions:
                return False
            self.put(session_id, state)
            return True

    def delete(self, session_id: str) -> None:
        with self._lock:
            self.sessions.pop(session_id, None)

    def exists(self, session_id: str) -> bool:
        with self._lock:
            self._cleanup_expired()
            return session_id in self.sessions

    def invalidate_profiles(self) -> None:
        """캐시된 프로필만 비운다 (답변은 유지). 질문 카탈로그 리로드 후 사용."""
        with self._lock:
            for entry in self.sessions.values():
                entry["state"] = replace(entry["state"], profile=None)

    def clear(self) -> None:
        with self._lock:
            self.sessions.clear()

    def __len__(self) -> int:
        with self._lock:
            self._cleanup_expired()
            return len(self.sessions)

    @contextmanager
    def lock(self, session_id: str) -> Iterator[None]:
        with self._lock:
            entry = self._session_locks.get(session_id)
            if entry is None:
                entry = self._session_locks[session_id] = _SessionLock()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._lock:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._session_locks[session_id]
