"""
Yamanote Finder API 요청 제한 (슬라이딩 윈도우)

backend.acquire(key, limit, window)는 요청을 허용하면 0.0을, 차단하면
다음 요청이 가능해질 때까지 남은 초를 돌려준다. 미들웨어는 이 값을
Retry-After 헤더로 내려준다.

- InMemoryBackend (기본): 워커 하나 기준, 추가 의존성 없음
- RedisBackend: REDIS_URL 지정 시 사용, 워커 간 카운트 공유 (redis extra)
"""
import os
import time
import logging
from collections import deque
from typing import Deque, Dict, Protocol

logger = logging.getLogger(__name__)

KEY_PREFIX = "yamanote:rate_limit"


class RateLimitBackend(Protocol):
    async def acquire(self, key: str, limit: int, window: float) -> float:
        ...


class InMemoryBackend:
    """
    키(클라이언트 IP)마다 최근 요청 시각을 deque에 쌓는다.
    idle_ttl 동안 요청이 없던 키는 sweep_every 간격으로 정리한다.
    """

    def __init__(self, sweep_every: float = 3600, idle_ttl: float = 120) -> None:
        self._windows: Dict[str, Deque[float]] = {}
        self._sweep_every = sweep_every
        self._idle_ttl = idle_ttl
        self._next_sweep = time.time() + sweep_every

    def _sweep(self, now: float) -> None:
        if now < self._next_sweep:
            return
        self._next_sweep = now + self._sweep_every
        for key in [k for k, hits in self._windows.items() if not hits or now - hits[-1] > self._idle_ttl]:
            del self._windows[key]

    def tracked_keys(self) -> int:
        return len(self._windows)

    async def acquire(self, key: str, limit: int, window: float) -> float:
        now = time.time()
        self._sweep(now)

        hits = self._windows.setdefault(key, deque())
        horizon = now - window
        while hits and hits[0] <= horizon:
            hits.popleft()

        if len(hits) >= limit:
            return hits[0] - horizon if hits else float(window)
        hits.append(now)
        return 0.0


class RedisBackend:
    """
    키마다 Sorted Set(score = 요청 시각)을 두고 먼저 기록한 뒤 개수를 센다.
    한도를 넘은 요청은 기록을 되돌리고, 가장 오래된 기록 기준으로 대기 시간을 계산한다.
    """

    def __init__(self, redis_url: str, prefix: str = KEY_PREFIX) -> None:
        import redis.asyncio as aioredis  # pip install ".[redis]"

        self._redis = aioredis.from_url(redis_url, decode_responses=True)
        self._prefix = prefix
        logger.info("Rate limiting: Redis backend (%s)", redis_url.rsplit("@", 1)[-1])

    async def acquire(self, key: str, limit: int, window: float) -> float:
        now = time.time()
        redis_key = f"{self._prefix}:{key}"
        member = f"{now:.6f}:{id(self)}"

        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(redis_key, "-inf", now - window)
            pipe.zadd(redis_key, {member: now})
            pipe.zcard(redis_key)
            pipe.zrange(redis_key, 0, 0, withscores=True)
            pipe.expire(redis_key, int(window) + 1)
            _, _, count, oldest, _ = await pipe.execute()

        if count <= limit:
            return 0.0

        await self._redis.zrem(redis_key, member)
        oldest_at = oldest[0][1] if oldest else now
        return max(oldest_at + window - now, 0.0)


def create_backend() -> RateLimitBackend:
    """REDIS_URL이 있으면 RedisBackend, 없으면 InMemoryBackend"""
    redis_url = os.getenv("REDIS_URL")
    if redis_url:
        return RedisBackend(redis_url)
    return InMemoryBackend()
