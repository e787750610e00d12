# -*- coding: utf-8 -*-
"""요청 제한 backend / 미들웨어 테스트"""
import asyncio
from unittest.mock import patch

import pytest

from api.rate_limit import InMemoryBackend, RedisBackend, create_backend


@pytest.fixture
def clock():
    """api.rate_limit.time.time을 수동으로 움직이는 시계"""
    now = [1000.0]
    with patch("api.rate_limit.time.time", side_effect=lambda: now[0]):
        yield now


def test_blocks_after_limit_and_reports_wait(clock):
    backend = InMemoryBackend()

    assert asyncio.run(backend.acquire("1.2.3.4", 2, window=60)) == 0.0
    clock[0] += 10
    assert asyncio.run(backend.acquire("1.2.3.4", 2, window=60)) == 0.0
    clock[0] += 5

    # 첫 요청(1000.0)이 윈도우를 벗어나는 1060.0까지 대기
    assert asyncio.run(backend.acquire("1.2.3.4", 2, window=60)) == pytest.approx(45.0)
    # 다른 키는 영향 없음
    assert asyncio.run(backend.acquire("5.6.7.8", 2, window=60)) == 0.0


def test_window_slides(clock):
    backend = InMemoryBackend()
    asyncio.run(backend.acquire("ip", 1, window=60))

    clock[0] += 59
    assert asyncio.run(backend.acquire("ip", 1, window=60)) > 0

    clock[0] += 1
    assert asyncio.run(backend.acquire("ip", 1, window=60)) == 0.0


def test_blocked_requests_do_not_extend_window(clock):
    backend = InMemoryBackend()
    asyncio.run(backend.acquire("ip", 1, window=60))

    for _ in range(5):
        clock[0] += 10
        asyncio.run(backend.acquire("ip", 1, window=60))

    clock[0] = 1060.0
    assert asyncio.run(backend.acquire("ip", 1, window=60)) == 0.0


def test_idle_keys_are_swept(clock):
    backend = InMemoryBackend(sweep_every=100, idle_ttl=50)
    asyncio.run(backend.acquire("old", 10, window=60))
    clock[0] += 80
    asyncio.run(backend.acquire("recent", 10, window=60))
    assert backend.tracked_keys() == 2

    clock[0] += 30  # 다음 sweep 시점 (1110): old는 110초, recent는 30초 유휴
    asyncio.run(backend.acquire("recent", 10, window=60))

    assert backend.tracked_keys() == 1


def test_create_backend_defaults_to_memory(monkeypatch):
    monkeypatch.delenv("REDIS_URL", raising=False)
    assert isinstance(create_backend(), InMemoryBackend)


def test_create_backend_uses_redis_url(monkeypatch):
    pytest.importorskip("redis")
    monkeypatch.setenv("REDIS_URL", "redis://:secret@localhost:6379/0")
    assert isinstance(create_backend(), RedisBackend)


def test_middleware_returns_retry_after(monkeypatch):
    from fastapi import FastAPI
    from fastapi.testclient import TestClient

    from api.app import RateLimitMiddleware

    monkeypatch.delenv("REDIS_URL", raising=False)
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, requests_per_minute=1)

    @app.get("/api/ping")
    async def ping():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"ok": True}

    with TestClient(app) as client:
        assert client.get("/api/ping").status_code == 200
        blocked = client.get("/api/ping")
        assert blocked.status_code == 429
        assert 1 <= int(blocked.headers["Retry-After"]) <= 60
        # /api/ 밖의 경로는 제한하지 않음
        assert client.get("/health").status_code == 200
        assert client.get("/health").status_code == 200
