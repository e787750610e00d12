# -*- coding: utf-8 -*-
"""
Yamanote Finder FastAPI Application
"""
import math
import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from api.rate_limit import create_backend

from api.dependencies import registry
from api.routers import diagnostic, recommend, stations, calibrate

APP_VERSION = "1.0.0"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """IP별 분당 요청 제한 미들웨어"""
    def __init__(self, app, requests_per_minute: int = 60):
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.backend = create_backend()

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith("/api/"):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"

        retry_after = await self.backend.acquire(client_ip, self.requests_per_minute, window=60)
        if retry_after > 0:
            return JSONResponse(
                status_code=429,
                content={"detail": "요청 한도를 초과했습니다. 잠시 후 다시 시도해주세요."},
                headers={"Retry-After": str(math.ceil(retry_after))},
            )

        return await call_next(request)


@asynccontextmanager
async def lifespan(app: FastAPI):
    registry.load()
    yield


app = FastAPI(title="Yamanote Finder", version=APP_VERSION, lifespan=lifespan)


allowed_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:8000,http://127.0.0.1:8000").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=500)

app.add_middleware(
    RateLimitMiddleware,
    requests_per_minute=int(os.getenv("RATE_LIMIT_PER_MINUTE", "60")),
)

app.include_router(diagnostic.router, prefix="/api", tags=["diagnostic"])
app.include_router(recommend.router, prefix="/api", tags=["recommend"])
app.include_router(stations.router, prefix="/api", tags=["stations"])
app.include_router(calibrate.router, prefix="/api", tags=["calibrate"])


@app.get(
    "/health",
    summary="서비스 상태 확인",
    description="카탈로그 로드 여부, 질문 수, 역 수, 제외된 역 수 등 서비스 상태를 반환합니다.",
    response_description="status(healthy/degraded/unavailable), version, questions/stations 수",
)
async def health():
    try:
        engine = registry.get_engine()
        catalog = registry.get_stations()
        questions = registry.get_diagnostic().questions
        has_data = len(engine.stations) > 0 and len(questions) > 0
        return {
            "status": "healthy" if has_data and catalog.is_valid else "degraded",
            "version": APP_VERSION,
            "questions": len(questions),
            "stations": len(engine.stations),
            "excluded_stations": len(catalog.excluded),
        }
    except RuntimeError:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "detail": "Engine not loaded"},
        )


@app.post(
    "/api/reload",
    summary="데이터 리로드",
    description="questions.json / stations.json 파일이 갱신된 후, 카탈로그를 메모리에 다시 로드합니다. "
               "진행 중인 세션과 보정된 파라미터는 유지하되, 캐시된 프로필은 다음 조회 때 다시 계산됩니다.",
    response_description="리로드 성공 여부(status), 메시지, 질문/역 수",
)
async def reload_data():
    """데이터를 다시 로드한다. 새 JSON 파일 반영 시 사용."""
    try:
        with registry.engine_lock:
            registry.load()
        return {
            "status": "ok",
            "message": "데이터가 성공적으로 다시 로드되었습니다.",
            "questions": len(registry.get_diagnostic().questions),
            "stations": len(registry.get_stations()),
        }
    except Exception as e:
        logging.exception("Data reload failed")
        return JSONResponse(
            status_code=500,
            content={"status": "error", "detail": f"데이터 리로드 실패: {str(e)}"},
        )
