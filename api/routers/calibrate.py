# -*- coding: utf-8 -*-
import asyncio
import os
from dataclasses import replace
from fastapi import APIRouter, HTTPException, Header, Depends, Query
from api.schemas import (
    CalibrationRequest,
    CalibrationResponse,
    SensitivityPoint,
)
from api.dependencies import registry
from api.routers.recommend import resolve_profile
from src.scoring import ScoringParams
from typing import List, Optional

router = APIRouter()

TUNABLE_FIELDS = (
    "scale",
    "price_boost_threshold",
    "price_boost",
    "bonus_multiplier",
    "bonus_tag_limit",
    "bonus_cap",
)


def verify_api_key(x_api_key: Optional[str] = Header(None)) -> None:
    """API Key 검증 (env var YAMANOTE_API_KEY가 설정된 경우만)"""
    api_key = os.getenv("YAMANOTE_API_KEY")
    if api_key:  # env var가 설정된 경우만 검증
        if not x_api_key or x_api_key != api_key:
            raise HTTPException(status_code=403, detail="유효하지 않은 API 키입니다")


def _calibration_response(params: ScoringParams) -> CalibrationResponse:
    return CalibrationResponse(
        scale=params.scale,
        price_boost_threshold=params.price_boost_threshold,
        price_boost=params.price_boost,
        bonus_multiplier=params.bonus_multiplier,
        bonus_tag_limit=params.bonus_tag_limit,
        bonus_cap=params.bonus_cap,
        bonus_tags=list(params.tag_bonus_features.keys()),
    )


@router.post(
    "/calibrate",
    response_model=CalibrationResponse,
    summary="점수 파라미터 조정",
    description="적합도 점수 계산 상수(스케일, 가격 가중치 부스트, 우선 태그 보너스)를 "
    "런타임에 조정합니다. 지정하지 않은 값은 현재 값을 유지합니다.",
    response_description="적용된 파라미터 값",
)
async def calibrate(req: CalibrationRequest, _: None = Depends(verify_api_key)):
    """점수 파라미터를 런타임에 조정한다."""
    engine = registry.get_engine()

    with registry.engine_lock:
        changes = {
            name: getattr(req, name)
            for name in TUNABLE_FIELDS
            if getattr(req, name) is not None
        }
        engine.params = replace(engine.params, **changes)
        params = engine.params

    return _calibration_response(params)


@router.get(
    "/calibrate",
    response_model=CalibrationResponse,
    summary="현재 파라미터 조회",
    description="현재 설정된 적합도 점수 파라미터를 반환합니다.",
    response_description="현재 설정된 파라미터 값",
)
async def get_calibration():
    """현재 파라미터 값을 반환한다."""
    return _calibration_response(registry.get_engine().params)


@router.get(
    "/sensitivity",
    response_model=List[SensitivityPoint],
    summary="가격 부스트 민감도 분석",
    description="price 가중치 부스트 배율을 1.0~3.0까지 0.25 간격으로 sweep하며, "
    "세션 프로필 기준 역별 점수와 순위 변화를 반환합니다. 파라미터 튜닝에 활용할 수 있습니다.",
    response_description="부스트 값별 역별 점수 배열",
)
async def sensitivity_analysis(
    session_id: str = Query(..., max_length=64, description="진단 세션 ID"),
):
    """price_boost를 1.0~3.0까지 sweep하여 각 역의 점수 변화를 반환한다."""
    engine = registry.get_engine()
    profile = await asyncio.to_thread(resolve_profile, session_id, None)

    with registry.engine_lock:
        base_params = engine.params

    def sweep() -> List[SensitivityPoint]:
        # 공유 engine.params는 건드리지 않고 호출마다 params를 넘긴다
        results = []
        for boost_100 in range(100, 325, 25):  # 1.00 ~ 3.00, step 0.25
            boost = boost_100 / 100.0
            scores_df = engine.score_frame(profile, replace(base_params, price_boost=boost))
            for _, row in scores_df.iterrows():
                results.append(SensitivityPoint(
                    price_boost=boost,
                    station_id=str(row["station_id"]),
                    score=round(float(row["score"]), 2),
                    rank=int(row["rank"]),
                ))
        return results

    return await asyncio.to_thread(sweep)
