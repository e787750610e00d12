import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from api.schemas import (
    ExplainResponse, ProfileModel, RecommendationRequest, RecommendationResponse, ScoreItem,
)
from api.dependencies import registry
from api.serializers import (
    explanation_model, profile_model, recommendation_item, station_item, to_profile,
)
from src.errors import SessionNotFound, UnknownStation
from src.models import UserProfile

router = APIRouter()


def resolve_profile(session_id: Optional[str], user_profile: Optional[ProfileModel]) -> UserProfile:
    """session_id가 있으면 세션 프로필, 없으면 요청 본문의 프로필을 사용한다."""
    if session_id:
        try:
            return registry.get_diagnostic().get_profile(session_id)
        except SessionNotFound:
            raise HTTPException(status_code=404, detail=f"세션을 찾을 수 없습니다: {session_id}")
    if user_profile is not None:
        return to_profile(user_profile)
    raise HTTPException(status_code=400, detail="session_id 또는 user_profile 중 하나가 필요합니다")


@router.post(
    "/recommendations",
    response_model=RecommendationResponse,
    summary="추천 역 조회",
    description="진단 결과(세션 또는 직접 전달한 프로필)를 바탕으로 야마노테선 전 역의 적합도를 "
    "계산하고, 상위 k개 역을 설명과 함께 반환합니다.",
    response_description="상위 k개 추천 역(점수, 순위, 설명)과 사용된 프로필",
)
async def recommend(req: RecommendationRequest):
    engine = registry.get_engine()
    profile = await asyncio.to_thread(resolve_profile, req.session_id, req.user_profile)

    try:
        recommendations = await asyncio.to_thread(engine.top_recommendations, profile, req.k)
    except Exception as e:
        logging.error(f"Recommend failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="추천 계산 중 오류가 발생했습니다")

    return RecommendationResponse(
        recommendations=[recommendation_item(r) for r in recommendations],
        profile=profile_model(profile),
    )


@router.post(
    "/recommendations/full-ranking",
    response_model=RecommendationResponse,
    summary="전체 역 순위 조회",
    description="모든 역을 적합도 순으로 정렬해 1..N 순위를 매깁니다. 설명은 포함하지 않습니다.",
    response_description="전체 역 순위와 사용된 프로필",
)
async def full_ranking(req: RecommendationRequest):
    engine = registry.get_engine()
    profile = await asyncio.to_thread(resolve_profile, req.session_id, req.user_profile)

    try:
        ranking = await asyncio.to_thread(engine.full_ranking, profile)
    except Exception as e:
        logging.error(f"Full ranking failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="순위 계산 중 오류가 발생했습니다")

    return RecommendationResponse(
        recommendations=[recommendation_item(r) for r in ranking],
        profile=profile_model(profile),
    )


@router.post(
    "/recommendations/scores",
    response_model=List[ScoreItem],
    summary="역별 점수 조회",
    description="모든 역의 적합도 점수(소수 둘째 자리 반올림)를 내림차순으로 반환합니다.",
    response_description="역 ID, 역명, 점수, 순위",
)
async def scores(req: RecommendationRequest):
    engine = registry.get_engine()
    profile = await asyncio.to_thread(resolve_profile, req.session_id, req.user_profile)
    ranking = await asyncio.to_thread(engine.full_ranking, profile)
    return [
        ScoreItem(station_id=r.station.id, name=r.station.name, score=r.score, rank=r.rank)
        for r in ranking
    ]


@router.post(
    "/recommendations/explain/{station_id}",
    response_model=ExplainResponse,
    summary="추천 이유 설명",
    description="특정 역이 프로필에 맞는(또는 맞지 않는) 이유를 반환합니다.",
    response_description="역 정보, 점수, 설명(일치 특징, 강점, 고려사항)",
)
async def explain(station_id: str, req: RecommendationRequest):
    engine = registry.get_engine()
    profile = await asyncio.to_thread(resolve_profile, req.session_id, req.user_profile)
    try:
        station, score, explanation = await asyncio.to_thread(engine.explain, profile, station_id)
    except UnknownStation:
        raise HTTPException(status_code=404, detail=f"역을 찾을 수 없습니다: {station_id}")
    return ExplainResponse(
        station=station_item(station),
        score=score,
        explanation=explanation_model(explanation),
    )
