# -*- coding: utf-8 -*-
import math
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from api.dependencies import registry
from api.schemas import (
    NearestStationItem, NearestStationResponse, StationFeaturesResponse, StationItem,
    StationValidationResponse, VALID_CATEGORY,
)
from api.serializers import features_model, station_item

router = APIRouter()

EARTH_RADIUS_M = 6_371_000  # Earth radius in meters
NEAREST_COUNT = 3


def _haversine(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Calculate distance in meters between two coordinates using Haversine formula."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


@router.get(
    "/stations",
    response_model=List[StationItem],
    summary="야마노테선 역 목록 조회",
    description="검증을 통과한 야마노테선 역 목록을 카탈로그 순서대로 반환합니다. "
    "name을 지정하면 일본어/영어 역명의 부분 일치로 필터링합니다 "
    "('駅' 접미사, 괄호, 공백, 대소문자 무시).",
    response_description="역 목록 (위치, 특징, 설명, 평균 월세)",
)
async def get_stations(
    name: Optional[str] = Query(None, max_length=50, description="역명 검색어 (예: 新宿, shibuya)"),
):
    catalog = registry.get_stations()
    stations = catalog.search_by_name(name) if name else catalog.stations
    return [station_item(s) for s in stations]


@router.get(
    "/stations/validate/data",
    response_model=StationValidationResponse,
    summary="역 데이터 검증 결과",
    description="로드 시 검증에 실패해 제외된 역 ID 목록과 전체 유효 여부를 반환합니다.",
    response_description="is_valid, 유효 역 수, 제외된 역 ID",
)
async def validate_station_data():
    catalog = registry.get_stations()
    return StationValidationResponse(
        is_valid=catalog.is_valid,
        total_stations=len(catalog),
        excluded=list(catalog.excluded),
    )


@router.get(
    "/stations/search/features",
    response_model=List[StationItem],
    summary="특징 범위로 역 검색",
    description="카테고리의 특정 특징 값이 [min_value, max_value] 범위에 있는 역을 반환합니다. "
    "transport.lines(노선 수)도 검색할 수 있습니다.",
    response_description="조건을 만족하는 역 목록",
)
async def search_by_feature(
    category: VALID_CATEGORY = Query(..., description="카테고리 (예: housing)"),
    feature: str = Query(..., max_length=30, description="특징 이름 (예: quietness)"),
    min_value: float = Query(1, description="최솟값"),
    max_value: float = Query(5, description="최댓값"),
):
    if min_value > max_value:
        raise HTTPException(status_code=400, detail="min_value는 max_value보다 클 수 없습니다")
    catalog = registry.get_stations()
    try:
        stations = catalog.by_feature_range(category, feature, min_value, max_value)
    except KeyError:
        raise HTTPException(status_code=400, detail=f"알 수 없는 특징입니다: {category}.{feature}")
    return [station_item(s) for s in stations]


@router.get(
    "/stations/{station_id}",
    response_model=StationItem,
    summary="역 상세 조회",
    description="역 ID로 역 정보를 조회합니다.",
    response_description="역 정보",
)
async def get_station(station_id: str):
    station = registry.get_stations().get(station_id)
    if station is None:
        raise HTTPException(status_code=404, detail=f"역을 찾을 수 없습니다: {station_id}")
    return station_item(station)


@router.get(
    "/stations/{station_id}/features",
    response_model=StationFeaturesResponse,
    summary="역 특징 조회",
    description="역의 카테고리별 특징 평가(1-5)와 노선 목록을 반환합니다.",
    response_description="카테고리별 특징 값",
)
async def get_station_features(station_id: str):
    station = registry.get_stations().get(station_id)
    if station is None:
        raise HTTPException(status_code=404, detail=f"역을 찾을 수 없습니다: {station_id}")
    return StationFeaturesResponse(station_id=station.id, features=features_model(station))


@router.get(
    "/nearest-station",
    response_model=NearestStationResponse,
    summary="GPS 기반 최근접 역 조회",
    description="주어진 위도/경도 좌표에서 가장 가까운 야마노테선 역 3개를 "
    "Haversine 공식으로 계산하여 반환합니다. 거리(m) 포함.",
    response_description="최근접 3개역 (ID, 이름, 거리, 좌표)",
)
async def get_nearest_station(
    lat: float = Query(..., ge=-90, le=90, description="위도 (예: 35.6812)"),
    lng: float = Query(..., ge=-180, le=180, description="경도 (예: 139.7671)"),
):
    """Return the nearest 3 stations to the given coordinates."""
    distances = []
    for s in registry.get_stations():
        s_lat, s_lng = s.location.latitude, s.location.longitude
        distances.append((s, _haversine(lat, lng, s_lat, s_lng)))

    distances.sort(key=lambda x: x[1])

    return NearestStationResponse(
        stations=[
            NearestStationItem(
                id=s.id,
                name=s.name,
                distance_m=round(dist, 1),
                lat=s.location.latitude,
                lng=s.location.longitude,
            )
            for s, dist in distances[:NEAREST_COUNT]
        ]
    )
