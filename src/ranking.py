# -*- coding: utf-8 -*-
"""
Ranking & Explanation
=====================
모든 역을 채점하고 상위 k개 추천(설명 포함) 또는 전체 순위(설명 없음)를 만든다.

- 정렬: 점수 내림차순, 동점은 카탈로그 순서 유지
- 점수는 소수 둘째 자리 반올림 (정렬은 반올림 전 점수 기준)
- 같은 프로필 + 같은 카탈로그 → 항상 같은 결과 (난수/숨은 상태 없음)
"""
import logging
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from src.errors import UnknownStation
from src.models import Explanation, Recommendation, Station, UserProfile
from src.scoring import DEFAULT_PARAMS, ScoringParams, score_station

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 3

GOOD_THRESHOLD = 4        # feature ≥ 4 → 강점
LOW_COST_THRESHOLD = 2    # rent/cost ≤ 2 → 저렴
HIGH_RENT_THRESHOLD = 4   # rent ≥ 4 → 고려사항
MULTI_LINE_THRESHOLD = 3  # 노선 3개 이상
PREFERENCE_GATE = 3       # 선호도가 3 초과인 카테고리만 설명


def round_score(score: float) -> float:
    return round(score, 2)


# ---------------------------------------------------------------------------
# Explanations
# ---------------------------------------------------------------------------

def _feature_rules(station: Station):
    """
    (category, matched, matching feature label, strength text) 목록.
    rent_level의 고가 고려사항은 explain_station()에서 따로 처리한다.
    """
    f = station.features
    n = station.name
    return [
        ("housing", f.housing.family_friendly >= GOOD_THRESHOLD,
         "family-friendly environment", f"{n}は家族連れに優しい環境が整っています"),
        ("housing", f.housing.quietness >= GOOD_THRESHOLD,
         "quiet residential area", f"{n}は静かな住宅地として知られています"),
        ("housing", f.housing.rent_level <= LOW_COST_THRESHOLD,
         "affordable housing", f"{n}周辺は比較的手頃な家賃で住むことができます"),
        ("transport", f.transport.accessibility >= GOOD_THRESHOLD,
         "excellent accessibility", f"{n}は交通アクセスが非常に良好です"),
        ("transport", f.transport.walkability >= GOOD_THRESHOLD,
         "walkable area", f"{n}周辺は徒歩での移動がしやすい環境です"),
        ("transport", f.transport.line_count >= MULTI_LINE_THRESHOLD,
         "multiple train lines", f"{n}は複数の路線が利用できて便利です"),
        ("commercial", f.commercial.shopping >= GOOD_THRESHOLD,
         "excellent shopping", f"{n}周辺にはショッピング施設が充実しています"),
        ("commercial", f.commercial.restaurants >= GOOD_THRESHOLD,
         "diverse dining options", f"{n}には多様な飲食店が揃っています"),
        ("commercial", f.commercial.convenience >= GOOD_THRESHOLD,
         "convenient daily shopping", f"{n}は日常の買い物に便利な立地です"),
        ("culture", f.culture.entertainment >= GOOD_THRESHOLD,
         "rich entertainment", f"{n}周辺にはエンターテイメント施設が豊富です"),
        ("culture", f.culture.history >= GOOD_THRESHOLD,
         "historical significance", f"{n}は歴史的な魅力のある地域です"),
        ("culture", f.culture.nightlife >= GOOD_THRESHOLD,
         "vibrant nightlife", f"{n}は活気のあるナイトライフが楽しめます"),
        ("price", f.price.cost_of_living <= LOW_COST_THRESHOLD,
         "affordable living costs", f"{n}は生活コストが比較的抑えられます"),
        ("price", f.price.dining_cost <= LOW_COST_THRESHOLD,
         "affordable dining", f"{n}周辺では手頃な価格で食事を楽しめます"),
    ]


def _priority_rules(station: Station) -> Dict[str, Tuple[bool, str]]:
    f = station.features
    n = station.name
    return {
        "family-friendly": (f.housing.family_friendly >= GOOD_THRESHOLD,
                            f"あなたが重視する「家族向け」の環境が{n}には整っています"),
        "quiet": (f.housing.quietness >= GOOD_THRESHOLD,
                  f"あなたが求める「静かな環境」が{n}で見つかります"),
        "affordable": (f.price.cost_of_living <= LOW_COST_THRESHOLD,
                       f"あなたが重視する「手頃な価格」の条件を{n}が満たしています"),
        "shopping": (f.commercial.shopping >= GOOD_THRESHOLD,
                     f"あなたが重視する「ショッピング」環境が{n}には充実しています"),
        "nightlife": (f.culture.nightlife >= GOOD_THRESHOLD,
                      f"あなたが求める「ナイトライフ」が{n}で楽しめます"),
    }


def explain_station(station: Station, profile: UserProfile, priority_limit: int = 3) -> Explanation:
    """Human-readable reasons a station fits (or does not fit) a profile."""
    preferences = profile.preferences
    matching: List[str] = []
    strengths: List[str] = []
    considerations: List[str] = []

    for category, matched, label, text in _feature_rules(station):
        if preferences.get(category, 0.0) <= PREFERENCE_GATE:
            continue
        if matched:
            matching.append(label)
            strengths.append(text)
        elif category == "housing" and label == "affordable housing" \
                and station.features.housing.rent_level >= HIGH_RENT_THRESHOLD:
            considerations.append(f"{station.name}周辺の家賃は比較的高めです")

    priority_rules = _priority_rules(station)
    for tag in list(profile.priorities)[:priority_limit]:
        rule = priority_rules.get(tag)
        if rule is not None and rule[0]:
            strengths.append(rule[1])

    if not matching:
        considerations.append(f"{station.name}はバランスの取れた地域として推薦されました")

    return Explanation(
        matching_features=matching,
        strengths=strengths,
        considerations=considerations,
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class RecommendationEngine:
    """
    Score and rank a fixed station list against a UserProfile.

    The station list is read-only; `params` can be swapped atomically
    (dataclasses.replace) by the calibration endpoint.
    """

    def __init__(self, stations: Iterable[Station], params: ScoringParams = DEFAULT_PARAMS):
        self.stations: Tuple[Station, ...] = tuple(stations)
        self._by_id: Dict[str, Station] = {s.id: s for s in self.stations}
        self.params = params

    def get_station(self, station_id: str) -> Station:
        station = self._by_id.get(station_id)
        if station is None:
            raise UnknownStation(station_id)
        return station

    def score_all(self, profile: UserProfile, params: Optional[ScoringParams] = None) -> Dict[str, float]:
        """station_id → unrounded score, in catalog order."""
        active = params if params is not None else self.params
        return {s.id: score_station(profile, s, active) for s in self.stations}

    def score_frame(self, profile: UserProfile, params: Optional[ScoringParams] = None) -> pd.DataFrame:
        """
        Returns pd.DataFrame with columns: station_id, score, order, rank
        sorted by score desc, ties by catalog order.
        """
        scores = self.score_all(profile, params)
        result = pd.DataFrame({
            "station_id": list(scores.keys()),
            "score": list(scores.values()),
            "order": range(len(scores)),
        })
        result = result.sort_values(["score", "order"], ascending=[False, True])
        result["rank"] = range(1, len(result) + 1)
        return result.reset_index(drop=True)

    def _ranked(self, profile: UserProfile) -> List[Tuple[Station, float]]:
        df = self.score_frame(profile)
        return [
            (self._by_id[row.station_id], float(row.score))
            for row in df.itertuples(index=False)
        ]

    def top_recommendations(self, profile: UserProfile, k: int = DEFAULT_TOP_K) -> List[Recommendation]:
        ranked = self._ranked(profile)[:max(k, 0)]
        return [
            Recommendation(
                station=station,
                score=round_score(score),
                rank=i + 1,
                explanation=explain_station(station, profile),
            )
            for i, (station, score) in enumerate(ranked)
        ]

    def full_ranking(self, profile: UserProfile) -> List[Recommendation]:
        """Every station ranked 1..N, explanations left empty."""
        return [
            Recommendation(station=station, score=round_score(score), rank=i + 1)
            for i, (station, score) in enumerate(self._ranked(profile))
        ]

    def explain(self, profile: UserProfile, station_id: str) -> Tuple[Station, float, Explanation]:
        station = self.get_station(station_id)
        score = score_station(profile, station, self.params)
        return station, round_score(score), explain_station(station, profile)
