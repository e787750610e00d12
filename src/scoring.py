# -*- coding: utf-8 -*-
"""
Compatibility Scorer
====================
UserProfile과 역 하나의 feature 벡터 사이의 적합도 점수 (0-100).

Formula:
    sub(cat)  = mean(feature ratings of cat) × pref(cat) / 5
    w(cat)    = pref(cat) × cw(cat)
    w(price)  = pref(price) × max(cw.price, cw.housing) × (1.5 if cw.price ≥ 3.0 else 1.0)
    base      = Σ sub·w / Σ w × 20                 (Σw = 0 → 0)
    bonus     = min(20, Σ_{top-3 priority tags} tag_feature × 2)
    score     = clamp(base + bonus, 0, 100)

    pref(cat) = 0 인 카테고리는 건너뛴다.

Components:
    housing   : family_friendly, quietness   (rent_level은 price에서 반영)
    transport : accessibility, min(5, 노선 수)
    commercial: shopping, restaurants, convenience
    culture   : entertainment, history, nightlife
    price     : 6 - rent_level, 6 - cost_of_living, 6 - dining_cost   (낮을수록 좋음 → 반전)
"""
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Sequence

import numpy as np

from src.models import Station, UserProfile, balanced_weights
from src.utils import clamp

MAX_CONNECTIONS = 5
INVERT_BASE = 6  # 1-5 척도 반전: 6 - x


def _inverted(x: float) -> float:
    return INVERT_BASE - x


# tag → 역 feature 추출 함수 (값 × bonus_multiplier가 보너스)
TAG_BONUS_FEATURES: Dict[str, Callable[[Station], float]] = {
    "family-friendly": lambda s: s.features.housing.family_friendly,
    "quiet": lambda s: s.features.housing.quietness,
    "affordable": lambda s: _inverted(s.features.price.cost_of_living),
    "shopping": lambda s: s.features.commercial.shopping,
    "nightlife": lambda s: s.features.culture.nightlife,
    "entertainment": lambda s: s.features.culture.entertainment,
    "accessible": lambda s: s.features.transport.accessibility,
    "walkable": lambda s: s.features.transport.walkability,
    "restaurants": lambda s: s.features.commercial.restaurants,
    "history": lambda s: s.features.culture.history,
    "convenient": lambda s: s.features.commercial.convenience,
}


@dataclass(frozen=True)
class ScoringParams:
    scale: float = 20.0                  # 0-5 sub-score → 0-100
    price_boost_threshold: float = 3.0   # cw.price가 이 값 이상이면 price 가중치 추가 부스트
    price_boost: float = 1.5
    bonus_multiplier: float = 2.0
    bonus_tag_limit: int = 3             # 상위 N개 priority 태그만 보너스 대상
    bonus_cap: float = 20.0
    tag_bonus_features: Dict[str, Callable[[Station], float]] = field(
        default_factory=lambda: dict(TAG_BONUS_FEATURES)
    )


DEFAULT_PARAMS = ScoringParams()


def category_score(preference: float, feature_values: Sequence[float]) -> float:
    """Average feature rating scaled by preference strength (0-5 range)."""
    return float(np.mean(feature_values)) * (preference / 5)


def category_features(station: Station) -> Dict[str, List[float]]:
    f = station.features
    return {
        "housing": [f.housing.family_friendly, f.housing.quietness],
        "transport": [
            f.transport.accessibility,
            min(MAX_CONNECTIONS, f.transport.line_count),
        ],
        "commercial": [f.commercial.shopping, f.commercial.restaurants, f.commercial.convenience],
        "culture": [f.culture.entertainment, f.culture.history, f.culture.nightlife],
        "price": [
            _inverted(f.housing.rent_level),
            _inverted(f.price.cost_of_living),
            _inverted(f.price.dining_cost),
        ],
    }


def price_weight_factor(category_weights: Dict[str, float], params: ScoringParams = DEFAULT_PARAMS) -> float:
    combined = max(category_weights["price"], category_weights["housing"])
    if category_weights["price"] >= params.price_boost_threshold:
        combined *= params.price_boost
    return combined


def base_score(profile: UserProfile, station: Station, params: ScoringParams = DEFAULT_PARAMS) -> float:
    preferences = profile.preferences
    category_weights = profile.category_weights or balanced_weights()
    features = category_features(station)

    total_score = 0.0
    total_weight = 0.0
    for category, values in features.items():
        preference = preferences.get(category, 0.0)
        if preference <= 0:
            continue
        if category == "price":
            factor = price_weight_factor(category_weights, params)
        else:
            factor = category_weights[category]
        weight = preference * factor
        total_score += category_score(preference, values) * weight
        total_weight += weight

    if total_weight <= 0:
        return 0.0
    return (total_score / total_weight) * params.scale


def priority_bonus(priorities: Sequence[str], station: Station, params: ScoringParams = DEFAULT_PARAMS) -> float:
    bonus = 0.0
    for tag in list(priorities)[: params.bonus_tag_limit]:
        extract = params.tag_bonus_features.get(tag)
        if extract is not None:
            bonus += extract(station) * params.bonus_multiplier
    return min(params.bonus_cap, bonus)


def score_station(profile: UserProfile, station: Station, params: ScoringParams = DEFAULT_PARAMS) -> float:
    """Compatibility score in [0, 100] (unrounded)."""
    total = base_score(profile, station, params) + priority_bonus(profile.priorities, station, params)
    return clamp(total, 0.0, 100.0)
