# -*- coding: utf-8 -*-
"""적합도 점수 계산 테스트"""
from dataclasses import replace

import pytest

from src.models import CATEGORIES, UserProfile
from src.scoring import (
    DEFAULT_PARAMS, base_score, category_features, category_score, price_weight_factor,
    priority_bonus, score_station,
)


def test_category_score_scales_mean_by_preference():
    assert category_score(5, [4, 2]) == pytest.approx(3.0)
    assert category_score(2.5, [4]) == pytest.approx(2.0)


class TestScoreStation:
    """score_station 기본 동작"""

    def test_better_station_scores_higher(self, station_pair, full_profile):
        """A(모든 특징 5, 가격 1) > B(모든 특징 1, 가격 5)"""
        a, b = station_pair
        score_a = score_station(full_profile, a)
        score_b = score_station(full_profile, b)

        assert score_a > score_b
        assert 0 <= score_b <= score_a <= 100
        assert score_a == pytest.approx(100.0)
        assert score_b == pytest.approx(20.0)

    def test_empty_priorities_means_no_bonus(self, station_pair, full_profile):
        a, b = station_pair
        for station in (a, b):
            assert priority_bonus(full_profile.priorities, station) == 0.0
            assert score_station(full_profile, station) == pytest.approx(base_score(full_profile, station))

    def test_zero_preferences_score_zero(self, station_pair):
        a, _ = station_pair
        profile = UserProfile(preferences={c: 0.0 for c in CATEGORIES})
        assert score_station(profile, a) == 0.0

    def test_zero_preference_category_is_skipped(self, station_pair):
        """preference 0인 카테고리는 평균에 들어가지 않는다."""
        _, b = station_pair
        only_housing = UserProfile(preferences={"housing": 5.0, "transport": 0.0, "commercial": 0.0,
                                                "culture": 0.0, "price": 0.0})
        # housing sub = mean(1, 1) × 5/5 = 1 → 1 × 20
        assert base_score(only_housing, b) == pytest.approx(20.0)

    def test_score_is_clamped(self, station_pair):
        a, _ = station_pair
        profile = UserProfile(
            preferences={c: 5.0 for c in CATEGORIES},
            priorities=("quiet", "shopping", "nightlife"),
        )
        assert score_station(profile, a) == 100.0


class TestPriorityBonus:
    def test_bonus_is_capped(self, station_pair):
        a, _ = station_pair
        # 5 × 2 × 3 = 30 → 20
        assert priority_bonus(("quiet", "shopping", "nightlife"), a) == 20.0

    def test_only_leading_tags_count(self, station_pair):
        a, _ = station_pair
        assert priority_bonus(("x", "y", "z", "quiet"), a) == 0.0

    def test_affordable_uses_inverted_cost(self, station_pair):
        a, b = station_pair
        assert priority_bonus(("affordable",), a) == 10.0  # (6 - 1) × 2
        assert priority_bonus(("affordable",), b) == 2.0   # (6 - 5) × 2

    def test_unknown_tags_ignored(self, station_pair):
        a, _ = station_pair
        assert priority_bonus(("single-life", "residential"), a) == 0.0

    def test_custom_params(self, station_pair):
        a, _ = station_pair
        params = replace(DEFAULT_PARAMS, bonus_multiplier=1.0, bonus_cap=100.0)
        assert priority_bonus(("quiet", "shopping"), a, params) == 10.0


class TestPriceWeight:
    def test_balanced_weights_have_no_boost(self):
        assert price_weight_factor({c: 1.0 for c in CATEGORIES}) == 1.0

    def test_price_preset_gets_boost(self):
        weights = {"housing": 2.5, "transport": 0.5, "commercial": 0.5, "culture": 0.5, "price": 3.0}
        assert price_weight_factor(weights) == pytest.approx(4.5)

    def test_housing_weight_carries_into_price(self):
        weights = {"housing": 2.0, "transport": 0.5, "commercial": 0.5, "culture": 0.5, "price": 2.0}
        assert price_weight_factor(weights) == 2.0

    def test_price_priority_favours_cheap_station(self, make_station):
        """가격 우선이면 저렴하지만 평범한 역이 비싸고 좋은 역을 앞지른다."""
        cheap = make_station("cheap", "安い駅", rating=3, rent=1)
        pricey = make_station("pricey", "高い駅", rating=4, rent=5)
        preferences = {c: 4.0 for c in CATEGORIES}

        balanced = UserProfile(preferences=preferences)
        price_first = UserProfile(
            preferences=preferences,
            category_weights={"housing": 2.5, "transport": 0.5, "commercial": 0.5,
                              "culture": 0.5, "price": 3.0},
        )

        gap_balanced = score_station(balanced, cheap) - score_station(balanced, pricey)
        gap_price = score_station(price_first, cheap) - score_station(price_first, pricey)
        assert gap_price > gap_balanced
        assert gap_price > 0


def test_transport_counts_distinct_lines_up_to_five(make_station):
    many = make_station("many", "多い駅", connections=[f"L{i}" for i in range(8)])
    dup = make_station("dup", "重複駅", connections=["L1", "L1", "L2"])

    assert category_features(many)["transport"][1] == 5
    assert category_features(dup)["transport"][1] == 2
