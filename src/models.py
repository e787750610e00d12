# -*- coding: utf-8 -*-
"""
Domain records for the Yamanote diagnostic.

Questions/Options/Stations are loaded once and never mutated.
Answers and UserProfiles are session-scoped; a UserProfile carries an
immutable snapshot of the answers it was computed from.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional, Tuple


Category = Literal["housing", "transport", "commercial", "culture", "price"]
QuestionCategory = Literal["housing", "transport", "commercial", "culture", "price", "priority"]

CATEGORIES: Tuple[str, ...] = ("housing", "transport", "commercial", "culture", "price")
PRIORITY_CATEGORY = "priority"
QUESTION_CATEGORIES: Tuple[str, ...] = CATEGORIES + (PRIORITY_CATEGORY,)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def balanced_weights() -> Dict[str, float]:
    return {c: 1.0 for c in CATEGORIES}


# ---------------------------------------------------------------------------
# Questions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Option:
    id: str
    text: str
    value: float
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Question:
    id: str
    category: str
    text: str
    options: Tuple[Option, ...]
    weight: float = 1.0

    def find_option(self, option_id: str) -> Optional[Option]:
        for option in self.options:
            if option.id == option_id:
                return option
        return None

    @property
    def is_priority(self) -> bool:
        return self.category == PRIORITY_CATEGORY


@dataclass(frozen=True)
class Answer:
    question_id: str
    selected_option_id: str
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class UserProfile:
    preferences: Dict[str, float]
    category_weights: Dict[str, float] = field(default_factory=balanced_weights)
    priorities: Tuple[str, ...] = ()
    answers: Tuple[Answer, ...] = ()


# ---------------------------------------------------------------------------
# Stations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class HousingFeatures:
    rent_level: int
    family_friendly: int
    quietness: int


@dataclass(frozen=True)
class TransportFeatures:
    accessibility: int
    connections: Tuple[str, ...]
    walkability: int

    @property
    def line_count(self) -> int:
        """중복 제거한 노선 수"""
        return len(set(self.connections))


@dataclass(frozen=True)
class CommercialFeatures:
    shopping: int
    restaurants: int
    convenience: int


@dataclass(frozen=True)
class CultureFeatures:
    entertainment: int
    history: int
    nightlife: int


@dataclass(frozen=True)
class PriceFeatures:
    cost_of_living: int
    dining_cost: int


@dataclass(frozen=True)
class StationFeatures:
    housing: HousingFeatures
    transport: TransportFeatures
    commercial: CommercialFeatures
    culture: CultureFeatures
    price: PriceFeatures


@dataclass(frozen=True)
class RentPrices:
    """Average monthly rent in 10k yen."""
    one_k: float
    one_ldk: float
    two_ldk: float
    three_ldk: float


@dataclass(frozen=True)
class Station:
    id: str
    name: str
    name_en: str
    location: Location
    features: StationFeatures
    description: str
    rent_prices: Optional[RentPrices] = None


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Explanation:
    matching_features: List[str] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)
    considerations: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Recommendation:
    station: Station
    score: float
    rank: int
    explanation: Explanation = field(default_factory=Explanation)
