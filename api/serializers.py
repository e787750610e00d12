# -*- coding: utf-8 -*-
"""
도메인 dataclass ↔ pydantic 스키마 변환.
"""
from dataclasses import asdict
from typing import Iterable, List

from api.schemas import (
    AnswerItem, ExplanationModel, OptionItem, ProfileModel, QuestionItem,
    RecommendationItem, StationFeaturesModel, StationItem,
)
from src.models import (
    CATEGORIES, Answer, Explanation, Question, Recommendation, Station,
    UserProfile, balanced_weights,
)


def question_item(question: Question) -> QuestionItem:
    return QuestionItem(
        id=question.id,
        category=question.category,
        text=question.text,
        weight=question.weight,
        options=[
            OptionItem(id=o.id, text=o.text, value=o.value, tags=list(o.tags))
            for o in question.options
        ],
    )


def answer_items(answers: Iterable[Answer]) -> List[AnswerItem]:
    return [
        AnswerItem(
            question_id=a.question_id,
            selected_option_id=a.selected_option_id,
            timestamp=a.timestamp,
        )
        for a in answers
    ]


def profile_model(profile: UserProfile) -> ProfileModel:
    return ProfileModel(
        preferences=dict(profile.preferences),
        category_weights=dict(profile.category_weights),
        priorities=list(profile.priorities),
        answers=answer_items(profile.answers),
    )


def to_profile(model: ProfileModel) -> UserProfile:
    """요청 본문의 프로필 → UserProfile (빠진 카테고리는 선호도 0, 가중치 1.0)"""
    preferences = {c: float(model.preferences.get(c, 0.0)) for c in CATEGORIES}
    weights = balanced_weights()
    weights.update({c: float(w) for c, w in model.category_weights.items()})
    return UserProfile(
        preferences=preferences,
        category_weights=weights,
        priorities=tuple(model.priorities),
        answers=tuple(
            Answer(
                question_id=a.question_id,
                selected_option_id=a.selected_option_id,
                timestamp=a.timestamp,
            )
            for a in model.answers
        ),
    )


def features_model(station: Station) -> StationFeaturesModel:
    f = station.features
    transport = asdict(f.transport)
    transport["connections"] = list(f.transport.connections)
    return StationFeaturesModel(
        housing=asdict(f.housing),
        transport=transport,
        commercial=asdict(f.commercial),
        culture=asdict(f.culture),
        price=asdict(f.price),
    )


def station_item(station: Station) -> StationItem:
    return StationItem(
        id=station.id,
        name=station.name,
        name_en=station.name_en,
        location={
            "latitude": station.location.latitude,
            "longitude": station.location.longitude,
        },
        features=features_model(station),
        description=station.description,
        rent_prices=asdict(station.rent_prices) if station.rent_prices else None,
    )


def explanation_model(explanation: Explanation) -> ExplanationModel:
    return ExplanationModel(
        matching_features=list(explanation.matching_features),
        strengths=list(explanation.strengths),
        considerations=list(explanation.considerations),
    )


def recommendation_item(rec: Recommendation) -> RecommendationItem:
    return RecommendationItem(
        station=station_item(rec.station),
        score=rec.score,
        rank=rec.rank,
        explanation=explanation_model(rec.explanation),
    )
