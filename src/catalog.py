# -*- coding: utf-8 -*-
"""
Question / Station catalogs
===========================
앱 시작 시 JSON 데이터를 한 번 로드하고, 이후에는 읽기 전용으로 사용한다.

- QuestionCatalog : 질문 목록 (순서 유지), id 조회, 카테고리 필터
- StationCatalog  : 역 목록 (순서 유지), id/이름 조회, feature 범위 필터

검증 정책:
- 질문 데이터 결함은 CatalogError로 즉시 실패 (질문은 진단의 기준 데이터)
- 역 데이터 결함은 IncompleteCandidateData → 해당 역만 제외하고 계속 로드
  (결함 있는 역을 undefined 값으로 채점하지 않는다)
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from src.errors import CatalogError, IncompleteCandidateData
from src.models import (
    CATEGORIES,
    PRIORITY_CATEGORY,
    QUESTION_CATEGORIES,
    CommercialFeatures,
    CultureFeatures,
    HousingFeatures,
    Location,
    Option,
    PriceFeatures,
    Question,
    RentPrices,
    Station,
    StationFeatures,
    TransportFeatures,
)
from src.utils import normalize_station_name

logger = logging.getLogger(__name__)

FEATURE_MIN = 1
FEATURE_MAX = 5

# category -> rated (numeric 1-5) feature fields
FEATURE_FIELDS: Dict[str, Tuple[str, ...]] = {
    "housing": ("rent_level", "family_friendly", "quietness"),
    "transport": ("accessibility", "walkability"),
    "commercial": ("shopping", "restaurants", "convenience"),
    "culture": ("entertainment", "history", "nightlife"),
    "price": ("cost_of_living", "dining_cost"),
}


def _load_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


# ---------------------------------------------------------------------------
# Questions
# ---------------------------------------------------------------------------

def parse_option(record: Dict[str, Any], prefix: str = "") -> Option:
    if not isinstance(record, dict):
        raise CatalogError("Question option must be an object", prefix)
    if not _non_empty_str(record.get("id")):
        raise CatalogError("Option ID must be a non-empty string", f"{prefix}.id")
    if not _non_empty_str(record.get("text")):
        raise CatalogError("Option text must be a non-empty string", f"{prefix}.text")
    if not _is_number(record.get("value")):
        raise CatalogError("Option value must be a number", f"{prefix}.value")

    tags = record.get("tags", [])
    if not isinstance(tags, list):
        raise CatalogError("Option tags must be an array", f"{prefix}.tags")
    for i, tag in enumerate(tags):
        if not isinstance(tag, str):
            raise CatalogError(f"Tag at index {i} must be a string", f"{prefix}.tags[{i}]")

    return Option(
        id=record["id"],
        text=record["text"],
        value=float(record["value"]),
        tags=tuple(tags),
    )


def parse_question(record: Dict[str, Any]) -> Question:
    if not isinstance(record, dict):
        raise CatalogError("Question must be an object")
    if not _non_empty_str(record.get("id")):
        raise CatalogError("Question ID must be a non-empty string", "id")

    qid = record["id"]
    if record.get("category") not in QUESTION_CATEGORIES:
        raise CatalogError(
            f"Question {qid}: category must be one of {', '.join(QUESTION_CATEGORIES)}",
            "category",
        )
    if not _non_empty_str(record.get("text")):
        raise CatalogError(f"Question {qid}: text must be a non-empty string", "text")

    raw_options = record.get("options")
    if not isinstance(raw_options, list) or not raw_options:
        raise CatalogError(f"Question {qid}: must have at least one option", "options")
    options = tuple(
        parse_option(o, f"{qid}.options[{i}]") for i, o in enumerate(raw_options)
    )
    option_ids = [o.id for o in options]
    if len(set(option_ids)) != len(option_ids):
        raise CatalogError(f"Question {qid}: duplicate option ids", "options")

    weight = record.get("weight", 1.0)
    if not _is_number(weight) or weight <= 0:
        raise CatalogError(f"Question {qid}: weight must be a positive number", "weight")

    return Question(
        id=qid,
        category=record["category"],
        text=record["text"],
        options=options,
        weight=float(weight),
    )


class QuestionCatalog:
    """Ordered, immutable question list with an id index."""

    def __init__(self, questions: Iterable[Question]):
        self._questions: Tuple[Question, ...] = tuple(questions)
        self._by_id: Dict[str, Question] = {}
        for q in self._questions:
            if q.id in self._by_id:
                raise CatalogError(f"Duplicate question id: {q.id}", "id")
            self._by_id[q.id] = q

    @classmethod
    def from_records(cls, records: List[Dict[str, Any]]) -> "QuestionCatalog":
        if not isinstance(records, list):
            raise CatalogError("Question data must be an array")
        return cls(parse_question(r) for r in records)

    @classmethod
    def from_json(cls, path) -> "QuestionCatalog":
        catalog = cls.from_records(_load_json(Path(path)))
        logger.info("Questions: %d loaded from %s", len(catalog), path)
        return catalog

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self):
        return iter(self._questions)

    def __contains__(self, question_id: str) -> bool:
        return question_id in self._by_id

    @property
    def questions(self) -> Tuple[Question, ...]:
        return self._questions

    def get(self, question_id: str) -> Optional[Question]:
        return self._by_id.get(question_id)

    def by_category(self, category: str) -> List[Question]:
        return [q for q in self._questions if q.category == category]

    @property
    def priority_question(self) -> Optional[Question]:
        """가중치 전략을 고르는 메타 질문 (카탈로그 상 첫 번째 priority 질문)"""
        for q in self._questions:
            if q.category == PRIORITY_CATEGORY:
                return q
        return None


# ---------------------------------------------------------------------------
# Stations
# ---------------------------------------------------------------------------

def _require_rating(group: Dict[str, Any], name: str, field: str, station_id) -> float:
    value = group.get(name)
    if not _is_number(value) or value < FEATURE_MIN or value > FEATURE_MAX:
        raise IncompleteCandidateData(
            f"Feature value must be a number between {FEATURE_MIN} and {FEATURE_MAX}",
            station_id,
            field,
        )
    return value


def _require_group(features: Dict[str, Any], category: str, station_id) -> Dict[str, Any]:
    group = features.get(category)
    if not isinstance(group, dict):
        raise IncompleteCandidateData(
            "Feature category must be an object", station_id, f"features.{category}"
        )
    return group


def parse_features(features: Any, station_id: Optional[str] = None) -> StationFeatures:
    if not isinstance(features, dict):
        raise IncompleteCandidateData("Station features must be an object", station_id, "features")

    rated = {}
    for category in CATEGORIES:
        group = _require_group(features, category, station_id)
        rated[category] = {
            name: _require_rating(group, name, f"features.{category}.{name}", station_id)
            for name in FEATURE_FIELDS[category]
        }

    connections = features["transport"].get("connections")
    if not isinstance(connections, list) or not all(isinstance(c, str) for c in connections):
        raise IncompleteCandidateData(
            "Transport connections must be an array of strings",
            station_id,
            "features.transport.connections",
        )

    return StationFeatures(
        housing=HousingFeatures(**rated["housing"]),
        transport=TransportFeatures(connections=tuple(connections), **rated["transport"]),
        commercial=CommercialFeatures(**rated["commercial"]),
        culture=CultureFeatures(**rated["culture"]),
        price=PriceFeatures(**rated["price"]),
    )


def parse_station(record: Dict[str, Any]) -> Station:
    """
    Validate a raw station record and build a Station.

    Raises IncompleteCandidateData on any missing or out-of-range field.
    """
    if not isinstance(record, dict):
        raise IncompleteCandidateData("Station must be an object")
    station_id = record.get("id")
    if not _non_empty_str(station_id):
        raise IncompleteCandidateData("Station ID must be a non-empty string", None, "id")
    for name in ("name", "name_en", "description"):
        if not _non_empty_str(record.get(name)):
            raise IncompleteCandidateData(f"Station {name} must be a non-empty string", station_id, name)

    location = record.get("location")
    if not isinstance(location, dict):
        raise IncompleteCandidateData("Location must be an object", station_id, "location")
    lat, lng = location.get("latitude"), location.get("longitude")
    if not _is_number(lat) or not -90 <= lat <= 90:
        raise IncompleteCandidateData(
            "Latitude must be a number between -90 and 90", station_id, "location.latitude"
        )
    if not _is_number(lng) or not -180 <= lng <= 180:
        raise IncompleteCandidateData(
            "Longitude must be a number between -180 and 180", station_id, "location.longitude"
        )

    rent_prices = None
    raw_rent = record.get("rent_prices")
    if raw_rent is not None:
        try:
            rent_prices = RentPrices(**{k: float(v) for k, v in raw_rent.items()})
        except (AttributeError, TypeError, ValueError):
            raise IncompleteCandidateData("Invalid rent_prices", station_id, "rent_prices")

    return Station(
        id=station_id,
        name=record["name"],
        name_en=record["name_en"],
        location=Location(latitude=float(lat), longitude=float(lng)),
        features=parse_features(record.get("features"), station_id),
        description=record["description"],
        rent_prices=rent_prices,
    )


class StationCatalog:
    """
    Read-only station catalog.

    from_records() excludes stations that fail validation; their ids (or
    list positions when the id itself is missing) are kept in `excluded`.
    """

    def __init__(self, stations: Iterable[Station], excluded: Optional[List[str]] = None):
        self._stations: Tuple[Station, ...] = tuple(stations)
        self._by_id: Dict[str, Station] = {s.id: s for s in self._stations}
        self.excluded: List[str] = list(excluded or [])
        self._feature_df: Optional[pd.DataFrame] = None

    @classmethod
    def from_records(cls, records: List[Dict[str, Any]]) -> "StationCatalog":
        stations: List[Station] = []
        excluded: List[str] = []
        seen = set()
        for i, record in enumerate(records):
            try:
                station = parse_station(record)
            except IncompleteCandidateData as e:
                key = e.station_id or f"#{i}"
                logger.warning("Station %s excluded: %s (%s)", key, e, e.field)
                excluded.append(key)
                continue
            if station.id in seen:
                logger.warning("Station %s excluded: duplicate id", station.id)
                excluded.append(station.id)
                continue
            seen.add(station.id)
            stations.append(station)
        return cls(stations, excluded)

    @classmethod
    def from_json(cls, path) -> "StationCatalog":
        catalog = cls.from_records(_load_json(Path(path)))
        logger.info(
            "Stations: %d loaded, %d excluded (%s)",
            len(catalog), len(catalog.excluded), path,
        )
        return catalog

    def __len__(self) -> int:
        return len(self._stations)

    def __iter__(self):
        return iter(self._stations)

    @property
    def stations(self) -> Tuple[Station, ...]:
        return self._stations

    def get(self, station_id: str) -> Optional[Station]:
        return self._by_id.get(station_id)

    def search_by_name(self, name: str) -> List[Station]:
        """Substring match on the Japanese or English name."""
        query = normalize_station_name(name)
        if not query:
            return list(self._stations)
        return [
            s for s in self._stations
            if query in normalize_station_name(s.name) or query in normalize_station_name(s.name_en)
        ]

    @property
    def is_valid(self) -> bool:
        return not self.excluded

    # ----- feature table -----------------------------------------------------

    def feature_frame(self) -> pd.DataFrame:
        """
        역별 feature를 평탄화한 DataFrame (컬럼: id, name, name_en, housing.rent_level, ...).
        transport.lines는 노선 수.
        """
        if self._feature_df is None:
            rows = []
            for s in self._stations:
                row = {"id": s.id, "name": s.name, "name_en": s.name_en}
                for category, names in FEATURE_FIELDS.items():
                    group = getattr(s.features, category)
                    for name in names:
                        row[f"{category}.{name}"] = getattr(group, name)
                row["transport.lines"] = s.features.transport.line_count
                rows.append(row)
            columns = ["id", "name", "name_en"] + [
                f"{c}.{n}" for c, names in FEATURE_FIELDS.items() for n in names
            ] + ["transport.lines"]
            self._feature_df = pd.DataFrame(rows, columns=columns)
        return self._feature_df

    def by_feature_range(self, category: str, feature: str, min_value: float, max_value: float) -> List[Station]:
        column = f"{category}.{feature}"
        df = self.feature_frame()
        if column not in df.columns:
            raise KeyError(column)
        mask = df[column].between(min_value, max_value)
        return [self._by_id[sid] for sid in df.loc[mask, "id"]]
