# -*- coding: utf-8 -*-
"""질문/역 카탈로그 로드 및 검증 테스트"""
import json

import pytest

from conftest import PROJECT_ROOT, station_record
from src.catalog import QuestionCatalog, StationCatalog, parse_station
from src.errors import CatalogError, IncompleteCandidateData
from src.utils import normalize_station_name


class TestQuestionCatalog:
    """질문 카탈로그 검증"""

    def test_loads_in_order(self, questions):
        assert [q.id for q in questions] == ["housing_01", "housing_02", "price_01", "priority_01"]
        assert "price_01" in questions
        assert questions.get("nope") is None

    def test_priority_question(self, questions):
        assert questions.priority_question.id == "priority_01"

    def test_no_priority_question(self, question_records):
        catalog = QuestionCatalog.from_records(question_records[:3])
        assert catalog.priority_question is None

    def test_missing_options(self, question_records):
        question_records[0]["options"] = []
        with pytest.raises(CatalogError) as exc_info:
            QuestionCatalog.from_records(question_records)
        assert exc_info.value.field == "options"

    def test_unknown_category(self, question_records):
        question_records[0]["category"] = "weather"
        with pytest.raises(CatalogError):
            QuestionCatalog.from_records(question_records)

    def test_duplicate_question_id(self, question_records):
        question_records[1]["id"] = "housing_01"
        with pytest.raises(CatalogError):
            QuestionCatalog.from_records(question_records)

    def test_duplicate_option_id(self, question_records):
        question_records[0]["options"][1]["id"] = "housing_01_a"
        with pytest.raises(CatalogError):
            QuestionCatalog.from_records(question_records)

    @pytest.mark.parametrize("weight", [0, -1, "heavy"])
    def test_bad_weight(self, question_records, weight):
        question_records[0]["weight"] = weight
        with pytest.raises(CatalogError):
            QuestionCatalog.from_records(question_records)

    def test_non_string_tag(self, question_records):
        question_records[0]["options"][0]["tags"] = ["quiet", 3]
        with pytest.raises(CatalogError) as exc_info:
            QuestionCatalog.from_records(question_records)
        assert exc_info.value.field == "housing_01.options[0].tags[1]"

    def test_weight_defaults_to_one(self, question_records):
        del question_records[1]["weight"]
        assert QuestionCatalog.from_records(question_records).get("housing_02").weight == 1.0


class TestStationValidation:
    """역 레코드 검증"""

    def test_valid_record(self):
        station = parse_station(station_record("tokyo", "東京", connections=("A", "B", "A")))

        assert station.features.transport.line_count == 2
        assert station.rent_prices is None

    @pytest.mark.parametrize("value", [0, 6, "5", None, True])
    def test_rating_out_of_range(self, value):
        record = station_record("x", "駅X")
        record["features"]["culture"]["history"] = value

        with pytest.raises(IncompleteCandidateData) as exc_info:
            parse_station(record)
        assert exc_info.value.field == "features.culture.history"
        assert exc_info.value.station_id == "x"

    def test_missing_feature_group(self):
        record = station_record("x", "駅X")
        del record["features"]["price"]
        with pytest.raises(IncompleteCandidateData):
            parse_station(record)

    def test_connections_must_be_strings(self):
        record = station_record("x", "駅X")
        record["features"]["transport"]["connections"] = "JR山手線"
        with pytest.raises(IncompleteCandidateData):
            parse_station(record)

    def test_bad_location(self):
        record = station_record("x", "駅X", location={"latitude": 135.0, "longitude": 139.7})
        with pytest.raises(IncompleteCandidateData):
            parse_station(record)

    def test_bad_rent_prices(self):
        record = station_record("x", "駅X", rent_prices={"one_k": "cheap"})
        with pytest.raises(IncompleteCandidateData):
            parse_station(record)


class TestStationCatalog:
    """역 카탈로그 로드/검색"""

    def test_invalid_stations_are_excluded(self):
        broken = station_record("broken", "壊れた駅")
        broken["features"]["housing"]["quietness"] = 9
        no_id = station_record("tmp", "無名駅")
        del no_id["id"]

        catalog = StationCatalog.from_records([
            station_record("a", "駅A"),
            broken,
            no_id,
            station_record("a", "駅A重複"),
            station_record("b", "駅B"),
        ])

        assert [s.id for s in catalog] == ["a", "b"]
        assert catalog.excluded == ["broken", "#2", "a"]
        assert not catalog.is_valid

    def test_search_by_name(self):
        catalog = StationCatalog.from_records([
            station_record("shinjuku", "新宿", name_en="Shinjuku"),
            station_record("shin-okubo", "新大久保", name_en="Shin-Okubo"),
            station_record("shibuya", "渋谷", name_en="Shibuya"),
        ])

        assert [s.id for s in catalog.search_by_name("新宿駅")] == ["shinjuku"]
        assert [s.id for s in catalog.search_by_name("新")] == ["shinjuku", "shin-okubo"]
        assert [s.id for s in catalog.search_by_name("SHIBUYA Station")] == ["shibuya"]
        assert catalog.search_by_name("Osaka") == []
        assert len(catalog.search_by_name("")) == 3

    def test_feature_range(self):
        catalog = StationCatalog.from_records([
            station_record("a", "駅A", rating=2),
            station_record("b", "駅B", rating=4),
            station_record("c", "駅C", rating=5, connections=("L1", "L2", "L3")),
        ])

        assert [s.id for s in catalog.by_feature_range("housing", "quietness", 4, 5)] == ["b", "c"]
        assert [s.id for s in catalog.by_feature_range("transport", "lines", 3, 10)] == ["c"]
        with pytest.raises(KeyError):
            catalog.by_feature_range("housing", "sunshine", 1, 5)

    def test_feature_frame(self):
        catalog = StationCatalog.from_records([station_record("a", "駅A", rent=2)])
        df = catalog.feature_frame()

        assert df.loc[0, "housing.rent_level"] == 2
        assert df.loc[0, "transport.lines"] == 1
        assert "transport.connections" not in df.columns

    def test_from_json(self, tmp_path):
        path = tmp_path / "stations.json"
        path.write_text(json.dumps([station_record("a", "駅A")], ensure_ascii=False), encoding="utf-8")

        catalog = StationCatalog.from_json(path)
        assert catalog.get("a").name == "駅A"


class TestBundledData:
    """저장소에 포함된 data/*.json 검증"""

    def test_questions_json(self):
        catalog = QuestionCatalog.from_json(PROJECT_ROOT / "data" / "questions.json")

        assert catalog.priority_question is not None
        for category in ("housing", "transport", "commercial", "culture", "price"):
            assert catalog.by_category(category), category

    def test_stations_json(self):
        catalog = StationCatalog.from_json(PROJECT_ROOT / "data" / "stations.json")

        assert catalog.is_valid
        assert len(catalog) == 30
        assert catalog.get("shinjuku").name == "新宿"


@pytest.mark.parametrize("raw, expected", [
    ("新宿駅", "新宿"),
    ("新宿 (東京)", "新宿"),
    ("Takanawa Gateway", "takanawagateway"),
    ("Shibuya Station", "shibuya"),
    ("高輪ゲートウェイ　駅", "高輪ゲートウェイ"),
    (None, ""),
])
def test_normalize_station_name(raw, expected):
    assert normalize_station_name(raw) == expected
