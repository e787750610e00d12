"""
pytest 설정 파일
"""
import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# 프로젝트 루트를 sys.path에 추가
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# 테스트 중에는 rate limit에 걸리지 않도록 (app import 전에 설정)
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "10000")


@pytest.fixture(scope="session")
def test_client():
    """FastAPI 테스트 클라이언트 픽스처"""
    from api.app import app
    with TestClient(app) as client:
        yield client


def station_record(station_id, name, rating=3, rent=3, connections=("JR山手線",), **overrides):
    """
    stations.json 형식의 역 레코드.
    rating: rent/cost 외 모든 특징 값, rent: rent_level/cost_of_living/dining_cost
    """
    record = {
        "id": station_id,
        "name": name,
        "name_en": station_id.capitalize(),
        "location": {"latitude": 35.68, "longitude": 139.76},
        "features": {
            "housing": {"rent_level": rent, "family_friendly": rating, "quietness": rating},
            "transport": {
                "accessibility": rating,
                "connections": list(connections),
                "walkability": rating,
            },
            "commercial": {"shopping": rating, "restaurants": rating, "convenience": rating},
            "culture": {"entertainment": rating, "history": rating, "nightlife": rating},
            "price": {"cost_of_living": rent, "dining_cost": rent},
        },
        "description": f"{name}のテスト用データ",
    }
    record.update(overrides)
    return record


QUESTION_RECORDS = [
    {
        "id": "housing_01",
        "category": "housing",
        "text": "住環境",
        "weight": 2.0,
        "options": [
            {"id": "housing_01_a", "text": "静か", "value": 5, "tags": ["quiet", "family-friendly"]},
            {"id": "housing_01_b", "text": "普通", "value": 3, "tags": ["convenient"]},
        ],
    },
    {
        "id": "housing_02",
        "category": "housing",
        "text": "家族",
        "weight": 1.0,
        "options": [
            {"id": "housing_02_a", "text": "重要", "value": 4, "tags": ["family-friendly"]},
            {"id": "housing_02_b", "text": "不要", "value": 1, "tags": []},
        ],
    },
    {
        "id": "price_01",
        "category": "price",
        "text": "家賃",
        "weight": 1.0,
        "options": [
            {"id": "price_01_a", "text": "安く", "value": 5, "tags": ["affordable"]},
            {"id": "price_01_b", "text": "気にしない", "value": 1, "tags": []},
        ],
    },
    {
        "id": "priority_01",
        "category": "priority",
        "text": "最重視",
        "weight": 1.0,
        "options": [
            {"id": "priority_01_housing", "text": "住環境", "value": 0},
            {"id": "priority_01_price", "text": "家賃", "value": 0},
            {"id": "priority_01_none", "text": "なし", "value": 0},
            {"id": "priority_01_unknown", "text": "その他", "value": 0},
        ],
    },
]


@pytest.fixture
def question_records():
    """테스트용 질문 레코드 (housing 2개, price 1개, priority 1개)"""
    import copy
    return copy.deepcopy(QUESTION_RECORDS)


@pytest.fixture
def questions(question_records):
    from src.catalog import QuestionCatalog
    return QuestionCatalog.from_records(question_records)


@pytest.fixture
def session_store():
    from src.session import InMemorySessionStore
    return InMemorySessionStore()


@pytest.fixture
def diagnostic_service(questions, session_store):
    from src.diagnostic import DiagnosticService
    return DiagnosticService(questions, session_store)


@pytest.fixture
def make_station():
    """역 레코드 → Station 팩토리"""
    from src.catalog import parse_station

    def _make(station_id, name, **kwargs):
        return parse_station(station_record(station_id, name, **kwargs))
    return _make


@pytest.fixture
def station_pair(make_station):
    """A: 모든 특징 5 / 가격 1, B: 모든 특징 1 / 가격 5"""
    a = make_station("a", "駅A", rating=5, rent=1, connections=("L1", "L2", "L3", "L4", "L5"))
    b = make_station("b", "駅B", rating=1, rent=5, connections=("L1",))
    return a, b


@pytest.fixture
def full_profile():
    """모든 카테고리 선호도 5, 가중치 1.0, priorities 없음"""
    from src.models import CATEGORIES, UserProfile
    return UserProfile(preferences={c: 5.0 for c in CATEGORIES})
