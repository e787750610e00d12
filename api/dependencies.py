"""
서비스 싱글턴 관리.
앱 시작 시 카탈로그를 한 번 로드하고, 모든 요청에서 재사용한다.
"""
import logging
import os
import sys
import threading
from pathlib import Path
from typing import Optional

# 프로젝트 루트를 sys.path에 추가
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.catalog import QuestionCatalog, StationCatalog
from src.diagnostic import DiagnosticService
from src.ranking import RecommendationEngine
from src.session import InMemorySessionStore

logger = logging.getLogger(__name__)


def _optional_number(name: str, cast):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    return cast(raw)


class ServiceRegistry:
    def __init__(self):
        self.questions: Optional[QuestionCatalog] = None
        self.stations: Optional[StationCatalog] = None
        self.diagnostic: Optional[DiagnosticService] = None
        self.engine: Optional[RecommendationEngine] = None
        self.engine_lock = threading.RLock()  # Protects engine.params swaps (calibrate, sensitivity)

    @property
    def data_dir(self) -> Path:
        return Path(os.getenv("YAMANOTE_DATA_DIR", str(PROJECT_ROOT / "data")))

    def load(self):
        data_dir = self.data_dir
        questions = QuestionCatalog.from_json(data_dir / "questions.json")
        stations = StationCatalog.from_json(data_dir / "stations.json")

        # 리로드 시 진행 중인 세션은 유지
        if self.diagnostic is not None:
            store = self.diagnostic.store
            store.invalidate_profiles()
        else:
            store = InMemorySessionStore(
                max_size=_optional_number("SESSION_MAX_SIZE", int),
                ttl_seconds=_optional_number("SESSION_TTL_SECONDS", float),
            )

        # 리로드 시 보정된 파라미터는 유지
        params = self.engine.params if self.engine is not None else None

        self.questions = questions
        self.stations = stations
        self.diagnostic = DiagnosticService(questions, store)
        self.engine = RecommendationEngine(stations.stations)
        if params is not None:
            self.engine.params = params
        logger.info("Registry loaded from %s", data_dir)

    def get_diagnostic(self) -> DiagnosticService:
        if self.diagnostic is None:
            raise RuntimeError("Services not loaded")
        return self.diagnostic

    def get_engine(self) -> RecommendationEngine:
        if self.engine is None:
            raise RuntimeError("Engine not loaded")
        return self.engine

    def get_stations(self) -> StationCatalog:
        if self.stations is None:
            raise RuntimeError("Stations not loaded")
        return self.stations


registry = ServiceRegistry()
