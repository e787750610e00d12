"""
진단/추천 엔진 예외 정의.

라우터는 이 예외들을 HTTP 상태 코드로 변환한다.
- UnknownQuestion / UnknownOption : 400 (입력 오류)
- SessionNotFound / UnknownStation : 404
- IncompleteCandidateData : 역 데이터 결함 (카탈로그 로드 시 해당 역 제외)
- CatalogError : 질문 데이터 결함 (로드 실패)
"""


class StationFinderError(Exception):
    """Base class for all engine errors."""


class UnknownQuestion(StationFinderError, LookupError):
    def __init__(self, question_id: str):
        self.question_id = question_id
        super().__init__(f"Question with id {question_id} not found")


class UnknownOption(StationFinderError, LookupError):
    def __init__(self, question_id: str, option_id: str):
        self.question_id = question_id
        self.option_id = option_id
        super().__init__(
            f"Option with id {option_id} not found for question {question_id}"
        )


class SessionNotFound(StationFinderError, LookupError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


class UnknownStation(StationFinderError, LookupError):
    def __init__(self, station_id: str):
        self.station_id = station_id
        super().__init__(f"Station with id {station_id} does not exist")


class IncompleteCandidateData(StationFinderError, ValueError):
    """역 feature 데이터 누락/범위 오류. field는 'features.housing.quietness' 형식."""

    def __init__(self, message: str, station_id: str | None = None, field: str | None = None):
        self.station_id = station_id
        self.field = field
        super().__init__(message)


class CatalogError(StationFinderError, ValueError):
    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)
