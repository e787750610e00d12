from datetime import datetime
from pydantic import BaseModel, Field, confloat
from typing import Any, Dict, List, Literal, Optional


VALID_CATEGORY = Literal["housing", "transport", "commercial", "culture", "price"]
VALID_QUESTION_CATEGORY = Literal["housing", "transport", "commercial", "culture", "price", "priority"]


# --- Diagnostic Schemas ---

class OptionItem(BaseModel):
    id: str
    text: str
    value: float
    tags: List[str] = []


class QuestionItem(BaseModel):
    id: str
    category: str
    text: str
    weight: float
    options: List[OptionItem]


class AnswerItem(BaseModel):
    question_id: str
    selected_option_id: str
    timestamp: datetime


# 음수/NaN/inf 가중치는 가중 평균을 깨뜨린다
NonNegativeFinite = confloat(ge=0, allow_inf_nan=False)


class ProfileModel(BaseModel):
    preferences: Dict[VALID_CATEGORY, NonNegativeFinite]
    category_weights: Dict[VALID_CATEGORY, NonNegativeFinite] = Field(
        default_factory=lambda: {c: 1.0 for c in ("housing", "transport", "commercial", "culture", "price")}
    )
    priorities: List[str] = []
    answers: List[AnswerItem] = []


class AnswerRequest(BaseModel):
    session_id: Optional[str] = Field(None, max_length=64)  # None이면 새 세션 발급
    question_id: str = Field(max_length=64)
    selected_option_id: str = Field(max_length=64)


class AnswerResponse(BaseModel):
    session_id: str
    answers: List[AnswerItem]
    is_complete: bool
    profile: Optional[ProfileModel] = None  # 모든 질문에 답한 경우에만


class SessionAnswersResponse(BaseModel):
    session_id: str
    answers: List[AnswerItem]
    is_complete: bool


# --- Station Schemas ---

class LocationModel(BaseModel):
    latitude: float
    longitude: float


class StationFeaturesModel(BaseModel):
    housing: Dict[str, float]
    transport: Dict[str, Any]  # accessibility, walkability, connections
    commercial: Dict[str, float]
    culture: Dict[str, float]
    price: Dict[str, float]


class RentPricesModel(BaseModel):
    one_k: float
    one_ldk: float
    two_ldk: float
    three_ldk: float


class StationItem(BaseModel):
    id: str
    name: str
    name_en: str
    location: LocationModel
    features: StationFeaturesModel
    description: str
    rent_prices: Optional[RentPricesModel] = None


class StationFeaturesResponse(BaseModel):
    station_id: str
    features: StationFeaturesModel


class StationValidationResponse(BaseModel):
    is_valid: bool
    total_stations: int
    excluded: List[str]


# --- Recommendation Schemas ---

class RecommendationRequest(BaseModel):
    session_id: Optional[str] = Field(None, max_length=64)
    user_profile: Optional[ProfileModel] = None  # session_id가 없을 때 사용
    k: int = Field(3, ge=1, le=50)


class ExplanationModel(BaseModel):
    matching_features: List[str] = []
    strengths: List[str] = []
    considerations: List[str] = []


class RecommendationItem(BaseModel):
    station: StationItem
    score: float
    rank: int
    explanation: ExplanationModel


class RecommendationResponse(BaseModel):
    recommendations: List[RecommendationItem]
    profile: ProfileModel


class ScoreItem(BaseModel):
    station_id: str
    name: str
    score: float
    rank: int


class ExplainResponse(BaseModel):
    station: StationItem
    score: float
    explanation: ExplanationModel


# --- Calibration Schemas ---

class CalibrationRequest(BaseModel):
    scale: Optional[float] = Field(None, gt=0.0, le=100.0)
    price_boost_threshold: Optional[float] = Field(None, ge=0.0, le=10.0)
    price_boost: Optional[float] = Field(None, ge=0.0, le=5.0)
    bonus_multiplier: Optional[float] = Field(None, ge=0.0, le=10.0)
    bonus_tag_limit: Optional[int] = Field(None, ge=0, le=10)
    bonus_cap: Optional[float] = Field(None, ge=0.0, le=100.0)


class CalibrationResponse(BaseModel):
    scale: float
    price_boost_threshold: float
    price_boost: float
    bonus_multiplier: float
    bonus_tag_limit: int
    bonus_cap: float
    bonus_tags: List[str]


class SensitivityPoint(BaseModel):
    price_boost: float
    station_id: str
    score: float
    rank: int


# --- Nearest Station Schemas ---

class NearestStationItem(BaseModel):
    id: str
    name: str
    distance_m: float
    lat: float
    lng: float


class NearestStationResponse(BaseModel):
    stations: List[NearestStationItem]
