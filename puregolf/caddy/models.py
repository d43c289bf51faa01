"""Domain models for the caddy recommendation engine."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ClubType(str, Enum):
    DRIVER = "driver"
    WOOD = "wood"
    HYBRID = "hybrid"
    IRON = "iron"
    WEDGE = "wedge"
    PUTTER = "putter"


class LieType(str, Enum):
    TEE = "tee"
    FAIRWAY = "fairway"
    ROUGH = "rough"
    SAND = "sand"
    GREENSIDE = "greenside"
    GREEN = "green"


class MissPattern(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    STRAIGHT = "straight"
    INCONSISTENT = "inconsistent"


class ShotResult(str, Enum):
    GOOD = "good"
    SHORT = "short"
    LONG = "long"
    LEFT = "left"
    RIGHT = "right"
    POOR = "poor"


class WeatherCondition(str, Enum):
    SUNNY = "sunny"
    CLOUDY = "cloudy"
    RAIN = "rain"
    WIND = "wind"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AdviceMode(str, Enum):
    TRAINING = "training"
    QUICK = "quick"


class FactorType(str, Enum):
    DISTANCE = "distance"
    LIE = "lie"
    WEATHER = "weather"
    PERSONAL = "personal"
    COURSE = "course"


class FactorImpact(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class CaddyErrorCode(str, Enum):
    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"
    WEATHER_UNAVAILABLE = "WEATHER_UNAVAILABLE"
    PROCESSING_ERROR = "PROCESSING_ERROR"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClubData(BaseModel):
    name: str
    type: ClubType
    loft: float
    typical_carry: int
    typical_total: int

    model_config = ConfigDict(frozen=True)


class ShotContext(BaseModel):
    """Describes the shot to be played. Distances are yards."""

    distance_to_target: float = Field(..., ge=0)
    lie_type: LieType
    elevation_change: Optional[float] = None  # positive = uphill
    wind_speed: Optional[float] = Field(default=None, ge=0)  # mph
    wind_direction: Optional[str] = None  # relative to target
    temperature: Optional[float] = None  # fahrenheit
    pin_position: Optional[Literal["front", "middle", "back"]] = None
    hazards: List[str] = Field(default_factory=list)


class WeatherContext(BaseModel):
    temperature: float
    wind_speed: float = Field(..., ge=0)
    wind_direction: str
    humidity: Optional[float] = None
    pressure: Optional[float] = None
    conditions: WeatherCondition


class CourseContext(BaseModel):
    course_id: str
    hole_number: int = Field(..., ge=1)
    par: int
    handicap: int
    yardage: int
    hole_description: Optional[str] = None
    typical_strategy: Optional[str] = None


class UserPreferences(BaseModel):
    preferred_clubs: List[str] = Field(default_factory=list)
    risk_tolerance: Literal["conservative", "aggressive", "balanced"] = "balanced"
    coaching_style: Literal["technical", "simple", "encouraging"] = "simple"
    units: Literal["yards", "meters"] = "yards"


class HistoricalShot(BaseModel):
    club: str
    intended_distance: float
    actual_distance: float
    lie_type: LieType
    result: ShotResult
    date: datetime

    model_config = ConfigDict(frozen=True)


class SwingFlaw(BaseModel):
    flaw_code: str
    severity: int = Field(..., ge=1)
    frequency: float = 0.0
    date: datetime

    model_config = ConfigDict(frozen=True)


class HistoricalSample(BaseModel):
    """Everything the historical store knows about a player."""

    shots: List[HistoricalShot] = Field(default_factory=list)
    flaws: List[SwingFlaw] = Field(default_factory=list)
    course_scores: Dict[str, List[float]] = Field(default_factory=dict)


class PersonalTendencies(BaseModel):
    club_bias: Dict[str, int] = Field(default_factory=dict)
    miss_pattern: MissPattern = MissPattern.INCONSISTENT
    recurring_flaws: List[str] = Field(default_factory=list, max_length=3)
    lie_preferences: Dict[LieType, float] = Field(default_factory=dict)
    course_performance: Dict[str, float] = Field(default_factory=dict)
    confidence_level: float = Field(default=0.1, ge=0, le=1)
    last_updated: datetime = Field(default_factory=_utcnow)


class UserClubStats(BaseModel):
    club: str
    total_shots: int
    avg_carry: float
    avg_total: float
    accuracy_percentage: float
    miss_pattern: MissPattern
    typical_lie_types: List[LieType] = Field(default_factory=list)
    last_10_distances: List[float] = Field(default_factory=list)
    bias_yards: int = 0


class ClubRecommendation(BaseModel):
    primary_club: str
    alternative_clubs: List[str] = Field(default_factory=list, max_length=2)
    reasoning: str
    confidence: float = Field(..., ge=0, le=0.95)
    distance_adjustment: int = 0
    aim_adjustment: Optional[str] = None
    swing_thought: Optional[str] = None


class AnalysisFactor(BaseModel):
    type: FactorType
    impact: FactorImpact
    description: str
    weight: float = Field(..., ge=0, le=1)


class ShotAnalysis(BaseModel):
    expected_strokes: float
    recommended_strokes: float
    difficulty_rating: int = Field(..., ge=1, le=10)
    success_probability: float = Field(..., ge=0, le=1)
    factors: List[AnalysisFactor] = Field(default_factory=list)


class CaddyAdvice(BaseModel):
    recommendation: ClubRecommendation
    context_factors: List[str] = Field(default_factory=list)
    risk_assessment: RiskLevel
    alternative_strategy: Optional[str] = None
    personal_note: Optional[str] = None


class CaddyRequest(BaseModel):
    shot_context: ShotContext
    weather_context: Optional[WeatherContext] = None
    course_context: Optional[CourseContext] = None
    user_preferences: Optional[UserPreferences] = None
    mode: AdviceMode = AdviceMode.TRAINING
    user_id: Optional[str] = Field(default=None, max_length=128)


class CaddyResponse(BaseModel):
    advice: CaddyAdvice
    analysis: ShotAnalysis
    processing_time_ms: int
    mode: AdviceMode
    personalization_applied: bool


class CaddyError(BaseModel):
    code: CaddyErrorCode
    message: str
    suggestion: Optional[str] = None


class QuickAdvice(BaseModel):
    club: str
    reasoning: str
    confidence: float


class QuotaStatus(BaseModel):
    can_get_advice: bool
    quota_reached: bool
    saved_strokes: Optional[float] = None


class StrokesSavedData(BaseModel):
    hole_number: int = 0
    expected_strokes: float
    actual_strokes: Optional[float] = None
    saved_strokes: Optional[float] = None
    advice_followed: bool
    outcome: Literal["good", "poor"]


class ErrorEnvelope(BaseModel):
    error_code: str
    message: str
    details: Optional[dict] = None


__all__ = [
    "AdviceMode",
    "AnalysisFactor",
    "CaddyAdvice",
    "CaddyError",
    "CaddyErrorCode",
    "CaddyRequest",
    "CaddyResponse",
    "ClubData",
    "ClubRecommendation",
    "ClubType",
    "CourseContext",
    "ErrorEnvelope",
    "FactorImpact",
    "FactorType",
    "HistoricalSample",
    "HistoricalShot",
    "LieType",
    "MissPattern",
    "PersonalTendencies",
    "QuickAdvice",
    "QuotaStatus",
    "RiskLevel",
    "ShotAnalysis",
    "ShotContext",
    "ShotResult",
    "StrokesSavedData",
    "SwingFlaw",
    "UserClubStats",
    "UserPreferences",
    "WeatherCondition",
    "WeatherContext",
]
