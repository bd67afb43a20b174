from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.utils.time import parse_to_utc_aware


class RiskLevel(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    PENDING = "Pending"


class RecommendationSource(str, Enum):
    AI = "ai"
    RULE_BASED = "rule-based"


class StorageTier(str, Enum):
    PRIMARY_DB = "primary-db"
    REMOTE_STORE = "remote-store"
    MEMORY = "memory"


class AnalysisMode(str, Enum):
    FULL = "full"
    PARTIAL = "partial"
    PHOTO_ONLY = "photo_only"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


SCORE_FIELDS = ("eye_contact", "speech_level", "social_response", "sensory_reactions")


class AssessmentInput(CamelModel):
    child_name: str = Field(..., min_length=1)
    age: Optional[int] = Field(None, ge=1, le=18)
    eye_contact: Optional[int] = Field(None, ge=1, le=5)
    speech_level: Optional[int] = Field(None, ge=1, le=5)
    social_response: Optional[int] = Field(None, ge=1, le=5)
    sensory_reactions: Optional[int] = Field(None, ge=1, le=5)

    @field_validator("child_name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("childName must not be blank")
        return v

    def scores(self) -> List[Optional[int]]:
        return [getattr(self, f) for f in SCORE_FIELDS]

    def has_all_scores(self) -> bool:
        return all(s is not None for s in self.scores())

    def has_any_scores(self) -> bool:
        return any(s is not None for s in self.scores())

    def is_complete(self) -> bool:
        """Age and all four scores present: the only shape eligible for full analysis."""
        return self.age is not None and self.has_all_scores()


class EmotionSignal(CamelModel):
    emotion: str = Field(..., min_length=1)
    confidence: float = Field(..., ge=0.0, le=1.0)
    face_detection_score: float = Field(0.0, ge=0.0, le=1.0)
    all_expressions: Dict[str, float] = Field(default_factory=dict)

    @property
    def confidence_pct(self) -> str:
        return f"{self.confidence * 100:.1f}%"


class ActivityDetail(CamelModel):
    """Structured activity as some model responses return it. Unknown keys are kept."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    title: Optional[str] = None
    instructions: Optional[str] = None
    materials: List[str] = Field(default_factory=list)
    duration: Optional[str] = None
    frequency: Optional[str] = None


Activity = Union[str, ActivityDetail]


class Recommendation(CamelModel):
    assessment: str
    risk_level: RiskLevel = RiskLevel.MODERATE
    focus_areas: List[str] = Field(..., min_length=1)
    therapy_goals: List[str] = Field(..., min_length=1)
    activities: List[Activity] = Field(..., min_length=1)
    suggestions: List[str] = Field(default_factory=list)


class ScreeningRecord(CamelModel):
    id: str
    input: AssessmentInput
    emotion: Optional[EmotionSignal] = None
    recommendation: Recommendation
    source: RecommendationSource
    tier: Optional[StorageTier] = None
    created_at: datetime

    @field_validator("created_at", mode="before")
    @classmethod
    def _utc(cls, v):
        return parse_to_utc_aware(v)


class AnalysisRequest(CamelModel):
    """Inbound submission. Mode-level requirements are checked by the orchestrator."""

    child_name: Optional[str] = None
    age: Optional[int] = Field(None, ge=1, le=18)
    eye_contact: Optional[int] = Field(None, ge=1, le=5)
    speech_level: Optional[int] = Field(None, ge=1, le=5)
    social_response: Optional[int] = Field(None, ge=1, le=5)
    sensory_reactions: Optional[int] = Field(None, ge=1, le=5)
    emotion_analysis: Optional[EmotionSignal] = None
    captured_image: Optional[str] = None
    photo_only_analysis: bool = False


class StorageInfo(CamelModel):
    tier: Optional[StorageTier] = None
    record_id: Optional[str] = None


class AnalysisResponse(CamelModel):
    success: bool
    child_name: Optional[str] = None
    age: Optional[int] = None
    data: Optional[Recommendation] = None
    emotion_analysis: Optional[EmotionSignal] = None
    photo_only_analysis: Optional[bool] = None
    source: Optional[RecommendationSource] = None
    storage: Optional[StorageInfo] = None
    error: Optional[str] = None


class ScreeningListResponse(CamelModel):
    success: bool
    count: int
    source: StorageTier
    data: List[ScreeningRecord]


class ScreeningDetailResponse(CamelModel):
    success: bool
    source: Optional[StorageTier] = None
    data: Optional[ScreeningRecord] = None
    error: Optional[str] = None
