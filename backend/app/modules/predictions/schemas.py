# app/modules/predictions/schemas.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from app.shared.enums import PredictionType

DEFAULT_PREDICTION_TYPES = [PredictionType.COMPLETION_TIME, PredictionType.SUCCESS_PROBABILITY]


# ── Génération ─────────────────────────────────────────────

class PredictionGenerateIn(BaseModel):
    sop_ids: Optional[List[int]] = None
    user_ids: Optional[List[int]] = None
    prediction_types: List[PredictionType] = Field(
        default_factory=lambda: list(DEFAULT_PREDICTION_TYPES), min_length=1
    )
    prediction_horizon_days: Optional[int] = Field(None, ge=1, le=365)
    include_confidence_intervals: bool = True


# ── Vérification ───────────────────────────────────────────

class VerificationIn(BaseModel):
    prediction_id: int
    actual_value: float = Field(..., ge=0)


class PredictionVerifyIn(BaseModel):
    verifications: List[VerificationIn] = Field(..., min_length=1)


# ── Sorties ────────────────────────────────────────────────

class PredictionOut(BaseModel):
    id: Optional[int] = None
    sop_id: int
    user_id: Optional[int] = None
    prediction_type: str
    predicted_value: float
    prediction_range: Optional[Dict[str, float]] = None
    confidence_interval: float = Field(..., ge=0, le=1)
    input_features: Optional[Dict[str, Any]] = None
    model_version: str
    prediction_date: datetime
    expires_at: datetime
    actual_value: Optional[float] = None
    accuracy_score: Optional[float] = None
    verified_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())


class PredictionGenerateOut(BaseModel):
    predictions: List[PredictionOut]
    summary: Dict[str, Any]


class VerifiedPredictionOut(BaseModel):
    prediction_id: int
    prediction_type: str
    predicted_value: float
    actual_value: float
    accuracy_score: float


class PredictionVerifyOut(BaseModel):
    verified: List[VerifiedPredictionOut]
    skipped_ids: List[int]
    summary: Dict[str, Any]
