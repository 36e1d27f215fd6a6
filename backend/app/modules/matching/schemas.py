# app/modules/matching/schemas.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Annotated, Any, Dict, List, Optional
from datetime import datetime

from app.shared.enums import SelectionStrategy

DEFAULT_GOALS = ["maximize_success_probability", "ensure_quality_standards"]

Weight = Annotated[float, Field(ge=0)]


# ── Génération ─────────────────────────────────────────────

class MatchingRequestIn(BaseModel):
    sop_ids: List[int] = Field(..., min_length=1)
    target_date: Optional[datetime] = None
    # Objectifs inconnus ignorés par le ranker (pas d'erreur de validation)
    optimization_goals: List[str] = Field(default_factory=lambda: list(DEFAULT_GOALS))
    algorithm_preference: Optional[str] = None


class ModelUpdateIn(BaseModel):
    model_performance: Optional[Dict[str, float]] = None
    ensemble_weights: Optional[Dict[str, Weight]] = None        # model_type → poids
    optimization_objectives: Optional[Dict[str, Weight]] = None
    selection_strategy: Optional[SelectionStrategy] = None
    ensemble_enabled: Optional[bool] = None
    model_config = ConfigDict(protected_namespaces=())


# ── Sorties ────────────────────────────────────────────────

class MatchResultOut(BaseModel):
    id: Optional[int] = None
    matching_id: str
    sop_id: int
    user_id: int
    match_score: int = Field(..., ge=0, le=100)
    confidence_interval: List[float]
    multi_objective_score: Optional[float] = None
    algorithm_details: Dict[str, Any] = {}
    predictions: Dict[str, Any] = {}
    skill_analysis: Dict[str, Any] = {}
    recommendations: Dict[str, Any] = {}
    team_impact: Dict[str, Any] = {}
    flags: List[str] = []
    model_version: str
    created_at: datetime
    expires_at: datetime
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())


class MatchingRunOut(BaseModel):
    results: List[MatchResultOut]
    summary: Dict[str, Any]


class MatchingListOut(BaseModel):
    results: List[MatchResultOut]
    analytics: Optional[Dict[str, Any]] = None


class ScoringConfigOut(BaseModel):
    model_version: str
    algorithm_weights: Dict[str, float]
    ensemble: Dict[str, Any]
    neural_network: Dict[str, Any]
    optimization_objectives: Dict[str, float]
    selection_strategy: str
    model_performance: Dict[str, float]
    last_updated: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())
