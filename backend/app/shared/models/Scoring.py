# app/shared/models/Scoring.py
"""
Configuration et sorties du pipeline de scoring.

ScoringConfiguration → singleton par restaurant, créé à la volée avec les
    valeurs par défaut (engine/scoring/config.py), modifié sur place par
    la mise à jour des performances du modèle.
MatchResult          → durée de vie fixe de 7 jours (expires_at).
Prediction           → vérifiable a posteriori (actual_value, accuracy_score).
CompletionPattern    → append-only : chaque analyse ajoute des lignes.
"""
from sqlalchemy import (
    Column, Integer, String, Float, DateTime, JSON, ForeignKey, UniqueConstraint,
)
from sqlalchemy.sql import func

from app.core.database import Base


class ScoringConfiguration(Base):
    __tablename__ = "scoring_configurations"

    id            = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False)
    model_version = Column(String, nullable=False, default="1.0.0")

    algorithm_weights       = Column(JSON, nullable=False, default=dict)
    ensemble                = Column(JSON, nullable=False, default=dict)
    neural_network          = Column(JSON, nullable=False, default=dict)
    optimization_objectives = Column(JSON, nullable=False, default=dict)
    selection_strategy      = Column(String, nullable=False, default="top_fraction")
    model_performance       = Column(JSON, nullable=False, default=dict)

    created_at   = Column(DateTime(timezone=True), server_default=func.now())
    last_updated = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("restaurant_id", name="uq_scoring_config_restaurant"),
    )

    def __repr__(self):
        return f"<ScoringConfiguration restaurant={self.restaurant_id} v={self.model_version}>"


class MatchResult(Base):
    __tablename__ = "skill_match_results"

    id            = Column(Integer, primary_key=True, index=True)
    matching_id   = Column(String, nullable=False, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    sop_id        = Column(Integer, ForeignKey("sop_documents.id"), nullable=False, index=True)
    user_id       = Column(Integer, ForeignKey("staff_members.id"), nullable=False, index=True)

    match_score           = Column(Integer, nullable=False, index=True)   # 0-100
    confidence_low        = Column(Float, nullable=False)
    confidence_high       = Column(Float, nullable=False)
    multi_objective_score = Column(Float, nullable=True)
    primary_algorithm     = Column(String, nullable=False, default="ensemble", index=True)

    algorithm_details = Column(JSON, nullable=True)   # contributions + feature importance
    predictions       = Column(JSON, nullable=True)
    skill_analysis    = Column(JSON, nullable=True)
    recommendations   = Column(JSON, nullable=True)
    team_impact       = Column(JSON, nullable=True)

    model_version = Column(String, nullable=False)
    created_at    = Column(DateTime(timezone=True), nullable=False)
    expires_at    = Column(DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self):
        return f"<MatchResult sop={self.sop_id} user={self.user_id} score={self.match_score}>"


class Prediction(Base):
    __tablename__ = "sop_performance_predictions"

    id                  = Column(Integer, primary_key=True, index=True)
    restaurant_id       = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    sop_id              = Column(Integer, ForeignKey("sop_documents.id"), nullable=False, index=True)
    user_id             = Column(Integer, ForeignKey("staff_members.id"), nullable=True, index=True)
    prediction_type     = Column(String, nullable=False, index=True)
    predicted_value     = Column(Float, nullable=False)
    prediction_range    = Column(JSON, nullable=True)   # {min_value, max_value}
    confidence_interval = Column(Float, nullable=False)
    input_features      = Column(JSON, nullable=True)
    model_version       = Column(String, nullable=False)
    prediction_date     = Column(DateTime(timezone=True), nullable=False)
    expires_at          = Column(DateTime(timezone=True), nullable=False)

    actual_value   = Column(Float, nullable=True)
    accuracy_score = Column(Float, nullable=True)
    verified_at    = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Prediction {self.prediction_type} sop={self.sop_id} value={self.predicted_value}>"


class CompletionPattern(Base):
    __tablename__ = "sop_completion_patterns"

    id                  = Column(Integer, primary_key=True, index=True)
    restaurant_id       = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    sop_id              = Column(Integer, ForeignKey("sop_documents.id"), nullable=False, index=True)
    pattern_type        = Column(String, nullable=False, index=True)
    time_period         = Column(String, nullable=False)
    pattern_data        = Column(JSON, nullable=False, default=dict)
    statistical_metrics = Column(JSON, nullable=False, default=dict)
    insights            = Column(JSON, nullable=False, default=dict)
    confidence_level    = Column(Float, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<CompletionPattern {self.pattern_type} sop={self.sop_id} conf={self.confidence_level}>"
