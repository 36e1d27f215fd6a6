# engine/matching/pipeline.py
"""
Pipeline de matching membre × procédure : ZÉRO accès DB.

    StaffProfile × ProcedureRequirements
        → ALGORITHMS (4 stratégies)
        → ensemble (score + intervalle)
        → prédictions, analyse des écarts, recommandation, impact équipe
        → classement multi-objectif (engine/ranking/objectives.py)

Appelé par modules/matching/service.py, qui charge les données et persiste
les MatchOutcome retenus.
"""
import numpy as np
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.engine.features.extractor import (
    ProcedureRequirements, StaffProfile, is_peak_period, seasonal_adjustments,
)
from app.engine.ranking.objectives import rank
from app.engine.scoring.algorithms import run_all
from app.engine.scoring.config import ScoringConfig
from app.engine.scoring.ensemble import combine
from app.engine.scoring.similarity import cosine_similarity
from app.shared.enums import GapSeverity

MATCH_TTL_DAYS = 7
MATCH_SCORE_FLOOR = 40        # plancher de la génération
MIN_STAFF_HISTORY = 3         # membres avec moins d'enregistrements ignorés
HOURS_PER_GAP_LEVEL = 8
MAX_TRAINING_HOURS = 80


@dataclass
class MatchOutcome:
    matching_id: str
    sop_id: int
    user_id: int
    match_score: int
    confidence_interval: Tuple[float, float]
    algorithm_details: Dict[str, Any]
    predictions: Dict[str, Any]
    skill_analysis: Dict[str, Any]
    recommendations: Dict[str, Any]
    team_impact: Dict[str, Any]
    created_at: datetime
    expires_at: datetime
    model_version: str
    multi_objective_score: Optional[float] = None
    flags: List[str] = field(default_factory=list)


# ── Écarts de compétences ───────────────────────────────────

def classify_gap(gap_levels: float) -> GapSeverity:
    """Écart en niveaux (échelle 0-10) → sévérité."""
    if gap_levels >= 4:
        return GapSeverity.CRITICAL
    if gap_levels >= 3:
        return GapSeverity.MAJOR
    if gap_levels >= 2:
        return GapSeverity.MODERATE
    if gap_levels > 0:
        return GapSeverity.MINOR
    return GapSeverity.NONE


def skill_analysis(staff: StaffProfile, proc: ProcedureRequirements) -> Dict[str, Any]:
    """
    Une ligne par domaine de compétences :
        match_percentage = cosinus(vecteur domaine, exigences) × 100
        gap_levels       = max(0, exigence moyenne − maîtrise moyenne) × 10
    """
    required_level = float(np.mean(proc.requirements)) if proc.requirements else 0.0
    areas = {
        "technical":       staff.technical,
        "soft":            staff.soft,
        "domain":          staff.domain,
        "problem_solving": staff.problem_solving,
    }

    breakdown = []
    for area, vector in areas.items():
        current_level = float(np.mean(vector)) if vector else 0.0
        gap = max(0.0, required_level - current_level) * 10
        severity = classify_gap(gap)
        breakdown.append({
            "skill_area": area,
            "match_percentage": round(max(0.0, cosine_similarity(vector, proc.requirements)) * 100, 1),
            "gap_levels": round(gap, 2),
            "gap_severity": severity.value,
            "training_time_estimate": min(MAX_TRAINING_HOURS, round(gap * HOURS_PER_GAP_LEVEL, 1)),
        })

    return {
        "skill_match_breakdown": breakdown,
        "critical_gaps": sum(1 for b in breakdown if b["gap_severity"] == GapSeverity.CRITICAL.value),
        "major_gaps": sum(1 for b in breakdown if b["gap_severity"] == GapSeverity.MAJOR.value),
    }


# ── Prédictions dérivées du score ───────────────────────────

def derive_predictions(
    staff: StaffProfile,
    proc: ProcedureRequirements,
    match_score: float,
    analysis: Dict[str, Any],
    reference: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    reference : date d'exécution visée. Les ajustements saisonniers
    (saison, heure, week-end) s'appliquent à la durée attendue et une
    heure de pointe ajoute le facteur de risque "peak_period".
    """
    m = match_score / 100
    read_time = proc.estimated_read_time or 30
    expected_time = read_time * (2 - m)
    if reference is not None:
        for adjustment in seasonal_adjustments(reference).values():
            expected_time *= 1 + adjustment * 0.1

    risk_factors = []
    if analysis["critical_gaps"] or analysis["major_gaps"]:
        risk_factors.append("skill_gaps")
    if proc.cognitive_load - staff.experience_level > 0.2:
        risk_factors.append("complexity_mismatch")
    if staff.sample_size < 5:
        risk_factors.append("limited_history")
    if reference is not None and is_peak_period(reference):
        risk_factors.append("peak_period")

    mitigations = {
        "skill_gaps": "additional_training",
        "complexity_mismatch": "mentorship",
        "limited_history": "supervised_first_run",
        "peak_period": "schedule_off_peak",
    }

    return {
        "success_probability": round(min(0.95, m * 0.9 + staff.historical_performance * 0.1), 4),
        "expected_completion_time": round(expected_time, 1),               # minutes
        "quality_prediction": round(min(100.0, match_score * 0.8 + staff.quality_consistency * 0.2), 2),
        "learning_time_estimate": round(proc.mastery_weeks * (2 - m), 2),  # semaines
        "risk_assessment": {
            "failure_probability": round(max(0.05, 1 - m), 4),
            "risk_factors": risk_factors,
            "mitigation_strategies": [mitigations[r] for r in risk_factors],
        },
    }


# ── Recommandation d'affectation ────────────────────────────

def assignment_recommendation(match_score: float, analysis: Dict[str, Any]) -> Dict[str, Any]:
    critical = analysis["critical_gaps"]
    major = analysis["major_gaps"]
    gaps = [
        b["skill_area"] for b in analysis["skill_match_breakdown"]
        if b["gap_severity"] != GapSeverity.NONE.value
    ]

    if match_score >= 80 and critical == 0:
        return {
            "recommendation_type": "immediate",
            "reasoning": "Staff member has excellent skill match and can proceed immediately",
            "reasoning_fr": "Excellente correspondance de compétences, affectation immédiate possible",
            "immediate_actions": ["assign"],
            "preparation_steps": [],
            "risk_factors": [],
        }
    if match_score >= 60 and critical == 0 and major <= 1:
        return {
            "recommendation_type": "with_training",
            "reasoning": "Good potential, targeted training needed in specific areas",
            "reasoning_fr": "Bon potentiel, formation ciblée nécessaire",
            "immediate_actions": ["review_prerequisites", "schedule_training"],
            "preparation_steps": [f"Training in {area}" for area in gaps],
            "risk_factors": [],
        }
    if match_score >= 40 and critical <= 1:
        return {
            "recommendation_type": "with_mentorship",
            "reasoning": "Mentorship and guided learning needed to succeed",
            "reasoning_fr": "Mentorat et apprentissage guidé nécessaires",
            "immediate_actions": ["assign_mentor"],
            "preparation_steps": ["Assign experienced mentor", "Structured learning plan", "Regular check-ins"],
            "risk_factors": ["Longer learning curve", "May require multiple attempts"],
        }
    return {
        "recommendation_type": "not_recommended",
        "reasoning": "Staff member currently lacks essential skills for this SOP",
        "reasoning_fr": "Compétences essentielles manquantes pour cette procédure",
        "immediate_actions": [],
        "preparation_steps": [],
        "risk_factors": ["High failure probability", "Extensive training required", "May impact quality"],
    }


def team_impact(staff: StaffProfile) -> Dict[str, Any]:
    agreeableness = staff.personality.get("agreeableness", 0.0)
    return {
        "collaboration_score": round(agreeableness * 100, 1),
        "knowledge_sharing_potential": round(staff.multitasking * 100, 1),
        "team_balance_contribution": round(70 + 30 * (agreeableness + staff.multitasking) / 2, 1),
        "career_alignment": round(float(staff.promotion_readiness), 1),
    }


# ── Pipeline ────────────────────────────────────────────────

def score_pair(
    staff: StaffProfile,
    proc: ProcedureRequirements,
    config: ScoringConfig,
    created_at: datetime,
    ttl_days: int = MATCH_TTL_DAYS,
    reference: Optional[datetime] = None,
) -> MatchOutcome:
    """reference absente → created_at."""
    algorithm_scores = run_all(staff, proc, config)
    ensemble = combine(algorithm_scores, config)
    match_score = int(round(ensemble.score))

    analysis = skill_analysis(staff, proc)
    predictions = derive_predictions(
        staff, proc, ensemble.score, analysis, reference=reference or created_at
    )

    flags = []
    if analysis["critical_gaps"]:
        flags.append("CRITICAL_SKILL_GAP: Au moins un domaine présente un écart critique.")
    if ensemble.interval[1] - ensemble.interval[0] > 40:
        flags.append("MODEL_DISAGREEMENT: Les algorithmes divergent fortement sur ce couple.")

    return MatchOutcome(
        matching_id=f"match_{staff.user_id}_{proc.sop_id}_{int(created_at.timestamp() * 1000)}",
        sop_id=proc.sop_id,
        user_id=staff.user_id,
        match_score=match_score,
        confidence_interval=(round(ensemble.interval[0], 2), round(ensemble.interval[1], 2)),
        algorithm_details={
            "primary_algorithm": "ensemble" if config.ensemble_enabled else algorithm_scores[0].name,
            "contributing_models": ensemble.contributions,
            "feature_importance": dict(config.algorithm_weights),
        },
        predictions=predictions,
        skill_analysis=analysis,
        recommendations=assignment_recommendation(ensemble.score, analysis),
        team_impact=team_impact(staff),
        created_at=created_at,
        expires_at=created_at + timedelta(days=ttl_days),
        model_version=config.model_version,
        flags=flags,
    )


def run_matching(
    staff_profiles: List[StaffProfile],
    procedures: List[ProcedureRequirements],
    config: ScoringConfig,
    created_at: datetime,
    goals: Optional[Sequence[str]] = None,
    min_score: int = MATCH_SCORE_FLOOR,
    min_history: int = MIN_STAFF_HISTORY,
    ttl_days: int = MATCH_TTL_DAYS,
    reference: Optional[datetime] = None,
) -> List[MatchOutcome]:
    """
    Score toutes les paires, garde celles ≥ min_score, puis classe.
    Membres sous min_history ignorés silencieusement.
    reference : date visée pour les ajustements saisonniers (défaut created_at).
    """
    eligible = [s for s in staff_profiles if s.sample_size >= min_history]
    outcomes = []
    for proc in procedures:
        for staff in eligible:
            outcome = score_pair(staff, proc, config, created_at, ttl_days, reference)
            if outcome.match_score >= min_score:
                outcomes.append(outcome)
    return rank(outcomes, config, goals)


# ── Analytics ───────────────────────────────────────────────

SCORE_BUCKETS = [(0, 39, "0-39"), (40, 59, "40-59"), (60, 79, "60-79"), (80, 100, "80-100")]


def analytics_summary(rows: List, model_performance: Dict[str, float]) -> Dict[str, Any]:
    """
    Synthèse des résultats stockés (fenêtre choisie par l'appelant).
    rows : objets avec sop_id, match_score, confidence_low, confidence_high.
    """
    if not rows:
        return {
            "total_matches": 0,
            "average_match_score": 0.0,
            "score_distribution": {label: 0 for _, _, label in SCORE_BUCKETS},
            "average_interval_width": 0.0,
            "top_sops": [],
            "model_performance": dict(model_performance),
        }

    scores = [r.match_score for r in rows]
    distribution = {
        label: sum(1 for s in scores if low <= s <= high)
        for low, high, label in SCORE_BUCKETS
    }

    by_sop: Dict[Any, List[int]] = {}
    for r in rows:
        by_sop.setdefault(r.sop_id, []).append(r.match_score)
    top_sops = sorted(
        ({"sop_id": sop_id, "average_match_score": round(float(np.mean(v)), 1), "matches": len(v)}
         for sop_id, v in by_sop.items()),
        key=lambda x: x["average_match_score"],
        reverse=True,
    )[:5]

    return {
        "total_matches": len(rows),
        "average_match_score": round(float(np.mean(scores)), 1),
        "score_distribution": distribution,
        "average_interval_width": round(
            float(np.mean([r.confidence_high - r.confidence_low for r in rows])), 2
        ),
        "top_sops": top_sops,
        "model_performance": dict(model_performance),
    }
