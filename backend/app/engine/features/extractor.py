# engine/features/extractor.py
"""
Extraction de features : ZÉRO accès DB.

Reçoit les objets déjà chargés par les repositories (StaffMember,
StaffSkillProfile, SopDocument, CompletionRecord) et produit les deux
snapshots consommés par les algorithmes de scoring :

- StaffProfile           : vecteurs de compétences + scalaires dérivés de l'historique
- ProcedureRequirements  : vecteur d'exigences + analyse de complexité

Aucun tirage aléatoire : chaque scalaire est une fonction déterministe
de l'historique de complétion. Sans historique, on retombe sur des
valeurs neutres documentées ci-dessous.
"""
import math
import numpy as np
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from app.shared.enums import SkillArea


# ── Constantes ──────────────────────────────────────────────

TRAINING_LOOKBACK_DAYS = 180   # historique pour prédictions + profils
PATTERN_LOOKBACK_DAYS  = 90    # fenêtre par défaut de l'analyse de patterns
CONTEXT_LOOKBACK_DAYS  = 30    # fenêtre analytics / contexte

SKILL_VECTOR_SIZES = {
    SkillArea.TECHNICAL:       10,
    SkillArea.SOFT:            8,
    SkillArea.DOMAIN:          6,
    SkillArea.PROBLEM_SOLVING: 4,
}
REQUIREMENT_VECTOR_SIZE = 10
NEUTRAL_SKILL = 0.5

ROLE_EXPERIENCE = {
    "admin":   0.9,
    "manager": 0.8,
    "chef":    0.7,
    "server":  0.6,
}
DIFFICULTY_SCORES = {
    "beginner":     0.3,
    "intermediate": 0.6,
    "advanced":     0.9,
}
# Ordre significatif : premier mot-clé trouvé dans le nom de catégorie
CATEGORY_COMPLEXITY = [
    ("food_safety", 0.8),
    ("cooking",     0.7),
    ("service",     0.5),
    ("cleaning",    0.4),
]
DEFAULT_TABLE_VALUE = 0.5
DEFAULT_READ_TIME   = 30   # minutes, quand estimated_read_time est absent

DEFAULT_PERSONALITY = {
    "conscientiousness":   0.7,
    "openness":            0.7,
    "extraversion":        0.5,
    "agreeableness":       0.7,
    "emotional_stability": 0.7,
}


# ── Snapshots ───────────────────────────────────────────────

@dataclass
class StaffProfile:
    user_id: int
    full_name: str
    role: str

    technical: List[float]
    soft: List[float]
    domain: List[float]
    problem_solving: List[float]

    learning_velocity: float          # 0.5-1
    retention_rate: float             # 0.7-1
    progression_rate: float           # 0-1

    completion_speed_percentile: float   # 0-100
    quality_consistency: float           # 0-100
    error_recovery: float                # 0-100

    personality: Dict[str, float]
    stress_tolerance: float           # 0-1
    multitasking: float               # 0-1
    promotion_readiness: float        # 0-100

    experience_level: float           # 0-1
    historical_performance: float     # 0-1
    sample_size: int = 0


@dataclass
class ProcedureRequirements:
    sop_id: int
    title: str
    title_fr: Optional[str]
    requirements: List[float]

    cognitive_load: float             # 0-1
    procedural_complexity: float      # 0-1
    decision_points: int
    time_sensitivity: float           # 0-1

    difficulty_spike: float           # 0-1
    mastery_weeks: int

    complexity_score: float           # 0-1
    difficulty_level: Optional[str] = None
    estimated_read_time: Optional[int] = None
    category_name: str = ""
    tags: List[str] = field(default_factory=list)


# ── Helpers ─────────────────────────────────────────────────

def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def enum_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    return getattr(value, "value", value)


def _is_completed(record) -> bool:
    return (record.progress_percentage or 0) >= 100


def completion_rate(history: List) -> float:
    if not history:
        return 0.0
    return sum(1 for r in history if _is_completed(r)) / len(history)


def lookback_start(reference: datetime, days: int) -> datetime:
    return reference - timedelta(days=days)


# ── Scalaires de base ───────────────────────────────────────

def experience_level(role: Any, history: List, skill_levels: Iterable[float]) -> float:
    """
    Niveau d'expérience ∈ [0, 1].

        0.5 + rôle × 0.3 + taux_complétion × 0.2 + (maîtrise_moyenne / 10) × 0.2

    Le terme de maîtrise n'est ajouté que si le membre a au moins une
    compétence notée.
    """
    score = 0.5
    score += ROLE_EXPERIENCE.get(enum_value(role), DEFAULT_TABLE_VALUE) * 0.3
    score += completion_rate(history) * 0.2

    levels = [float(level) for level in skill_levels]
    if levels:
        score += (float(np.mean(levels)) / 10) * 0.2

    return _clamp(score)


def complexity_score(
    difficulty_level: Any,
    estimated_read_time: Optional[int],
    tags: Optional[List[str]],
    category_name: Optional[str],
) -> float:
    """
    Complexité d'une procédure ∈ [0, 1].

        0.5 + difficulté × 0.4 + min(1, durée/60) × 0.3
            + min(1, nb_tags/10) × 0.2 + catégorie × 0.1
    """
    score = 0.5
    score += DIFFICULTY_SCORES.get(enum_value(difficulty_level), DEFAULT_TABLE_VALUE) * 0.4
    score += min(1.0, (estimated_read_time or DEFAULT_READ_TIME) / 60) * 0.3
    score += min(1.0, len(tags or []) / 10) * 0.2
    score += category_complexity(category_name) * 0.1
    return _clamp(score)


def category_complexity(category_name: Optional[str]) -> float:
    name = (category_name or "").lower()
    for keyword, value in CATEGORY_COMPLEXITY:
        if keyword in name:
            return value
    return DEFAULT_TABLE_VALUE


def historical_performance(history: List) -> float:
    """(taux de complétion + progression moyenne / 100) / 2 ; 0.5 sans historique."""
    if not history:
        return 0.5
    avg_progress = float(np.mean([r.progress_percentage or 0 for r in history])) / 100
    return (completion_rate(history) + avg_progress) / 2


# ── Contexte temporel ───────────────────────────────────────
# La date de référence est toujours explicite : target_date de la requête,
# sinon l'heure de la requête (UTC).

def seasonal_adjustments(reference: datetime) -> Dict[str, float]:
    return {
        "seasonal":    0.1 if 6 <= reference.month <= 8 else -0.05,
        "time_of_day": -0.1 if 11 <= reference.hour <= 14 else 0.05,
        "day_of_week": -0.05 if reference.weekday() >= 5 else 0.0,
    }


def is_peak_period(reference: datetime) -> bool:
    hour = reference.hour
    return 11 <= hour <= 14 or 17 <= hour <= 21


def input_features(
    staff,
    sop,
    history: List,
    reference: datetime,
    staff_count: int = 0,
) -> Dict[str, Any]:
    """
    Features d'entrée d'une prédiction (sop, membre).
    Sérialisées telles quelles dans Prediction.input_features.
    """
    skill_levels = [s.proficiency_level for s in (getattr(staff, "skills", None) or [])]
    return {
        "user_experience_level": experience_level(getattr(staff, "role", None), history, skill_levels),
        "sop_complexity_score": complexity_score(
            sop.difficulty_level, sop.estimated_read_time, sop.tags, _category_name(sop)
        ),
        "historical_performance": historical_performance(history),
        "contextual_factors": {
            "peak_period": is_peak_period(reference),
            "staff_count": staff_count,
        },
        "seasonal_adjustments": seasonal_adjustments(reference),
    }


def _category_name(sop) -> str:
    name = getattr(sop, "category_name", None)
    if name is None and getattr(sop, "category", None) is not None:
        name = sop.category.name
    return name or ""


# ── Profil membre ───────────────────────────────────────────

def skill_vectors(skills: Iterable) -> Dict[SkillArea, List[float]]:
    """
    Reconstruit les vecteurs de compétences (proficiency / 10) à partir
    des StaffSkillProfile. Les positions sans note restent à NEUTRAL_SKILL.
    """
    vectors = {area: [NEUTRAL_SKILL] * size for area, size in SKILL_VECTOR_SIZES.items()}
    for skill in skills or []:
        area = SkillArea(enum_value(skill.skill_area))
        index = skill.skill_index or 0
        if 0 <= index < len(vectors[area]):
            vectors[area][index] = _clamp((skill.proficiency_level or 0) / 10)
    return vectors


def learning_velocity(history: List) -> float:
    """Complétions par semaine sur la fenêtre observée → [0.5, 1]."""
    completed = [r for r in history if _is_completed(r) and r.created_at is not None]
    if not completed:
        return 0.5
    dates = [r.created_at for r in completed]
    weeks = max(1.0, (max(dates) - min(dates)).days / 7)
    per_week = len(completed) / weeks
    return 0.5 + min(1.0, per_week / 5) * 0.5


def retention_rate(history: List) -> float:
    """
    Part des procédures répétées dont la dernière tentative ne régresse pas
    par rapport à la première → [0.7, 1]. 0.85 sans répétition.
    """
    by_sop: Dict[Any, List] = {}
    for r in _chronological(history):
        by_sop.setdefault(r.sop_id, []).append(r)

    repeated = [records for records in by_sop.values() if len(records) > 1]
    if not repeated:
        return 0.85
    kept = sum(
        1 for records in repeated
        if (records[-1].progress_percentage or 0) >= (records[0].progress_percentage or 0)
    )
    return 0.7 + (kept / len(repeated)) * 0.3


def progression_rate(history: List) -> float:
    """Pente de progression : moyenne 2e moitié − 1re moitié, centrée sur 0.8."""
    ordered = _chronological(history)
    if len(ordered) < 2:
        return 0.8
    half = len(ordered) // 2
    first = float(np.mean([r.progress_percentage or 0 for r in ordered[:half]]))
    second = float(np.mean([r.progress_percentage or 0 for r in ordered[half:]]))
    return _clamp(0.8 + (second - first) / 100)


def quality_consistency(history: List) -> float:
    """100 × (1 − CV des durées). 80 sous 2 mesures."""
    times = [r.time_spent for r in history if (r.time_spent or 0) > 0]
    if len(times) < 2:
        return 80.0
    mean = float(np.mean(times))
    cv = float(np.std(times)) / mean if mean else 1.0
    return _clamp(100 * (1 - cv), 0.0, 100.0)


def error_recovery(history: List) -> float:
    """
    Part des abandons (< 100 %) suivis d'une complétion de la même
    procédure → 0-100. 70 quand il n'y a aucun abandon.
    """
    ordered = _chronological(history)
    abandoned = [(i, r) for i, r in enumerate(ordered) if not _is_completed(r)]
    if not abandoned:
        return 70.0
    recovered = sum(
        1 for i, r in abandoned
        if any(_is_completed(later) and later.sop_id == r.sop_id for later in ordered[i + 1:])
    )
    return 100 * recovered / len(abandoned)


def mean_time_ratio(history: List, read_times: Dict[Any, Optional[int]]) -> Optional[float]:
    """Durée réelle / durée estimée, moyenne sur l'historique. None sans mesure."""
    ratios = [
        r.time_spent / (read_times.get(r.sop_id) or DEFAULT_READ_TIME)
        for r in history if (r.time_spent or 0) > 0
    ]
    return float(np.mean(ratios)) if ratios else None


def speed_percentiles(ratios: Dict[Any, Optional[float]]) -> Dict[Any, float]:
    """
    Percentile de vitesse de chaque membre dans l'équipe (0-100).
    Plus le ratio est bas (plus rapide), plus le percentile est haut.
    Membres sans mesure ou équipe d'un seul membre mesuré → 50.
    """
    measured = {uid: r for uid, r in ratios.items() if r is not None}
    result = {uid: 50.0 for uid in ratios}
    if len(measured) < 2:
        return result

    for uid, ratio in measured.items():
        slower = sum(1 for other, r in measured.items() if other != uid and r > ratio)
        result[uid] = 100 * slower / (len(measured) - 1)
    return result


def build_staff_profile(
    staff,
    history: List,
    speed_percentile: float = 50.0,
) -> StaffProfile:
    """
    Snapshot en lecture seule d'un membre, construit à chaque requête.

    Args:
        staff:            StaffMember (skills chargés)
        history:          CompletionRecord du membre sur la fenêtre d'entraînement
        speed_percentile: issu de speed_percentiles() calculé sur l'équipe
    """
    skills = list(getattr(staff, "skills", None) or [])
    vectors = skill_vectors(skills)

    personality = dict(DEFAULT_PERSONALITY)
    personality.update(staff.personality or {})

    return StaffProfile(
        user_id=staff.id,
        full_name=staff.full_name,
        role=enum_value(staff.role),
        technical=vectors[SkillArea.TECHNICAL],
        soft=vectors[SkillArea.SOFT],
        domain=vectors[SkillArea.DOMAIN],
        problem_solving=vectors[SkillArea.PROBLEM_SOLVING],
        learning_velocity=learning_velocity(history),
        retention_rate=retention_rate(history),
        progression_rate=progression_rate(history),
        completion_speed_percentile=speed_percentile,
        quality_consistency=quality_consistency(history),
        error_recovery=error_recovery(history),
        personality=personality,
        stress_tolerance=staff.stress_tolerance if staff.stress_tolerance is not None else 0.7,
        multitasking=staff.multitasking_ability if staff.multitasking_ability is not None else 0.6,
        promotion_readiness=staff.promotion_readiness if staff.promotion_readiness is not None else 50.0,
        experience_level=experience_level(staff.role, history, [s.proficiency_level for s in skills]),
        historical_performance=historical_performance(history),
        sample_size=len(history),
    )


# ── Exigences procédure ─────────────────────────────────────

def build_procedure_requirements(sop) -> ProcedureRequirements:
    """
    Le vecteur d'exigences persistant est complété (ou remplacé s'il est
    absent) par la difficulté de la procédure.
    """
    category = _category_name(sop)
    difficulty = enum_value(sop.difficulty_level)
    complexity = complexity_score(difficulty, sop.estimated_read_time, sop.tags, category)
    base_requirement = DIFFICULTY_SCORES.get(difficulty, DEFAULT_TABLE_VALUE)

    requirements = [_clamp(float(v)) for v in (sop.skill_requirements or [])][:REQUIREMENT_VECTOR_SIZE]
    requirements += [base_requirement] * (REQUIREMENT_VECTOR_SIZE - len(requirements))

    tags = list(sop.tags or [])
    decision_points = sop.decision_points if sop.decision_points is not None else 5 + len(tags)

    return ProcedureRequirements(
        sop_id=sop.id,
        title=sop.title,
        title_fr=getattr(sop, "title_fr", None),
        requirements=requirements,
        cognitive_load=complexity,
        procedural_complexity=_clamp(0.4 + decision_points / 25),
        decision_points=decision_points,
        time_sensitivity=_clamp(0.3 + category_complexity(category) * 0.7),
        difficulty_spike=_clamp(0.5 + complexity * 0.5),
        mastery_weeks=2 + int(math.floor(complexity * 8)),
        complexity_score=complexity,
        difficulty_level=difficulty,
        estimated_read_time=sop.estimated_read_time,
        category_name=category,
        tags=tags,
    )


def _chronological(history: List) -> List:
    # Enregistrements sans date en tête, ordre d'arrivée conservé
    return sorted(
        history,
        key=lambda r: (r.created_at is not None, r.created_at or 0),
    )
