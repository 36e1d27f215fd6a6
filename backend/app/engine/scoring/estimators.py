# engine/scoring/estimators.py
"""
Estimateurs de performance (sop, membre) : ZÉRO accès DB.

Chaque estimateur reçoit l'historique du groupe (CompletionRecord) et les
features d'entrée (extractor.input_features), et retourne une Estimate.
Entrée vide → estimation dégradée (confiance 0.3), jamais d'exception.

| Type                | Valeur        | Méthode                                   |
|---------------------|---------------|-------------------------------------------|
| completion_time     | minutes       | moyenne mobile pondérée (decay 0.9)       |
| success_probability | 0-1           | logit(taux de base) + ajustements         |
| difficulty_score    | 0.1-1         | table difficulté + abandons + durée       |
| quality_score       | 0.1-1         | complétion + régularité + expérience      |
"""
import math
import numpy as np
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from app.engine.features.extractor import (
    DIFFICULTY_SCORES, DEFAULT_READ_TIME, DEFAULT_TABLE_VALUE, enum_value,
)

WMA_DECAY = 0.9
FALLBACK_CONFIDENCE = 0.3


@dataclass
class Estimate:
    value: float
    confidence: float
    min_value: Optional[float] = None
    max_value: Optional[float] = None

    @property
    def range(self) -> Optional[Dict[str, float]]:
        if self.min_value is None or self.max_value is None:
            return None
        return {"min_value": self.min_value, "max_value": self.max_value}


def _completed(history: List) -> List:
    return [r for r in history if (r.progress_percentage or 0) >= 100]


# ── Durée de complétion ─────────────────────────────────────

def completion_time(history: List, features: Dict[str, Any]) -> Estimate:
    """
    Moyenne mobile pondérée : poids 0.9^(n-1-i), les mesures récentes en fin
    de liste pèsent le plus. Ajustements multiplicatifs :

        × (1 + (complexité − 0.5) × 0.3)
        × (1 + (0.5 − expérience) × 0.2)
        × Π (1 + ajustement_saisonnier × 0.1)
    """
    times = [float(r.time_spent) for r in history if (r.time_spent or 0) > 0]
    if not times:
        return Estimate(features["sop_complexity_score"] * 20, FALLBACK_CONFIDENCE)

    n = len(times)
    weights = np.array([WMA_DECAY ** (n - 1 - i) for i in range(n)])
    weighted_avg = float(np.dot(weights, times) / weights.sum())

    adjusted = weighted_avg
    adjusted *= 1 + (features["sop_complexity_score"] - 0.5) * 0.3
    adjusted *= 1 + (0.5 - features["user_experience_level"]) * 0.2
    for adjustment in features.get("seasonal_adjustments", {}).values():
        adjusted *= 1 + adjustment * 0.1

    # Écart autour de la moyenne pondérée (pas de la moyenne simple)
    std = math.sqrt(sum((t - weighted_avg) ** 2 for t in times) / n)
    cv = std / weighted_avg if weighted_avg else 1.0
    confidence = max(0.3, min(0.95, 1 - cv))

    return Estimate(adjusted, confidence, max(1.0, adjusted - std), adjusted + std)


# ── Probabilité de succès ───────────────────────────────────

def success_probability(history: List, features: Dict[str, Any]) -> Estimate:
    if not history:
        return Estimate(0.5, FALLBACK_CONFIDENCE)

    base_rate = len(_completed(history)) / len(history)
    base_rate = max(0.01, min(0.99, base_rate))

    logit = math.log(base_rate / (1 - base_rate))
    logit += (features["user_experience_level"] - 0.5) * 2
    logit += (0.5 - features["sop_complexity_score"]) * 1.5
    logit += (features["historical_performance"] - 0.5) * 1

    probability = 1 / (1 + math.exp(-logit))
    confidence = min(0.95, 0.5 + math.log(len(history)) / 10)
    margin = (1 - confidence) * 0.3

    return Estimate(
        probability, confidence,
        max(0.0, probability - margin), min(1.0, probability + margin),
    )


# ── Difficulté ──────────────────────────────────────────────

def difficulty_score(
    history: List,
    features: Dict[str, Any],
    difficulty_level: Optional[str] = None,
    estimated_read_time: Optional[int] = None,
) -> Estimate:
    base = DIFFICULTY_SCORES.get(difficulty_level, DEFAULT_TABLE_VALUE)
    if not history:
        return Estimate(base, FALLBACK_CONFIDENCE)

    rate = len(_completed(history)) / len(history)
    expected = estimated_read_time or DEFAULT_READ_TIME
    time_ratio = sum(float(r.time_spent or 0) for r in history) / (len(history) * expected)

    score = base
    score += (1 - rate) * 0.3
    score += max(0.0, (time_ratio - 1) * 0.2)
    score *= 1 + (0.5 - features["user_experience_level"]) * 0.3
    score = max(0.1, min(1.0, score))

    confidence = min(0.9, 0.4 + math.log(len(history)) / 8)
    return Estimate(score, confidence, max(0.1, score - 0.2), min(1.0, score + 0.2))


# ── Qualité ─────────────────────────────────────────────────

def quality_score(history: List, features: Dict[str, Any]) -> Estimate:
    completions = _completed(history)

    score = 0.5
    if completions and history:
        score = 0.7 + (len(completions) / len(history)) * 0.3

    if len(completions) > 1:
        times = [float(r.time_spent or 0) for r in completions]
        mean = float(np.mean(times))
        if mean > 0:
            score += max(0.0, 1 - float(np.std(times)) / mean) * 0.2

    score += features["user_experience_level"] * 0.1
    score += (1 - features["sop_complexity_score"]) * 0.1
    score = max(0.1, min(1.0, score))

    confidence = min(0.85, 0.3 + math.log(len(completions) + 1) / 6)
    return Estimate(score, confidence, max(0.1, score - 0.15), min(1.0, score + 0.15))


ESTIMATORS: Dict[str, Callable[..., Estimate]] = {
    "completion_time":     completion_time,
    "success_probability": success_probability,
    "difficulty_score":    difficulty_score,
    "quality_score":       quality_score,
}


def estimate(
    prediction_type: str,
    history: List,
    features: Dict[str, Any],
    sop=None,
) -> Estimate:
    """Dispatch par type de prédiction. KeyError sur un type inconnu."""
    if prediction_type == "difficulty_score":
        return difficulty_score(
            history, features,
            enum_value(getattr(sop, "difficulty_level", None)),
            getattr(sop, "estimated_read_time", None),
        )
    return ESTIMATORS[prediction_type](history, features)
