# engine/patterns/stats.py
"""
Statistiques descriptives des patterns de complétion.

Conventions :
- écart-type population (÷ n)
- médiane = élément supérieur du milieu de la liste triée (pas de moyenne
  des deux éléments centraux quand n est pair)
- clés de période triables lexicographiquement dans l'ordre chronologique
"""
import math
import numpy as np
from datetime import datetime, timezone
from typing import Dict, List, Sequence

from app.shared.enums import TrendDirection

TREND_THRESHOLD = 0.05
MIN_TREND_BUCKETS = 3

# Coefficients de variabilité fixes par type (completion_time utilise le CV réel)
VARIABILITY = {
    "success_rate":   0.10,
    "error_patterns": 0.15,
    "seasonal":       0.20,
    "difficulty":     0.25,
}


def mean(values: Sequence[float]) -> float:
    return float(np.mean(values)) if len(values) else 0.0


def median(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    return float(ordered[len(ordered) // 2])


def std(values: Sequence[float]) -> float:
    return float(np.std(values)) if len(values) else 0.0


def confidence_interval_metric(values: Sequence[float]) -> float:
    """
    min(0.95, 0.5 + 1.96 · SE / moyenne), SE sur la variance échantillon.
    Moins de 2 valeurs (ou moyenne nulle) → 0.5.
    """
    if len(values) < 2:
        return 0.5
    m = mean(values)
    if m == 0:
        return 0.5
    variance = float(np.var(values, ddof=1))
    std_error = math.sqrt(variance / len(values))
    return min(0.95, 0.5 + (1.96 * std_error) / m)


def confidence_level(sample_size: int, variability: float) -> float:
    """
    0.5 + palier d'échantillon − min(0.3, variabilité), borné [0.1, 1].

    | n    | palier |
    |------|--------|
    | ≥100 | +0.3   |
    | ≥50  | +0.2   |
    | ≥20  | +0.1   |
    """
    confidence = 0.5
    if sample_size >= 100:
        confidence += 0.3
    elif sample_size >= 50:
        confidence += 0.2
    elif sample_size >= 20:
        confidence += 0.1
    confidence -= min(0.3, variability)
    return round(max(0.1, min(1.0, confidence)), 3)


# ── Périodes ────────────────────────────────────────────────

def bucket_key(moment: datetime, time_period: str) -> str:
    """Clé de regroupement en UTC ; un datetime naïf est supposé déjà en UTC."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    if time_period == "hourly":
        return moment.strftime("%Y-%m-%dT%H")
    if time_period == "daily":
        return moment.strftime("%Y-%m-%d")
    if time_period == "weekly":
        iso_year, iso_week, _ = moment.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    if time_period == "monthly":
        return moment.strftime("%Y-%m")
    raise ValueError(f"Période inconnue : {time_period}")


def group_by_period(records: Sequence, time_period: str) -> Dict[str, List]:
    groups: Dict[str, List] = {}
    for r in records:
        if r.created_at is None:
            continue
        groups.setdefault(bucket_key(r.created_at, time_period), []).append(r)
    return groups


def season(moment: datetime) -> str:
    month = moment.month
    if 3 <= month <= 5:
        return "spring"
    if 6 <= month <= 8:
        return "summer"
    if 9 <= month <= 11:
        return "fall"
    return "winter"


# ── Tendance ────────────────────────────────────────────────

def detect_trend(bucket_values: Dict[str, float]) -> TrendDirection:
    """
    Compare la moyenne de la première moitié des périodes (ordonnées) à
    celle de la seconde ; la période centrale est exclue quand le nombre
    est impair.
    """
    keys = sorted(bucket_values)
    if len(keys) < MIN_TREND_BUCKETS:
        return TrendDirection.STABLE

    values = [bucket_values[k] for k in keys]
    first = values[: len(values) // 2]
    second = values[math.ceil(len(values) / 2):]

    first_avg = mean(first)
    second_avg = mean(second)
    if first_avg == 0:
        return TrendDirection.STABLE

    change = abs(second_avg - first_avg) / abs(first_avg)
    if change < TREND_THRESHOLD:
        return TrendDirection.STABLE
    return TrendDirection.INCREASING if second_avg > first_avg else TrendDirection.DECREASING
