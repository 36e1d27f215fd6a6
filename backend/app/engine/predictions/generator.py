# engine/predictions/generator.py
"""
Génération et vérification des prédictions : ZÉRO accès DB.

Génération :
    historique (≥ 10 enregistrements au total, vérifié par le service)
        → groupes (sop, membre) de ≥ 3 enregistrements
        → features d'entrée → estimateur du type demandé → PredictionDraft

Vérification :
    accuracy = max(0, 1 − |p − a| / max(p, a))   (1.0 si p = a = 0)
    bias     = moyenne(p − a)
"""
import numpy as np
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.engine.features.extractor import input_features
from app.engine.scoring.estimators import estimate

MIN_HISTORY_RECORDS = 10
MIN_GROUP_SIZE = 3
DEFAULT_PREDICTION_TYPES = ["completion_time", "success_probability"]


@dataclass
class PredictionDraft:
    sop_id: int
    user_id: int
    prediction_type: str
    predicted_value: float
    prediction_range: Optional[Dict[str, float]]
    confidence_interval: float
    input_features: Dict[str, Any]
    model_version: str
    prediction_date: datetime
    expires_at: datetime


def has_sufficient_history(records: Sequence) -> bool:
    return len(records) >= MIN_HISTORY_RECORDS


def group_by_sop_and_user(records: Sequence) -> Dict[Tuple[Any, Any], List]:
    """Groupes (sop_id, user_id), chaque groupe trié chronologiquement."""
    groups: Dict[Tuple[Any, Any], List] = {}
    for r in records:
        groups.setdefault((r.sop_id, r.user_id), []).append(r)
    for key, group in groups.items():
        groups[key] = sorted(group, key=lambda r: (r.created_at is not None, r.created_at or 0))
    return groups


def generate(
    records: Sequence,
    sops: Dict[Any, Any],
    staff: Dict[Any, Any],
    prediction_types: Sequence[str],
    reference: datetime,
    horizon_days: int,
    include_intervals: bool = True,
    model_version: str = "1.0.0",
    min_group_size: int = MIN_GROUP_SIZE,
) -> List[PredictionDraft]:
    """
    Une prédiction par (type, sop, membre) pour chaque groupe suffisant.
    Groupes trop petits ou sop inconnue : ignorés silencieusement.
    """
    groups = group_by_sop_and_user(records)
    drafts: List[PredictionDraft] = []

    for prediction_type in prediction_types:
        for (sop_id, user_id), group in groups.items():
            if len(group) < min_group_size:
                continue
            sop = sops.get(sop_id)
            if sop is None:
                continue

            features = input_features(staff.get(user_id), sop, group, reference, staff_count=len(staff))
            result = estimate(prediction_type, group, features, sop)

            drafts.append(PredictionDraft(
                sop_id=sop_id,
                user_id=user_id,
                prediction_type=prediction_type,
                predicted_value=round(result.value, 3),
                prediction_range=result.range if include_intervals else None,
                confidence_interval=round(result.confidence, 3),
                input_features=features,
                model_version=model_version,
                prediction_date=reference,
                expires_at=reference + timedelta(days=horizon_days),
            ))

    return drafts


# ── Vérification ────────────────────────────────────────────

def accuracy(predicted: float, actual: float) -> float:
    denominator = max(predicted, actual)
    if denominator == 0:
        return 1.0 if predicted == actual else 0.0
    return max(0.0, 1 - abs(predicted - actual) / denominator)


def accuracy_summary(verified: Sequence[Tuple[str, float, float, float]]) -> Dict[str, Any]:
    """
    verified : (prediction_type, predicted, actual, accuracy) par prédiction vérifiée.
    Aucune vérification → métriques à None.
    """
    if not verified:
        return {"overall_accuracy": None, "accuracy_by_type": {}, "prediction_bias": None}

    by_type: Dict[str, List[float]] = {}
    for prediction_type, _, _, acc in verified:
        by_type.setdefault(prediction_type, []).append(acc)

    return {
        "overall_accuracy": round(float(np.mean([v[3] for v in verified])), 3),
        "accuracy_by_type": {t: round(float(np.mean(v)), 3) for t, v in by_type.items()},
        "prediction_bias": round(float(np.mean([v[1] - v[2] for v in verified])), 3),
    }
