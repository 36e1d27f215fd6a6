# engine/scoring/ensemble.py
"""
Combinaison des algorithmes en un score unique.

    score    = Σ w_i · s_i / Σ w_i     (w_i = poids du base_model à la position i)
    interval = [μ − 1.96σ, μ + 1.96σ] ∩ [0, 100]   (σ population, μ moyenne simple)

Dégradations :
- ensemble désactivé → score brut du premier algorithme
- poids négatif      → traité comme nul
- Σ w ≤ 0            → moyenne simple
Le score retourné est toujours dans [0, 100].
"""
import numpy as np
from dataclasses import dataclass
from typing import Dict, List, Tuple

from app.engine.scoring.algorithms import AlgorithmScore
from app.engine.scoring.config import ScoringConfig
from app.engine.scoring.similarity import population_std

Z_95 = 1.96


@dataclass
class EnsembleResult:
    score: float
    interval: Tuple[float, float]
    contributions: List[Dict]


def ensemble_score(results: List[AlgorithmScore], config: ScoringConfig) -> float:
    if not results:
        return 0.0
    if not config.ensemble_enabled:
        return max(0.0, min(100.0, results[0].score))

    weights = [max(0.0, config.model_weight(i)) for i in range(len(results))]
    total = sum(weights)
    if total <= 0:
        score = float(np.mean([r.score for r in results]))
    else:
        score = sum(r.score * w for r, w in zip(results, weights)) / total
    return max(0.0, min(100.0, score))


def confidence_interval(results: List[AlgorithmScore]) -> Tuple[float, float]:
    if not results:
        return (0.0, 0.0)
    scores = [r.score for r in results]
    mean = float(np.mean(scores))
    spread = Z_95 * population_std(scores)
    low = max(0.0, min(100.0, mean - spread))
    high = max(0.0, min(100.0, mean + spread))
    return (low, high)


def combine(results: List[AlgorithmScore], config: ScoringConfig) -> EnsembleResult:
    contributions = [
        {
            "model_name": r.name,
            "score": round(r.score, 2),
            "weight": config.model_weight(i),
            "confidence": round(r.confidence, 3),
        }
        for i, r in enumerate(results)
    ]
    return EnsembleResult(
        score=ensemble_score(results, config),
        interval=confidence_interval(results),
        contributions=contributions,
    )
