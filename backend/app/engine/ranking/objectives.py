# engine/ranking/objectives.py
"""
Classement multi-objectif des résultats de matching : ZÉRO accès DB.

Chaque objectif projette un résultat sur [0, 1] (environ) :

| Objectif                     | Projection                          |
|------------------------------|-------------------------------------|
| maximize_success_probability | success_probability                 |
| minimize_training_time       | 1 − learning_time_estimate / 100    |
| balance_team_workload        | team_balance_contribution / 100     |
| promote_skill_development    | career_alignment / 100              |
| ensure_quality_standards     | quality_prediction / 100            |

    multi_objective_score = Σ w·f / Σ w     (repli : match_score / 100)

Sélection :
- top_fraction : tri décroissant, on garde ceil(20 % · N), plafonné à 100
- pareto       : front non dominé sur les vecteurs d'objectifs, même plafond
"""
import math
from typing import Callable, Dict, List, Optional, Sequence

from app.engine.scoring.config import ScoringConfig

TOP_FRACTION = 0.2
MAX_SELECTED = 100

OBJECTIVES: Dict[str, Callable] = {
    "maximize_success_probability": lambda r: r.predictions["success_probability"],
    "minimize_training_time":       lambda r: 1 - r.predictions["learning_time_estimate"] / 100,
    "balance_team_workload":        lambda r: r.team_impact["team_balance_contribution"] / 100,
    "promote_skill_development":    lambda r: r.team_impact["career_alignment"] / 100,
    "ensure_quality_standards":     lambda r: r.predictions["quality_prediction"] / 100,
}


def active_objectives(
    configured: Dict[str, float],
    goals: Optional[Sequence[str]] = None,
) -> Dict[str, float]:
    """
    Objectifs retenus pour ce classement. Les goals demandés restreignent
    l'ensemble configuré ; goals inconnus ignorés ; aucun goal reconnu →
    tous les objectifs configurés.
    """
    known = {name: w for name, w in configured.items() if name in OBJECTIVES}
    if goals:
        restricted = {name: w for name, w in known.items() if name in set(goals)}
        if restricted:
            return restricted
    return known


def multi_objective_score(result, weights: Dict[str, float]) -> float:
    total_score = 0.0
    total_weight = 0.0
    for name, weight in weights.items():
        total_score += OBJECTIVES[name](result) * weight
        total_weight += weight
    if total_weight > 0:
        return total_score / total_weight
    return result.match_score / 100


def objective_vector(result, names: Sequence[str]) -> List[float]:
    return [OBJECTIVES[name](result) for name in names]


# ── Sélection ───────────────────────────────────────────────

def select_top_fraction(results: List, fraction: float = TOP_FRACTION) -> List:
    """Tri décroissant par multi_objective_score, ceil(fraction · N) ≤ 100."""
    if not results:
        return []
    ordered = sorted(results, key=lambda r: r.multi_objective_score, reverse=True)
    keep = max(1, math.ceil(len(ordered) * fraction))
    return ordered[:min(keep, MAX_SELECTED)]


def _dominates(a: List[float], b: List[float]) -> bool:
    return all(x >= y for x, y in zip(a, b)) and any(x > y for x, y in zip(a, b))


def pareto_front(results: List, objective_names: Sequence[str]) -> List:
    """
    Résultats non dominés (≥ sur chaque objectif, > sur au moins un),
    triés par multi_objective_score décroissant, plafonnés à 100.
    """
    if not results:
        return []
    vectors = [objective_vector(r, objective_names) for r in results]
    front = [
        r for i, r in enumerate(results)
        if not any(_dominates(vectors[j], vectors[i]) for j in range(len(results)) if j != i)
    ]
    front.sort(key=lambda r: r.multi_objective_score, reverse=True)
    return front[:MAX_SELECTED]


def rank(
    results: List,
    config: ScoringConfig,
    goals: Optional[Sequence[str]] = None,
) -> List:
    """
    Calcule multi_objective_score sur chaque résultat (muté sur place)
    puis applique la stratégie de sélection de la configuration.
    """
    weights = active_objectives(config.optimization_objectives, goals)
    for result in results:
        result.multi_objective_score = multi_objective_score(result, weights)

    if config.selection_strategy == "pareto":
        return pareto_front(results, list(weights) or list(OBJECTIVES))
    return select_top_fraction(results)
