# engine/scoring/algorithms.py
"""
Algorithmes de scoring (membre × procédure) : ZÉRO accès DB.

Chaque algorithme est une stratégie pure nommée :

    (StaffProfile, ProcedureRequirements, ScoringConfig) → AlgorithmScore

Les noms reprennent la terminologie ML (réseau de neurones, boosting,
forêt aléatoire) mais ce sont des calculs déterministes, sans
apprentissage ni état.

- vector_similarity : cosinus compétences ↔ exigences
- gradient_boosting : 10 itérations de correction vers 0.2 × Σ features
- random_forest     : 50 "arbres" modulés par sin(i)
- neural_network    : couches relu(Σ x_k · sin(k+j) / n), sortie sigmoid
"""
import math
import numpy as np
from dataclasses import dataclass
from typing import Callable, Dict, List

from app.engine.features.extractor import ProcedureRequirements, StaffProfile
from app.engine.scoring.config import ScoringConfig
from app.engine.scoring.similarity import cosine_similarity, population_std, relu, sigmoid


@dataclass
class AlgorithmScore:
    name: str
    score: float        # 0-100
    confidence: float   # 0-1


# ── Features partagées ──────────────────────────────────────

def skill_compatibility(staff: StaffProfile, proc: ProcedureRequirements) -> float:
    """Cosinus compétences techniques ↔ exigences (tronqué)."""
    return cosine_similarity(staff.technical, proc.requirements[:len(staff.technical)])


def personality_match(staff: StaffProfile, proc: ProcedureRequirements) -> float:
    openness = staff.personality.get("openness", 0.0)
    conscientiousness = staff.personality.get("conscientiousness", 0.0)
    return (openness * 0.3 + conscientiousness * 0.7) * (1 + proc.cognitive_load * 0.1)


# ── Algorithmes ─────────────────────────────────────────────

def vector_similarity(
    staff: StaffProfile, proc: ProcedureRequirements, config: ScoringConfig
) -> AlgorithmScore:
    staff_vector = staff.technical + staff.soft + staff.domain
    score = cosine_similarity(staff_vector, proc.requirements) * 100
    return AlgorithmScore("vector_similarity", score, 0.7)


BOOSTING_ROUNDS = 10
BOOSTING_LEARNING_RATE = 0.1


def gradient_boosting(
    staff: StaffProfile, proc: ProcedureRequirements, config: ScoringConfig
) -> AlgorithmScore:
    features = [
        skill_compatibility(staff, proc),
        staff.quality_consistency,
        staff.retention_rate,
        proc.cognitive_load,
        personality_match(staff, proc),
    ]
    target = sum(f * 0.2 for f in features)

    prediction = 50.0
    for _ in range(BOOSTING_ROUNDS):
        prediction += BOOSTING_LEARNING_RATE * (target - prediction)

    return AlgorithmScore("gradient_boosting", max(0.0, min(100.0, prediction)), 0.8)


FOREST_SIZE = 50


def random_forest(
    staff: StaffProfile, proc: ProcedureRequirements, config: ScoringConfig
) -> AlgorithmScore:
    skill_score = skill_compatibility(staff, proc) * 100
    base = skill_score * 0.6 + staff.completion_speed_percentile * 0.4

    trees = [base * (0.8 + (math.sin(i) * 0.5 + 0.5) * 0.4) for i in range(FOREST_SIZE)]
    score = max(0.0, min(100.0, float(np.mean(trees))))
    confidence = 1 - population_std(trees) / 100
    return AlgorithmScore("random_forest", score, max(0.0, min(1.0, confidence)))


def _dense_layer(inputs: List[float], size: int) -> List[float]:
    n = len(inputs)
    return [
        relu(sum(x * math.sin(k + j) for k, x in enumerate(inputs)) / n)
        for j in range(size)
    ]


def neural_network(
    staff: StaffProfile, proc: ProcedureRequirements, config: ScoringConfig
) -> AlgorithmScore:
    activations = (
        staff.technical
        + staff.soft
        + [
            staff.learning_velocity,
            staff.completion_speed_percentile / 100,
            proc.cognitive_load,
            proc.procedural_complexity,
        ]
    )
    for size in config.hidden_layers:
        activations = _dense_layer(activations, int(size))

    score = sigmoid(float(np.mean(activations))) * 100 if activations else 50.0
    confidence = min(0.95, 0.6 + len(activations) / 100)
    return AlgorithmScore("neural_network", score, confidence)


Algorithm = Callable[[StaffProfile, ProcedureRequirements, ScoringConfig], AlgorithmScore]

ALGORITHMS: Dict[str, Algorithm] = {
    "neural_network":    neural_network,
    "gradient_boosting": gradient_boosting,
    "random_forest":     random_forest,
    "vector_similarity": vector_similarity,
}
DEFAULT_ORDER = list(ALGORITHMS)


def run_all(
    staff: StaffProfile,
    proc: ProcedureRequirements,
    config: ScoringConfig,
) -> List[AlgorithmScore]:
    """
    Exécute les algorithmes dans l'ordre des base_models de la
    configuration (les poids de l'ensemble sont positionnels).
    Types inconnus ignorés ; ordre par défaut si rien ne correspond.
    """
    order = [name for name in config.model_order() if name in ALGORITHMS] or DEFAULT_ORDER
    return [ALGORITHMS[name](staff, proc, config) for name in order]
