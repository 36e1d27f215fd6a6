# engine/scoring/config.py
"""
Configuration du pipeline de scoring, injectée explicitement dans l'engine.

Le service charge la ligne ScoringConfiguration du restaurant (ou la crée
avec DEFAULT_CONFIG), la convertit via ScoringConfig.from_dict() et la
passe aux fonctions de l'engine. L'engine ne lit jamais la base.
"""
import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List

MODEL_VERSION = "1.0.0"
FALLBACK_MODEL_WEIGHT = 0.25

DEFAULT_CONFIG: Dict[str, Any] = {
    "model_version": MODEL_VERSION,
    "algorithm_weights": {
        "skill_compatibility": 0.25,
        "learning_velocity":   0.15,
        "performance_history": 0.20,
        "team_dynamics":       0.15,
        "workload_balance":    0.10,
        "contextual_factors":  0.15,
    },
    "ensemble": {
        "enabled": True,
        "voting_strategy": "weighted",
        "base_models": [
            {"model_type": "neural_network",    "weight": 0.4},
            {"model_type": "gradient_boosting", "weight": 0.3},
            {"model_type": "random_forest",     "weight": 0.2},
            {"model_type": "vector_similarity", "weight": 0.1},
        ],
    },
    "neural_network": {
        "hidden_layers": [64, 32, 16],
        "activation_function": "relu",
    },
    "optimization_objectives": {
        "maximize_success_probability": 0.30,
        "minimize_training_time":       0.20,
        "balance_team_workload":        0.20,
        "promote_skill_development":    0.15,
        "ensure_quality_standards":     0.15,
    },
    "selection_strategy": "top_fraction",
    "model_performance": {
        "accuracy":  0.85,
        "precision": 0.82,
        "recall":    0.88,
        "f1_score":  0.85,
        "auc_roc":   0.92,
    },
}


@dataclass
class ScoringConfig:
    algorithm_weights: Dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_CONFIG["algorithm_weights"])
    )
    ensemble_enabled: bool = True
    base_models: List[Dict[str, Any]] = field(
        default_factory=lambda: copy.deepcopy(DEFAULT_CONFIG["ensemble"]["base_models"])
    )
    hidden_layers: List[int] = field(
        default_factory=lambda: list(DEFAULT_CONFIG["neural_network"]["hidden_layers"])
    )
    optimization_objectives: Dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_CONFIG["optimization_objectives"])
    )
    selection_strategy: str = "top_fraction"
    model_performance: Dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_CONFIG["model_performance"])
    )
    model_version: str = MODEL_VERSION

    def model_weight(self, position: int) -> float:
        """Poids du modèle à cette position ; 0.25 si absent."""
        if position < len(self.base_models):
            weight = self.base_models[position].get("weight")
            if weight is not None:
                return float(weight)
        return FALLBACK_MODEL_WEIGHT

    def model_order(self) -> List[str]:
        return [m.get("model_type") for m in self.base_models if m.get("model_type")]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScoringConfig":
        """Accepte un dict partiel : les clés absentes gardent les défauts."""
        data = copy.deepcopy(data or {})
        ensemble = data.get("ensemble") or {}
        nn = data.get("neural_network") or {}
        defaults = cls()
        return cls(
            algorithm_weights=data.get("algorithm_weights") or defaults.algorithm_weights,
            ensemble_enabled=ensemble.get("enabled", True),
            base_models=ensemble.get("base_models") or defaults.base_models,
            hidden_layers=nn.get("hidden_layers") or defaults.hidden_layers,
            optimization_objectives=data.get("optimization_objectives") or defaults.optimization_objectives,
            selection_strategy=data.get("selection_strategy") or defaults.selection_strategy,
            model_performance=data.get("model_performance") or defaults.model_performance,
            model_version=data.get("model_version") or MODEL_VERSION,
        )

    @classmethod
    def from_model(cls, row) -> "ScoringConfig":
        """Depuis une ligne ScoringConfiguration."""
        return cls.from_dict({
            "algorithm_weights": row.algorithm_weights,
            "ensemble": row.ensemble,
            "neural_network": row.neural_network,
            "optimization_objectives": row.optimization_objectives,
            "selection_strategy": row.selection_strategy,
            "model_performance": row.model_performance,
            "model_version": row.model_version,
        })

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_version": self.model_version,
            "algorithm_weights": dict(self.algorithm_weights),
            "ensemble": {
                "enabled": self.ensemble_enabled,
                "voting_strategy": "weighted",
                "base_models": copy.deepcopy(self.base_models),
            },
            "neural_network": {
                "hidden_layers": list(self.hidden_layers),
                "activation_function": "relu",
            },
            "optimization_objectives": dict(self.optimization_objectives),
            "selection_strategy": self.selection_strategy,
            "model_performance": dict(self.model_performance),
        }


def default_config() -> ScoringConfig:
    return ScoringConfig()
