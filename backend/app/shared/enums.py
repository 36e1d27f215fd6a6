# app/shared/enums.py
"""
Toutes les énumérations du projet.

Source unique de vérité pour les rôles, types et statuts.
Importé par les modèles, schemas, services et engine.
"""

from enum import Enum


class StaffRole(str, Enum):
    ADMIN   = "admin"
    MANAGER = "manager"
    CHEF    = "chef"
    SERVER  = "server"
    STAFF   = "staff"


class SkillArea(str, Enum):
    TECHNICAL       = "technical"
    SOFT            = "soft"
    DOMAIN          = "domain"
    PROBLEM_SOLVING = "problem_solving"


class DifficultyLevel(str, Enum):
    BEGINNER     = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED     = "advanced"


class ModelType(str, Enum):
    NEURAL_NETWORK    = "neural_network"
    GRADIENT_BOOSTING = "gradient_boosting"
    RANDOM_FOREST     = "random_forest"
    VECTOR_SIMILARITY = "vector_similarity"


class OptimizationObjective(str, Enum):
    MAXIMIZE_SUCCESS_PROBABILITY = "maximize_success_probability"
    MINIMIZE_TRAINING_TIME       = "minimize_training_time"
    BALANCE_TEAM_WORKLOAD        = "balance_team_workload"
    PROMOTE_SKILL_DEVELOPMENT    = "promote_skill_development"
    ENSURE_QUALITY_STANDARDS     = "ensure_quality_standards"


class SelectionStrategy(str, Enum):
    TOP_FRACTION = "top_fraction"   # Somme pondérée → top 20 %
    PARETO       = "pareto"         # Front non dominé


class PredictionType(str, Enum):
    COMPLETION_TIME     = "completion_time"
    SUCCESS_PROBABILITY = "success_probability"
    DIFFICULTY_SCORE    = "difficulty_score"
    QUALITY_SCORE       = "quality_score"


class PatternType(str, Enum):
    COMPLETION_TIME = "completion_time"
    SUCCESS_RATE    = "success_rate"
    ERROR_PATTERNS  = "error_patterns"
    SEASONAL        = "seasonal"
    DIFFICULTY      = "difficulty"


class TimePeriod(str, Enum):
    HOURLY  = "hourly"
    DAILY   = "daily"
    WEEKLY  = "weekly"
    MONTHLY = "monthly"


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE     = "stable"


class GapSeverity(str, Enum):
    NONE     = "none"
    MINOR    = "minor"
    MODERATE = "moderate"
    MAJOR    = "major"
    CRITICAL = "critical"


def enum_values(enum_cls):
    """Valeurs stockées en base pour SAEnum (values_callable)."""
    return [m.value for m in enum_cls]
