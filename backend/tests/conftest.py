# tests/conftest.py
"""
Fixtures et factories partagées sur l'ensemble de la suite de tests.

Trois couches :
    1. Engine  : fonctions pures, aucun mock nécessaire (factories SimpleNamespace)
    2. Service : mocks AsyncSession + repos via pytest-mock
    3. Router  : httpx.AsyncClient + dependency_overrides FastAPI
"""
import copy
import pytest
from types import SimpleNamespace
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from app.main import app
from app.core.database import get_db
from app.engine.scoring.config import DEFAULT_CONFIG
from app.shared.deps import AuthContext, get_auth_context
from app.shared.enums import DifficultyLevel, SkillArea, StaffRole

NOW = datetime(2025, 3, 3, 12, 0, tzinfo=timezone.utc)


# ── Factories de modèles ORM (SimpleNamespace, léger, sans ORM) ──────────────

def make_skill(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": 1,
        "staff_id": 1,
        "skill_area": SkillArea.TECHNICAL,
        "skill_index": 0,
        "skill_name": "knife_work",
        "proficiency_level": 9.0,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_skill_set(level: float = 9.0, staff_id: int = 1) -> list:
    """Toutes les positions des quatre vecteurs notées au même niveau."""
    sizes = {
        SkillArea.TECHNICAL: 10,
        SkillArea.SOFT: 8,
        SkillArea.DOMAIN: 6,
        SkillArea.PROBLEM_SOLVING: 4,
    }
    return [
        make_skill(staff_id=staff_id, skill_area=area, skill_index=i, proficiency_level=level)
        for area, size in sizes.items()
        for i in range(size)
    ]


def make_staff(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": 1,
        "restaurant_id": 1,
        "full_name": "Camille Martin",
        "email": "camille@bistrot.test",
        "role": StaffRole.SERVER,
        "is_active": True,
        "personality": None,
        "stress_tolerance": None,
        "multitasking_ability": None,
        "promotion_readiness": None,
        "skills": [],
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_sop(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": 1,
        "restaurant_id": 1,
        "category_id": 1,
        "title": "Opening checklist",
        "title_fr": "Checklist d'ouverture",
        "difficulty_level": DifficultyLevel.INTERMEDIATE,
        "estimated_read_time": 30,
        "tags": [],
        "skill_requirements": None,
        "decision_points": None,
        "is_active": True,
        "category_name": "service",
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_record(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": 1,
        "restaurant_id": 1,
        "sop_id": 1,
        "user_id": 1,
        "progress_percentage": 100.0,
        "time_spent": 30.0,
        "created_at": NOW,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_history(n: int, start: datetime = NOW, step_days: int = 1, **kwargs) -> list:
    """n enregistrements espacés de step_days, ids croissants."""
    return [
        make_record(id=i + 1, created_at=start + timedelta(days=i * step_days), **kwargs)
        for i in range(n)
    ]


def make_config_row(**kwargs) -> SimpleNamespace:
    data = copy.deepcopy(DEFAULT_CONFIG)
    defaults = {
        "id": 1,
        "restaurant_id": 1,
        "model_version": data["model_version"],
        "algorithm_weights": data["algorithm_weights"],
        "ensemble": data["ensemble"],
        "neural_network": data["neural_network"],
        "optimization_objectives": data["optimization_objectives"],
        "selection_strategy": data["selection_strategy"],
        "model_performance": data["model_performance"],
        "created_at": NOW,
        "last_updated": NOW,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_match_row(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": 1,
        "matching_id": "match_1_1_1741003200000",
        "restaurant_id": 1,
        "sop_id": 1,
        "user_id": 1,
        "match_score": 75,
        "confidence_low": 55.0,
        "confidence_high": 90.0,
        "multi_objective_score": 0.72,
        "primary_algorithm": "ensemble",
        "algorithm_details": {"primary_algorithm": "ensemble"},
        "predictions": {"success_probability": 0.7},
        "skill_analysis": {"critical_gaps": 0, "major_gaps": 0},
        "recommendations": {"recommendation_type": "with_training"},
        "team_impact": {"career_alignment": 50.0},
        "model_version": "1.0.0",
        "created_at": NOW,
        "expires_at": NOW + timedelta(days=7),
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_prediction_row(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": 1,
        "restaurant_id": 1,
        "sop_id": 1,
        "user_id": 1,
        "prediction_type": "completion_time",
        "predicted_value": 30.0,
        "prediction_range": {"min_value": 25.0, "max_value": 35.0},
        "confidence_interval": 0.8,
        "input_features": {},
        "model_version": "1.0.0",
        "prediction_date": NOW,
        "expires_at": NOW + timedelta(days=30),
        "actual_value": None,
        "accuracy_score": None,
        "verified_at": None,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_pattern_row(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": 1,
        "restaurant_id": 1,
        "sop_id": 1,
        "pattern_type": "success_rate",
        "time_period": "weekly",
        "pattern_data": {"success_rate": 90.0, "failure_rate": 10.0},
        "statistical_metrics": {"sample_size": 60},
        "insights": {
            "key_findings": ["Excellent success rate indicates well-designed SOP"],
            "recommendations": [],
            "optimization_opportunities": [],
            "risk_factors": [],
        },
        "confidence_level": 0.6,
        "created_at": NOW,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_auth_ctx(role: StaffRole = StaffRole.MANAGER, **kwargs) -> AuthContext:
    defaults = {"restaurant_id": 1, "user_id": 1, "role": role}
    defaults.update(kwargs)
    return AuthContext(**defaults)


# ── DB mock factory ───────────────────────────────────────────────────────────

def make_async_db() -> AsyncMock:
    """
    AsyncMock simulant une AsyncSession SQLAlchemy.
    add / add_all capturent les objets pour inspection.
    """
    db = AsyncMock(spec=AsyncSession)
    db.added = []

    db.add = MagicMock(side_effect=db.added.append)
    db.add_all = MagicMock(side_effect=db.added.extend)
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.close = AsyncMock()
    return db


# ── Fixtures HTTP (httpx.AsyncClient + dependency_overrides) ─────────────────

@pytest.fixture
async def client():
    """Client sans auth, pour vérifier le refus des endpoints protégés."""
    mock_db = AsyncMock(spec=AsyncSession)
    app.dependency_overrides[get_db] = lambda: mock_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def staff_client():
    """Client authentifié comme membre d'équipe (rôle STAFF)."""
    mock_db = AsyncMock(spec=AsyncSession)
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_auth_context] = lambda: make_auth_ctx(StaffRole.STAFF, user_id=7)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def manager_client():
    """Client authentifié comme manager (opérations d'écriture autorisées)."""
    mock_db = AsyncMock(spec=AsyncSession)
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_auth_context] = lambda: make_auth_ctx(StaffRole.MANAGER)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
