# tests/modules/predictions/test_service.py
"""
Tests unitaires pour modules.predictions.service.PredictionService

Couverture :
    generate() :
        - < 10 enregistrements → InsufficientData, aucune lecture des procédures
        - Succès → prédictions par type, horizon par défaut 30 jours
        - Échec d'écriture → prédictions retournées, persisted=False

    verify() :
        - Identifiant inconnu → skipped_ids
        - Précision calculée et ligne mise à jour
        - Doublon → une seule vérification
        - Échec du commit → persisted=False

    list_predictions() :
        - Types convertis en valeurs, pagination
"""
import pytest
from datetime import timedelta
from unittest.mock import AsyncMock

from sqlalchemy.exc import SQLAlchemyError

from app.modules.predictions.schemas import PredictionGenerateIn, PredictionVerifyIn
from app.modules.predictions.service import PredictionService
from app.shared.enums import PredictionType
from app.shared.errors import InsufficientData
from tests.conftest import (
    make_async_db, make_auth_ctx, make_history, make_prediction_row, make_sop, make_staff,
)

pytestmark = pytest.mark.service

service = PredictionService()
MODULE = "app.modules.predictions.service"


def _patch_reads(mocker, history):
    mocker.patch(f"{MODULE}.sop_repo.get_history", AsyncMock(return_value=history))
    docs = mocker.patch(f"{MODULE}.sop_repo.get_documents", AsyncMock(return_value=[make_sop()]))
    mocker.patch(f"{MODULE}.sop_repo.get_active_staff", AsyncMock(return_value=[make_staff()]))
    return docs


# ── generate() ─────────────────────────────────────────────────────────────────

class TestGenerate:
    @pytest.mark.asyncio
    async def test_historique_insuffisant(self, mocker):
        docs = _patch_reads(mocker, make_history(9))
        insert = mocker.patch(f"{MODULE}.repo.insert_many", AsyncMock())

        with pytest.raises(InsufficientData) as exc:
            await service.generate(make_async_db(), make_auth_ctx(), PredictionGenerateIn())

        assert "9 enregistrements" in exc.value.message
        assert exc.value.status_code == 422
        docs.assert_not_called()
        insert.assert_not_called()

    @pytest.mark.asyncio
    async def test_predictions_generees(self, mocker):
        _patch_reads(mocker, make_history(12))
        insert = mocker.patch(f"{MODULE}.repo.insert_many", AsyncMock())

        data = await service.generate(make_async_db(), make_auth_ctx(), PredictionGenerateIn())

        types = [p["prediction_type"] for p in data["predictions"]]
        assert types == ["completion_time", "success_probability"]
        assert data["summary"]["records_analyzed"] == 12
        assert data["summary"]["prediction_horizon_days"] == 30
        assert data["summary"]["persisted"] is True
        first = data["predictions"][0]
        assert first["expires_at"] - first["prediction_date"] == timedelta(days=30)
        assert first["prediction_range"] is not None
        assert len(insert.call_args.args[1]) == 2

    @pytest.mark.asyncio
    async def test_horizon_et_sans_intervalles(self, mocker):
        _patch_reads(mocker, make_history(12))
        mocker.patch(f"{MODULE}.repo.insert_many", AsyncMock())
        payload = PredictionGenerateIn(
            prediction_types=[PredictionType.DIFFICULTY_SCORE],
            prediction_horizon_days=7,
            include_confidence_intervals=False,
        )

        data = await service.generate(make_async_db(), make_auth_ctx(), payload)

        prediction = data["predictions"][0]
        assert prediction["prediction_type"] == "difficulty_score"
        assert prediction["prediction_range"] is None
        assert prediction["expires_at"] - prediction["prediction_date"] == timedelta(days=7)

    @pytest.mark.asyncio
    async def test_echec_ecriture_non_bloquant(self, mocker):
        _patch_reads(mocker, make_history(12))
        mocker.patch(f"{MODULE}.repo.insert_many", AsyncMock(side_effect=SQLAlchemyError("down")))
        db = make_async_db()

        data = await service.generate(db, make_auth_ctx(), PredictionGenerateIn())

        assert len(data["predictions"]) == 2
        assert data["summary"]["persisted"] is False
        db.rollback.assert_awaited_once()


# ── verify() ───────────────────────────────────────────────────────────────────

class TestVerify:
    @pytest.mark.asyncio
    async def test_identifiant_inconnu_ignore(self, mocker):
        row = make_prediction_row(id=1, predicted_value=30.0)
        mocker.patch(f"{MODULE}.repo.get_by_ids", AsyncMock(return_value=[row]))
        mocker.patch(f"{MODULE}.repo.commit", AsyncMock())
        payload = PredictionVerifyIn(verifications=[
            {"prediction_id": 1, "actual_value": 40.0},
            {"prediction_id": 404, "actual_value": 12.0},
        ])

        data = await service.verify(make_async_db(), make_auth_ctx(), payload)

        assert data["skipped_ids"] == [404]
        assert len(data["verified"]) == 1
        assert data["verified"][0]["accuracy_score"] == 0.75
        assert row.actual_value == 40.0
        assert row.accuracy_score == 0.75
        assert row.verified_at is not None
        assert data["summary"]["verified_count"] == 1
        assert data["summary"]["overall_accuracy"] == 0.75

    @pytest.mark.asyncio
    async def test_doublon_derniere_valeur(self, mocker):
        row = make_prediction_row(id=1, predicted_value=30.0)
        mocker.patch(f"{MODULE}.repo.get_by_ids", AsyncMock(return_value=[row]))
        mocker.patch(f"{MODULE}.repo.commit", AsyncMock())
        payload = PredictionVerifyIn(verifications=[
            {"prediction_id": 1, "actual_value": 40.0},
            {"prediction_id": 1, "actual_value": 30.0},
        ])

        data = await service.verify(make_async_db(), make_auth_ctx(), payload)

        assert len(data["verified"]) == 1
        assert data["verified"][0]["accuracy_score"] == 1.0
        assert row.actual_value == 30.0

    @pytest.mark.asyncio
    async def test_rien_a_verifier(self, mocker):
        mocker.patch(f"{MODULE}.repo.get_by_ids", AsyncMock(return_value=[]))
        commit = mocker.patch(f"{MODULE}.repo.commit", AsyncMock())
        payload = PredictionVerifyIn(verifications=[{"prediction_id": 5, "actual_value": 1.0}])

        data = await service.verify(make_async_db(), make_auth_ctx(), payload)

        assert data["verified"] == []
        assert data["summary"]["overall_accuracy"] is None
        commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_echec_commit(self, mocker):
        mocker.patch(f"{MODULE}.repo.get_by_ids", AsyncMock(return_value=[make_prediction_row()]))
        mocker.patch(f"{MODULE}.repo.commit", AsyncMock(side_effect=SQLAlchemyError("down")))
        db = make_async_db()
        payload = PredictionVerifyIn(verifications=[{"prediction_id": 1, "actual_value": 30.0}])

        data = await service.verify(db, make_auth_ctx(), payload)

        assert data["summary"]["persisted"] is False
        db.rollback.assert_awaited_once()


# ── list_predictions() ─────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_list_predictions(mocker):
    rows = [make_prediction_row(id=3), make_prediction_row(id=2, prediction_type="success_probability")]
    list_mock = mocker.patch(f"{MODULE}.repo.list_predictions", AsyncMock(return_value=(rows, 2)))

    data, pagination = await service.list_predictions(
        make_async_db(), make_auth_ctx(),
        sop_ids=[1], user_ids=None,
        prediction_types=[PredictionType.COMPLETION_TIME],
        min_confidence=0.5, include_verified=False, page=1, limit=20,
    )

    assert [p["id"] for p in data] == [3, 2]
    assert pagination.total == 2 and not pagination.hasNext
    assert list_mock.call_args.kwargs["prediction_types"] == ["completion_time"]
    assert list_mock.call_args.kwargs["include_verified"] is False
