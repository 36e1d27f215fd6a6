# tests/modules/predictions/test_router.py
"""
Tests HTTP pour modules.predictions.router

Couverture :
    GET  /sop/predictions           → 200 liste paginée, filtres multiples
    POST /sop/predictions/generate  → 200 (manager), 403 (staff)
    POST /sop/predictions/generate  historique insuffisant → 422 INSUFFICIENT_DATA
    POST /sop/predictions/generate  horizon hors bornes → 400
    POST /sop/predictions/verify    → 200, liste vide → 400
"""
import pytest
from unittest.mock import AsyncMock

from app.modules.predictions.service import prediction_to_dict
from app.shared.errors import InsufficientData
from app.shared.responses import paginate
from tests.conftest import make_prediction_row

pytestmark = pytest.mark.router

SERVICE = "app.modules.predictions.router.service"


@pytest.mark.asyncio
async def test_list_predictions_200(staff_client, mocker):
    list_mock = mocker.patch(
        f"{SERVICE}.list_predictions",
        AsyncMock(return_value=([prediction_to_dict(make_prediction_row())], paginate(1, 20, 1))),
    )

    resp = await staff_client.get(
        "/sop/predictions",
        params=[("sop_ids", 1), ("sop_ids", 2), ("prediction_types", "completion_time")],
    )

    assert resp.status_code == 200
    assert resp.json()["data"][0]["predicted_value"] == 30.0
    kwargs = list_mock.call_args.kwargs
    assert kwargs["sop_ids"] == [1, 2]
    assert kwargs["min_confidence"] == 0.5
    assert [t.value for t in kwargs["prediction_types"]] == ["completion_time"]


@pytest.mark.asyncio
async def test_generate_200(manager_client, mocker):
    data = {
        "predictions": [prediction_to_dict(make_prediction_row())],
        "summary": {"total_predictions": 1},
    }
    mocker.patch(f"{SERVICE}.generate", AsyncMock(return_value=data))

    resp = await manager_client.post("/sop/predictions/generate", json={"sop_ids": [1]})

    assert resp.status_code == 200
    assert resp.json()["data"]["summary"]["total_predictions"] == 1


@pytest.mark.asyncio
async def test_generate_staff_403(staff_client):
    resp = await staff_client.post("/sop/predictions/generate", json={})
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_generate_historique_insuffisant_422(manager_client, mocker):
    mocker.patch(
        f"{SERVICE}.generate",
        AsyncMock(side_effect=InsufficientData("Historique insuffisant : 4 enregistrements, 10 requis.")),
    )

    resp = await manager_client.post("/sop/predictions/generate", json={})

    assert resp.status_code == 422
    body = resp.json()
    assert body["success"] is False
    assert body["errorCode"] == "INSUFFICIENT_DATA"
    assert "4 enregistrements" in body["error"]


@pytest.mark.asyncio
async def test_generate_horizon_hors_bornes_400(manager_client):
    resp = await manager_client.post("/sop/predictions/generate", json={"prediction_horizon_days": 0})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_verify_200(manager_client, mocker):
    data = {
        "verified": [{
            "prediction_id": 1,
            "prediction_type": "completion_time",
            "predicted_value": 30.0,
            "actual_value": 40.0,
            "accuracy_score": 0.75,
        }],
        "skipped_ids": [9],
        "summary": {"overall_accuracy": 0.75},
    }
    mocker.patch(f"{SERVICE}.verify", AsyncMock(return_value=data))

    resp = await manager_client.post(
        "/sop/predictions/verify",
        json={"verifications": [{"prediction_id": 1, "actual_value": 40}, {"prediction_id": 9, "actual_value": 1}]},
    )

    assert resp.status_code == 200
    assert resp.json()["data"]["skipped_ids"] == [9]


@pytest.mark.asyncio
async def test_verify_liste_vide_400(manager_client):
    resp = await manager_client.post("/sop/predictions/verify", json={"verifications": []})
    assert resp.status_code == 400
    assert resp.json()["errorCode"] == "VALIDATION_ERROR"
