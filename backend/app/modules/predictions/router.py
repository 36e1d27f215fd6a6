# modules/predictions/router.py
"""
Endpoints des prédictions de performance.
"""
from typing import List, Optional

from fastapi import APIRouter, Query

from app.core.config import settings
from app.modules.predictions.schemas import (
    PredictionGenerateIn,
    PredictionGenerateOut,
    PredictionOut,
    PredictionVerifyIn,
    PredictionVerifyOut,
)
from app.modules.predictions.service import PredictionService
from app.shared.deps import AuthDep, DbDep, ManagerDep
from app.shared.enums import PredictionType
from app.shared.responses import Envelope, ok

router = APIRouter(prefix="/sop/predictions", tags=["Predictions"])
service = PredictionService()


@router.get(
    "",
    response_model=Envelope[List[PredictionOut]],
    summary="Prédictions stockées",
)
async def list_predictions(
    db: DbDep,
    ctx: AuthDep,
    sop_ids: Optional[List[int]] = Query(None),
    user_ids: Optional[List[int]] = Query(None),
    prediction_types: Optional[List[PredictionType]] = Query(None),
    min_confidence: float = Query(0.5, ge=0, le=1),
    include_verified: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
):
    data, pagination = await service.list_predictions(
        db, ctx,
        sop_ids=sop_ids,
        user_ids=user_ids,
        prediction_types=prediction_types,
        min_confidence=min_confidence,
        include_verified=include_verified,
        page=page,
        limit=limit,
    )
    return ok(data, pagination=pagination)


@router.post(
    "/generate",
    response_model=Envelope[PredictionGenerateOut],
    summary="Générer des prédictions",
)
async def generate_predictions(payload: PredictionGenerateIn, db: DbDep, ctx: ManagerDep):
    """422 INSUFFICIENT_DATA si moins de 10 enregistrements sur 180 jours."""
    data = await service.generate(db, ctx, payload)
    return ok(data, message=f"{len(data['predictions'])} prédictions générées")


@router.post(
    "/verify",
    response_model=Envelope[PredictionVerifyOut],
    summary="Vérifier des prédictions avec les valeurs observées",
)
async def verify_predictions(payload: PredictionVerifyIn, db: DbDep, ctx: ManagerDep):
    data = await service.verify(db, ctx, payload)
    return ok(data)
