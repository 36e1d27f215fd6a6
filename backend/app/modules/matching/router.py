# modules/matching/router.py
"""
Endpoints du matching compétences membre × procédure.

Règle : zéro requête SQL ici. Tout passe par MatchingService.
"""
from typing import Optional

from fastapi import APIRouter, Query

from app.core.config import settings
from app.modules.matching.schemas import (
    MatchingListOut,
    MatchingRequestIn,
    MatchingRunOut,
    ModelUpdateIn,
    ScoringConfigOut,
)
from app.modules.matching.service import MatchingService
from app.shared.deps import AuthDep, DbDep, ManagerDep
from app.shared.responses import Envelope, ok

router = APIRouter(prefix="/sop/matching", tags=["Matching"])
service = MatchingService()


@router.get(
    "",
    response_model=Envelope[MatchingListOut],
    summary="Résultats de matching non expirés",
)
async def list_matches(
    db: DbDep,
    ctx: AuthDep,
    sop_id: Optional[int] = None,
    user_id: Optional[int] = None,
    include_analytics: bool = False,
    min_match_score: int = Query(60, ge=0, le=100),
    algorithm: Optional[str] = "ensemble",
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
):
    """Score décroissant. `include_analytics` ajoute la synthèse des 30 derniers jours."""
    data, pagination = await service.list_results(
        db, ctx,
        sop_id=sop_id,
        user_id=user_id,
        min_match_score=min_match_score,
        algorithm=algorithm,
        include_analytics=include_analytics,
        page=page,
        limit=limit,
    )
    return ok(data, pagination=pagination)


@router.post(
    "",
    response_model=Envelope[MatchingRunOut],
    summary="Calculer le matching procédures × équipe",
)
async def run_matching(payload: MatchingRequestIn, db: DbDep, ctx: ManagerDep):
    """
    Pipeline complet : profils → 4 algorithmes → ensemble → plancher 40
    → classement multi-objectif → persistance (TTL 7 jours).
    """
    data = await service.generate(db, ctx, payload)
    return ok(data, message=f"{len(data['results'])} résultats de matching générés")


@router.put(
    "/model",
    response_model=Envelope[ScoringConfigOut],
    summary="Mettre à jour la configuration du modèle",
)
async def update_model(payload: ModelUpdateIn, db: DbDep, ctx: ManagerDep):
    data = await service.update_model(db, ctx, payload)
    return ok(data, message="Configuration du modèle mise à jour")
