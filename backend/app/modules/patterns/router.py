# modules/patterns/router.py
"""
Endpoints des patterns de complétion.
"""
from typing import List, Optional

from fastapi import APIRouter, Query

from app.core.config import settings
from app.modules.patterns.schemas import PatternAnalyzeIn, PatternAnalyzeOut, PatternOut
from app.modules.patterns.service import PatternService
from app.shared.deps import AuthDep, DbDep, ManagerDep
from app.shared.enums import PatternType, TimePeriod
from app.shared.responses import Envelope, ok

router = APIRouter(prefix="/sop/patterns", tags=["Patterns"])
service = PatternService()


@router.get(
    "",
    response_model=Envelope[List[PatternOut]],
    summary="Patterns de complétion stockés",
)
async def list_patterns(
    db: DbDep,
    ctx: AuthDep,
    sop_ids: Optional[List[int]] = Query(None),
    pattern_types: Optional[List[PatternType]] = Query(None),
    time_period: Optional[TimePeriod] = None,
    min_confidence: float = Query(0.6, ge=0, le=1),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
):
    data, pagination = await service.list_patterns(
        db, ctx,
        sop_ids=sop_ids,
        pattern_types=pattern_types,
        time_period=time_period,
        min_confidence=min_confidence,
        page=page,
        limit=limit,
    )
    return ok(data, pagination=pagination)


@router.post(
    "/analyze",
    response_model=Envelope[PatternAnalyzeOut],
    summary="Analyser les patterns de complétion",
)
async def analyze_patterns(payload: PatternAnalyzeIn, db: DbDep, ctx: ManagerDep):
    """Fenêtre par défaut : 90 derniers jours. Procédures sous l'échantillon minimum ignorées."""
    data = await service.analyze(db, ctx, payload)
    return ok(data, message=f"{len(data['patterns'])} patterns identifiés")
