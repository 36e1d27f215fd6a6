# modules/patterns/service.py
"""
Analyse des patterns de complétion sur une fenêtre (90 jours par défaut).

Chaque analyse ajoute des lignes CompletionPattern (append-only) ; seules
les analyses de confiance ≥ 0.6 sont conservées par l'engine.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.engine.features.extractor import PATTERN_LOOKBACK_DAYS, enum_value, lookback_start
from app.engine.patterns import analyzer
from app.engine.patterns.analyzer import PatternDraft
from app.infra.audit import log_audit_event
from app.modules.patterns.repository import PatternRepository
from app.modules.sop.repository import SopRepository
from app.shared.models import CompletionPattern
from app.shared.responses import Pagination, paginate

logger = logging.getLogger(__name__)

repo     = PatternRepository()
sop_repo = SopRepository()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def pattern_to_dict(p) -> Dict[str, Any]:
    return {
        "id": getattr(p, "id", None),
        "sop_id": p.sop_id,
        "pattern_type": p.pattern_type,
        "time_period": p.time_period,
        "pattern_data": p.pattern_data,
        "statistical_metrics": p.statistical_metrics,
        "insights": p.insights,
        "confidence_level": p.confidence_level,
        "created_at": getattr(p, "created_at", None),
    }


class PatternService:

    async def list_patterns(
        self,
        db: AsyncSession,
        ctx,
        sop_ids,
        pattern_types,
        time_period,
        min_confidence: float,
        page: int,
        limit: int,
    ) -> Tuple[List[Dict[str, Any]], Pagination]:
        rows, total = await repo.list_patterns(
            db, ctx.restaurant_id, min_confidence,
            sop_ids=sop_ids,
            pattern_types=[enum_value(t) for t in pattern_types or []],
            time_period=enum_value(time_period),
            offset=(page - 1) * limit,
            limit=limit,
        )
        return [pattern_to_dict(r) for r in rows], paginate(page, limit, total)

    async def analyze(self, db: AsyncSession, ctx, payload) -> Dict[str, Any]:
        now = _utcnow()
        if payload.date_range is not None:
            start, end = payload.date_range.start_date, payload.date_range.end_date
        else:
            start, end = lookback_start(now, PATTERN_LOOKBACK_DAYS), now

        pattern_types = [enum_value(t) for t in payload.pattern_types]
        time_period = enum_value(payload.time_period)

        records = await sop_repo.get_history(
            db, ctx.restaurant_id, since=start, until=end, sop_ids=payload.sop_ids,
        )
        sops = {s.id: s for s in await sop_repo.get_documents(db, ctx.restaurant_id, payload.sop_ids)}
        roles: Dict[int, str] = {}
        if "difficulty" in pattern_types:
            staff = await sop_repo.get_active_staff(db, ctx.restaurant_id)
            roles = {s.id: enum_value(s.role) for s in staff}

        drafts = analyzer.analyze(
            records, sops, pattern_types,
            time_period=time_period,
            minimum_sample_size=payload.minimum_sample_size,
            roles=roles,
        )
        logger.info(
            "Patterns : %d retenus sur %d enregistrements (%d procédures, période %s)",
            len(drafts), len(records), len(sops), time_period,
        )

        persisted = await self._persist(db, ctx.restaurant_id, drafts)
        log_audit_event(
            ctx, "patterns.analyze", "sop_completion_patterns",
            after={"patterns": len(drafts), "persisted": persisted},
        )

        return {
            "patterns": [pattern_to_dict(d) for d in drafts],
            "summary": {
                "total_patterns": len(drafts),
                "records_analyzed": len(records),
                "pattern_types": pattern_types,
                "time_period": time_period,
                "date_range": {"start_date": start, "end_date": end},
                "average_confidence": (
                    round(sum(d.confidence_level for d in drafts) / len(drafts), 3) if drafts else None
                ),
                "persisted": persisted,
            },
        }

    async def _persist(self, db: AsyncSession, restaurant_id: int, drafts: List[PatternDraft]) -> bool:
        if not drafts:
            return True
        rows = [
            CompletionPattern(
                restaurant_id=restaurant_id,
                sop_id=d.sop_id,
                pattern_type=d.pattern_type,
                time_period=d.time_period,
                pattern_data=d.pattern_data,
                statistical_metrics=d.statistical_metrics,
                insights=d.insights,
                confidence_level=d.confidence_level,
            )
            for d in drafts
        ]
        try:
            await repo.insert_many(db, rows)
            return True
        except SQLAlchemyError:
            logger.exception("Échec d'écriture de %d patterns", len(rows))
            await db.rollback()
            return False
