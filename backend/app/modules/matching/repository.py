# modules/matching/repository.py
"""
Accès DB pour la configuration de scoring et les résultats de matching.
"""
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.models import MatchResult, ScoringConfiguration


class MatchingRepository:

    # ── Configuration ─────────────────────────────────────────

    async def get_config(
        self, db: AsyncSession, restaurant_id: int
    ) -> Optional[ScoringConfiguration]:
        r = await db.execute(
            select(ScoringConfiguration).where(ScoringConfiguration.restaurant_id == restaurant_id)
        )
        return r.scalar_one_or_none()

    async def create_config(
        self, db: AsyncSession, restaurant_id: int, data: Dict
    ) -> ScoringConfiguration:
        db_obj = ScoringConfiguration(
            restaurant_id=restaurant_id,
            model_version=data["model_version"],
            algorithm_weights=data["algorithm_weights"],
            ensemble=data["ensemble"],
            neural_network=data["neural_network"],
            optimization_objectives=data["optimization_objectives"],
            selection_strategy=data["selection_strategy"],
            model_performance=data["model_performance"],
        )
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def save_config(
        self, db: AsyncSession, config: ScoringConfiguration
    ) -> ScoringConfiguration:
        await db.commit()
        await db.refresh(config)
        return config

    # ── Résultats ─────────────────────────────────────────────

    async def insert_results(self, db: AsyncSession, rows: List[MatchResult]) -> None:
        db.add_all(rows)
        await db.commit()

    async def list_results(
        self,
        db: AsyncSession,
        restaurant_id: int,
        now: datetime,
        min_score: int,
        sop_id: Optional[int] = None,
        user_id: Optional[int] = None,
        algorithm: Optional[str] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[List[MatchResult], int]:
        """Résultats non expirés au-dessus du seuil, score décroissant."""
        conditions = [
            MatchResult.restaurant_id == restaurant_id,
            MatchResult.expires_at > now,
            MatchResult.match_score >= min_score,
        ]
        if sop_id is not None:
            conditions.append(MatchResult.sop_id == sop_id)
        if user_id is not None:
            conditions.append(MatchResult.user_id == user_id)
        if algorithm:
            conditions.append(MatchResult.primary_algorithm == algorithm)

        total = await db.scalar(select(func.count(MatchResult.id)).where(*conditions))
        r = await db.execute(
            select(MatchResult)
            .where(*conditions)
            .order_by(MatchResult.match_score.desc(), MatchResult.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(r.scalars().all()), total or 0

    async def results_since(
        self, db: AsyncSession, restaurant_id: int, since: datetime
    ) -> List[MatchResult]:
        r = await db.execute(
            select(MatchResult).where(
                MatchResult.restaurant_id == restaurant_id,
                MatchResult.created_at >= since,
            )
        )
        return list(r.scalars().all())
