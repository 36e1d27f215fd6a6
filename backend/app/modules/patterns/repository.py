# modules/patterns/repository.py
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.models import CompletionPattern


class PatternRepository:

    async def insert_many(self, db: AsyncSession, rows: List[CompletionPattern]) -> None:
        db.add_all(rows)
        await db.commit()

    async def list_patterns(
        self,
        db: AsyncSession,
        restaurant_id: int,
        min_confidence: float,
        sop_ids: Optional[Sequence[int]] = None,
        pattern_types: Optional[Sequence[str]] = None,
        time_period: Optional[str] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[List[CompletionPattern], int]:
        """Confiance décroissante puis plus récents d'abord."""
        conditions = [
            CompletionPattern.restaurant_id == restaurant_id,
            CompletionPattern.confidence_level >= min_confidence,
        ]
        if sop_ids:
            conditions.append(CompletionPattern.sop_id.in_(list(sop_ids)))
        if pattern_types:
            conditions.append(CompletionPattern.pattern_type.in_(list(pattern_types)))
        if time_period:
            conditions.append(CompletionPattern.time_period == time_period)

        total = await db.scalar(select(func.count(CompletionPattern.id)).where(*conditions))
        r = await db.execute(
            select(CompletionPattern)
            .where(*conditions)
            .order_by(CompletionPattern.confidence_level.desc(), CompletionPattern.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(r.scalars().all()), total or 0
