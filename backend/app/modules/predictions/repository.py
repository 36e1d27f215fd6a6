# modules/predictions/repository.py
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.models import Prediction


class PredictionRepository:

    async def insert_many(self, db: AsyncSession, rows: List[Prediction]) -> None:
        db.add_all(rows)
        await db.commit()

    async def list_predictions(
        self,
        db: AsyncSession,
        restaurant_id: int,
        min_confidence: float,
        sop_ids: Optional[Sequence[int]] = None,
        user_ids: Optional[Sequence[int]] = None,
        prediction_types: Optional[Sequence[str]] = None,
        include_verified: bool = False,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Prediction], int]:
        """Prédictions les plus récentes d'abord."""
        conditions = [
            Prediction.restaurant_id == restaurant_id,
            Prediction.confidence_interval >= min_confidence,
        ]
        if sop_ids:
            conditions.append(Prediction.sop_id.in_(list(sop_ids)))
        if user_ids:
            conditions.append(Prediction.user_id.in_(list(user_ids)))
        if prediction_types:
            conditions.append(Prediction.prediction_type.in_(list(prediction_types)))
        if not include_verified:
            conditions.append(Prediction.verified_at.is_(None))

        total = await db.scalar(select(func.count(Prediction.id)).where(*conditions))
        r = await db.execute(
            select(Prediction)
            .where(*conditions)
            .order_by(Prediction.prediction_date.desc(), Prediction.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(r.scalars().all()), total or 0

    async def get_by_ids(
        self, db: AsyncSession, restaurant_id: int, ids: Sequence[int]
    ) -> List[Prediction]:
        r = await db.execute(
            select(Prediction).where(
                Prediction.restaurant_id == restaurant_id,
                Prediction.id.in_(list(ids)),
            )
        )
        return list(r.scalars().all())

    async def commit(self, db: AsyncSession) -> None:
        await db.commit()
