# modules/sop/repository.py
"""
Lectures partagées par les modules de scoring (matching, predictions, patterns) :
procédures, membres actifs et historique de complétion.

Toutes les requêtes sont filtrées par restaurant_id (tenant).
"""
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.shared.models import CompletionRecord, SopDocument, StaffMember


class SopRepository:

    # ── Procédures ────────────────────────────────────────────

    async def get_documents(
        self, db: AsyncSession, restaurant_id: int, sop_ids: Optional[Sequence[int]] = None
    ) -> List[SopDocument]:
        query = select(SopDocument).where(
            SopDocument.restaurant_id == restaurant_id,
            SopDocument.is_active == True,
        )
        if sop_ids:
            query = query.where(SopDocument.id.in_(list(sop_ids)))
        r = await db.execute(query.order_by(SopDocument.id))
        return list(r.unique().scalars().all())

    async def get_read_times(
        self, db: AsyncSession, restaurant_id: int
    ) -> Dict[int, Optional[int]]:
        r = await db.execute(
            select(SopDocument.id, SopDocument.estimated_read_time).where(
                SopDocument.restaurant_id == restaurant_id,
            )
        )
        return {sop_id: read_time for sop_id, read_time in r.all()}

    # ── Personnel ─────────────────────────────────────────────

    async def get_active_staff(
        self, db: AsyncSession, restaurant_id: int, user_ids: Optional[Sequence[int]] = None
    ) -> List[StaffMember]:
        query = (
            select(StaffMember)
            .options(selectinload(StaffMember.skills))
            .where(
                StaffMember.restaurant_id == restaurant_id,
                StaffMember.is_active == True,
            )
        )
        if user_ids:
            query = query.where(StaffMember.id.in_(list(user_ids)))
        r = await db.execute(query.order_by(StaffMember.id))
        return list(r.scalars().all())

    # ── Historique ────────────────────────────────────────────

    async def get_history(
        self,
        db: AsyncSession,
        restaurant_id: int,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        sop_ids: Optional[Sequence[int]] = None,
        user_ids: Optional[Sequence[int]] = None,
    ) -> List[CompletionRecord]:
        """Enregistrements triés par date croissante."""
        query = select(CompletionRecord).where(CompletionRecord.restaurant_id == restaurant_id)
        if since is not None:
            query = query.where(CompletionRecord.created_at >= since)
        if until is not None:
            query = query.where(CompletionRecord.created_at <= until)
        if sop_ids:
            query = query.where(CompletionRecord.sop_id.in_(list(sop_ids)))
        if user_ids:
            query = query.where(CompletionRecord.user_id.in_(list(user_ids)))
        r = await db.execute(query.order_by(CompletionRecord.created_at.asc()))
        return list(r.scalars().all())
