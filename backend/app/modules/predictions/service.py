# modules/predictions/service.py
"""
Prédictions de performance par (procédure, membre).

Précondition globale : au moins 10 enregistrements de complétion dans la
fenêtre d'entraînement (180 jours), sinon InsufficientData AVANT tout
calcul. Les groupes (sop, membre) de moins de 3 enregistrements sont
ensuite ignorés silencieusement par l'engine.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.engine.features.extractor import TRAINING_LOOKBACK_DAYS, enum_value, lookback_start
from app.engine.predictions import generator
from app.engine.predictions.generator import PredictionDraft
from app.engine.scoring.config import MODEL_VERSION
from app.infra.audit import log_audit_event
from app.modules.predictions.repository import PredictionRepository
from app.modules.sop.repository import SopRepository
from app.shared.errors import InsufficientData
from app.shared.models import Prediction
from app.shared.responses import Pagination, paginate

logger = logging.getLogger(__name__)

repo     = PredictionRepository()
sop_repo = SopRepository()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def prediction_to_dict(p) -> Dict[str, Any]:
    """Accepte une ligne Prediction ou un PredictionDraft."""
    return {
        "id": getattr(p, "id", None),
        "sop_id": p.sop_id,
        "user_id": p.user_id,
        "prediction_type": p.prediction_type,
        "predicted_value": p.predicted_value,
        "prediction_range": p.prediction_range,
        "confidence_interval": p.confidence_interval,
        "input_features": p.input_features,
        "model_version": p.model_version,
        "prediction_date": p.prediction_date,
        "expires_at": p.expires_at,
        "actual_value": getattr(p, "actual_value", None),
        "accuracy_score": getattr(p, "accuracy_score", None),
        "verified_at": getattr(p, "verified_at", None),
    }


class PredictionService:

    # ── Lecture ───────────────────────────────────────────────

    async def list_predictions(
        self,
        db: AsyncSession,
        ctx,
        sop_ids,
        user_ids,
        prediction_types,
        min_confidence: float,
        include_verified: bool,
        page: int,
        limit: int,
    ) -> Tuple[List[Dict[str, Any]], Pagination]:
        rows, total = await repo.list_predictions(
            db, ctx.restaurant_id, min_confidence,
            sop_ids=sop_ids,
            user_ids=user_ids,
            prediction_types=[enum_value(t) for t in prediction_types or []],
            include_verified=include_verified,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return [prediction_to_dict(r) for r in rows], paginate(page, limit, total)

    # ── Génération ────────────────────────────────────────────

    async def generate(self, db: AsyncSession, ctx, payload) -> Dict[str, Any]:
        now = _utcnow()
        horizon = payload.prediction_horizon_days or settings.PREDICTION_HORIZON_DAYS_DEFAULT
        prediction_types = [enum_value(t) for t in payload.prediction_types]

        history = await sop_repo.get_history(
            db, ctx.restaurant_id,
            since=lookback_start(now, TRAINING_LOOKBACK_DAYS),
            sop_ids=payload.sop_ids,
            user_ids=payload.user_ids,
        )
        if not generator.has_sufficient_history(history):
            logger.info(
                "Prédictions refusées : %d enregistrements (minimum %d)",
                len(history), generator.MIN_HISTORY_RECORDS,
            )
            raise InsufficientData(
                f"Historique insuffisant : {len(history)} enregistrements, "
                f"{generator.MIN_HISTORY_RECORDS} requis."
            )

        sops = {s.id: s for s in await sop_repo.get_documents(db, ctx.restaurant_id, payload.sop_ids)}
        staff = {s.id: s for s in await sop_repo.get_active_staff(db, ctx.restaurant_id, payload.user_ids)}

        drafts = generator.generate(
            history, sops, staff, prediction_types,
            reference=now,
            horizon_days=horizon,
            include_intervals=payload.include_confidence_intervals,
            model_version=MODEL_VERSION,
        )
        logger.info(
            "Prédictions : %d générées (%d enregistrements, types %s)",
            len(drafts), len(history), ",".join(prediction_types),
        )

        persisted = await self._persist(db, ctx.restaurant_id, drafts)
        log_audit_event(
            ctx, "predictions.generate", "sop_performance_predictions",
            after={"predictions": len(drafts), "persisted": persisted},
        )

        return {
            "predictions": [prediction_to_dict(d) for d in drafts],
            "summary": {
                "total_predictions": len(drafts),
                "records_analyzed": len(history),
                "prediction_types": prediction_types,
                "prediction_horizon_days": horizon,
                "persisted": persisted,
                "model_version": MODEL_VERSION,
            },
        }

    async def _persist(self, db: AsyncSession, restaurant_id: int, drafts: List[PredictionDraft]) -> bool:
        if not drafts:
            return True
        rows = [
            Prediction(
                restaurant_id=restaurant_id,
                sop_id=d.sop_id,
                user_id=d.user_id,
                prediction_type=d.prediction_type,
                predicted_value=d.predicted_value,
                prediction_range=d.prediction_range,
                confidence_interval=d.confidence_interval,
                input_features=d.input_features,
                model_version=d.model_version,
                prediction_date=d.prediction_date,
                expires_at=d.expires_at,
            )
            for d in drafts
        ]
        try:
            await repo.insert_many(db, rows)
            return True
        except SQLAlchemyError:
            logger.exception("Échec d'écriture de %d prédictions", len(rows))
            await db.rollback()
            return False

    # ── Vérification ──────────────────────────────────────────

    async def verify(self, db: AsyncSession, ctx, payload) -> Dict[str, Any]:
        """
        Renseigne la valeur observée et la précision de chaque prédiction.
        Identifiants inconnus (ou d'un autre restaurant) : ignorés.
        """
        now = _utcnow()
        ids = [v.prediction_id for v in payload.verifications]
        rows = {p.id: p for p in await repo.get_by_ids(db, ctx.restaurant_id, ids)}

        verified: Dict[int, Dict[str, Any]] = {}
        skipped: List[int] = []
        for item in payload.verifications:
            row = rows.get(item.prediction_id)
            if row is None:
                logger.debug("Prédiction %s inconnue, vérification ignorée", item.prediction_id)
                skipped.append(item.prediction_id)
                continue
            score = round(generator.accuracy(row.predicted_value, item.actual_value), 3)
            row.actual_value = item.actual_value
            row.accuracy_score = score
            row.verified_at = now
            verified[row.id] = {
                "prediction_id": row.id,
                "prediction_type": row.prediction_type,
                "predicted_value": row.predicted_value,
                "actual_value": item.actual_value,
                "accuracy_score": score,
            }

        persisted = True
        if verified:
            try:
                await repo.commit(db)
            except SQLAlchemyError:
                logger.exception("Échec d'enregistrement de %d vérifications", len(verified))
                await db.rollback()
                persisted = False

        summary = generator.accuracy_summary([
            (v["prediction_type"], v["predicted_value"], v["actual_value"], v["accuracy_score"])
            for v in verified.values()
        ])
        summary["verified_count"] = len(verified)
        summary["persisted"] = persisted

        log_audit_event(
            ctx, "predictions.verify", "sop_performance_predictions",
            after={"verified": list(verified), "skipped": skipped},
        )
        return {"verified": list(verified.values()), "skipped_ids": skipped, "summary": summary}
