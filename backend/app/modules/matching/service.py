# modules/matching/service.py
"""
Orchestration du matching membre × procédure.

Flux de génération :
    config (get-or-create) → procédures + membres actifs + historique 180 j
        → engine.features.extractor (profils)
        → engine.matching.pipeline.run_matching (scoring, ensemble, ranking)
        → persistance (fire-and-forget) → mise à jour des performances du modèle

Une erreur d'écriture est journalisée et n'invalide pas le résultat
retourné à l'appelant.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.engine.features import extractor
from app.engine.matching.pipeline import MatchOutcome, analytics_summary, run_matching
from app.engine.scoring.config import ScoringConfig, default_config
from app.infra.audit import log_audit_event
from app.modules.matching.repository import MatchingRepository
from app.modules.sop.repository import SopRepository
from app.shared.models import MatchResult, ScoringConfiguration
from app.shared.responses import Pagination, paginate

logger = logging.getLogger(__name__)

repo     = MatchingRepository()
sop_repo = SopRepository()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def outcome_to_dict(outcome: MatchOutcome, row_id: Optional[int] = None) -> Dict[str, Any]:
    return {
        "id": row_id,
        "matching_id": outcome.matching_id,
        "sop_id": outcome.sop_id,
        "user_id": outcome.user_id,
        "match_score": outcome.match_score,
        "confidence_interval": list(outcome.confidence_interval),
        "multi_objective_score": outcome.multi_objective_score,
        "algorithm_details": outcome.algorithm_details,
        "predictions": outcome.predictions,
        "skill_analysis": outcome.skill_analysis,
        "recommendations": outcome.recommendations,
        "team_impact": outcome.team_impact,
        "flags": outcome.flags,
        "model_version": outcome.model_version,
        "created_at": outcome.created_at,
        "expires_at": outcome.expires_at,
    }


def row_to_dict(row: MatchResult) -> Dict[str, Any]:
    return {
        "id": row.id,
        "matching_id": row.matching_id,
        "sop_id": row.sop_id,
        "user_id": row.user_id,
        "match_score": row.match_score,
        "confidence_interval": [row.confidence_low, row.confidence_high],
        "multi_objective_score": row.multi_objective_score,
        "algorithm_details": row.algorithm_details or {},
        "predictions": row.predictions or {},
        "skill_analysis": row.skill_analysis or {},
        "recommendations": row.recommendations or {},
        "team_impact": row.team_impact or {},
        "model_version": row.model_version,
        "created_at": row.created_at,
        "expires_at": row.expires_at,
    }


def config_to_dict(row: ScoringConfiguration) -> Dict[str, Any]:
    data = ScoringConfig.from_model(row).to_dict()
    data["last_updated"] = row.last_updated
    return data


class MatchingService:

    # ── Configuration ─────────────────────────────────────────

    async def get_or_create_config(
        self, db: AsyncSession, restaurant_id: int
    ) -> ScoringConfiguration:
        row = await repo.get_config(db, restaurant_id)
        if row is None:
            logger.info("Création de la configuration de scoring par défaut (restaurant=%s)", restaurant_id)
            try:
                row = await repo.create_config(db, restaurant_id, default_config().to_dict())
            except IntegrityError:
                # créée entre-temps par une requête concurrente
                logger.info("Configuration déjà créée (restaurant=%s), relecture", restaurant_id)
                await db.rollback()
                row = await repo.get_config(db, restaurant_id)
        return row

    async def update_model(self, db: AsyncSession, ctx, payload) -> Dict[str, Any]:
        """Mise à jour sur place de la configuration (performances, poids, stratégie)."""
        row = await self.get_or_create_config(db, ctx.restaurant_id)
        before = config_to_dict(row)
        config = ScoringConfig.from_model(row)

        if payload.model_performance:
            config.model_performance = {**config.model_performance, **payload.model_performance}
        if payload.ensemble_weights:
            for model in config.base_models:
                if model.get("model_type") in payload.ensemble_weights:
                    model["weight"] = payload.ensemble_weights[model["model_type"]]
        if payload.optimization_objectives:
            config.optimization_objectives = {
                **config.optimization_objectives, **payload.optimization_objectives
            }
        if payload.selection_strategy is not None:
            config.selection_strategy = payload.selection_strategy.value
        if payload.ensemble_enabled is not None:
            config.ensemble_enabled = payload.ensemble_enabled

        self._apply(row, config)
        row = await repo.save_config(db, row)

        after = config_to_dict(row)
        log_audit_event(ctx, "matching.model.update", "scoring_configurations", row.id, before, after)
        return after

    @staticmethod
    def _apply(row: ScoringConfiguration, config: ScoringConfig) -> None:
        data = config.to_dict()
        row.algorithm_weights       = data["algorithm_weights"]
        row.ensemble                = data["ensemble"]
        row.neural_network          = data["neural_network"]
        row.optimization_objectives = data["optimization_objectives"]
        row.selection_strategy      = data["selection_strategy"]
        row.model_performance       = data["model_performance"]
        row.last_updated            = _utcnow()

    # ── Lecture ───────────────────────────────────────────────

    async def list_results(
        self,
        db: AsyncSession,
        ctx,
        sop_id: Optional[int],
        user_id: Optional[int],
        min_match_score: int,
        algorithm: Optional[str],
        include_analytics: bool,
        page: int,
        limit: int,
    ) -> Tuple[Dict[str, Any], Pagination]:
        now = _utcnow()
        rows, total = await repo.list_results(
            db, ctx.restaurant_id, now, min_match_score,
            sop_id=sop_id, user_id=user_id, algorithm=algorithm,
            offset=(page - 1) * limit, limit=limit,
        )
        data: Dict[str, Any] = {"results": [row_to_dict(r) for r in rows], "analytics": None}

        if include_analytics:
            config = ScoringConfig.from_model(await self.get_or_create_config(db, ctx.restaurant_id))
            recent = await repo.results_since(
                db, ctx.restaurant_id, extractor.lookback_start(now, extractor.CONTEXT_LOOKBACK_DAYS)
            )
            data["analytics"] = analytics_summary(recent, config.model_performance)

        return data, paginate(page, limit, total)

    # ── Génération ────────────────────────────────────────────

    async def generate(self, db: AsyncSession, ctx, payload) -> Dict[str, Any]:
        now = _utcnow()
        reference = payload.target_date or now
        config_row = await self.get_or_create_config(db, ctx.restaurant_id)
        config = ScoringConfig.from_model(config_row)

        sops = await sop_repo.get_documents(db, ctx.restaurant_id, payload.sop_ids)
        staff = await sop_repo.get_active_staff(db, ctx.restaurant_id)
        history = await sop_repo.get_history(
            db, ctx.restaurant_id,
            since=extractor.lookback_start(now, extractor.TRAINING_LOOKBACK_DAYS),
            user_ids=[s.id for s in staff],
        )
        read_times = await sop_repo.get_read_times(db, ctx.restaurant_id)

        logger.info(
            "Matching : %d procédures × %d membres (%d enregistrements, référence %s)",
            len(sops), len(staff), len(history), reference.isoformat(),
        )

        profiles = self._build_profiles(staff, history, read_times)
        procedures = [extractor.build_procedure_requirements(s) for s in sops]

        outcomes = run_matching(
            profiles, procedures, config,
            created_at=now,
            goals=payload.optimization_goals,
            ttl_days=settings.MATCH_RESULT_TTL_DAYS,
            reference=reference,
        )

        persisted = await self._persist(db, ctx.restaurant_id, outcomes)
        await self._record_batch(db, config_row, config, outcomes)

        log_audit_event(
            ctx, "matching.generate", "skill_match_results",
            after={"sop_ids": payload.sop_ids, "results": len(outcomes), "persisted": persisted},
        )

        return {
            "results": [outcome_to_dict(o) for o in outcomes],
            "summary": {
                "procedures": len(procedures),
                "staff_evaluated": len(profiles),
                "results": len(outcomes),
                "persisted": persisted,
                "optimization_goals": payload.optimization_goals,
                "selection_strategy": config.selection_strategy,
                "reference_date": reference,
                "model_version": config.model_version,
            },
        }

    @staticmethod
    def _build_profiles(staff, history, read_times) -> List[extractor.StaffProfile]:
        by_user: Dict[int, List] = {s.id: [] for s in staff}
        for record in history:
            by_user.setdefault(record.user_id, []).append(record)

        percentiles = extractor.speed_percentiles(
            {s.id: extractor.mean_time_ratio(by_user[s.id], read_times) for s in staff}
        )
        profiles = []
        for member in staff:
            profiles.append(
                extractor.build_staff_profile(member, by_user[member.id], percentiles[member.id])
            )
        return profiles

    async def _persist(self, db: AsyncSession, restaurant_id: int, outcomes: List[MatchOutcome]) -> bool:
        if not outcomes:
            return True
        rows = [
            MatchResult(
                matching_id=o.matching_id,
                restaurant_id=restaurant_id,
                sop_id=o.sop_id,
                user_id=o.user_id,
                match_score=o.match_score,
                confidence_low=o.confidence_interval[0],
                confidence_high=o.confidence_interval[1],
                multi_objective_score=o.multi_objective_score,
                primary_algorithm=o.algorithm_details["primary_algorithm"],
                algorithm_details=o.algorithm_details,
                predictions=o.predictions,
                skill_analysis=o.skill_analysis,
                recommendations=o.recommendations,
                team_impact=o.team_impact,
                model_version=o.model_version,
                created_at=o.created_at,
                expires_at=o.expires_at,
            )
            for o in outcomes
        ]
        try:
            await repo.insert_results(db, rows)
            return True
        except SQLAlchemyError:
            logger.exception("Échec d'écriture de %d résultats de matching", len(rows))
            await db.rollback()
            return False

    async def _record_batch(
        self,
        db: AsyncSession,
        row: ScoringConfiguration,
        config: ScoringConfig,
        outcomes: List[MatchOutcome],
    ) -> None:
        """Statistiques du dernier lot ajoutées aux performances du modèle."""
        if outcomes:
            scores = [o.match_score for o in outcomes]
            config.model_performance = {
                **config.model_performance,
                "last_batch_size": float(len(scores)),
                "last_batch_mean_score": round(sum(scores) / len(scores), 2),
            }
        self._apply(row, config)
        try:
            await repo.save_config(db, row)
        except SQLAlchemyError:
            logger.exception("Échec de mise à jour des performances du modèle")
            await db.rollback()

