# engine/patterns/analyzer.py
"""
Agrégation des patterns de complétion : ZÉRO accès DB.

Pour chaque (type de pattern, procédure) :
    groupe < minimum_sample_size → ignoré silencieusement
    statistiques + tendance + insights → PatternDraft
    confidence_level < 0.6 → écarté

| Type            | pattern_data                                    | variabilité     |
|-----------------|-------------------------------------------------|-----------------|
| completion_time | avg, median, peak_hours (top 3)                 | CV des durées   |
| success_rate    | success_rate, failure_rate (%)                  | 0.10            |
| error_patterns  | failure_rate, common_abandonment_point, errors  | 0.15            |
| seasonal        | durée moyenne par saison                        | 0.20            |
| difficulty      | durée + taux de succès par rôle                 | 0.25            |
"""
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from app.engine.features.extractor import enum_value
from app.engine.patterns import insights as insight_rules
from app.engine.patterns.stats import (
    VARIABILITY, confidence_interval_metric, confidence_level, detect_trend,
    group_by_period, mean, median, season, std,
)

MIN_PATTERN_CONFIDENCE = 0.6
DEFAULT_MINIMUM_SAMPLE_SIZE = 10
DEFAULT_PATTERN_TYPES = ["completion_time", "success_rate", "error_patterns"]


@dataclass
class PatternDraft:
    sop_id: int
    pattern_type: str
    time_period: str
    pattern_data: Dict[str, Any]
    statistical_metrics: Dict[str, Any]
    insights: Dict[str, List[str]]
    confidence_level: float


def _completed(r) -> bool:
    return (r.progress_percentage or 0) >= 100


def _success_rate(records: Sequence) -> float:
    return 100 * sum(1 for r in records if _completed(r)) / len(records) if records else 0.0


def _bucket_means(records: Sequence, time_period: str, metric: Callable[[List], float]) -> Dict[str, float]:
    return {key: metric(group) for key, group in group_by_period(records, time_period).items()}


# ── Analyses par type ───────────────────────────────────────

def completion_time_pattern(sop, records: Sequence, time_period: str) -> Optional[PatternDraft]:
    times = [float(r.time_spent) for r in records if (r.time_spent or 0) > 0]
    if not times:
        return None

    avg = mean(times)
    deviation = std(times)
    trend = detect_trend(
        _bucket_means(records, time_period, lambda g: mean([float(r.time_spent or 0) for r in g]))
    )

    hours = Counter(r.created_at.hour for r in records if r.created_at is not None)
    peak_hours = [h for h, _ in sorted(hours.items(), key=lambda kv: (-kv[1], kv[0]))[:3]]

    return PatternDraft(
        sop_id=sop.id,
        pattern_type="completion_time",
        time_period=time_period,
        pattern_data={
            "avg_completion_time": round(avg),
            "median_completion_time": round(median(times)),
            "peak_hours": peak_hours,
        },
        statistical_metrics={
            "sample_size": len(times),
            "confidence_interval": confidence_interval_metric(times),
            "standard_deviation": round(deviation),
            "trend_direction": trend.value,
        },
        insights=insight_rules.completion_time_insights(
            avg, deviation, trend.value, peak_hours, sop.estimated_read_time
        ),
        confidence_level=confidence_level(len(times), deviation / avg if avg else 1.0),
    )


def success_rate_pattern(sop, records: Sequence, time_period: str) -> PatternDraft:
    success_rate = _success_rate(records)
    trend = detect_trend(_bucket_means(records, time_period, _success_rate))

    return PatternDraft(
        sop_id=sop.id,
        pattern_type="success_rate",
        time_period=time_period,
        pattern_data={
            "success_rate": round(success_rate, 2),
            "failure_rate": round(100 - success_rate, 2),
        },
        statistical_metrics={
            "sample_size": len(records),
            "confidence_interval": confidence_interval_metric([success_rate]),
            "trend_direction": trend.value,
        },
        insights=insight_rules.success_rate_insights(success_rate, trend.value),
        confidence_level=confidence_level(len(records), VARIABILITY["success_rate"]),
    )


def most_common_abandonment_point(points: Sequence[float]) -> int:
    """Point d'abandon le plus fréquent, arrondi à la dizaine ; égalité → premier rencontré."""
    if not points:
        return 0
    rounded = Counter(int(round(p / 10) * 10) for p in points)
    return rounded.most_common(1)[0][0]


def error_patterns_pattern(sop, records: Sequence, time_period: str) -> PatternDraft:
    incomplete = [r for r in records if not _completed(r)]
    abandonment_rate = 100 * len(incomplete) / len(records)
    points = [float(r.progress_percentage or 0) for r in incomplete]

    common_point = most_common_abandonment_point(points)
    errors = [insight_rules.error_category(mean(points))] if points else []

    return PatternDraft(
        sop_id=sop.id,
        pattern_type="error_patterns",
        time_period=time_period,
        pattern_data={
            "failure_rate": round(abandonment_rate, 2),
            "common_abandonment_point": common_point,
            "common_errors": errors,
        },
        statistical_metrics={
            "sample_size": len(records),
            "confidence_interval": confidence_interval_metric([abandonment_rate]),
        },
        insights=insight_rules.error_pattern_insights(abandonment_rate, common_point, errors),
        confidence_level=confidence_level(len(records), VARIABILITY["error_patterns"]),
    )


def seasonal_pattern(sop, records: Sequence, time_period: str) -> PatternDraft:
    by_season: Dict[str, List[float]] = {}
    for r in records:
        if r.created_at is not None:
            by_season.setdefault(season(r.created_at), []).append(float(r.time_spent or 0))
    trends = {name: round(mean(times)) for name, times in by_season.items()}

    return PatternDraft(
        sop_id=sop.id,
        pattern_type="seasonal",
        time_period=time_period,
        pattern_data={"seasonal_trends": trends},
        statistical_metrics={
            "sample_size": len(records),
            "confidence_interval": confidence_interval_metric(list(trends.values())),
        },
        insights=insight_rules.seasonal_insights(trends),
        confidence_level=confidence_level(len(records), VARIABILITY["seasonal"]),
    )


def difficulty_pattern(
    sop, records: Sequence, time_period: str, roles: Dict[Any, str]
) -> PatternDraft:
    by_role: Dict[str, List] = {}
    for r in records:
        by_role.setdefault(roles.get(r.user_id) or "unknown", []).append(r)

    role_performance = {
        role: {
            "avg_time": round(mean([float(r.time_spent or 0) for r in group])),
            "success_rate": round(_success_rate(group), 2),
        }
        for role, group in by_role.items()
    }
    difficulty = enum_value(sop.difficulty_level)

    return PatternDraft(
        sop_id=sop.id,
        pattern_type="difficulty",
        time_period=time_period,
        pattern_data={"difficulty_distribution": role_performance},
        statistical_metrics={
            "sample_size": len(records),
            "confidence_interval": confidence_interval_metric([len(role_performance)]),
        },
        insights=insight_rules.difficulty_insights(difficulty, role_performance),
        confidence_level=confidence_level(len(records), VARIABILITY["difficulty"]),
    )


# ── Orchestration ───────────────────────────────────────────

def group_by_sop(records: Sequence) -> Dict[Any, List]:
    groups: Dict[Any, List] = {}
    for r in records:
        groups.setdefault(r.sop_id, []).append(r)
    return groups


def analyze(
    records: Sequence,
    sops: Dict[Any, Any],
    pattern_types: Sequence[str],
    time_period: str = "weekly",
    minimum_sample_size: int = DEFAULT_MINIMUM_SAMPLE_SIZE,
    roles: Optional[Dict[Any, str]] = None,
) -> List[PatternDraft]:
    """
    Args:
        records: CompletionRecord de la fenêtre analysée
        sops:    SopDocument par id
        roles:   rôle par user_id (pattern "difficulty")
    """
    roles = roles or {}
    groups = group_by_sop(records)
    drafts: List[PatternDraft] = []

    for pattern_type in pattern_types:
        for sop_id, group in groups.items():
            if len(group) < minimum_sample_size:
                continue
            sop = sops.get(sop_id)
            if sop is None:
                continue

            if pattern_type == "completion_time":
                draft = completion_time_pattern(sop, group, time_period)
            elif pattern_type == "success_rate":
                draft = success_rate_pattern(sop, group, time_period)
            elif pattern_type == "error_patterns":
                draft = error_patterns_pattern(sop, group, time_period)
            elif pattern_type == "seasonal":
                draft = seasonal_pattern(sop, group, time_period)
            elif pattern_type == "difficulty":
                draft = difficulty_pattern(sop, group, time_period, roles)
            else:
                continue

            if draft is not None and draft.confidence_level >= MIN_PATTERN_CONFIDENCE:
                drafts.append(draft)

    return drafts
