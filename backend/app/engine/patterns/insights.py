# engine/patterns/insights.py
"""
Génération des insights textuels par type de pattern.

Chaque fonction retourne :
    {key_findings, recommendations, optimization_opportunities, risk_factors}
Les textes sont en anglais (affichés tels quels côté tablette).
"""
from typing import Dict, List, Optional


def _insights(
    key_findings: List[str],
    recommendations: List[str],
    optimization_opportunities: List[str],
    risk_factors: Optional[List[str]] = None,
) -> Dict[str, List[str]]:
    return {
        "key_findings": key_findings,
        "recommendations": recommendations,
        "optimization_opportunities": optimization_opportunities,
        "risk_factors": risk_factors or [],
    }


def completion_time_insights(
    avg_time: float,
    std_dev: float,
    trend: str,
    peak_hours: List[int],
    estimated_read_time: Optional[int],
) -> Dict[str, List[str]]:
    findings, recommendations, opportunities = [], [], []

    if estimated_read_time and avg_time > estimated_read_time * 1.5:
        findings.append(
            f"Actual completion time ({round(avg_time)} min) significantly exceeds "
            f"estimated time ({estimated_read_time} min)"
        )
        recommendations.append(
            "Consider breaking down complex steps or providing additional training materials"
        )

    if avg_time and std_dev / avg_time > 0.5:
        findings.append("High variability in completion times suggests inconsistent performance")
        opportunities.append("Standardize training approach to reduce performance variations")

    if trend == "increasing":
        findings.append("Completion times are increasing over time")
        recommendations.append("Investigate potential causes such as complexity creep or training gaps")
    elif trend == "decreasing":
        findings.append("Completion times are improving over time")
        recommendations.append("Document and replicate successful optimization practices")

    if peak_hours:
        findings.append(f"Most completions occur during hours: {', '.join(str(h) for h in peak_hours)}")
        opportunities.append("Optimize resource allocation during peak completion hours")

    return _insights(findings, recommendations, opportunities)


def success_rate_insights(success_rate: float, trend: str) -> Dict[str, List[str]]:
    findings, recommendations, opportunities, risks = [], [], [], []

    if success_rate < 70:
        findings.append(
            f"Low success rate ({success_rate:.1f}%) indicates significant completion challenges"
        )
        recommendations.append("Review SOP complexity and provide additional support materials")
        risks.append("High failure rate may impact operational efficiency")
    elif success_rate > 90:
        findings.append(f"Excellent success rate ({success_rate:.1f}%) indicates well-designed SOP")
        opportunities.append("Use this SOP as a template for other procedures")

    if trend == "decreasing":
        findings.append("Success rate is declining over time")
        risks.append("Declining performance may indicate training decay or process drift")
        recommendations.append("Implement refresher training and process review")

    return _insights(findings, recommendations, opportunities, risks)


def error_category(avg_abandonment_point: float) -> str:
    if avg_abandonment_point < 25:
        return "Initial understanding difficulties"
    if avg_abandonment_point < 50:
        return "Mid-process complexity issues"
    if avg_abandonment_point < 75:
        return "Implementation challenges"
    return "Final step completion issues"


def error_pattern_insights(
    abandonment_rate: float,
    common_point: int,
    errors: List[str],
) -> Dict[str, List[str]]:
    findings = [f"{abandonment_rate:.1f}% of attempts are not completed"]
    recommendations = []

    if common_point < 50:
        findings.append(f"Most abandonments occur early in the process (around {common_point}%)")
        recommendations.append("Improve initial instructions and prerequisites")
    else:
        findings.append(f"Most abandonments occur later in the process (around {common_point}%)")
        recommendations.append("Review final steps for complexity or resource requirements")

    findings.extend(errors)
    return _insights(findings, recommendations, ["Target interventions at identified failure points"])


def seasonal_insights(seasonal_trends: Dict[str, int]) -> Dict[str, List[str]]:
    if not seasonal_trends:
        return _insights([], [], [])

    max_season = max(seasonal_trends, key=seasonal_trends.get)
    min_season = min(seasonal_trends, key=seasonal_trends.get)
    max_time = seasonal_trends[max_season]
    min_time = seasonal_trends[min_season]

    if min_time > 0 and max_time / min_time > 1.3:
        return _insights(
            [f"Significant seasonal variation: {max_season} ({max_time} min) vs {min_season} ({min_time} min)"],
            [f"Provide additional support during {max_season} when completion times are highest"],
            ["Develop season-specific training materials or resources"],
        )
    return _insights(["Consistent performance across seasons"], [], [])


ROLE_GAP_THRESHOLD = 20


def difficulty_insights(
    difficulty_level: Optional[str],
    role_performance: Dict[str, Dict[str, float]],
) -> Dict[str, List[str]]:
    findings = [f"SOP difficulty level: {difficulty_level or 'unspecified'}"]
    recommendations, opportunities = [], []

    for role, perf in role_performance.items():
        findings.append(f"{role}: {perf['avg_time']} min avg, {perf['success_rate']}% success rate")

    if len(role_performance) > 1:
        best = max(role_performance, key=lambda r: role_performance[r]["success_rate"])
        worst = min(role_performance, key=lambda r: role_performance[r]["success_rate"])
        gap = role_performance[best]["success_rate"] - role_performance[worst]["success_rate"]
        if gap > ROLE_GAP_THRESHOLD:
            recommendations.append(
                f"Provide additional training for {worst} role based on {best} best practices"
            )
            opportunities.append("Create role-specific variations of the SOP")

    return _insights(findings, recommendations, opportunities)
