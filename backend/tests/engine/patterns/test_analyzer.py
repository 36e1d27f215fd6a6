# tests/engine/patterns/test_analyzer.py
"""
Tests unitaires pour engine.patterns.analyzer et engine.patterns.insights

Couverture :
    analyze()                        : groupe de 5 avec minimum 10 → exclu,
                                       confiance < 0.6 → écarté, type inconnu ignoré
    completion_time_pattern()        : moyenne, médiane, heures de pointe
    success_rate_pattern()
    error_patterns_pattern()         : point d'abandon arrondi, catégorie d'erreur
    seasonal_pattern()
    difficulty_pattern()             : rôles, rôle inconnu
    most_common_abandonment_point()
    insights                         : textes par seuil
"""
import pytest
from datetime import datetime, timedelta, timezone

from app.engine.patterns import analyzer, insights
from tests.conftest import NOW, make_history, make_record, make_sop

pytestmark = pytest.mark.engine

SOPS = {1: make_sop(id=1)}


def _mixed(n_completed: int, n_abandoned: int, point: float = 30.0) -> list:
    completed = make_history(n_completed)
    abandoned = make_history(n_abandoned, progress_percentage=point)
    for i, r in enumerate(abandoned):
        r.id = n_completed + i + 1
    return completed + abandoned


class TestAnalyze:
    def test_groupe_sous_le_minimum_exclu(self):
        drafts = analyzer.analyze(make_history(5), SOPS, ["success_rate"], minimum_sample_size=10)
        assert drafts == []

    def test_confiance_insuffisante_ecartee(self):
        drafts = analyzer.analyze(make_history(20), SOPS, ["success_rate"], minimum_sample_size=10)
        assert drafts == []

    def test_success_rate_retenu(self):
        drafts = analyzer.analyze(make_history(60), SOPS, ["success_rate"])
        assert len(drafts) == 1
        assert drafts[0].confidence_level == 0.6
        assert drafts[0].pattern_data == {"success_rate": 100.0, "failure_rate": 0.0}

    def test_type_inconnu_ignore(self):
        assert analyzer.analyze(make_history(100), SOPS, ["mood"]) == []

    def test_procedure_inconnue_ignoree(self):
        assert analyzer.analyze(make_history(100, sop_id=2), SOPS, ["success_rate"]) == []

    def test_plusieurs_types(self):
        drafts = analyzer.analyze(
            _mixed(80, 20), SOPS, ["completion_time", "success_rate", "error_patterns"]
        )
        assert [d.pattern_type for d in drafts] == ["completion_time", "success_rate", "error_patterns"]


class TestCompletionTimePattern:
    def test_statistiques(self):
        draft = analyzer.completion_time_pattern(SOPS[1], make_history(100), "weekly")
        assert draft.pattern_data == {
            "avg_completion_time": 30,
            "median_completion_time": 30,
            "peak_hours": [12],
        }
        assert draft.statistical_metrics["trend_direction"] == "stable"
        assert draft.confidence_level == 0.8

    def test_sans_duree(self):
        assert analyzer.completion_time_pattern(SOPS[1], make_history(10, time_spent=0), "weekly") is None

    def test_heures_de_pointe_top_trois(self):
        hours = [9, 9, 9, 12, 12, 18, 18, 21]
        records = [make_record(created_at=NOW.replace(hour=h)) for h in hours]
        draft = analyzer.completion_time_pattern(SOPS[1], records, "daily")
        assert draft.pattern_data["peak_hours"] == [9, 12, 18]


class TestErrorPatterns:
    def test_point_abandon_et_categorie(self):
        draft = analyzer.error_patterns_pattern(SOPS[1], _mixed(80, 20, point=32.0), "weekly")
        assert draft.pattern_data["failure_rate"] == 20.0
        assert draft.pattern_data["common_abandonment_point"] == 30
        assert draft.pattern_data["common_errors"] == ["Mid-process complexity issues"]

    def test_sans_abandon(self):
        draft = analyzer.error_patterns_pattern(SOPS[1], make_history(10), "weekly")
        assert draft.pattern_data["common_abandonment_point"] == 0
        assert draft.pattern_data["common_errors"] == []

    def test_most_common_abandonment_point(self):
        assert analyzer.most_common_abandonment_point([32, 28, 71]) == 30
        assert analyzer.most_common_abandonment_point([]) == 0


def test_seasonal_pattern():
    winter = make_history(5, start=datetime(2025, 1, 10, tzinfo=timezone.utc), time_spent=20.0)
    summer = make_history(5, start=datetime(2025, 7, 10, tzinfo=timezone.utc), time_spent=40.0)
    draft = analyzer.seasonal_pattern(SOPS[1], winter + summer, "monthly")
    assert draft.pattern_data == {"seasonal_trends": {"winter": 20, "summer": 40}}
    assert draft.insights["key_findings"][0].startswith("Significant seasonal variation")


def test_difficulty_pattern_par_role():
    records = make_history(4, user_id=1) + make_history(4, user_id=2, progress_percentage=50)
    draft = analyzer.difficulty_pattern(SOPS[1], records, "weekly", {1: "chef"})
    distribution = draft.pattern_data["difficulty_distribution"]
    assert distribution["chef"] == {"avg_time": 30, "success_rate": 100.0}
    assert distribution["unknown"]["success_rate"] == 0.0
    assert draft.insights["recommendations"] == [
        "Provide additional training for unknown role based on chef best practices"
    ]


# ── Insights ──────────────────────────────────────────────────────────────────

class TestInsights:
    def test_duree_depasse_estimation(self):
        result = insights.completion_time_insights(50, 5, "stable", [], 30)
        assert result["key_findings"][0].startswith("Actual completion time (50 min)")

    def test_tendance_croissante(self):
        result = insights.completion_time_insights(30, 5, "increasing", [], 30)
        assert "Completion times are increasing over time" in result["key_findings"]

    @pytest.mark.parametrize("point,expected", [
        (10, "Initial understanding difficulties"),
        (30, "Mid-process complexity issues"),
        (60, "Implementation challenges"),
        (90, "Final step completion issues"),
    ])
    def test_categorie_erreur(self, point, expected):
        assert insights.error_category(point) == expected

    def test_saisons_stables(self):
        result = insights.seasonal_insights({"winter": 30, "summer": 32})
        assert result["key_findings"] == ["Consistent performance across seasons"]

    def test_structure(self):
        result = insights.success_rate_insights(95.0, "stable")
        assert set(result) == {"key_findings", "recommendations", "optimization_opportunities", "risk_factors"}
