# tests/engine/matching/test_pipeline.py
"""
Tests unitaires pour engine.matching.pipeline

Couverture :
    classify_gap()              : seuils 4 / 3 / 2 / > 0
    skill_analysis()            : une ligne par domaine, comptage des écarts
    derive_predictions()        : bornes, facteurs de risque, date de référence
                                  (ajustements saisonniers, heure de pointe)
    assignment_recommendation() : immediate / with_training / with_mentorship / not_recommended
    team_impact()
    score_pair()                : expires_at = created_at + 7 jours exactement, identifiant,
                                  poids négatifs → score dans [0, 100]
    run_matching()              : plancher 40, historique minimum 3, classement, date cible
    analytics_summary()         : vide, distribution des scores
"""
import pytest
from datetime import datetime, timedelta, timezone

from app.engine.features.extractor import build_procedure_requirements, build_staff_profile
from app.engine.matching import pipeline
from app.engine.scoring.config import ScoringConfig
from app.shared.enums import GapSeverity
from tests.conftest import (
    NOW, make_history, make_match_row, make_skill_set, make_sop, make_staff,
)

pytestmark = pytest.mark.engine


def _profile(user_id=1, level=9.0, n=10, **staff_kwargs):
    staff = make_staff(id=user_id, skills=make_skill_set(level, staff_id=user_id), **staff_kwargs)
    return build_staff_profile(staff, make_history(n, user_id=user_id))


def _proc(sop_id=1, requirements=None, **kwargs):
    return build_procedure_requirements(make_sop(id=sop_id, skill_requirements=requirements, **kwargs))


def _analysis(critical=0, major=0, gap_areas=()):
    return {
        "skill_match_breakdown": [
            {"skill_area": area, "gap_severity": "minor"} for area in gap_areas
        ],
        "critical_gaps": critical,
        "major_gaps": major,
    }


@pytest.mark.parametrize("gap,expected", [
    (0.0, GapSeverity.NONE),
    (0.5, GapSeverity.MINOR),
    (2.0, GapSeverity.MODERATE),
    (3.0, GapSeverity.MAJOR),
    (4.0, GapSeverity.CRITICAL),
    (9.0, GapSeverity.CRITICAL),
])
def test_classify_gap(gap, expected):
    assert pipeline.classify_gap(gap) == expected


class TestSkillAnalysis:
    def test_une_ligne_par_domaine(self):
        analysis = pipeline.skill_analysis(_profile(), _proc())
        areas = [b["skill_area"] for b in analysis["skill_match_breakdown"]]
        assert areas == ["technical", "soft", "domain", "problem_solving"]

    def test_ecart_critique(self):
        analysis = pipeline.skill_analysis(_profile(level=0.0), _proc(requirements=[0.9] * 10))
        assert analysis["critical_gaps"] == 4
        assert all(b["training_time_estimate"] == 72.0 for b in analysis["skill_match_breakdown"])

    def test_sans_ecart(self):
        analysis = pipeline.skill_analysis(_profile(level=10.0), _proc(requirements=[0.5] * 10))
        assert analysis["critical_gaps"] == 0
        assert all(b["gap_severity"] == "none" for b in analysis["skill_match_breakdown"])


class TestDerivePredictions:
    def test_bornes(self):
        profile, proc = _profile(), _proc()
        predictions = pipeline.derive_predictions(profile, proc, 100.0, _analysis())
        assert predictions["success_probability"] <= 0.95
        assert predictions["risk_assessment"]["failure_probability"] == 0.05
        assert predictions["expected_completion_time"] == 30.0

    def test_historique_limite(self):
        profile = _profile(n=3)
        predictions = pipeline.derive_predictions(profile, _proc(), 70.0, _analysis())
        assert "limited_history" in predictions["risk_assessment"]["risk_factors"]
        assert "supervised_first_run" in predictions["risk_assessment"]["mitigation_strategies"]

    def test_ecarts_de_competences(self):
        predictions = pipeline.derive_predictions(_profile(), _proc(), 70.0, _analysis(major=1))
        assert predictions["risk_assessment"]["risk_factors"][0] == "skill_gaps"

    def test_date_de_reference_ajuste_la_duree(self):
        profile, proc = _profile(), _proc()
        summer_noon = datetime(2025, 7, 5, 12, 0, tzinfo=timezone.utc)     # samedi, été, pointe
        winter_night = datetime(2025, 1, 7, 3, 0, tzinfo=timezone.utc)     # mardi, hors pointe
        summer = pipeline.derive_predictions(profile, proc, 100.0, _analysis(), reference=summer_noon)
        winter = pipeline.derive_predictions(profile, proc, 100.0, _analysis(), reference=winter_night)
        assert summer["expected_completion_time"] == 29.8
        assert winter["expected_completion_time"] == 30.0

    def test_heure_de_pointe(self):
        profile, proc = _profile(), _proc()
        peak = datetime(2025, 7, 5, 12, 0, tzinfo=timezone.utc)
        off_peak = datetime(2025, 1, 7, 3, 0, tzinfo=timezone.utc)
        risk_peak = pipeline.derive_predictions(profile, proc, 90.0, _analysis(), reference=peak)["risk_assessment"]
        risk_off = pipeline.derive_predictions(profile, proc, 90.0, _analysis(), reference=off_peak)["risk_assessment"]
        assert "peak_period" in risk_peak["risk_factors"]
        assert "schedule_off_peak" in risk_peak["mitigation_strategies"]
        assert "peak_period" not in risk_off["risk_factors"]


class TestAssignmentRecommendation:
    def test_immediate(self):
        assert pipeline.assignment_recommendation(85, _analysis())["recommendation_type"] == "immediate"

    def test_ecart_critique_empeche_immediate(self):
        rec = pipeline.assignment_recommendation(85, _analysis(critical=1))
        assert rec["recommendation_type"] == "with_mentorship"

    def test_with_training(self):
        rec = pipeline.assignment_recommendation(65, _analysis(major=1, gap_areas=["soft"]))
        assert rec["recommendation_type"] == "with_training"
        assert rec["preparation_steps"] == ["Training in soft"]

    def test_with_mentorship(self):
        assert pipeline.assignment_recommendation(45, _analysis())["recommendation_type"] == "with_mentorship"

    def test_not_recommended(self):
        assert pipeline.assignment_recommendation(30, _analysis())["recommendation_type"] == "not_recommended"


def test_team_impact():
    profile = _profile(
        personality={"agreeableness": 0.8}, multitasking_ability=0.6, promotion_readiness=72.0
    )
    impact = pipeline.team_impact(profile)
    assert impact == {
        "collaboration_score": 80.0,
        "knowledge_sharing_potential": 60.0,
        "team_balance_contribution": 91.0,
        "career_alignment": 72.0,
    }


class TestScorePair:
    def test_expiration_sept_jours(self):
        outcome = pipeline.score_pair(_profile(), _proc(), ScoringConfig(), created_at=NOW)
        assert outcome.expires_at - outcome.created_at == timedelta(days=7)
        assert outcome.created_at == NOW

    def test_identifiant(self):
        outcome = pipeline.score_pair(_profile(user_id=4), _proc(sop_id=9), ScoringConfig(), created_at=NOW)
        assert outcome.matching_id == f"match_4_9_{int(NOW.timestamp() * 1000)}"

    def test_score_et_intervalle(self):
        outcome = pipeline.score_pair(_profile(), _proc(requirements=[0.9] * 10), ScoringConfig(), created_at=NOW)
        low, high = outcome.confidence_interval
        assert 0 <= outcome.match_score <= 100
        assert 0.0 <= low <= high <= 100.0
        assert len(outcome.algorithm_details["contributing_models"]) == 4
        assert outcome.algorithm_details["primary_algorithm"] == "ensemble"

    def test_algorithme_principal_sans_ensemble(self):
        config = ScoringConfig(ensemble_enabled=False)
        outcome = pipeline.score_pair(_profile(), _proc(), config, created_at=NOW)
        assert outcome.algorithm_details["primary_algorithm"] == "neural_network"

    def test_flag_ecart_critique(self):
        outcome = pipeline.score_pair(_profile(level=0.0), _proc(requirements=[0.9] * 10), ScoringConfig(), created_at=NOW)
        assert any(f.startswith("CRITICAL_SKILL_GAP") for f in outcome.flags)

    def test_poids_negatifs_score_borne(self):
        config = ScoringConfig(base_models=[
            {"model_type": "neural_network", "weight": -0.5},
            {"model_type": "gradient_boosting", "weight": -0.5},
            {"model_type": "random_forest", "weight": 1.0},
            {"model_type": "vector_similarity", "weight": 1.0},
        ])
        outcome = pipeline.score_pair(_profile(), _proc(requirements=[0.9] * 10), config, created_at=NOW)
        assert 0 <= outcome.match_score <= 100

    def test_reference_par_defaut_created_at(self):
        outcome = pipeline.score_pair(_profile(), _proc(), ScoringConfig(), created_at=NOW)
        # NOW : lundi 12h → heure de pointe
        assert "peak_period" in outcome.predictions["risk_assessment"]["risk_factors"]


class TestRunMatching:
    def test_historique_insuffisant_ignore(self):
        profiles = [_profile(user_id=1, n=10), _profile(user_id=2, n=2)]
        outcomes = pipeline.run_matching(profiles, [_proc()], ScoringConfig(), created_at=NOW, min_score=0)
        assert {o.user_id for o in outcomes} == {1}

    def test_plancher(self):
        outcomes = pipeline.run_matching(
            [_profile()], [_proc()], ScoringConfig(), created_at=NOW, min_score=101
        )
        assert outcomes == []

    def test_classement_top_fraction(self):
        profiles = [_profile(user_id=i, level=5.0 + i / 2) for i in range(1, 11)]
        outcomes = pipeline.run_matching(profiles, [_proc()], ScoringConfig(), created_at=NOW, min_score=0)
        assert len(outcomes) == 2
        scores = [o.multi_objective_score for o in outcomes]
        assert scores == sorted(scores, reverse=True)

    def test_duree_de_vie_configurable(self):
        outcomes = pipeline.run_matching(
            [_profile()], [_proc()], ScoringConfig(), created_at=NOW, min_score=0, ttl_days=3
        )
        assert outcomes[0].expires_at == NOW + timedelta(days=3)

    def test_date_cible_change_les_predictions(self):
        def expected_time(reference):
            outcomes = pipeline.run_matching(
                [_profile()], [_proc()], ScoringConfig(), created_at=NOW, min_score=0, reference=reference
            )
            return outcomes[0].predictions["expected_completion_time"]

        summer = expected_time(datetime(2025, 7, 5, 12, 0, tzinfo=timezone.utc))
        winter = expected_time(datetime(2025, 1, 7, 3, 0, tzinfo=timezone.utc))
        assert summer < winter


class TestAnalyticsSummary:
    def test_vide(self):
        summary = pipeline.analytics_summary([], {"accuracy": 0.85})
        assert summary["total_matches"] == 0
        assert summary["score_distribution"] == {"0-39": 0, "40-59": 0, "60-79": 0, "80-100": 0}
        assert summary["model_performance"] == {"accuracy": 0.85}

    def test_distribution(self):
        rows = [
            make_match_row(sop_id=1, match_score=85, confidence_low=80, confidence_high=90),
            make_match_row(sop_id=1, match_score=65, confidence_low=50, confidence_high=70),
            make_match_row(sop_id=2, match_score=45, confidence_low=40, confidence_high=60),
        ]
        summary = pipeline.analytics_summary(rows, {})
        assert summary["total_matches"] == 3
        assert summary["average_match_score"] == 65.0
        assert summary["score_distribution"] == {"0-39": 0, "40-59": 1, "60-79": 1, "80-100": 1}
        assert summary["average_interval_width"] == pytest.approx(16.67)
        assert summary["top_sops"][0] == {"sop_id": 1, "average_match_score": 75.0, "matches": 2}
