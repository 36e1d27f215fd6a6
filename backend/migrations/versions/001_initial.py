"""initial schema : personnel, procédures, historique, scoring

Revision ID: 001_initial
Create Date: 16/10/2026
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = '001_initial'
down_revision = None

STAFF_ROLE = ('admin', 'manager', 'chef', 'server', 'staff')
SKILL_AREA = ('technical', 'soft', 'domain', 'problem_solving')
DIFFICULTY_LEVEL = ('beginner', 'intermediate', 'advanced')

ENUMS = {
    "staffrole": STAFF_ROLE,
    "skillarea": SKILL_AREA,
    "difficultylevel": DIFFICULTY_LEVEL,
}


def upgrade() -> None:
    # ── 1. Types ENUM ──
    for name, values in ENUMS.items():
        vals_str = ", ".join([f"'{v}'" for v in values])
        op.execute(f"""
            DO $$
            BEGIN
                IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = '{name}') THEN
                    CREATE TYPE {name} AS ENUM ({vals_str});
                END IF;
            END $$;
        """)

    # ── 2. Tenant + personnel ──
    op.create_table("restaurants",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table("staff_members",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("restaurant_id", sa.Integer, sa.ForeignKey("restaurants.id"), nullable=False, index=True),
        sa.Column("full_name", sa.String, nullable=False),
        sa.Column("email", sa.String, nullable=True, unique=True),
        sa.Column("role", postgresql.ENUM(*STAFF_ROLE, name='staffrole', create_type=False), nullable=False, server_default="staff", index=True),
        sa.Column("is_active", sa.Boolean, server_default=sa.true()),
        sa.Column("personality", sa.JSON, nullable=True),
        sa.Column("stress_tolerance", sa.Float, nullable=True),
        sa.Column("multitasking_ability", sa.Float, nullable=True),
        sa.Column("promotion_readiness", sa.Float, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table("staff_skill_profiles",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("restaurant_id", sa.Integer, sa.ForeignKey("restaurants.id"), nullable=False, index=True),
        sa.Column("staff_id", sa.Integer, sa.ForeignKey("staff_members.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("skill_area", postgresql.ENUM(*SKILL_AREA, name='skillarea', create_type=False), nullable=False),
        sa.Column("skill_index", sa.Integer, nullable=False, server_default="0"),
        sa.Column("skill_name", sa.String, nullable=True),
        sa.Column("proficiency_level", sa.Float, nullable=False, server_default="5.0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ── 3. Procédures + historique ──
    op.create_table("sop_categories",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("restaurant_id", sa.Integer, sa.ForeignKey("restaurants.id"), nullable=False, index=True),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("name_fr", sa.String, nullable=True),
    )

    op.create_table("sop_documents",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("restaurant_id", sa.Integer, sa.ForeignKey("restaurants.id"), nullable=False, index=True),
        sa.Column("category_id", sa.Integer, sa.ForeignKey("sop_categories.id"), nullable=True),
        sa.Column("title", sa.String, nullable=False),
        sa.Column("title_fr", sa.String, nullable=True),
        sa.Column("difficulty_level", postgresql.ENUM(*DIFFICULTY_LEVEL, name='difficultylevel', create_type=False), nullable=True),
        sa.Column("estimated_read_time", sa.Integer, nullable=True),
        sa.Column("tags", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("skill_requirements", sa.JSON, nullable=True),
        sa.Column("decision_points", sa.Integer, nullable=True),
        sa.Column("is_active", sa.Boolean, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table("user_progress",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("restaurant_id", sa.Integer, sa.ForeignKey("restaurants.id"), nullable=False, index=True),
        sa.Column("sop_id", sa.Integer, sa.ForeignKey("sop_documents.id"), nullable=False, index=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("staff_members.id"), nullable=False, index=True),
        sa.Column("progress_percentage", sa.Float, nullable=False, server_default="0"),
        sa.Column("time_spent", sa.Float, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
    )

    # ── 4. Scoring ──
    op.create_table("scoring_configurations",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("restaurant_id", sa.Integer, sa.ForeignKey("restaurants.id"), nullable=False),
        sa.Column("model_version", sa.String, nullable=False, server_default="1.0.0"),
        sa.Column("algorithm_weights", sa.JSON, nullable=False),
        sa.Column("ensemble", sa.JSON, nullable=False),
        sa.Column("neural_network", sa.JSON, nullable=False),
        sa.Column("optimization_objectives", sa.JSON, nullable=False),
        sa.Column("selection_strategy", sa.String, nullable=False, server_default="top_fraction"),
        sa.Column("model_performance", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("last_updated", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("restaurant_id", name="uq_scoring_config_restaurant"),
    )

    op.create_table("skill_match_results",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("matching_id", sa.String, nullable=False, index=True),
        sa.Column("restaurant_id", sa.Integer, sa.ForeignKey("restaurants.id"), nullable=False, index=True),
        sa.Column("sop_id", sa.Integer, sa.ForeignKey("sop_documents.id"), nullable=False, index=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("staff_members.id"), nullable=False, index=True),
        sa.Column("match_score", sa.Integer, nullable=False, index=True),
        sa.Column("confidence_low", sa.Float, nullable=False),
        sa.Column("confidence_high", sa.Float, nullable=False),
        sa.Column("multi_objective_score", sa.Float, nullable=True),
        sa.Column("primary_algorithm", sa.String, nullable=False, server_default="ensemble", index=True),
        sa.Column("algorithm_details", sa.JSON, nullable=True),
        sa.Column("predictions", sa.JSON, nullable=True),
        sa.Column("skill_analysis", sa.JSON, nullable=True),
        sa.Column("recommendations", sa.JSON, nullable=True),
        sa.Column("team_impact", sa.JSON, nullable=True),
        sa.Column("model_version", sa.String, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False, index=True),
    )

    op.create_table("sop_performance_predictions",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("restaurant_id", sa.Integer, sa.ForeignKey("restaurants.id"), nullable=False, index=True),
        sa.Column("sop_id", sa.Integer, sa.ForeignKey("sop_documents.id"), nullable=False, index=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("staff_members.id"), nullable=True, index=True),
        sa.Column("prediction_type", sa.String, nullable=False, index=True),
        sa.Column("predicted_value", sa.Float, nullable=False),
        sa.Column("prediction_range", sa.JSON, nullable=True),
        sa.Column("confidence_interval", sa.Float, nullable=False),
        sa.Column("input_features", sa.JSON, nullable=True),
        sa.Column("model_version", sa.String, nullable=False),
        sa.Column("prediction_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("actual_value", sa.Float, nullable=True),
        sa.Column("accuracy_score", sa.Float, nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table("sop_completion_patterns",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("restaurant_id", sa.Integer, sa.ForeignKey("restaurants.id"), nullable=False, index=True),
        sa.Column("sop_id", sa.Integer, sa.ForeignKey("sop_documents.id"), nullable=False, index=True),
        sa.Column("pattern_type", sa.String, nullable=False, index=True),
        sa.Column("time_period", sa.String, nullable=False),
        sa.Column("pattern_data", sa.JSON, nullable=False),
        sa.Column("statistical_metrics", sa.JSON, nullable=False),
        sa.Column("insights", sa.JSON, nullable=False),
        sa.Column("confidence_level", sa.Float, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    for table in (
        "sop_completion_patterns",
        "sop_performance_predictions",
        "skill_match_results",
        "scoring_configurations",
        "user_progress",
        "sop_documents",
        "sop_categories",
        "staff_skill_profiles",
        "staff_members",
        "restaurants",
    ):
        op.drop_table(table)

    for name in ENUMS:
        op.execute(f"DROP TYPE IF EXISTS {name}")
