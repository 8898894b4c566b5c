"""bri core tables: weight configs, weekly snapshots, current bri

Revision ID: 0001_bri_core
Revises:
Create Date: 2026-10-05 00:00:00
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_bri_core"
down_revision = None
branch_labels = None
depends_on = None

SCHEMA = "bri"


def upgrade() -> None:
    op.create_table(
        "weight_configs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("attendance_weight", sa.Float(), nullable=False),
        sa.Column("marks_weight", sa.Float(), nullable=False),
        sa.Column("assignments_weight", sa.Float(), nullable=False),
        sa.Column("sentiment_weight", sa.Float(), nullable=False),
        sa.Column("low_risk_threshold", sa.Float(), nullable=False),
        sa.Column("high_risk_threshold", sa.Float(), nullable=False),
        sa.Column("updated_by", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        schema=SCHEMA,
    )
    op.create_index("ix_bri_weight_configs_id", "weight_configs", ["id"], schema=SCHEMA)
    op.create_index("ix_bri_weight_configs_version", "weight_configs", ["version"], unique=True, schema=SCHEMA)

    op.create_table(
        "bri_snapshots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("student_id", sa.String(length=64), nullable=False),
        sa.Column("week_start_date", sa.Date(), nullable=False),
        sa.Column("bri_score", sa.Float(), nullable=False),
        sa.Column("risk_level", sa.String(length=16), nullable=False),
        sa.Column("contributing_factors", sa.JSON(), nullable=False),
        sa.Column("component_scores", sa.JSON(), nullable=False),
        sa.Column("config_version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("student_id", "week_start_date", name="uq_bri_snapshots_student_week"),
        schema=SCHEMA,
    )
    op.create_index("ix_bri_bri_snapshots_id", "bri_snapshots", ["id"], schema=SCHEMA)
    op.create_index("ix_bri_bri_snapshots_student_id", "bri_snapshots", ["student_id"], schema=SCHEMA)
    op.create_index("ix_bri_bri_snapshots_risk_level", "bri_snapshots", ["risk_level"], schema=SCHEMA)
    op.create_index(
        "ix_bri_snapshots_student_week", "bri_snapshots", ["student_id", "week_start_date"], schema=SCHEMA
    )

    op.create_table(
        "student_current_bri",
        sa.Column("student_id", sa.String(length=64), primary_key=True),
        sa.Column("bri_score", sa.Float(), nullable=False),
        sa.Column("risk_level", sa.String(length=16), nullable=False),
        sa.Column("week_start_date", sa.Date(), nullable=False),
        sa.Column("snapshot_id", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        schema=SCHEMA,
    )
    op.create_index("ix_bri_student_current_bri_bri_score", "student_current_bri", ["bri_score"], schema=SCHEMA)
    op.create_index("ix_bri_student_current_bri_risk_level", "student_current_bri", ["risk_level"], schema=SCHEMA)


def downgrade() -> None:
    op.drop_table("student_current_bri", schema=SCHEMA)
    op.drop_table("bri_snapshots", schema=SCHEMA)
    op.drop_table("weight_configs", schema=SCHEMA)
