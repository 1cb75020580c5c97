"""key population registry and visits

Revision ID: 202610190002
Revises: 202610190001
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "202610190002"
down_revision = "202610190001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "key_populations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("gender_item_id", sa.Integer(), nullable=True),
        sa.Column("id_card_no", sa.String(length=50), nullable=True),
        sa.Column("community_id", sa.Integer(), nullable=True),
        sa.Column("household_id", sa.Integer(), nullable=True),
        sa.Column("contact_phone", sa.String(length=50), nullable=True),
        sa.Column("residence_address", sa.String(length=255), nullable=True),
        sa.Column("household_address", sa.String(length=255), nullable=True),
        sa.Column("is_key_population", sa.Boolean(), nullable=False),
        sa.Column("type_item_id", sa.Integer(), nullable=True),
        sa.Column("control_level_item_id", sa.Integer(), nullable=True),
        sa.Column("risk_level_item_id", sa.Integer(), nullable=True),
        sa.Column("control_officer_id", sa.Integer(), nullable=True),
        sa.Column("control_measure", sa.String(), nullable=True),
        sa.Column("revisit_interval_days", sa.Integer(), nullable=False),
        sa.Column("latest_visit_date", sa.String(length=10), nullable=True),
        sa.Column("next_visit_date", sa.String(length=10), nullable=True),
        sa.Column("remark", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["community_id"], ["communities.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["household_id"], ["community_households.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["gender_item_id"], ["dict_items.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["type_item_id"], ["dict_items.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["control_level_item_id"], ["dict_items.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["risk_level_item_id"], ["dict_items.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["control_officer_id"], ["police_officers.id"], ondelete="SET NULL"),
        sa.CheckConstraint("revisit_interval_days > 0", name="ck_key_populations_revisit_interval_positive"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("id_card_no", name="uq_key_populations_id_card_no"),
    )
    op.create_index("ix_key_populations_name", "key_populations", ["name"])
    op.create_index("ix_key_populations_community_id", "key_populations", ["community_id"])
    op.create_index("ix_key_populations_control_officer_id", "key_populations", ["control_officer_id"])
    op.create_index("ix_key_populations_created_at", "key_populations", ["created_at"])
    op.create_index(
        "ix_key_populations_key_next_visit",
        "key_populations",
        ["is_key_population", "next_visit_date"],
    )

    op.create_table(
        "key_population_visits",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("population_id", sa.Integer(), nullable=False),
        sa.Column("visit_date", sa.String(length=10), nullable=False),
        sa.Column("visitor_officer_id", sa.Integer(), nullable=True),
        sa.Column("visitor_name", sa.String(length=50), nullable=True),
        sa.Column("location", sa.String(length=100), nullable=True),
        sa.Column("visit_content", sa.String(), nullable=True),
        sa.Column("is_abnormal", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["population_id"], ["key_populations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["visitor_officer_id"], ["police_officers.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_key_population_visits_population_date",
        "key_population_visits",
        ["population_id", "visit_date"],
    )
    op.create_index("ix_key_population_visits_created_at", "key_population_visits", ["created_at"])


def downgrade() -> None:
    op.drop_table("key_population_visits")
    op.drop_table("key_populations")
