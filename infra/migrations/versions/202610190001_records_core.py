"""records core tables

Revision ID: 202610190001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "202610190001"
down_revision = None
branch_labels = None
depends_on = None

officer_status = sa.Enum("ACTIVE", "INACTIVE", "LOCKED", name="officerstatus")
case_status = sa.Enum("IN_PROGRESS", "CLOSED", "TRANSFERRED", "ARCHIVED", name="casestatus")


def upgrade() -> None:
    op.create_table(
        "police_officers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("badge_no", sa.String(length=50), nullable=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("status", officer_status, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("remark", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("badge_no", name="uq_police_officers_badge_no"),
    )
    op.create_index("ix_police_officers_badge_no", "police_officers", ["badge_no"])
    op.create_index("ix_police_officers_name", "police_officers", ["name"])
    op.create_index("ix_police_officers_status", "police_officers", ["status"])
    op.create_index("ix_police_officers_created_at", "police_officers", ["created_at"])

    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_roles_code", "roles", ["code"], unique=True)

    op.create_table(
        "permissions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code", sa.String(length=100), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_permissions_code", "permissions", ["code"], unique=True)

    op.create_table(
        "officer_roles",
        sa.Column("officer_id", sa.Integer(), nullable=False),
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["officer_id"], ["police_officers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("officer_id", "role_id"),
    )
    op.create_index("ix_officer_roles_role_id", "officer_roles", ["role_id"])

    op.create_table(
        "role_permissions",
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.Column("permission_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["permission_id"], ["permissions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("role_id", "permission_id"),
    )

    op.create_table(
        "dict_items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("dict_type", sa.String(length=50), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("label", sa.String(length=100), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("dict_type", "code", name="uq_dict_items_type_code"),
    )
    op.create_index("ix_dict_items_dict_type", "dict_items", ["dict_type"])

    op.create_table(
        "communities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("remark", sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "case_records",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("case_no", sa.String(length=50), nullable=False),
        sa.Column("case_name", sa.String(length=255), nullable=False),
        sa.Column("case_type_item_id", sa.Integer(), nullable=False),
        sa.Column("main_officer_id", sa.Integer(), nullable=False),
        sa.Column("received_date", sa.String(length=10), nullable=False),
        sa.Column("deadline_date", sa.String(length=10), nullable=True),
        sa.Column("status", case_status, nullable=False),
        sa.Column("closed_date", sa.String(length=10), nullable=True),
        sa.Column("result_item_id", sa.Integer(), nullable=True),
        sa.Column("transfer_target", sa.String(length=255), nullable=True),
        sa.Column("transfer_date", sa.String(length=19), nullable=True),
        sa.Column("transfer_return_date", sa.String(length=19), nullable=True),
        sa.Column("archive_location", sa.String(length=255), nullable=True),
        sa.Column("archive_date", sa.String(length=10), nullable=True),
        sa.Column("summary", sa.String(), nullable=True),
        sa.Column("remark", sa.String(length=255), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["case_type_item_id"], ["dict_items.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["result_item_id"], ["dict_items.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["main_officer_id"], ["police_officers.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["created_by"], ["police_officers.id"], ondelete="SET NULL"),
        sa.CheckConstraint(
            "deadline_date IS NULL OR deadline_date >= received_date",
            name="ck_case_records_deadline_after_received",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("case_no", name="uq_case_records_case_no"),
    )
    op.create_index("ix_case_records_main_officer_id", "case_records", ["main_officer_id"])
    op.create_index("ix_case_records_received_date", "case_records", ["received_date"])
    op.create_index("ix_case_records_created_at", "case_records", ["created_at"])
    op.create_index("ix_case_records_status_deadline", "case_records", ["status", "deadline_date"])

    op.create_table(
        "case_officers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("case_id", sa.Integer(), nullable=False),
        sa.Column("officer_id", sa.Integer(), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=True),
        sa.Column("remark", sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(["case_id"], ["case_records.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["officer_id"], ["police_officers.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("case_id", "officer_id", name="uq_case_officers_case_officer"),
    )
    op.create_index("ix_case_officers_case_id", "case_officers", ["case_id"])
    op.create_index("ix_case_officers_officer_id", "case_officers", ["officer_id"])

    op.create_table(
        "case_persons",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("case_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("id_no", sa.String(length=50), nullable=True),
        sa.Column("contact", sa.String(length=100), nullable=True),
        sa.Column("role_item_id", sa.Integer(), nullable=False),
        sa.Column("remark", sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(["case_id"], ["case_records.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["role_item_id"], ["dict_items.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_case_persons_case_id", "case_persons", ["case_id"])

    op.create_table(
        "community_households",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("community_id", sa.Integer(), nullable=False),
        sa.Column("police_officer_id", sa.Integer(), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("building_no", sa.String(length=50), nullable=True),
        sa.Column("unit_no", sa.String(length=50), nullable=True),
        sa.Column("room_no", sa.String(length=50), nullable=True),
        sa.Column("house_type_item_id", sa.Integer(), nullable=True),
        sa.Column("is_rental", sa.Boolean(), nullable=False),
        sa.Column("householder_name", sa.String(length=100), nullable=True),
        sa.Column("householder_phone", sa.String(length=50), nullable=True),
        sa.Column("remark", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["community_id"], ["communities.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["police_officer_id"], ["police_officers.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["house_type_item_id"], ["dict_items.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "community_id",
            "building_no",
            "unit_no",
            "room_no",
            name="uq_community_households_room",
        ),
    )
    op.create_index("ix_community_households_community_id", "community_households", ["community_id"])
    op.create_index("ix_community_households_police_officer_id", "community_households", ["police_officer_id"])
    op.create_index("ix_community_households_created_at", "community_households", ["created_at"])

    op.create_table(
        "household_members",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("household_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("id_no", sa.String(length=50), nullable=True),
        sa.Column("relation", sa.String(length=50), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("remark", sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(["household_id"], ["community_households.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_household_members_household_id", "household_members", ["household_id"])

    op.create_table(
        "nine_small_places",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("community_id", sa.Integer(), nullable=True),
        sa.Column("type", sa.String(length=50), nullable=True),
        sa.Column("type_item_id", sa.Integer(), nullable=True),
        sa.Column("grid_name", sa.String(length=100), nullable=True),
        sa.Column("principal_name", sa.String(length=100), nullable=True),
        sa.Column("contact_phone", sa.String(length=50), nullable=True),
        sa.Column("remark", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["community_id"], ["communities.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["type_item_id"], ["dict_items.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("community_id", "name", name="uq_nine_small_places_community_name"),
    )
    op.create_index("ix_nine_small_places_name", "nine_small_places", ["name"])
    op.create_index("ix_nine_small_places_community_id", "nine_small_places", ["community_id"])
    op.create_index("ix_nine_small_places_created_at", "nine_small_places", ["created_at"])

    op.create_table(
        "nine_small_inspections",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("place_id", sa.Integer(), nullable=False),
        sa.Column("inspect_date", sa.String(length=10), nullable=False),
        sa.Column("inspector_officer_id", sa.Integer(), nullable=True),
        sa.Column("inspector_name", sa.String(length=50), nullable=True),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("has_hidden_danger", sa.Boolean(), nullable=False),
        sa.Column("rectification_advice", sa.String(length=255), nullable=True),
        sa.Column("rectification_status_id", sa.Integer(), nullable=True),
        sa.Column("rectified_date", sa.String(length=10), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["place_id"], ["nine_small_places.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["inspector_officer_id"], ["police_officers.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["rectification_status_id"], ["dict_items.id"], ondelete="RESTRICT"),
        sa.CheckConstraint(
            "rectified_date IS NULL OR rectified_date >= inspect_date",
            name="ck_nine_small_inspections_rectified_after_inspect",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_nine_small_inspections_place_date",
        "nine_small_inspections",
        ["place_id", "inspect_date"],
    )
    op.create_index("ix_nine_small_inspections_created_at", "nine_small_inspections", ["created_at"])

    op.create_table(
        "daily_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("officer_id", sa.Integer(), nullable=False),
        sa.Column("log_date", sa.String(length=10), nullable=False),
        sa.Column("is_on_duty", sa.Boolean(), nullable=False),
        sa.Column("alarm_count", sa.Integer(), nullable=False),
        sa.Column("admin_case_count", sa.Integer(), nullable=False),
        sa.Column("criminal_case_count", sa.Integer(), nullable=False),
        sa.Column("content", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["officer_id"], ["police_officers.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("officer_id", "log_date", name="uq_daily_logs_officer_date"),
    )
    op.create_index("ix_daily_logs_officer_id", "daily_logs", ["officer_id"])
    op.create_index("ix_daily_logs_log_date", "daily_logs", ["log_date"])
    op.create_index("ix_daily_logs_created_at", "daily_logs", ["created_at"])


def downgrade() -> None:
    op.drop_table("daily_logs")
    op.drop_table("nine_small_inspections")
    op.drop_table("nine_small_places")
    op.drop_table("household_members")
    op.drop_table("community_households")
    op.drop_table("case_persons")
    op.drop_table("case_officers")
    op.drop_table("case_records")
    op.drop_table("communities")
    op.drop_table("dict_items")
    op.drop_table("role_permissions")
    op.drop_table("officer_roles")
    op.drop_table("permissions")
    op.drop_table("roles")
    op.drop_table("police_officers")
    case_status.drop(op.get_bind(), checkfirst=True)
    officer_status.drop(op.get_bind(), checkfirst=True)
