"""parkmate_initial_schema

Revision ID: 5c1e2d3f4a70
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5c1e2d3f4a70"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "activation_codes",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("code", sa.String(10), nullable=False),
        sa.Column("duration_days", sa.SmallInteger(), nullable=False),
        sa.Column("villa_count", sa.SmallInteger(), nullable=False, server_default=sa.text("1")),
        sa.Column("is_used", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("used_by_device_id", sa.String(100), nullable=True),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("duration_days IN (5,30,60,90,180,365)", name="ck_activation_codes_duration_days"),
        sa.CheckConstraint("villa_count >= 1", name="ck_activation_codes_villa_count_positive"),
        sa.CheckConstraint(
            "(is_used = false) OR (used_by_device_id IS NOT NULL AND used_at IS NOT NULL)",
            name="ck_activation_codes_used_consistency",
        ),
        sa.UniqueConstraint("code", name="uq_activation_codes_code"),
    )
    op.create_index("idx_activation_codes_used_by_device", "activation_codes", ["used_by_device_id"])
    op.create_index("idx_activation_codes_created_at", "activation_codes", ["created_at"])

    op.create_table(
        "subscriptions",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("villa_id", sa.String(50), nullable=True),
        sa.Column("device_id", sa.String(100), nullable=False),
        sa.Column("subscription_type", sa.String(24), nullable=False),
        sa.Column("activation_code", sa.String(10), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("activated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "subscription_type IN ('trial','activation_code','google_play')",
            name="ck_subscriptions_type",
        ),
        sa.CheckConstraint("expires_at > activated_at", name="ck_subscriptions_expiry_after_start"),
        sa.UniqueConstraint("villa_id", "device_id", name="uq_subscriptions_villa_device"),
    )
    op.create_index("idx_subscriptions_device_created", "subscriptions", ["device_id", "created_at"])
    op.create_index("idx_subscriptions_activation_code", "subscriptions", ["activation_code"])
    op.create_index("idx_subscriptions_expires_at", "subscriptions", ["expires_at"])

    op.create_table(
        "code_redemptions",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("activation_code_id", sa.BigInteger(), nullable=False),
        sa.Column("code", sa.String(10), nullable=False),
        sa.Column("device_id", sa.String(100), nullable=False),
        sa.Column("villa_id", sa.String(50), nullable=True),
        sa.Column("subscription_id", sa.BigInteger(), nullable=False),
        sa.Column("days_granted", sa.SmallInteger(), nullable=False),
        sa.Column("expires_at_before", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at_after", sa.DateTime(timezone=True), nullable=False),
        sa.Column("redeemed_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("days_granted > 0", name="ck_code_redemptions_days_granted_positive"),
        sa.ForeignKeyConstraint(["activation_code_id"], ["activation_codes.id"]),
        sa.ForeignKeyConstraint(["subscription_id"], ["subscriptions.id"]),
    )
    op.create_index(
        "idx_code_redemptions_code_villa",
        "code_redemptions",
        ["activation_code_id", "villa_id"],
    )
    op.create_index("idx_code_redemptions_device", "code_redemptions", ["device_id"])
    op.create_index("idx_code_redemptions_redeemed_at", "code_redemptions", ["redeemed_at"])

    op.create_table(
        "trial_devices",
        sa.Column("device_id", sa.String(100), nullable=False),
        sa.Column("ip_fingerprint", sa.String(128), nullable=True),
        sa.Column("has_used_trial", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("trial_started_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("device_id"),
        sa.UniqueConstraint("ip_fingerprint", name="uq_trial_devices_ip_fingerprint"),
    )

    op.create_table(
        "villas",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("device_id", sa.String(100), nullable=False),
        sa.Column("villa_id", sa.String(50), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("sms_number", sa.String(32), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("device_id", "villa_id", name="uq_villas_device_villa"),
    )
    op.create_index("idx_villas_device", "villas", ["device_id"])

    op.create_table(
        "vehicles",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("device_id", sa.String(100), nullable=False),
        sa.Column("villa_id", sa.String(50), nullable=False),
        sa.Column("plate_number", sa.String(32), nullable=False),
        sa.Column("room_name", sa.String(64), nullable=False, server_default=sa.text("''")),
        sa.Column("sms_message", sa.String(160), nullable=False),
        sa.Column("serial_number", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("last_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("status IN ('pending','sent','failed','verified')", name="ck_vehicles_status"),
        sa.CheckConstraint("serial_number >= 1", name="ck_vehicles_serial_number_positive"),
        sa.UniqueConstraint(
            "device_id",
            "villa_id",
            "serial_number",
            name="uq_vehicles_device_villa_serial",
        ),
    )
    op.create_index("idx_vehicles_device_villa", "vehicles", ["device_id", "villa_id"])

    op.create_table(
        "automation_schedules",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("device_id", sa.String(100), nullable=False),
        sa.Column("villa_id", sa.String(50), nullable=False),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("time_of_day", sa.String(5), nullable=False),
        sa.Column("days_of_week", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("last_run_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "time_of_day ~ '^([01][0-9]|2[0-3]):[0-5][0-9]$'",
            name="ck_automation_schedules_time_of_day",
        ),
        sa.UniqueConstraint("device_id", "villa_id", name="uq_automation_schedules_device_villa"),
    )
    op.create_index(
        "idx_automation_schedules_enabled_time",
        "automation_schedules",
        ["time_of_day"],
        postgresql_where=sa.text("is_enabled"),
    )

    op.create_table(
        "sms_dispatches",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("device_id", sa.String(100), nullable=False),
        sa.Column("villa_id", sa.String(50), nullable=False),
        sa.Column("vehicle_id", sa.BigInteger(), nullable=False),
        sa.Column("to_number", sa.String(32), nullable=False),
        sa.Column("message", sa.String(160), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("attempts", sa.SmallInteger(), nullable=False),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("trigger", sa.String(16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("status IN ('sent','failed')", name="ck_sms_dispatches_status"),
        sa.CheckConstraint("trigger IN ('manual','automation')", name="ck_sms_dispatches_trigger"),
        sa.CheckConstraint("attempts >= 1", name="ck_sms_dispatches_attempts_positive"),
    )
    op.create_index("idx_sms_dispatches_device_created", "sms_dispatches", ["device_id", "created_at"])
    op.create_index("idx_sms_dispatches_vehicle", "sms_dispatches", ["vehicle_id"])


def downgrade() -> None:
    op.drop_index("idx_sms_dispatches_vehicle", table_name="sms_dispatches")
    op.drop_index("idx_sms_dispatches_device_created", table_name="sms_dispatches")
    op.drop_table("sms_dispatches")
    op.drop_index("idx_automation_schedules_enabled_time", table_name="automation_schedules")
    op.drop_table("automation_schedules")
    op.drop_index("idx_vehicles_device_villa", table_name="vehicles")
    op.drop_table("vehicles")
    op.drop_index("idx_villas_device", table_name="villas")
    op.drop_table("villas")
    op.drop_table("trial_devices")
    op.drop_index("idx_code_redemptions_redeemed_at", table_name="code_redemptions")
    op.drop_index("idx_code_redemptions_device", table_name="code_redemptions")
    op.drop_index("idx_code_redemptions_code_villa", table_name="code_redemptions")
    op.drop_table("code_redemptions")
    op.drop_index("idx_subscriptions_expires_at", table_name="subscriptions")
    op.drop_index("idx_subscriptions_activation_code", table_name="subscriptions")
    op.drop_index("idx_subscriptions_device_created", table_name="subscriptions")
    op.drop_table("subscriptions")
    op.drop_index("idx_activation_codes_created_at", table_name="activation_codes")
    op.drop_index("idx_activation_codes_used_by_device", table_name="activation_codes")
    op.drop_table("activation_codes")
