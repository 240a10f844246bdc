"""Initial schema

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 10:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261018_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Non-native enums persist member names.
slot_status_enum = sa.Enum("AVAILABLE", "BOOKED", "CANCELLED", name="slot_status_enum", native_enum=False)
booking_status_enum = sa.Enum(
    "PENDING",
    "CONFIRMED",
    "CHECKED_IN",
    "COMPLETED",
    "CANCELLED",
    name="booking_status_enum",
    native_enum=False,
)
booking_event_type_enum = sa.Enum(
    "CREATED",
    "UPDATED",
    "CONFIRMED",
    "CANCELLED",
    "NO_SHOW",
    "CHECK_IN",
    "CHECK_OUT",
    "EXTENDED",
    name="booking_event_type_enum",
    native_enum=False,
)
line_item_type_enum = sa.Enum("EQUIPMENT", "EXTRA_SERVICE", name="line_item_type_enum", native_enum=False)
equipment_status_enum = sa.Enum("AVAILABLE", "IN_USE", "MAINTENANCE", name="equipment_status_enum", native_enum=False)
discount_type_enum = sa.Enum("PERCENTAGE", "FIXED", name="discount_type_enum", native_enum=False)
promotion_audience_enum = sa.Enum("ALL", "FIRST_TIME", "RETURNING", name="promotion_audience_enum", native_enum=False)
policy_type_enum = sa.Enum("CANCELLATION", "NO_SHOW", name="policy_type_enum", native_enum=False)
policy_category_enum = sa.Enum(
    "FLEXIBLE",
    "STANDARD",
    "MODERATE",
    "PREMIUM",
    "STRICT",
    name="policy_category_enum",
    native_enum=False,
)
notification_kind_enum = sa.Enum("CONFIRMATION", "INFO", "WARNING", name="notification_kind_enum", native_enum=False)
notification_status_enum = sa.Enum("PENDING", "SENT", "FAILED", name="notification_status_enum", native_enum=False)


def _id_col() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _created_col() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_col() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    op.create_table(
        "studios",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("base_rate_per_hour", sa.Numeric(12, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )

    op.create_table(
        "extra_services",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("price_per_use", sa.Numeric(12, 2), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False),
    )

    op.create_table(
        "equipment",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("price_per_hour", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_qty", sa.Integer(), nullable=False),
        sa.Column("available_qty", sa.Integer(), nullable=False),
        sa.Column("in_use_qty", sa.Integer(), nullable=False),
        sa.Column("maintenance_qty", sa.Integer(), nullable=False),
        sa.Column("status", equipment_status_enum, nullable=False),
        sa.CheckConstraint(
            "total_qty = available_qty + in_use_qty + maintenance_qty",
            name="ck_equipment_qty_balance",
        ),
        sa.CheckConstraint("available_qty >= 0", name="ck_equipment_available_qty_non_negative"),
        sa.CheckConstraint("in_use_qty >= 0", name="ck_equipment_in_use_qty_non_negative"),
        sa.CheckConstraint("maintenance_qty >= 0", name="ck_equipment_maintenance_qty_non_negative"),
    )

    op.create_table(
        "promotions",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("discount_type", discount_type_enum, nullable=False),
        sa.Column("discount_value", sa.Numeric(12, 2), nullable=False),
        sa.Column("max_discount", sa.Numeric(12, 2), nullable=True),
        sa.Column("min_order_value", sa.Numeric(12, 2), nullable=False),
        sa.Column("usage_limit", sa.Integer(), nullable=True),
        sa.Column("usage_count", sa.Integer(), nullable=False),
        sa.Column("usage_limit_per_user", sa.Integer(), nullable=True),
        sa.Column("applicable_days", postgresql.ARRAY(sa.Integer()), nullable=True),
        sa.Column("applicable_start_hour", sa.Integer(), nullable=True),
        sa.Column("applicable_end_hour", sa.Integer(), nullable=True),
        sa.Column("applicable_for", promotion_audience_enum, nullable=False),
        sa.Column("max_total_discount_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("total_discounted_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.CheckConstraint("usage_count >= 0", name="ck_promotions_usage_count_non_negative"),
        sa.CheckConstraint("total_discounted_amount >= 0", name="ck_promotions_total_discounted_non_negative"),
        sa.CheckConstraint("end_date >= start_date", name="ck_promotions_date_order"),
        sa.UniqueConstraint("code", name="uq_promotions_code"),
    )
    op.create_index("ix_promotions_code", "promotions", ["code"], unique=False)

    op.create_table(
        "room_policies",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", policy_type_enum, nullable=False),
        sa.Column("category", policy_category_enum, nullable=False),
        sa.Column("refund_tiers", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("no_show_rules", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )
    op.create_index(
        "ix_room_policies_type_category_active",
        "room_policies",
        ["type", "category", "is_active"],
        unique=False,
    )

    # booking_id is attached after bookings exists: the two tables reference each other.
    op.create_table(
        "schedules",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("studio_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", slot_status_enum, nullable=False),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.CheckConstraint("end_at > start_at", name="ck_schedules_window_order"),
        sa.ForeignKeyConstraint(["studio_id"], ["studios.id"], name="fk_schedules_studio_id_studios", ondelete="RESTRICT"),
    )
    op.create_index("ix_schedules_studio_id", "schedules", ["studio_id"], unique=False)
    op.create_index("ix_schedules_status", "schedules", ["status"], unique=False)
    op.create_index("ix_schedules_studio_window", "schedules", ["studio_id", "start_at", "end_at"], unique=False)

    op.create_table(
        "bookings",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("schedule_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("customer_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", booking_status_enum, nullable=False),
        sa.Column("total_before_discount", sa.Numeric(14, 2), nullable=False),
        sa.Column("discount_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("final_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("promo_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("policy_snapshot", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("original_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("refund_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("charge_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("net_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("check_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("check_out_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.String(length=512), nullable=True),
        sa.ForeignKeyConstraint(["schedule_id"], ["schedules.id"], name="fk_bookings_schedule_id_schedules", ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["promo_id"], ["promotions.id"], name="fk_bookings_promo_id_promotions", ondelete="SET NULL"),
    )
    op.create_index("ix_bookings_schedule_id", "bookings", ["schedule_id"], unique=False)
    op.create_index("ix_bookings_customer_id", "bookings", ["customer_id"], unique=False)
    op.create_index("ix_bookings_status", "bookings", ["status"], unique=False)
    op.create_index("ix_bookings_promo_id", "bookings", ["promo_id"], unique=False)

    op.create_foreign_key(
        "fk_schedules_booking_id_bookings",
        "schedules",
        "bookings",
        ["booking_id"],
        ["id"],
        ondelete="SET NULL",
    )

    op.create_table(
        "booking_line_items",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("item_type", line_item_type_enum, nullable=False),
        sa.Column("equipment_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("service_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("subtotal", sa.Numeric(14, 2), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_booking_line_items_quantity_positive"),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], name="fk_booking_line_items_booking_id_bookings", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["equipment_id"], ["equipment.id"], name="fk_booking_line_items_equipment_id_equipment", ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(
            ["service_id"],
            ["extra_services.id"],
            name="fk_booking_line_items_service_id_extra_services",
            ondelete="RESTRICT",
        ),
    )
    op.create_index("ix_booking_line_items_booking_id", "booking_line_items", ["booking_id"], unique=False)

    op.create_table(
        "booking_events",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", booking_event_type_enum, nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("details", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("actor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], name="fk_booking_events_booking_id_bookings", ondelete="CASCADE"),
    )
    op.create_index("ix_booking_events_booking_id", "booking_events", ["booking_id"], unique=False)
    op.create_index("ix_booking_events_type", "booking_events", ["type"], unique=False)

    op.create_table(
        "notifications",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("kind", notification_kind_enum, nullable=False),
        sa.Column("channel", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("status", notification_status_enum, nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], name="fk_notifications_booking_id_bookings", ondelete="SET NULL"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"], unique=False)
    op.create_index("ix_notifications_booking_id", "notifications", ["booking_id"], unique=False)
    op.create_index("ix_notifications_status", "notifications", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_notifications_status", table_name="notifications")
    op.drop_index("ix_notifications_booking_id", table_name="notifications")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("ix_booking_events_type", table_name="booking_events")
    op.drop_index("ix_booking_events_booking_id", table_name="booking_events")
    op.drop_table("booking_events")

    op.drop_index("ix_booking_line_items_booking_id", table_name="booking_line_items")
    op.drop_table("booking_line_items")

    op.drop_constraint("fk_schedules_booking_id_bookings", "schedules", type_="foreignkey")

    op.drop_index("ix_bookings_promo_id", table_name="bookings")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_customer_id", table_name="bookings")
    op.drop_index("ix_bookings_schedule_id", table_name="bookings")
    op.drop_table("bookings")

    op.drop_index("ix_schedules_studio_window", table_name="schedules")
    op.drop_index("ix_schedules_status", table_name="schedules")
    op.drop_index("ix_schedules_studio_id", table_name="schedules")
    op.drop_table("schedules")

    op.drop_index("ix_room_policies_type_category_active", table_name="room_policies")
    op.drop_table("room_policies")

    op.drop_index("ix_promotions_code", table_name="promotions")
    op.drop_table("promotions")

    op.drop_table("equipment")
    op.drop_table("extra_services")
    op.drop_table("studios")
