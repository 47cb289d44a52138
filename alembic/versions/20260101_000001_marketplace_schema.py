"""Marketplace schema

Revision ID: 20260101_000001
Revises:
Create Date: 2026-01-01 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20260101_000001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(with_updated: bool = True) -> list:
    columns = [sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now())]
    if with_updated:
        columns.append(sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()))
    return columns


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        sa.Column("profile_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("verification_token", sa.String(), nullable=True),
        sa.Column("reset_token", sa.String(), nullable=True),
        sa.Column("reset_token_expiry", sa.DateTime(), nullable=True),
        sa.Column("email_notifications", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_user_email", "user", ["email"], unique=True)
    op.create_index("ix_user_role", "user", ["role"])

    op.create_table(
        "profile",
        sa.Column("user_id", sa.String(), sa.ForeignKey("user.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("company_name", sa.String(), nullable=True),
        sa.Column("contact_person", sa.String(), nullable=True),
        sa.Column("contact_number", sa.String(), nullable=True),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("city", sa.String(), nullable=True),
        sa.Column("state", sa.String(), nullable=True),
        sa.Column("zip_code", sa.String(), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("mc_number", sa.String(), nullable=True),
        sa.Column("dot_number", sa.String(), nullable=True),
        sa.Column("fleet_size", sa.Integer(), nullable=True),
        sa.Column("drivers_license_number", sa.String(), nullable=True),
        sa.Column("certification_number", sa.String(), nullable=True),
        sa.Column("years_experience", sa.Integer(), nullable=True),
        sa.Column("vehicle_details", sa.Text(), nullable=True),
        sa.Column("service_area", sa.String(), nullable=True),
        sa.Column("vehicle_types", sa.JSON(), nullable=True),
        sa.Column("insurance_info", sa.JSON(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "driver",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=True),
        sa.Column("employer_id", sa.String(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=False),
        sa.Column("license_number", sa.String(), nullable=True),
        sa.Column("license_expiry", sa.Date(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        *_timestamps(),
    )
    op.create_index("ix_driver_user_id", "driver", ["user_id"], unique=True)
    op.create_index("ix_driver_employer_id", "driver", ["employer_id"])

    op.create_table(
        "vehicle",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("owner_id", sa.String(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("plate_number", sa.String(), nullable=True),
        sa.Column("capacity", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="available"),
        *_timestamps(),
    )
    op.create_index("ix_vehicle_owner_id", "vehicle", ["owner_id"])

    op.create_table(
        "booking",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("shipper_id", sa.String(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("pickup_address", sa.String(), nullable=False),
        sa.Column("pickup_city", sa.String(), nullable=False),
        sa.Column("pickup_state", sa.String(), nullable=False),
        sa.Column("delivery_address", sa.String(), nullable=False),
        sa.Column("delivery_city", sa.String(), nullable=False),
        sa.Column("delivery_state", sa.String(), nullable=False),
        sa.Column("cargo_type", sa.String(), nullable=False),
        sa.Column("cargo_description", sa.Text(), nullable=False),
        sa.Column("dimensions_length_ft", sa.Float(), nullable=False),
        sa.Column("dimensions_width_ft", sa.Float(), nullable=False),
        sa.Column("dimensions_height_ft", sa.Float(), nullable=False),
        sa.Column("weight_lbs", sa.Float(), nullable=False),
        sa.Column("shipment_date", sa.String(), nullable=False),
        sa.Column("flexible_dates", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("requires_escort", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("special_instructions", sa.Text(), nullable=True),
        sa.Column("carrier_id", sa.String(), sa.ForeignKey("user.id"), nullable=True),
        sa.Column("escort_id", sa.String(), sa.ForeignKey("user.id"), nullable=True),
        sa.Column(
            "assigned_driver_id",
            sa.String(),
            sa.ForeignKey("driver.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("agreed_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="pending_quote"),
        *_timestamps(),
    )
    op.create_index("ix_booking_shipper_id", "booking", ["shipper_id"])
    op.create_index("ix_booking_carrier_id", "booking", ["carrier_id"])
    op.create_index("ix_booking_escort_id", "booking", ["escort_id"])
    op.create_index("ix_booking_assigned_driver_id", "booking", ["assigned_driver_id"])
    op.create_index("ix_booking_status", "booking", ["status"])

    op.create_table(
        "quote",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("booking_id", sa.String(), sa.ForeignKey("booking.id", ondelete="CASCADE"), nullable=False),
        sa.Column("provider_id", sa.String(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("driver_id", sa.String(), sa.ForeignKey("driver.id", ondelete="SET NULL"), nullable=True),
        sa.Column("vehicle_id", sa.String(), sa.ForeignKey("vehicle.id", ondelete="SET NULL"), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        *_timestamps(),
        sa.UniqueConstraint("booking_id", "provider_id", name="uq_quote_booking_provider"),
    )
    op.create_index("ix_quote_booking_id", "quote", ["booking_id"])
    op.create_index("ix_quote_provider_id", "quote", ["provider_id"])
    op.create_index("ix_quote_status", "quote", ["status"])

    op.create_table(
        "conversation",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("booking_id", sa.String(), sa.ForeignKey("booking.id", ondelete="CASCADE"), nullable=True),
        sa.Column("participant_key", sa.String(), nullable=False, unique=True),
        *_timestamps(),
    )
    op.create_index("ix_conversation_booking_id", "conversation", ["booking_id"])

    op.create_table(
        "conversation_participant",
        sa.Column(
            "conversation_id",
            sa.String(),
            sa.ForeignKey("conversation.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("user_id", sa.String(), sa.ForeignKey("user.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_index("ix_conversation_participant_user_id", "conversation_participant", ["user_id"])

    op.create_table(
        "message",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "conversation_id",
            sa.String(),
            sa.ForeignKey("conversation.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("sender_id", sa.String(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(with_updated=False),
    )
    op.create_index("ix_message_conversation_id", "message", ["conversation_id"])
    op.create_index("ix_message_sender_id", "message", ["sender_id"])

    op.create_table(
        "notification",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("link", sa.String(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(with_updated=False),
    )
    op.create_index("ix_notification_user_id", "notification", ["user_id"])
    op.create_index("ix_notification_created_at", "notification", ["created_at"])
    op.create_index("ix_notification_user_read", "notification", ["user_id", "is_read"])

    op.create_table(
        "review",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("booking_id", sa.String(), sa.ForeignKey("booking.id", ondelete="CASCADE"), nullable=False),
        sa.Column("reviewer_id", sa.String(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("subject_id", sa.String(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        *_timestamps(with_updated=False),
        sa.UniqueConstraint("booking_id", "reviewer_id", name="uq_review_booking_reviewer"),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating_range"),
    )
    op.create_index("ix_review_booking_id", "review", ["booking_id"])
    op.create_index("ix_review_reviewer_id", "review", ["reviewer_id"])
    op.create_index("ix_review_subject_id", "review", ["subject_id"])


def downgrade() -> None:
    for table in (
        "review",
        "notification",
        "message",
        "conversation_participant",
        "conversation",
        "quote",
        "booking",
        "vehicle",
        "driver",
        "profile",
        "user",
    ):
        op.drop_table(table)
