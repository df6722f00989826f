"""initial_ledger_schema

Revision ID: 5d2a9c41e7b3
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "5d2a9c41e7b3"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("username", sa.String(), nullable=True),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("record", sa.String(length=32), nullable=True),
        sa.Column("record_base", sa.String(length=32), nullable=True),
        sa.Column("last_5_form", sa.String(length=5), nullable=True),
        sa.Column("current_win_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("stripe_account_id", sa.String(), nullable=True),
        sa.Column("stripe_account_status", sa.String(length=20), nullable=True),
        sa.Column(
            "stripe_onboarding_completed",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )
    op.create_index(op.f("ix_profiles_role"), "profiles", ["role"], unique=False)

    op.create_table(
        "events",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("owner_profile_id", sa.String(), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["owner_profile_id"], ["profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_events_owner_profile_id"), "events", ["owner_profile_id"], unique=False
    )
    op.create_index(op.f("ix_events_event_date"), "events", ["event_date"], unique=False)

    op.create_table(
        "event_bouts",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("event_id", sa.String(), nullable=False),
        sa.Column("red_fighter_id", sa.String(), nullable=True),
        sa.Column("blue_fighter_id", sa.String(), nullable=True),
        sa.Column("winner_side", sa.String(length=20), nullable=True),
        sa.Column("method", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "winner_side IS NULL OR winner_side IN ('red', 'blue', 'draw', 'no_contest')",
            name="ck_event_bouts_winner_side",
        ),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"]),
        sa.ForeignKeyConstraint(["red_fighter_id"], ["profiles.id"]),
        sa.ForeignKeyConstraint(["blue_fighter_id"], ["profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_event_bouts_event_id"), "event_bouts", ["event_id"], unique=False)
    op.create_index(
        op.f("ix_event_bouts_red_fighter_id"), "event_bouts", ["red_fighter_id"], unique=False
    )
    op.create_index(
        op.f("ix_event_bouts_blue_fighter_id"), "event_bouts", ["blue_fighter_id"], unique=False
    )
    op.create_index(
        op.f("ix_event_bouts_created_at"), "event_bouts", ["created_at"], unique=False
    )

    op.create_table(
        "fighter_fight_history",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("fighter_profile_id", sa.String(), nullable=False),
        sa.Column("event_name", sa.String(), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("opponent_name", sa.String(), nullable=False),
        sa.Column("location", sa.String(), nullable=True),
        sa.Column("result", sa.String(length=20), nullable=False),
        sa.Column("result_method", sa.String(), nullable=True),
        sa.Column("result_round", sa.Integer(), nullable=True),
        sa.Column("result_time", sa.String(), nullable=True),
        sa.Column("weight_class", sa.String(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["fighter_profile_id"], ["profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_fighter_fight_history_fighter_date",
        "fighter_fight_history",
        ["fighter_profile_id", "event_date"],
        unique=False,
    )

    op.create_table(
        "bout_offers",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("event_id", sa.String(), nullable=False),
        sa.Column("bout_id", sa.String(), nullable=True),
        sa.Column("fighter_id", sa.String(), nullable=True),
        sa.Column("amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("platform_fee", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"]),
        sa.ForeignKeyConstraint(["bout_id"], ["event_bouts.id"]),
        sa.ForeignKeyConstraint(["fighter_id"], ["profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_bout_offers_event_id"), "bout_offers", ["event_id"], unique=False)
    op.create_index(
        op.f("ix_bout_offers_fighter_id"), "bout_offers", ["fighter_id"], unique=False
    )

    op.create_table(
        "stream_payments",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("event_id", sa.String(), nullable=False),
        sa.Column("profile_id", sa.String(), nullable=True),
        sa.Column("amount_paid", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("platform_fee", sa.Integer(), nullable=True),
        sa.Column("fighter_allocations", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"]),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_stream_payments_event_id"), "stream_payments", ["event_id"], unique=False
    )

    op.create_table(
        "stream_tips",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("event_id", sa.String(), nullable=False),
        sa.Column("fighter_id", sa.String(), nullable=False),
        sa.Column("profile_id", sa.String(), nullable=True),
        sa.Column("amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"]),
        sa.ForeignKeyConstraint(["fighter_id"], ["profiles.id"]),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_stream_tips_event_id"), "stream_tips", ["event_id"], unique=False)
    op.create_index(
        op.f("ix_stream_tips_fighter_id"), "stream_tips", ["fighter_id"], unique=False
    )

    op.create_table(
        "payout_requests",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("recipient_type", sa.String(length=20), nullable=False),
        sa.Column("recipient_profile_id", sa.String(), nullable=False),
        sa.Column("event_id", sa.String(), nullable=False),
        sa.Column("amount_requested", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("stripe_transfer_id", sa.String(), nullable=True),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        sa.Column("processed_by", sa.String(), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["recipient_profile_id"], ["profiles.id"]),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"]),
        sa.ForeignKeyConstraint(["processed_by"], ["profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_payout_requests_event_id"), "payout_requests", ["event_id"], unique=False
    )
    op.create_index(
        op.f("ix_payout_requests_status"), "payout_requests", ["status"], unique=False
    )
    op.create_index(
        "ix_payout_requests_recipient_event",
        "payout_requests",
        ["recipient_type", "recipient_profile_id", "event_id"],
        unique=False,
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("profile_id", sa.String(), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("actor_profile_id", sa.String(), nullable=True),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"]),
        sa.ForeignKeyConstraint(["actor_profile_id"], ["profiles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_notifications_profile_id"), "notifications", ["profile_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_notifications_profile_id"), table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_payout_requests_recipient_event", table_name="payout_requests")
    op.drop_index(op.f("ix_payout_requests_status"), table_name="payout_requests")
    op.drop_index(op.f("ix_payout_requests_event_id"), table_name="payout_requests")
    op.drop_table("payout_requests")
    op.drop_index(op.f("ix_stream_tips_fighter_id"), table_name="stream_tips")
    op.drop_index(op.f("ix_stream_tips_event_id"), table_name="stream_tips")
    op.drop_table("stream_tips")
    op.drop_index(op.f("ix_stream_payments_event_id"), table_name="stream_payments")
    op.drop_table("stream_payments")
    op.drop_index(op.f("ix_bout_offers_fighter_id"), table_name="bout_offers")
    op.drop_index(op.f("ix_bout_offers_event_id"), table_name="bout_offers")
    op.drop_table("bout_offers")
    op.drop_index("ix_fighter_fight_history_fighter_date", table_name="fighter_fight_history")
    op.drop_table("fighter_fight_history")
    op.drop_index(op.f("ix_event_bouts_created_at"), table_name="event_bouts")
    op.drop_index(op.f("ix_event_bouts_blue_fighter_id"), table_name="event_bouts")
    op.drop_index(op.f("ix_event_bouts_red_fighter_id"), table_name="event_bouts")
    op.drop_index(op.f("ix_event_bouts_event_id"), table_name="event_bouts")
    op.drop_table("event_bouts")
    op.drop_index(op.f("ix_events_event_date"), table_name="events")
    op.drop_index(op.f("ix_events_owner_profile_id"), table_name="events")
    op.drop_table("events")
    op.drop_index(op.f("ix_profiles_role"), table_name="profiles")
    op.drop_table("profiles")
