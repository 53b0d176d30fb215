"""create states, cycles, calendar, and race tables

Revision ID: 001
Revises:
Create Date: 2026-09-28

Reference geography plus the public race entities that promotion writes to.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- states ---
    op.create_table(
        "states",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("abbr", sa.String(2), nullable=False, unique=True),
        sa.Column("fips", sa.String(2), nullable=True),
        sa.Column("house_districts", sa.Integer, nullable=False, server_default="1"),
    )

    # --- election_cycles ---
    op.create_table(
        "election_cycles",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("year", sa.Integer, nullable=False),
        sa.Column("election_date", sa.Date, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_election_cycles_is_active", "election_cycles", ["is_active"])

    # --- calendar_events ---
    op.create_table(
        "calendar_events",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column(
            "cycle_id",
            UUID(as_uuid=True),
            sa.ForeignKey("election_cycles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("state_id", UUID(as_uuid=True), sa.ForeignKey("states.id", ondelete="CASCADE"), nullable=False),
        sa.Column("event_type", sa.String(30), nullable=False),
        sa.Column("event_date", sa.Date, nullable=False),
        sa.Column("title", sa.String(300), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "event_type IN ('primary', 'runoff', 'general', 'filing_deadline', 'other')",
            name="ck_calendar_events_event_type",
        ),
    )
    op.create_index(
        "idx_calendar_events_cycle_type_date",
        "calendar_events",
        ["cycle_id", "event_type", "event_date"],
    )

    # --- districts ---
    op.create_table(
        "districts",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("state_id", UUID(as_uuid=True), sa.ForeignKey("states.id", ondelete="CASCADE"), nullable=False),
        sa.Column("body", sa.String(20), nullable=False),
        sa.Column("district_number", sa.Integer, nullable=True),
        sa.Column("name", sa.String(200), nullable=True),
        sa.UniqueConstraint("state_id", "body", "district_number", name="uq_districts_state_body_number"),
        sa.CheckConstraint("body IN ('senate', 'house')", name="ck_districts_body"),
    )

    # --- races ---
    op.create_table(
        "races",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column(
            "district_id",
            UUID(as_uuid=True),
            sa.ForeignKey("districts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "cycle_id",
            UUID(as_uuid=True),
            sa.ForeignKey("election_cycles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("rating", sa.String(20), nullable=True),
        sa.Column("is_special_election", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("is_open_seat", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("district_id", "cycle_id", name="uq_races_district_cycle"),
        sa.CheckConstraint(
            "rating IS NULL OR rating IN ('Safe D', 'Likely D', 'Lean D', 'Toss-up', 'Lean R', 'Likely R', 'Safe R')",
            name="ck_races_rating",
        ),
    )

    # --- candidates ---
    op.create_table(
        "candidates",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("slug", sa.String(200), nullable=False, unique=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("party", sa.String(20), nullable=False),
        sa.Column("state_id", UUID(as_uuid=True), sa.ForeignKey("states.id", ondelete="SET NULL"), nullable=True),
        sa.Column("role_title", sa.String(200), nullable=True),
        sa.Column("photo_url", sa.Text, nullable=True),
        sa.Column("website", sa.Text, nullable=True),
        sa.Column("twitter_handle", sa.String(100), nullable=True),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("is_incumbent", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("fec_candidate_id", sa.String(20), nullable=True),
        sa.Column("bioguide_id", sa.String(20), nullable=True),
        sa.Column("funds_raised", sa.Numeric(14, 2), nullable=True),
        sa.Column("funds_spent", sa.Numeric(14, 2), nullable=True),
        sa.Column("cash_on_hand", sa.Numeric(14, 2), nullable=True),
        sa.Column("fec_financials_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "party IN ('Democrat', 'Republican', 'Independent', 'Libertarian', 'Green', 'Other')",
            name="ck_candidates_party",
        ),
    )
    op.create_index("idx_candidates_fec_candidate_id", "candidates", ["fec_candidate_id"])

    # --- race_candidates ---
    op.create_table(
        "race_candidates",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("race_id", UUID(as_uuid=True), sa.ForeignKey("races.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "candidate_id",
            UUID(as_uuid=True),
            sa.ForeignKey("candidates.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", sa.String(20), nullable=False, server_default="announced"),
        sa.Column("is_incumbent", sa.Boolean, nullable=False, server_default="false"),
        sa.UniqueConstraint("race_id", "candidate_id", name="uq_race_candidates_race_candidate"),
        sa.CheckConstraint(
            "status IN ('announced', 'primary_winner', 'runoff', 'withdrawn', 'won', 'lost')",
            name="ck_race_candidates_status",
        ),
    )


def downgrade() -> None:
    op.drop_table("race_candidates")
    op.drop_index("idx_candidates_fec_candidate_id", table_name="candidates")
    op.drop_table("candidates")
    op.drop_table("races")
    op.drop_table("districts")
    op.drop_index("idx_calendar_events_cycle_type_date", table_name="calendar_events")
    op.drop_table("calendar_events")
    op.drop_index("idx_election_cycles_is_active", table_name="election_cycles")
    op.drop_table("election_cycles")
    op.drop_table("states")
