"""add fec filing staging, sync ledger, and automation config

Revision ID: 002
Revises: 001
Create Date: 2026-10-05

Creates fec_filings, sync_logs, and the single-row automation_config table
used by the FEC sync job.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB, UUID

# revision identifiers
revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- fec_filings ---
    op.create_table(
        "fec_filings",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column(
            "cycle_id",
            UUID(as_uuid=True),
            sa.ForeignKey("election_cycles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("fec_candidate_id", sa.String(20), nullable=False),
        sa.Column("state_id", UUID(as_uuid=True), sa.ForeignKey("states.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(300), nullable=False),
        sa.Column("first_name", sa.String(150), nullable=False),
        sa.Column("last_name", sa.String(150), nullable=False),
        sa.Column("party", sa.String(20), nullable=False),
        sa.Column("office", sa.String(1), nullable=False),
        sa.Column("district_number", sa.Integer, nullable=True),
        sa.Column("is_incumbent", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("incumbent_challenge", sa.String(1), nullable=True),
        sa.Column("fec_candidate_status", sa.String(2), nullable=True),
        sa.Column("funds_raised", sa.Numeric(14, 2), nullable=True),
        sa.Column("funds_spent", sa.Numeric(14, 2), nullable=True),
        sa.Column("cash_on_hand", sa.Numeric(14, 2), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deactivated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "promoted_to_candidate_id",
            UUID(as_uuid=True),
            sa.ForeignKey("candidates.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("cycle_id", "fec_candidate_id", name="uq_fec_filings_cycle_candidate"),
        sa.CheckConstraint("office IN ('S', 'H')", name="ck_fec_filings_office"),
    )
    op.create_index("idx_fec_filings_cycle_state_active", "fec_filings", ["cycle_id", "state_id", "is_active"])
    op.create_index("idx_fec_filings_promoted", "fec_filings", ["promoted_to_candidate_id"])

    # --- sync_logs ---
    op.create_table(
        "sync_logs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("sync_type", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="running"),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("states_synced", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("filings_created", sa.Integer, nullable=False, server_default="0"),
        sa.Column("filings_updated", sa.Integer, nullable=False, server_default="0"),
        sa.Column("filings_deactivated", sa.Integer, nullable=False, server_default="0"),
        sa.Column("api_requests", sa.Integer, nullable=False, server_default="0"),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("details", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("triggered_rebuild", sa.Boolean, nullable=False, server_default="false"),
        sa.CheckConstraint("sync_type IN ('auto', 'manual')", name="ck_sync_logs_sync_type"),
        sa.CheckConstraint("status IN ('running', 'success', 'partial', 'error')", name="ck_sync_logs_status"),
    )
    op.create_index("idx_sync_logs_status_started", "sync_logs", ["status", "started_at"])

    # --- automation_config ---
    op.create_table(
        "automation_config",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("fec_sync_enabled", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("lookahead_days", sa.Integer, nullable=False, server_default="60"),
        sa.Column("lookback_days", sa.Integer, nullable=False, server_default="30"),
        sa.Column("min_funds_raised", sa.Numeric(14, 2), nullable=False, server_default="5000"),
        sa.Column("major_parties_only", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("active_only", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("rebuild_hook_url", sa.Text, nullable=True),
        sa.Column("webhook_secret", sa.String(200), nullable=True),
        sa.Column("last_sync_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("id = 1", name="ck_automation_config_singleton"),
        sa.CheckConstraint("lookahead_days >= 0 AND lookback_days >= 0", name="ck_automation_config_window"),
    )
    op.execute("INSERT INTO automation_config (id) VALUES (1)")


def downgrade() -> None:
    op.drop_table("automation_config")
    op.drop_index("idx_sync_logs_status_started", table_name="sync_logs")
    op.drop_table("sync_logs")
    op.drop_index("idx_fec_filings_promoted", table_name="fec_filings")
    op.drop_index("idx_fec_filings_cycle_state_active", table_name="fec_filings")
    op.drop_table("fec_filings")
