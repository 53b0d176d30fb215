"""Sync run ledger and the automation config singleton."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from elections_api.models.base import Base, JSONType, UUIDMixin


class SyncLog(Base, UUIDMixin):
    """One FEC sync attempt.

    Inserted as ``running`` before any external call and finalized exactly
    once with a terminal status.
    """

    __tablename__ = "sync_logs"

    sync_type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="running", server_default="running")
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    states_synced: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    filings_created: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    filings_updated: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    filings_deactivated: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    api_requests: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    details: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    triggered_rebuild: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")

    __table_args__ = (
        CheckConstraint("sync_type IN ('auto', 'manual')", name="ck_sync_logs_sync_type"),
        CheckConstraint("status IN ('running', 'success', 'partial', 'error')", name="ck_sync_logs_status"),
        Index("idx_sync_logs_status_started", "status", "started_at"),
    )


class AutomationConfig(Base):
    """Operator-editable sync settings (single row, id = 1)."""

    __tablename__ = "automation_config"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    fec_sync_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    lookahead_days: Mapped[int] = mapped_column(Integer, nullable=False, default=60, server_default="60")
    lookback_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30, server_default="30")
    min_funds_raised: Mapped[float] = mapped_column(
        Numeric(14, 2, asdecimal=False), nullable=False, default=5000, server_default="5000"
    )
    major_parties_only: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    active_only: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    rebuild_hook_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    webhook_secret: Mapped[str | None] = mapped_column(String(200), nullable=True)
    last_sync_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("id = 1", name="ck_automation_config_singleton"),
        CheckConstraint("lookahead_days >= 0 AND lookback_days >= 0", name="ck_automation_config_window"),
    )
