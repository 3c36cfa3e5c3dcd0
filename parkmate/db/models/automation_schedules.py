from __future__ import annotations

from datetime import datetime

from sqlalchemy import BOOLEAN, BigInteger, CheckConstraint, DateTime, Index, String, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from parkmate.db.models.base import Base


class AutomationSchedule(Base):
    __tablename__ = "automation_schedules"
    __table_args__ = (
        CheckConstraint(
            "time_of_day ~ '^([01][0-9]|2[0-3]):[0-5][0-9]$'",
            name="ck_automation_schedules_time_of_day",
        ),
        UniqueConstraint("device_id", "villa_id", name="uq_automation_schedules_device_villa"),
        Index(
            "idx_automation_schedules_enabled_time",
            "time_of_day",
            postgresql_where=text("is_enabled"),
        ),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    device_id: Mapped[str] = mapped_column(String(100), nullable=False)
    villa_id: Mapped[str] = mapped_column(String(50), nullable=False)
    is_enabled: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, server_default=text("false"))
    time_of_day: Mapped[str] = mapped_column(String(5), nullable=False)
    # Sunday first, seven flags.
    days_of_week: Mapped[list[bool]] = mapped_column(JSONB, nullable=False)
    last_run_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
