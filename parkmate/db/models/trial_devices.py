from __future__ import annotations

from datetime import datetime

from sqlalchemy import BOOLEAN, DateTime, String, text
from sqlalchemy.orm import Mapped, mapped_column

from parkmate.db.models.base import Base


class TrialDevice(Base):
    __tablename__ = "trial_devices"

    device_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    ip_fingerprint: Mapped[str | None] = mapped_column(String(128), unique=True, nullable=True)
    has_used_trial: Mapped[bool] = mapped_column(
        BOOLEAN, nullable=False, server_default=text("true")
    )
    trial_started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
