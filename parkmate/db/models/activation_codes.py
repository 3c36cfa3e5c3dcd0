from __future__ import annotations

from datetime import datetime

from sqlalchemy import BOOLEAN, BigInteger, CheckConstraint, DateTime, Index, SmallInteger, String, text
from sqlalchemy.orm import Mapped, mapped_column

from parkmate.db.models.base import Base


class ActivationCode(Base):
    __tablename__ = "activation_codes"
    __table_args__ = (
        CheckConstraint(
            "duration_days IN (5,30,60,90,180,365)",
            name="ck_activation_codes_duration_days",
        ),
        CheckConstraint("villa_count >= 1", name="ck_activation_codes_villa_count_positive"),
        CheckConstraint(
            "(is_used = false) OR (used_by_device_id IS NOT NULL AND used_at IS NOT NULL)",
            name="ck_activation_codes_used_consistency",
        ),
        Index("idx_activation_codes_used_by_device", "used_by_device_id"),
        Index("idx_activation_codes_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    code: Mapped[str] = mapped_column(String(10), unique=True, nullable=False)
    duration_days: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    villa_count: Mapped[int] = mapped_column(
        SmallInteger, nullable=False, server_default=text("1")
    )
    is_used: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, server_default=text("false"))
    used_by_device_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
