from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, SmallInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from parkmate.db.models.base import Base


class SmsDispatch(Base):
    __tablename__ = "sms_dispatches"
    __table_args__ = (
        CheckConstraint("status IN ('sent','failed')", name="ck_sms_dispatches_status"),
        CheckConstraint("trigger IN ('manual','automation')", name="ck_sms_dispatches_trigger"),
        CheckConstraint("attempts >= 1", name="ck_sms_dispatches_attempts_positive"),
        Index("idx_sms_dispatches_device_created", "device_id", "created_at"),
        Index("idx_sms_dispatches_vehicle", "vehicle_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    device_id: Mapped[str] = mapped_column(String(100), nullable=False)
    villa_id: Mapped[str] = mapped_column(String(50), nullable=False)
    vehicle_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    to_number: Mapped[str] = mapped_column(String(32), nullable=False)
    message: Mapped[str] = mapped_column(String(160), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    attempts: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    trigger: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
