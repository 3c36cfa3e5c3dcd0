from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from parkmate.db.models.base import Base


class Vehicle(Base):
    __tablename__ = "vehicles"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending','sent','failed','verified')",
            name="ck_vehicles_status",
        ),
        CheckConstraint("serial_number >= 1", name="ck_vehicles_serial_number_positive"),
        UniqueConstraint(
            "device_id",
            "villa_id",
            "serial_number",
            name="uq_vehicles_device_villa_serial",
        ),
        Index("idx_vehicles_device_villa", "device_id", "villa_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    device_id: Mapped[str] = mapped_column(String(100), nullable=False)
    villa_id: Mapped[str] = mapped_column(String(50), nullable=False)
    plate_number: Mapped[str] = mapped_column(String(32), nullable=False)
    room_name: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    sms_message: Mapped[str] = mapped_column(String(160), nullable=False)
    serial_number: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    last_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
