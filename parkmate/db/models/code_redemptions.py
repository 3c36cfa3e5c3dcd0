from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from parkmate.db.models.base import Base


class CodeRedemption(Base):
    __tablename__ = "code_redemptions"
    __table_args__ = (
        CheckConstraint("days_granted > 0", name="ck_code_redemptions_days_granted_positive"),
        Index("idx_code_redemptions_code_villa", "activation_code_id", "villa_id"),
        Index("idx_code_redemptions_device", "device_id"),
        Index("idx_code_redemptions_redeemed_at", "redeemed_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    activation_code_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("activation_codes.id"),
        nullable=False,
    )
    code: Mapped[str] = mapped_column(String(10), nullable=False)
    device_id: Mapped[str] = mapped_column(String(100), nullable=False)
    villa_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    subscription_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("subscriptions.id"),
        nullable=False,
    )
    days_granted: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    expires_at_before: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at_after: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    redeemed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
