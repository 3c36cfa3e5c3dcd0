from __future__ import annotations

from datetime import datetime

from sqlalchemy import BOOLEAN, BigInteger, CheckConstraint, DateTime, Index, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from parkmate.db.models.base import Base


class Subscription(Base):
    __tablename__ = "subscriptions"
    __table_args__ = (
        CheckConstraint(
            "subscription_type IN ('trial','activation_code','google_play')",
            name="ck_subscriptions_type",
        ),
        CheckConstraint("expires_at > activated_at", name="ck_subscriptions_expiry_after_start"),
        UniqueConstraint("villa_id", "device_id", name="uq_subscriptions_villa_device"),
        Index("idx_subscriptions_device_created", "device_id", "created_at"),
        Index("idx_subscriptions_activation_code", "activation_code"),
        Index("idx_subscriptions_expires_at", "expires_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    villa_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    device_id: Mapped[str] = mapped_column(String(100), nullable=False)
    subscription_type: Mapped[str] = mapped_column(String(24), nullable=False)
    activation_code: Mapped[str | None] = mapped_column(String(10), nullable=True)
    is_active: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, server_default=text("true"))
    activated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
