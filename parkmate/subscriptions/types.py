from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class GeneratedCodesResult:
    codes: list[str]
    duration_days: int
    villa_count: int


@dataclass(slots=True)
class RedeemResult:
    subscription_id: int
    device_id: str
    villa_id: str | None
    subscription_type: str
    activation_code: str | None
    is_active: bool
    activated_at: datetime
    expires_at: datetime
    days_granted: int
    extended: bool


@dataclass(slots=True)
class SubscriptionStatus:
    is_active: bool
    subscription_type: str
    expires_at: datetime | None = None
    activation_code: str | None = None
    villa_limit: int = 0


@dataclass(slots=True)
class VillaSubscriptionView:
    subscription_id: int
    villa_id: str
    activation_code: str | None
    is_active: bool
    activated_at: datetime
    expires_at: datetime


@dataclass(slots=True)
class UsedCodeView:
    code: str
    duration_days: int
    villa_count: int
    used_at: datetime | None


@dataclass(slots=True)
class TrialEligibility:
    eligible: bool
    reason: str | None = None


@dataclass(slots=True)
class CodeSummary:
    total: int
    used: int
    unused: int
    recent: list[UsedCodeView]
