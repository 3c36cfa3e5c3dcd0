from __future__ import annotations

from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from parkmate.core.config import get_settings
from parkmate.db.models.subscriptions import Subscription
from parkmate.db.models.trial_devices import TrialDevice
from parkmate.db.repo.subscriptions_repo import SubscriptionsRepo
from parkmate.db.repo.trials_repo import TrialsRepo
from parkmate.subscriptions.constants import (
    SUBSCRIPTION_TYPE_TRIAL,
    TRIAL_REASON_DEVICE_USED,
    TRIAL_REASON_IP_USED,
)
from parkmate.subscriptions.errors import TrialAlreadyUsedError
from parkmate.subscriptions.types import RedeemResult, TrialEligibility

logger = structlog.get_logger(__name__)


def _normalize_fingerprint(ip_fingerprint: str | None) -> str | None:
    if ip_fingerprint is None:
        return None
    stripped = ip_fingerprint.strip()
    return stripped or None


async def check_eligibility(
    session: AsyncSession,
    *,
    device_id: str,
    ip_fingerprint: str | None = None,
) -> TrialEligibility:
    if await TrialsRepo.get_by_device_id(session, device_id) is not None:
        return TrialEligibility(eligible=False, reason=TRIAL_REASON_DEVICE_USED)

    fingerprint = _normalize_fingerprint(ip_fingerprint)
    if fingerprint is not None:
        if await TrialsRepo.get_by_ip_fingerprint(session, fingerprint) is not None:
            return TrialEligibility(eligible=False, reason=TRIAL_REASON_IP_USED)

    return TrialEligibility(eligible=True)


async def start_trial(
    session: AsyncSession,
    *,
    device_id: str,
    ip_fingerprint: str | None = None,
    now_utc: datetime | None = None,
) -> RedeemResult:
    """Grant the one-time device-wide trial.

    The trial_devices insert is the gate: its primary key and the unique
    fingerprint make a second start fail even when two requests race.
    """
    now_utc = now_utc or datetime.now(timezone.utc)
    fingerprint = _normalize_fingerprint(ip_fingerprint)

    eligibility = await check_eligibility(
        session,
        device_id=device_id,
        ip_fingerprint=fingerprint,
    )
    if not eligibility.eligible:
        raise TrialAlreadyUsedError(eligibility.reason or TRIAL_REASON_DEVICE_USED)

    try:
        async with session.begin_nested():
            await TrialsRepo.create(
                session,
                trial_device=TrialDevice(
                    device_id=device_id,
                    ip_fingerprint=fingerprint,
                    has_used_trial=True,
                    trial_started_at=now_utc,
                ),
            )
    except IntegrityError as exc:
        reason = TRIAL_REASON_DEVICE_USED
        if (
            fingerprint is not None
            and await TrialsRepo.get_by_device_id(session, device_id) is None
        ):
            reason = TRIAL_REASON_IP_USED
        logger.info("trial_start_conflict", device_id=device_id, reason=reason)
        raise TrialAlreadyUsedError(reason) from exc

    duration_days = get_settings().trial_duration_days
    subscription = await SubscriptionsRepo.create(
        session,
        subscription=Subscription(
            villa_id=None,
            device_id=device_id,
            subscription_type=SUBSCRIPTION_TYPE_TRIAL,
            activation_code=None,
            is_active=True,
            activated_at=now_utc,
            expires_at=now_utc + timedelta(days=duration_days),
            created_at=now_utc,
            updated_at=now_utc,
        ),
    )
    logger.info("trial_started", device_id=device_id, duration_days=duration_days)
    return RedeemResult(
        subscription_id=subscription.id,
        device_id=device_id,
        villa_id=None,
        subscription_type=SUBSCRIPTION_TYPE_TRIAL,
        activation_code=None,
        is_active=True,
        activated_at=subscription.activated_at,
        expires_at=subscription.expires_at,
        days_granted=duration_days,
        extended=False,
    )
