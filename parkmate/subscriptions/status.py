from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from parkmate.db.models.subscriptions import Subscription
from parkmate.db.repo.activation_codes_repo import ActivationCodesRepo
from parkmate.db.repo.subscriptions_repo import SubscriptionsRepo
from parkmate.subscriptions.constants import (
    NO_SUBSCRIPTION_VILLA_LIMIT,
    STORE_VILLA_LIMIT,
    SUBSCRIPTION_TYPE_ACTIVATION_CODE,
    SUBSCRIPTION_TYPE_TRIAL,
    TRIAL_VILLA_LIMIT,
    USED_CODES_PAGE_SIZE,
)
from parkmate.subscriptions.types import SubscriptionStatus, UsedCodeView, VillaSubscriptionView

logger = structlog.get_logger(__name__)


def is_subscription_active(subscription: Subscription, *, now_utc: datetime) -> bool:
    return bool(subscription.is_active) and now_utc < subscription.expires_at


def default_status() -> SubscriptionStatus:
    return SubscriptionStatus(
        is_active=False,
        subscription_type=SUBSCRIPTION_TYPE_TRIAL,
        expires_at=None,
        activation_code=None,
        villa_limit=NO_SUBSCRIPTION_VILLA_LIMIT,
    )


async def _villa_limit(session: AsyncSession, subscription: Subscription) -> int:
    if subscription.subscription_type == SUBSCRIPTION_TYPE_TRIAL:
        return TRIAL_VILLA_LIMIT
    if subscription.subscription_type != SUBSCRIPTION_TYPE_ACTIVATION_CODE:
        return STORE_VILLA_LIMIT
    if not subscription.activation_code:
        return 1
    activation_code = await ActivationCodesRepo.get_by_code(session, subscription.activation_code)
    return activation_code.villa_count if activation_code is not None else 1


async def get_status(
    session: AsyncSession,
    *,
    device_id: str,
    now_utc: datetime | None = None,
) -> SubscriptionStatus:
    """Latest subscription of a device, with activity evaluated at read time.

    Never raises on storage errors: callers receive the inactive default.
    """
    now_utc = now_utc or datetime.now(timezone.utc)
    try:
        subscription = await SubscriptionsRepo.get_latest_for_device(session, device_id=device_id)
        if subscription is None:
            return default_status()
        villa_limit = await _villa_limit(session, subscription)
    except SQLAlchemyError as exc:
        logger.warning(
            "subscription_status_read_failed",
            device_id=device_id,
            error_type=type(exc).__name__,
        )
        return default_status()

    return SubscriptionStatus(
        is_active=is_subscription_active(subscription, now_utc=now_utc),
        subscription_type=subscription.subscription_type,
        expires_at=subscription.expires_at,
        activation_code=subscription.activation_code,
        villa_limit=villa_limit,
    )


async def list_villa_subscriptions(
    session: AsyncSession,
    *,
    device_id: str,
    now_utc: datetime | None = None,
) -> list[VillaSubscriptionView]:
    now_utc = now_utc or datetime.now(timezone.utc)
    subscriptions = await SubscriptionsRepo.list_villa_subscriptions(session, device_id=device_id)
    return [
        VillaSubscriptionView(
            subscription_id=subscription.id,
            villa_id=str(subscription.villa_id),
            activation_code=subscription.activation_code,
            is_active=is_subscription_active(subscription, now_utc=now_utc),
            activated_at=subscription.activated_at,
            expires_at=subscription.expires_at,
        )
        for subscription in subscriptions
    ]


async def list_used_codes(session: AsyncSession, *, device_id: str) -> list[UsedCodeView]:
    codes = await ActivationCodesRepo.list_used_by_device(
        session,
        device_id=device_id,
        limit=USED_CODES_PAGE_SIZE,
    )
    return [
        UsedCodeView(
            code=item.code,
            duration_days=item.duration_days,
            villa_count=item.villa_count,
            used_at=item.used_at,
        )
        for item in codes
    ]


async def has_active_entitlement(
    session: AsyncSession,
    *,
    device_id: str,
    villa_id: str,
    now_utc: datetime | None = None,
) -> bool:
    now_utc = now_utc or datetime.now(timezone.utc)
    villa_subscription = await SubscriptionsRepo.get_villa_subscription(
        session,
        villa_id=villa_id,
        device_id=device_id,
    )
    if villa_subscription is not None and is_subscription_active(
        villa_subscription, now_utc=now_utc
    ):
        return True

    device_wide = await SubscriptionsRepo.list_device_wide_subscriptions(
        session, device_id=device_id
    )
    return any(is_subscription_active(item, now_utc=now_utc) for item in device_wide)
