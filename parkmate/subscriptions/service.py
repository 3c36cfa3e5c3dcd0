from __future__ import annotations

from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from parkmate.core.activation_codes import code_log_prefix
from parkmate.db.models.activation_codes import ActivationCode
from parkmate.db.models.code_redemptions import CodeRedemption
from parkmate.db.models.subscriptions import Subscription
from parkmate.db.repo.subscriptions_repo import SubscriptionsRepo
from parkmate.subscriptions.codes import ActivationCodeService
from parkmate.subscriptions.constants import SUBSCRIPTION_TYPE_ACTIVATION_CODE
from parkmate.subscriptions.errors import (
    ActivationCodeAlreadyUsedError,
    ActivationCodeQuotaExceededError,
    ActivationCodeUsedByOtherDeviceError,
)
from parkmate.subscriptions.types import RedeemResult

logger = structlog.get_logger(__name__)


class SubscriptionService:
    @staticmethod
    def _extend(
        subscription: Subscription,
        *,
        activation_code: ActivationCode,
        now_utc: datetime,
    ) -> None:
        base_end = (
            subscription.expires_at
            if subscription.expires_at and subscription.expires_at > now_utc
            else now_utc
        )
        subscription.expires_at = base_end + timedelta(days=activation_code.duration_days)
        subscription.activation_code = activation_code.code
        subscription.subscription_type = SUBSCRIPTION_TYPE_ACTIVATION_CODE
        subscription.is_active = True
        subscription.updated_at = now_utc

    @staticmethod
    async def _check_quota(
        session: AsyncSession,
        *,
        activation_code: ActivationCode,
        villa_id: str,
    ) -> None:
        if await SubscriptionsRepo.has_device_wide_redemption(
            session,
            activation_code_id=activation_code.id,
        ):
            logger.info(
                "activation_code_scope_conflict",
                code_prefix=code_log_prefix(activation_code.code),
                requested_scope="villa",
            )
            raise ActivationCodeAlreadyUsedError

        redeemed_villas = await SubscriptionsRepo.list_redeemed_villa_ids(
            session,
            activation_code_id=activation_code.id,
        )
        if villa_id in redeemed_villas:
            return
        if len(redeemed_villas) >= activation_code.villa_count:
            logger.info(
                "activation_code_quota_exceeded",
                code_prefix=code_log_prefix(activation_code.code),
                villa_count=activation_code.villa_count,
            )
            raise ActivationCodeQuotaExceededError(activation_code.villa_count)

    @staticmethod
    async def _insert_or_extend_villa_subscription(
        session: AsyncSession,
        *,
        activation_code: ActivationCode,
        device_id: str,
        villa_id: str,
        now_utc: datetime,
    ) -> tuple[Subscription, datetime | None]:
        try:
            async with session.begin_nested():
                subscription = await SubscriptionsRepo.create(
                    session,
                    subscription=Subscription(
                        villa_id=villa_id,
                        device_id=device_id,
                        subscription_type=SUBSCRIPTION_TYPE_ACTIVATION_CODE,
                        activation_code=activation_code.code,
                        is_active=True,
                        activated_at=now_utc,
                        expires_at=now_utc + timedelta(days=activation_code.duration_days),
                        created_at=now_utc,
                        updated_at=now_utc,
                    ),
                )
            return subscription, None
        except IntegrityError:
            winner = await SubscriptionsRepo.get_villa_subscription_for_update(
                session,
                villa_id=villa_id,
                device_id=device_id,
            )
            if winner is None:
                raise
            logger.info("villa_subscription_insert_race_absorbed", villa_id=villa_id)

        expires_at_before = winner.expires_at
        SubscriptionService._extend(winner, activation_code=activation_code, now_utc=now_utc)
        return winner, expires_at_before

    @staticmethod
    async def redeem(
        session: AsyncSession,
        *,
        code: str,
        device_id: str,
        villa_id: str | None = None,
        now_utc: datetime | None = None,
    ) -> RedeemResult:
        """Apply an activation code to a villa, or device-wide when villa_id is None.

        The code row stays locked until the caller's transaction ends, so quota
        checks and writes of concurrent redemptions of one code are serialised.
        """
        now_utc = now_utc or datetime.now(timezone.utc)
        activation_code = await ActivationCodeService.validate(
            session,
            code=code,
            now_utc=now_utc,
            for_update=True,
        )

        if villa_id is None:
            if (
                activation_code.used_by_device_id is not None
                and activation_code.used_by_device_id != device_id
            ):
                raise ActivationCodeUsedByOtherDeviceError
            # A device-wide grant covers every villa, so a code that already
            # activated villas cannot also be redeemed device-wide.
            if await SubscriptionsRepo.list_redeemed_villa_ids(
                session,
                activation_code_id=activation_code.id,
            ):
                logger.info(
                    "activation_code_scope_conflict",
                    code_prefix=code_log_prefix(activation_code.code),
                    requested_scope="device",
                )
                raise ActivationCodeAlreadyUsedError
            existing = await SubscriptionsRepo.get_device_subscription_for_update(
                session,
                device_id=device_id,
                subscription_type=SUBSCRIPTION_TYPE_ACTIVATION_CODE,
            )
        else:
            existing = await SubscriptionsRepo.get_villa_subscription_for_update(
                session,
                villa_id=villa_id,
                device_id=device_id,
            )
            await SubscriptionService._check_quota(
                session,
                activation_code=activation_code,
                villa_id=villa_id,
            )

        expires_at_before: datetime | None
        if existing is not None:
            expires_at_before = existing.expires_at
            SubscriptionService._extend(existing, activation_code=activation_code, now_utc=now_utc)
            subscription = existing
        elif villa_id is not None:
            subscription, expires_at_before = (
                await SubscriptionService._insert_or_extend_villa_subscription(
                    session,
                    activation_code=activation_code,
                    device_id=device_id,
                    villa_id=villa_id,
                    now_utc=now_utc,
                )
            )
        else:
            expires_at_before = None
            subscription = await SubscriptionsRepo.create(
                session,
                subscription=Subscription(
                    villa_id=None,
                    device_id=device_id,
                    subscription_type=SUBSCRIPTION_TYPE_ACTIVATION_CODE,
                    activation_code=activation_code.code,
                    is_active=True,
                    activated_at=now_utc,
                    expires_at=now_utc + timedelta(days=activation_code.duration_days),
                    created_at=now_utc,
                    updated_at=now_utc,
                ),
            )

        if not activation_code.is_used:
            activation_code.is_used = True
            activation_code.used_by_device_id = device_id
            activation_code.used_at = now_utc

        await session.flush()
        await SubscriptionsRepo.create_redemption(
            session,
            redemption=CodeRedemption(
                activation_code_id=activation_code.id,
                code=activation_code.code,
                device_id=device_id,
                villa_id=villa_id,
                subscription_id=subscription.id,
                days_granted=activation_code.duration_days,
                expires_at_before=expires_at_before,
                expires_at_after=subscription.expires_at,
                redeemed_at=now_utc,
            ),
        )
        logger.info(
            "activation_code_redeemed",
            code_prefix=code_log_prefix(activation_code.code),
            device_id=device_id,
            villa_id=villa_id,
            days_granted=activation_code.duration_days,
            extended=expires_at_before is not None,
        )
        return RedeemResult(
            subscription_id=subscription.id,
            device_id=device_id,
            villa_id=villa_id,
            subscription_type=subscription.subscription_type,
            activation_code=activation_code.code,
            is_active=True,
            activated_at=subscription.activated_at,
            expires_at=subscription.expires_at,
            days_granted=activation_code.duration_days,
            extended=expires_at_before is not None,
        )
