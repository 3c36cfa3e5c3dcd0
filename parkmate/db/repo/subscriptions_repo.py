from __future__ import annotations

from sqlalchemy import distinct, select
from sqlalchemy.ext.asyncio import AsyncSession

from parkmate.db.models.code_redemptions import CodeRedemption
from parkmate.db.models.subscriptions import Subscription


class SubscriptionsRepo:
    @staticmethod
    async def get_villa_subscription_for_update(
        session: AsyncSession,
        *,
        villa_id: str,
        device_id: str,
    ) -> Subscription | None:
        stmt = (
            select(Subscription)
            .where(
                Subscription.villa_id == villa_id,
                Subscription.device_id == device_id,
            )
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_device_subscription_for_update(
        session: AsyncSession,
        *,
        device_id: str,
        subscription_type: str,
    ) -> Subscription | None:
        stmt = (
            select(Subscription)
            .where(
                Subscription.villa_id.is_(None),
                Subscription.device_id == device_id,
                Subscription.subscription_type == subscription_type,
            )
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
            .limit(1)
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_latest_for_device(
        session: AsyncSession,
        *,
        device_id: str,
    ) -> Subscription | None:
        stmt = (
            select(Subscription)
            .where(Subscription.device_id == device_id)
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_villa_subscriptions(
        session: AsyncSession,
        *,
        device_id: str,
    ) -> list[Subscription]:
        stmt = (
            select(Subscription)
            .where(
                Subscription.device_id == device_id,
                Subscription.villa_id.is_not(None),
            )
            .order_by(Subscription.villa_id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_device_wide_subscriptions(
        session: AsyncSession,
        *,
        device_id: str,
    ) -> list[Subscription]:
        stmt = select(Subscription).where(
            Subscription.device_id == device_id,
            Subscription.villa_id.is_(None),
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_villa_subscription(
        session: AsyncSession,
        *,
        villa_id: str,
        device_id: str,
    ) -> Subscription | None:
        stmt = select(Subscription).where(
            Subscription.villa_id == villa_id,
            Subscription.device_id == device_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, subscription: Subscription) -> Subscription:
        session.add(subscription)
        await session.flush()
        return subscription

    @staticmethod
    async def list_redeemed_villa_ids(
        session: AsyncSession,
        *,
        activation_code_id: int,
    ) -> set[str]:
        stmt = select(distinct(CodeRedemption.villa_id)).where(
            CodeRedemption.activation_code_id == activation_code_id,
            CodeRedemption.villa_id.is_not(None),
        )
        result = await session.execute(stmt)
        return {villa_id for villa_id in result.scalars().all() if villa_id is not None}

    @staticmethod
    async def has_device_wide_redemption(session: AsyncSession, *, activation_code_id: int) -> bool:
        stmt = (
            select(CodeRedemption.id)
            .where(
                CodeRedemption.activation_code_id == activation_code_id,
                CodeRedemption.villa_id.is_(None),
            )
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def create_redemption(
        session: AsyncSession, *, redemption: CodeRedemption
    ) -> CodeRedemption:
        session.add(redemption)
        await session.flush()
        return redemption
