from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from parkmate.db.models.activation_codes import ActivationCode


class ActivationCodesRepo:
    @staticmethod
    async def get_by_code(session: AsyncSession, code: str) -> ActivationCode | None:
        stmt = select(ActivationCode).where(ActivationCode.code == code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_code_for_update(session: AsyncSession, code: str) -> ActivationCode | None:
        stmt = select(ActivationCode).where(ActivationCode.code == code).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_existing_codes(session: AsyncSession, codes: Iterable[str]) -> set[str]:
        values = tuple(codes)
        if not values:
            return set()
        stmt = select(ActivationCode.code).where(ActivationCode.code.in_(values))
        result = await session.execute(stmt)
        return set(result.scalars().all())

    @staticmethod
    async def create_many(
        session: AsyncSession, *, codes: list[ActivationCode]
    ) -> list[ActivationCode]:
        session.add_all(codes)
        await session.flush()
        return codes

    @staticmethod
    async def list_used_by_device(
        session: AsyncSession,
        *,
        device_id: str,
        limit: int = 50,
    ) -> list[ActivationCode]:
        stmt = (
            select(ActivationCode)
            .where(
                ActivationCode.used_by_device_id == device_id,
                ActivationCode.is_used.is_(True),
            )
            .order_by(ActivationCode.used_at.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_recent(session: AsyncSession, *, limit: int = 50) -> list[ActivationCode]:
        stmt = (
            select(ActivationCode)
            .order_by(ActivationCode.created_at.desc(), ActivationCode.id.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_by_usage(session: AsyncSession) -> dict[bool, int]:
        stmt = select(ActivationCode.is_used, func.count(ActivationCode.id)).group_by(
            ActivationCode.is_used
        )
        result = await session.execute(stmt)
        return {bool(is_used): int(count) for is_used, count in result.all()}
