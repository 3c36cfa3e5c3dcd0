from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from parkmate.db.models.automation_schedules import AutomationSchedule


class AutomationRepo:
    @staticmethod
    async def get(
        session: AsyncSession, *, device_id: str, villa_id: str
    ) -> AutomationSchedule | None:
        stmt = select(AutomationSchedule).where(
            AutomationSchedule.device_id == device_id,
            AutomationSchedule.villa_id == villa_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_id_for_update(
        session: AsyncSession, schedule_id: int
    ) -> AutomationSchedule | None:
        stmt = (
            select(AutomationSchedule)
            .where(AutomationSchedule.id == schedule_id)
            .with_for_update(skip_locked=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_enabled_up_to_time(
        session: AsyncSession, *, time_of_day: str
    ) -> list[AutomationSchedule]:
        stmt = (
            select(AutomationSchedule)
            .where(
                AutomationSchedule.is_enabled.is_(True),
                AutomationSchedule.time_of_day <= time_of_day,
            )
            .order_by(AutomationSchedule.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create(
        session: AsyncSession, *, schedule: AutomationSchedule
    ) -> AutomationSchedule:
        session.add(schedule)
        await session.flush()
        return schedule
