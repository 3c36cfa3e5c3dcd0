from __future__ import annotations

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from parkmate.db.models.automation_schedules import AutomationSchedule
from parkmate.db.models.vehicles import Vehicle
from parkmate.db.models.villas import Villa


class VillasRepo:
    @staticmethod
    async def list_by_device(session: AsyncSession, *, device_id: str) -> list[Villa]:
        stmt = (
            select(Villa)
            .where(Villa.device_id == device_id)
            .order_by(Villa.created_at.asc(), Villa.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get(session: AsyncSession, *, device_id: str, villa_id: str) -> Villa | None:
        stmt = select(Villa).where(Villa.device_id == device_id, Villa.villa_id == villa_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_for_update(
        session: AsyncSession, *, device_id: str, villa_id: str
    ) -> Villa | None:
        stmt = (
            select(Villa)
            .where(Villa.device_id == device_id, Villa.villa_id == villa_id)
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def count_by_device(session: AsyncSession, *, device_id: str) -> int:
        stmt = select(func.count(Villa.id)).where(Villa.device_id == device_id)
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def create(session: AsyncSession, *, villa: Villa) -> Villa:
        session.add(villa)
        await session.flush()
        return villa

    @staticmethod
    async def delete_with_children(session: AsyncSession, *, villa: Villa) -> None:
        await session.execute(
            delete(Vehicle).where(
                Vehicle.device_id == villa.device_id,
                Vehicle.villa_id == villa.villa_id,
            )
        )
        await session.execute(
            delete(AutomationSchedule).where(
                AutomationSchedule.device_id == villa.device_id,
                AutomationSchedule.villa_id == villa.villa_id,
            )
        )
        await session.delete(villa)
        await session.flush()
