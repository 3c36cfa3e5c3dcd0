from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from parkmate.db.models.vehicles import Vehicle


class VehiclesRepo:
    @staticmethod
    async def list_by_villa(
        session: AsyncSession,
        *,
        device_id: str,
        villa_id: str,
        vehicle_ids: Sequence[int] | None = None,
    ) -> list[Vehicle]:
        stmt = (
            select(Vehicle)
            .where(Vehicle.device_id == device_id, Vehicle.villa_id == villa_id)
            .order_by(Vehicle.serial_number.asc())
        )
        if vehicle_ids is not None:
            ids = tuple({int(vehicle_id) for vehicle_id in vehicle_ids})
            if not ids:
                return []
            stmt = stmt.where(Vehicle.id.in_(ids))
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_for_update(
        session: AsyncSession, *, device_id: str, vehicle_id: int
    ) -> Vehicle | None:
        stmt = (
            select(Vehicle)
            .where(Vehicle.id == vehicle_id, Vehicle.device_id == device_id)
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def count_by_villa(session: AsyncSession, *, device_id: str, villa_id: str) -> int:
        stmt = select(func.count(Vehicle.id)).where(
            Vehicle.device_id == device_id,
            Vehicle.villa_id == villa_id,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def get_max_serial_number(
        session: AsyncSession, *, device_id: str, villa_id: str
    ) -> int:
        stmt = select(func.max(Vehicle.serial_number)).where(
            Vehicle.device_id == device_id,
            Vehicle.villa_id == villa_id,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def create(session: AsyncSession, *, vehicle: Vehicle) -> Vehicle:
        session.add(vehicle)
        await session.flush()
        return vehicle

    @staticmethod
    async def delete(session: AsyncSession, *, vehicle: Vehicle) -> None:
        await session.delete(vehicle)
        await session.flush()
